#!/usr/bin/env python3
"""Write the admin credentials file used by the manager API.

Usage:
    python scripts/create_admin.py --username admin --password secret [--config PATH]
"""

import argparse
import json
import sys
from pathlib import Path

from clawmgr.config import settings
from clawmgr.services.auth import new_admin_config


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Create the manager admin account")
    parser.add_argument("--username", required=True)
    parser.add_argument("--password", required=True)
    parser.add_argument("--config", default=settings.admin_config_path, help="Admin config path")
    args = parser.parse_args(argv)

    if not args.username.strip() or not args.password:
        print("username and password must not be empty", file=sys.stderr)
        return 1

    path = Path(args.config).expanduser()
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(new_admin_config(args.username.strip(), args.password), indent=2), encoding="utf-8")
    print(f"[manager] admin config saved to {path}")
    return 0


if __name__ == "__main__":
    sys.exit(main())
