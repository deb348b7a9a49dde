"""CLI entry point for the manager API server."""

import argparse

from clawmgr.config import settings


def main(argv: list[str] | None = None) -> None:
    parser = argparse.ArgumentParser(
        prog="clawmgr-server",
        description="Clawdbot manager API server",
    )
    parser.add_argument("--host", default=settings.host, help=f"Bind host (default: {settings.host})")
    parser.add_argument("--port", type=int, default=settings.port, help=f"Bind port (default: {settings.port})")
    parser.add_argument("--reload", action="store_true", help="Reload on code changes (development)")
    args = parser.parse_args(argv)

    import uvicorn

    uvicorn.run("clawmgr.main:app", host=args.host, port=args.port, reload=args.reload)


if __name__ == "__main__":
    main()
