"""Streaming download of an HTTP resource to a local file."""

from __future__ import annotations

import asyncio
import logging
import os
from pathlib import Path
from urllib.parse import urlparse

import httpx

from clawmgr.process.runner import LogSink

logger = logging.getLogger(__name__)

PROGRESS_STEP_BYTES = 1024 * 1024
DEFAULT_TIMEOUT = httpx.Timeout(30.0, read=120.0)


class DownloadError(Exception):
    """The resource could not be fetched."""


def _content_length(headers: httpx.Headers) -> int:
    try:
        return max(0, int(headers.get("content-length") or 0))
    except ValueError:
        return 0


def resolve_target_path(url: str, target_dir: Path, filename: str | None = None) -> Path:
    name = (filename or "").strip() or os.path.basename(urlparse(url).path) or "resource.bin"
    # Keep the file inside target_dir even if a name with separators is supplied.
    return target_dir / Path(name).name


async def download_resource(
    url: str,
    target_dir: Path,
    log: LogSink,
    filename: str | None = None,
    client: httpx.AsyncClient | None = None,
) -> dict:
    """Download ``url`` into ``target_dir``. Returns ``{"path": str}``.

    The body is written to ``<name>.part`` and renamed once complete; the
    partial file is removed on any failure.
    """
    url = url.strip()
    if not url:
        raise DownloadError("resource url missing")

    target_path = resolve_target_path(url, target_dir, filename)
    partial_path = target_path.with_name(target_path.name + ".part")
    target_dir.mkdir(parents=True, exist_ok=True)
    log(f"Starting download: {url}")
    log(f"Save path: {target_path}")

    owns_client = client is None
    client = client or httpx.AsyncClient(timeout=DEFAULT_TIMEOUT, follow_redirects=True)
    try:
        async with client.stream("GET", url) as response:
            if not response.is_success:
                raise DownloadError(f"download failed: {response.status_code}")

            total = _content_length(response.headers)
            if total > 0:
                log(f"Content size: {total / 1024 / 1024:.2f} MB")

            received = 0
            last_logged = 0
            with partial_path.open("wb") as fh:
                async for chunk in response.aiter_bytes():
                    await asyncio.to_thread(fh.write, chunk)
                    received += len(chunk)
                    if received - last_logged >= PROGRESS_STEP_BYTES:
                        last_logged = received
                        if total > 0:
                            log(f"Download progress: {received / total * 100:.1f}%")
                        else:
                            log(f"Downloaded: {received / 1024 / 1024:.2f} MB")

            if received == 0:
                raise DownloadError("empty response body")

        partial_path.replace(target_path)
    except BaseException:
        partial_path.unlink(missing_ok=True)
        raise
    finally:
        if owns_client:
            await client.aclose()

    log("Download complete.")
    logger.info("Downloaded %s to %s (%d bytes)", url, target_path, received)
    return {"path": str(target_path)}
