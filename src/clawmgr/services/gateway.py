"""TCP reachability probe for the local gateway."""

import asyncio
import time

from clawmgr.models.onboarding import GatewayProbe

CONNECT_TIMEOUT_SECONDS = 1.2
POLL_INTERVAL_SECONDS = 0.4


async def check_gateway(host: str, port: int, timeout: float = CONNECT_TIMEOUT_SECONDS) -> GatewayProbe:
    start = time.monotonic()
    try:
        _, writer = await asyncio.wait_for(asyncio.open_connection(host, port), timeout=timeout)
    except asyncio.TimeoutError:
        return GatewayProbe(ok=False, host=host, port=port, error="timeout")
    except OSError as exc:
        return GatewayProbe(ok=False, host=host, port=port, error=exc.strerror or str(exc))

    latency_ms = int((time.monotonic() - start) * 1000)
    writer.close()
    try:
        await writer.wait_closed()
    except OSError:
        pass
    return GatewayProbe(ok=True, host=host, port=port, latency_ms=latency_ms)


async def wait_for_gateway(
    host: str,
    port: int,
    timeout_ms: int,
    interval: float = POLL_INTERVAL_SECONDS,
) -> bool:
    """Poll until the gateway accepts a connection or ``timeout_ms`` passes."""
    deadline = time.monotonic() + timeout_ms / 1000
    while time.monotonic() < deadline:
        probe = await check_gateway(host, port)
        if probe.ok:
            return True
        await asyncio.sleep(interval)
    return False
