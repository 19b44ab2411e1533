"""
Liveness endpoint.

Serves ``GET /_health_check`` with aiohttp.web. The response only reflects
that the process is up, never the state of the poll pipeline.
"""

import logging

from aiohttp import web

logger = logging.getLogger(__name__)

HEALTH_CHECK_PATH = "/_health_check"


async def health_check(request: web.Request) -> web.Response:
    """Report liveness."""
    return web.json_response("OK")


def create_app() -> web.Application:
    """Build the health check application."""
    app = web.Application()
    app.router.add_get(HEALTH_CHECK_PATH, health_check)
    return app


class HealthServer:
    """Runs the health check application on a TCP port."""

    def __init__(self, host: str = "0.0.0.0", port: int = 8000):
        self.host = host
        self.port = port
        self._runner: web.AppRunner | None = None

    async def start(self) -> None:
        """Start listening."""
        self._runner = web.AppRunner(create_app(), access_log=None)
        await self._runner.setup()
        site = web.TCPSite(self._runner, self.host, self.port)
        await site.start()
        logger.info("Health check listening on %s:%d%s", self.host, self.port, HEALTH_CHECK_PATH)

    async def stop(self) -> None:
        """Stop listening and release the runner."""
        if self._runner is not None:
            await self._runner.cleanup()
            self._runner = None
            logger.debug("Health check server stopped")
