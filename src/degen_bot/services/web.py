"""Minimal HTTP front page: a FastAPI app served by uvicorn inside the bot's event loop."""

from __future__ import annotations

import asyncio
import contextlib

import uvicorn
from fastapi import FastAPI
from fastapi.responses import HTMLResponse

from degen_bot.config import HttpConfig
from degen_bot.log import get_logger
from degen_bot.services.base import Service

logger = get_logger(__name__)

REDIRECT_PAGE = """<!DOCTYPE html>
<html lang="en">
<head>
    <meta charset="UTF-8">
    <meta http-equiv="refresh" content="0; URL={url}">
    <title>Redirecting...</title>
</head>
<body>
    <p>If you are not redirected, <a href="{url}">click here</a>.</p>
</body>
</html>"""


def create_web_app(redirect_url: str = "https://degenstudios.media") -> FastAPI:
    app = FastAPI(title="degen-bot", docs_url=None, redoc_url=None, openapi_url=None)
    page = REDIRECT_PAGE.format(url=redirect_url)

    @app.get("/", response_class=HTMLResponse)
    async def index() -> HTMLResponse:
        return HTMLResponse(page)

    return app


class WebService(Service):
    def __init__(self, config: HttpConfig):
        self._config = config
        self._server = uvicorn.Server(
            uvicorn.Config(
                create_web_app(config.redirect_url),
                host=config.host,
                port=config.port,
                log_config=None,
                lifespan="off",
            )
        )
        self._task: asyncio.Task[None] | None = None

    @property
    def service_name(self) -> str:
        return "web"

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    async def start(self) -> None:
        self._task = asyncio.create_task(self._server.serve(), name="degen-bot-web")
        logger.info("web_service_started", host=self._config.host, port=self._config.port)

    async def stop(self) -> None:
        if self._task:
            self._server.should_exit = True
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
            self._task = None
        logger.info("web_service_stopped")
