# -*- coding: utf-8 -*-
"""
session

Automation sessions bound to a remote browser reached over CDP.

`AutomationSession` / `SessionBootstrapper` are the seams the rest of the
service talks to; the Stagehand-backed implementations below are the default
ones wired by `open_source_server`.
"""

import abc
import asyncio
import logging
import os
import uuid
from abc import abstractmethod
from typing import Any, Dict, Optional, Type

import anyio
from pydantic import BaseModel
from stagehand import Stagehand, StagehandConfig

from evalground.common.server_logger import SessionLoggerAdapter, session_logger

from .errors import InitError

LOGGER = logging.getLogger(__name__)


class AutomationSession(metaclass=abc.ABCMeta):
    """One remote browser connection, one model, one logger."""

    def __init__(self, session_id: str, cdp_url: str, model_name: str, logger: logging.LoggerAdapter):
        self.session_id = session_id
        self.cdp_url = cdp_url
        self.model_name = model_name
        self.logger = logger

    @abstractmethod
    async def goto(self, url: str) -> Any:
        pass

    @abstractmethod
    async def act(self, action: str) -> Any:
        pass

    @abstractmethod
    async def extract(
        self,
        instruction: str,
        schema: Type[BaseModel],
        model_name: str,
        use_text_extract: bool = True,
    ) -> Any:
        pass

    @abstractmethod
    async def destroy(self) -> None:
        pass


class SessionBootstrapper(metaclass=abc.ABCMeta):
    """Creates sessions. A single attempt, failures surface as InitError."""

    @abstractmethod
    async def create(
        self,
        model_name: str,
        cdp_url: str,
        logger: Optional[SessionLoggerAdapter] = None,
        config_overrides: Optional[Dict[str, Any]] = None,
    ) -> AutomationSession:
        pass


def new_session_logger() -> SessionLoggerAdapter:
    return session_logger("evalground.session", uuid.uuid4().hex)


class StagehandSession(AutomationSession):
    def __init__(self, stagehand: Stagehand, cdp_url: str, model_name: str, logger: SessionLoggerAdapter):
        super().__init__(logger.extra["session_id"], cdp_url, model_name, logger)
        self._stagehand = stagehand
        self._closed = False

    async def goto(self, url: str) -> Any:
        self.logger.info("goto %s", url)
        return await self._stagehand.page.goto(url)

    async def act(self, action: str) -> Any:
        self.logger.info("act: %s", action)
        return await self._stagehand.page.act(action)

    async def extract(
        self,
        instruction: str,
        schema: Type[BaseModel],
        model_name: str,
        use_text_extract: bool = True,
    ) -> Any:
        self.logger.info("extract: %s (model=%s)", instruction, model_name)
        return await self._stagehand.page.extract(
            instruction=instruction,
            schema=schema,
            model_name=model_name,
            use_text_extract=use_text_extract,
        )

    async def destroy(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            await self._stagehand.close()
        except Exception as e:  # pylint: disable=broad-except
            self.logger.exception("close stagehand session error: %s", e)
        self.logger.info("session destroyed")


async def _close_stagehand(stagehand: Optional[Stagehand], logger: SessionLoggerAdapter) -> None:
    if stagehand is None:
        return
    # shielded, the caller may already be cancelled
    with anyio.CancelScope(shield=True):
        try:
            await stagehand.close()
        except Exception as e:  # pylint: disable=broad-except
            logger.warning("close after failed init error: %s", e)


def _model_api_key(model_name: str) -> str:
    if model_name.startswith("claude"):
        return (os.environ.get("ANTHROPIC_API_KEY", "") or "").strip()
    return (os.environ.get("OPENAI_API_KEY", "") or "").strip()


class StagehandBootstrapper(SessionBootstrapper):
    def __init__(self, stagehand_config: Optional[Dict[str, Any]] = None):
        self._stagehand_config = dict(stagehand_config or {})

    def build_config_kwargs(
        self,
        model_name: str,
        cdp_url: str,
        config_overrides: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        overrides = {**self._stagehand_config, **(config_overrides or {})}
        debug_dom = bool(overrides.pop("debug_dom", False))
        kwargs: Dict[str, Any] = {
            "env": "LOCAL",
            "model_name": model_name,
            "verbose": 2 if debug_dom else 1,
            "local_browser_launch_options": {"cdp_url": cdp_url},
        }
        api_key = overrides.pop("model_api_key", "") or _model_api_key(model_name)
        if api_key:
            kwargs["model_api_key"] = api_key
        launch_options = overrides.pop("local_browser_launch_options", None) or {}
        kwargs.update(overrides)
        # the request's CDP endpoint always wins over configured launch options
        kwargs["local_browser_launch_options"] = {**launch_options, "cdp_url": cdp_url}
        return kwargs

    async def create(
        self,
        model_name: str,
        cdp_url: str,
        logger: Optional[SessionLoggerAdapter] = None,
        config_overrides: Optional[Dict[str, Any]] = None,
    ) -> AutomationSession:
        logger = logger or new_session_logger()
        logger.info("init session, model=%s cdp_url=%s", model_name, cdp_url)
        stagehand = None
        try:
            config = StagehandConfig(**self.build_config_kwargs(model_name, cdp_url, config_overrides))
            stagehand = Stagehand(config)
            await stagehand.init()
        except asyncio.CancelledError:
            logger.warning("init session cancelled")
            await _close_stagehand(stagehand, logger)
            raise
        except Exception as e:  # pylint: disable=broad-except
            logger.exception("init session error: %s", e)
            await _close_stagehand(stagehand, logger)
            raise InitError(f"Failed to initialize browser session: {e}") from e
        logger.info("init done")
        return StagehandSession(stagehand, cdp_url, model_name, logger)
