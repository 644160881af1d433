# -*- coding: utf-8 -*-
"""
eval_api_service.server

Eval API routes: `/init`, `/test`, `/health`, `/version`.
"""

import datetime
import json
import logging
from typing import Any, Dict, List, Optional

import anyio
from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse, StreamingResponse
from starlette.background import BackgroundTask

from .dispatcher import Dispatcher
from .errors import InternalError, ServiceError, ValidationError
from .event_stream import EXECUTING_MESSAGE, NAVIGATING_MESSAGE, SSE_HEADERS, SSE_MEDIA_TYPE, EventStream
from .request import DEFAULT_MODEL_NAME, parse_init_request, parse_test_request
from .session import AutomationSession, SessionBootstrapper, new_session_logger

LOGGER = logging.getLogger(__name__)
API_VERSION = "v0.1"


def utc_timestamp() -> str:
    now = datetime.datetime.now(datetime.timezone.utc)
    return now.isoformat(timespec="milliseconds").replace("+00:00", "Z")


async def read_json_body(request: Request) -> Any:
    body = await request.body()
    if not body:
        return {}
    try:
        return json.loads(body)
    except (json.JSONDecodeError, UnicodeDecodeError):
        raise ValidationError("Invalid request: body is not valid JSON", fields=["body"]) from None


class EvalTestRun:
    """State of one /test request: its stream and the session it owns."""

    def __init__(
        self,
        raw_body: Any,
        bootstrapper: SessionBootstrapper,
        dispatcher: Dispatcher,
        body_error: Optional[ValidationError] = None,
    ):
        self._raw_body = raw_body
        self._body_error = body_error
        self._bootstrapper = bootstrapper
        self._dispatcher = dispatcher
        self._session: Optional[AutomationSession] = None
        self.stream = EventStream()

    async def events(self):
        try:
            if self._body_error is not None:
                raise self._body_error
            req = parse_test_request(self._raw_body)
            LOGGER.info("command: %s", req.command)
            LOGGER.info("startUrl: %s", req.start_url)
            LOGGER.info("cdpUrl: %s", req.cdp_url)

            self._session = await self._bootstrapper.create(
                model_name=req.model_name,
                cdp_url=req.cdp_url,
                logger=new_session_logger(),
            )
            yield self.stream.progress(NAVIGATING_MESSAGE)
            await self._dispatcher.navigate(self._session, req)

            yield self.stream.progress(EXECUTING_MESSAGE)
            output = await self._dispatcher.execute(self._session, req)
            yield self.stream.answer(output)
        except ServiceError as e:
            LOGGER.warning("test request failed: %s", e.message)
            yield self.stream.error(e.message)
        except Exception as e:  # pylint: disable=broad-except
            LOGGER.exception("test request internal error: %s", e)
            yield self.stream.error(InternalError().message)
        finally:
            # cancelled or closed before the terminal frame: the client went away
            if not self.stream.closed:
                LOGGER.warning("test stream aborted before completion, releasing session")
                await self.cleanup()

    async def cleanup(self):
        session, self._session = self._session, None
        if session is not None:
            with anyio.CancelScope(shield=True):
                await session.destroy()


class EvalApiServer:
    """
    FastAPI router for the eval API.

    The bootstrapper is injected so the HTTP surface never depends on a real
    browser; `open_source_server.create_app` passes the Stagehand one.
    """

    def __init__(
        self,
        bootstrapper: SessionBootstrapper,
        prefix: str = "",
        tags: Optional[List[str]] = None,
    ):
        self._bootstrapper = bootstrapper
        self._dispatcher = Dispatcher()
        self.router = APIRouter(prefix=prefix or "", tags=tags or ["eval_api"])

    def register(self) -> None:
        self.router.add_api_route("/init", self.init, operation_id="init", methods=["POST"])
        self.router.add_api_route("/test", self.test, operation_id="test", methods=["POST"])
        self.router.add_api_route("/health", self.health, operation_id="health", methods=["GET"])
        self.router.add_api_route("/version", self.version, operation_id="version", methods=["GET"])

    async def init(self, request: Request) -> JSONResponse:
        session = None
        try:
            req = parse_init_request(await read_json_body(request))
            session = await self._bootstrapper.create(
                model_name=DEFAULT_MODEL_NAME,
                cdp_url=req.cdp_url,
                logger=new_session_logger(),
            )
            LOGGER.info("init done")
            return JSONResponse({"status": "ok", "timestamp": utc_timestamp()})
        except ServiceError as e:
            LOGGER.error("init failed: %s", e.message)
            return JSONResponse(status_code=500, content={"status": "error", "message": e.message})
        finally:
            if session is not None:
                await session.destroy()

    async def test(self, request: Request) -> StreamingResponse:
        raw_body, body_error = None, None
        try:
            raw_body = await read_json_body(request)
        except ValidationError as e:
            body_error = e
        run = EvalTestRun(raw_body, self._bootstrapper, self._dispatcher, body_error=body_error)
        return StreamingResponse(
            run.events(),
            media_type=SSE_MEDIA_TYPE,
            headers=SSE_HEADERS,
            background=BackgroundTask(run.cleanup),
        )

    async def health(self) -> Dict[str, str]:
        return {"status": "ok", "timestamp": utc_timestamp()}

    async def version(self) -> Dict[str, str]:
        return {"version": API_VERSION}
