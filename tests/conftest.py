"""
Pytest fixtures for eval API tests
"""
import asyncio
import json
from typing import Any, Dict, List, Optional

import pytest
from fastapi.testclient import TestClient

from evalground.common.dict_args import DictArgs
from evalground.eval_api_service.errors import InitError
from evalground.eval_api_service.session import AutomationSession, SessionBootstrapper, new_session_logger
from evalground.open_source_server import create_app


class FakeSession(AutomationSession):
    def __init__(self, cdp_url: str, model_name: str, act_result: Any = None, extract_result: Any = None,
                 goto_error: Optional[Exception] = None, act_error: Optional[Exception] = None,
                 act_blocks: bool = False):
        super().__init__("fake", cdp_url, model_name, new_session_logger())
        self.calls: List[tuple] = []
        self.act_result = act_result if act_result is not None else {"success": True, "message": "clicked"}
        self.extract_result = extract_result if extract_result is not None else {"schema": "{}"}
        self.goto_error = goto_error
        self.act_error = act_error
        self.act_blocks = act_blocks
        self.destroyed = 0

    async def goto(self, url: str):
        self.calls.append(("goto", url))
        if self.goto_error is not None:
            raise self.goto_error

    async def act(self, action: str):
        self.calls.append(("act", action))
        if self.act_blocks:
            try:
                await asyncio.sleep(3600)
            except asyncio.CancelledError:
                self.calls.append(("act cancelled", action))
                raise
        if self.act_error is not None:
            raise self.act_error
        return self.act_result

    async def extract(self, instruction, schema, model_name, use_text_extract=True):
        self.calls.append(("extract", instruction, schema, model_name, use_text_extract))
        return self.extract_result

    async def destroy(self) -> None:
        self.destroyed += 1


class FakeBootstrapper(SessionBootstrapper):
    def __init__(self, init_error: Optional[str] = None, **session_kwargs):
        self.init_error = init_error
        self.session_kwargs = session_kwargs
        self.created: List[Dict[str, Any]] = []
        self.sessions: List[FakeSession] = []

    async def create(self, model_name, cdp_url, logger=None, config_overrides=None):
        self.created.append({"model_name": model_name, "cdp_url": cdp_url})
        if self.init_error:
            raise InitError(self.init_error)
        session = FakeSession(cdp_url, model_name, **self.session_kwargs)
        self.sessions.append(session)
        return session


@pytest.fixture
def bootstrapper():
    return FakeBootstrapper()


@pytest.fixture
def client(bootstrapper):
    app = create_app(DictArgs({}), bootstrapper=bootstrapper)
    with TestClient(app, raise_server_exceptions=False) as c:
        yield c


@pytest.fixture
def valid_request():
    return {
        "command": "click signup",
        "start_url": "https://example.com",
        "cdp_url": "ws://localhost:9222",
        "mode": "actions",
    }


def parse_events(text: str) -> List[Dict[str, Any]]:
    events = []
    for frame in text.split("\n\n"):
        if not frame:
            continue
        assert frame.startswith("data: ")
        events.append(json.loads(frame[len("data: "):]))
    return events
