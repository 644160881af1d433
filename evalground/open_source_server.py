# -*- coding: utf-8 -*-
"""
open_source_server

Open-source entrypoint for the eval API (prefixless routes on one FastAPI app).
"""

import asyncio
import logging
import os
from contextlib import asynccontextmanager
from typing import Any, Dict, Optional

import uvicorn
import yaml
from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from evalground.common.dict_args import DictArgs
from evalground.common.fault_supervisor import FaultSupervisor
from evalground.common.server_logger import init_logger

from .eval_api_service import EvalApiServer
from .eval_api_service.errors import InternalError
from .eval_api_service.session import SessionBootstrapper, StagehandBootstrapper

LOGGER = logging.getLogger(__name__)

DEFAULT_HOST = "0.0.0.0"
DEFAULT_PORT = 3000


def _load_yaml_config(path: str) -> DictArgs:
    path = (path or "").strip()
    if path and os.path.isfile(path):
        with open(path, "r", encoding="utf-8") as f:
            data: Dict[str, Any] = yaml.safe_load(f) or {}
        return DictArgs(data)
    return DictArgs({})


def create_app(config: DictArgs, bootstrapper: Optional[SessionBootstrapper] = None) -> FastAPI:
    # An empty model_api_key falls back to OPENAI_API_KEY / ANTHROPIC_API_KEY.
    stagehand_cfg = config.section("stagehand").to_dict()
    fault_cfg = config.section("fault_policy")
    supervisor = FaultSupervisor(fail_fast=bool(fault_cfg.get("fail_fast", False)))

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        supervisor.install(asyncio.get_running_loop())
        yield
        supervisor.uninstall()

    app = FastAPI(title="eval_api", version="0.1.0", lifespan=lifespan)
    app.state.fault_supervisor = supervisor

    server = EvalApiServer(
        bootstrapper or StagehandBootstrapper(stagehand_cfg),
        prefix="",
        tags=["eval_api"],
    )
    server.register()
    app.include_router(server.router)

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception):
        LOGGER.error(
            "Global error handler caught: %s %s", request.method, request.url.path,
            exc_info=(type(exc), exc, exc.__traceback__),
        )
        return JSONResponse(
            status_code=500,
            content={"status": "error", "message": InternalError().message},
        )

    return app


def main():
    config_path = os.environ.get("EVAL_API_CONFIG", "config/eval_api.yaml")
    config = _load_yaml_config(config_path)
    init_logger(config.section("logger"))

    host = config.section("server").get("host", DEFAULT_HOST)
    port = int(config.section("server").get("port", DEFAULT_PORT))

    app = create_app(config)
    LOGGER.info("start eval_api server at: http://%s:%d", host, port)
    uvicorn.run(app, host=host, port=port)


if __name__ == "__main__":
    main()
