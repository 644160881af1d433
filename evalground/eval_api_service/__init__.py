# -*- coding: utf-8 -*-
"""
eval_api_service

Eval API implementation (pure FastAPI, SSE streaming, Stagehand sessions).
"""

from .server import EvalApiServer

__all__ = ["EvalApiServer"]
