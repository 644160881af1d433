# -*- coding: utf-8 -*-
"""
dispatcher

Runs a validated request against an automation session: navigate to the
start page, then either act or extract depending on `mode`.
"""

import json
import logging
from typing import Any, Dict, Optional, Type, Union

from pydantic import BaseModel, ConfigDict, Field, create_model

from .errors import ExecutionError
from .request import EvalTestRequest
from .session import AutomationSession

LOGGER = logging.getLogger(__name__)


def serialize_schema_hint(output_schema: Optional[Union[Dict[str, Any], str]]) -> str:
    if isinstance(output_schema, str):
        return output_schema
    return json.dumps(output_schema, ensure_ascii=False)


def build_output_model(output_schema: Optional[Union[Dict[str, Any], str]]) -> Type[BaseModel]:
    """Single string field `schema`, described by the caller's schema hint."""
    return create_model(
        "OutputSchema",
        __config__=ConfigDict(populate_by_name=True),
        schema_=(str, Field(alias="schema", description=serialize_schema_hint(output_schema))),
    )


class Dispatcher:
    async def navigate(self, session: AutomationSession, request: EvalTestRequest) -> None:
        try:
            await session.goto(request.start_url)
        except Exception as e:  # pylint: disable=broad-except
            LOGGER.exception("navigate to %s error: %s", request.start_url, e)
            raise ExecutionError(f"Failed to navigate to {request.start_url}: {e}") from e

    async def execute(self, session: AutomationSession, request: EvalTestRequest) -> Any:
        try:
            if request.mode == "actions":
                return await session.act(request.command)
            return await session.extract(
                instruction=request.command,
                schema=build_output_model(request.output_schema),
                model_name=request.model_name,
                use_text_extract=True,
            )
        except Exception as e:  # pylint: disable=broad-except
            LOGGER.exception("execute %s command error: %s", request.mode, e)
            raise ExecutionError(str(e) or e.__class__.__name__) from e
