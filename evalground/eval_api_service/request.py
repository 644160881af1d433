# -*- coding: utf-8 -*-
"""
request

Request schemas for the eval API and helpers turning raw JSON into them.
"""

import typing
from typing import Any, Dict, Literal, Optional, Union

import pydantic
from pydantic import AnyUrl, BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from .errors import ValidationError

ModelName = Literal[
    "gpt-4o",
    "gpt-4o-mini",
    "gpt-4o-2024-08-06",
    "claude-3-5-sonnet-latest",
    "claude-3-5-sonnet-20241022",
    "claude-3-5-sonnet-20240620",
    "o1-mini",
    "o1-preview",
]
MODEL_NAMES = typing.get_args(ModelName)
DEFAULT_MODEL_NAME = "gpt-4o"

Mode = Literal["actions", "output"]

_URL_ADAPTER = TypeAdapter(AnyUrl)


def _check_url(value: str, require_host: bool = False) -> str:
    try:
        url = _URL_ADAPTER.validate_python(value)
    except pydantic.ValidationError:
        raise ValueError(f"invalid URL: {value!r}") from None
    if require_host and not url.host:
        raise ValueError(f"URL has no host: {value!r}")
    # keep the caller's spelling, AnyUrl would append a trailing slash
    return value


class InitRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    cdp_url: str = Field(description="Chrome DevTools Protocol URL")

    @field_validator("cdp_url")
    @classmethod
    def validate_url(cls, v: str) -> str:
        return _check_url(v, require_host=True)


class EvalTestRequest(BaseModel):
    model_config = ConfigDict(extra="ignore")

    command: str = Field(min_length=1, description="The instruction or command to execute")
    start_url: str = Field(description="Starting URL to navigate to")
    cdp_url: str = Field(description="Chrome DevTools Protocol URL")
    output_schema: Optional[Union[Dict[str, Any], str]] = Field(
        default=None, description="The schema to output"
    )
    mode: Mode = Field(description="The mode to run in")
    model_name: ModelName = Field(default=DEFAULT_MODEL_NAME, description="The model to use")

    @field_validator("start_url")
    @classmethod
    def validate_start_url(cls, v: str) -> str:
        # about:blank, file: and data: pages are valid start pages
        return _check_url(v)

    @field_validator("cdp_url")
    @classmethod
    def validate_cdp_url(cls, v: str) -> str:
        return _check_url(v, require_host=True)


def _format_errors(e: pydantic.ValidationError) -> ValidationError:
    fields = []
    reasons = []
    for err in e.errors():
        # union branches append their tag to loc, keep the top-level field only
        loc = err.get("loc", ())
        field = str(loc[0]) if loc else "body"
        msg = err.get("msg", "invalid value")
        if field not in fields:
            fields.append(field)
        reasons.append(f"{field}: {msg}")
    return ValidationError("Invalid request: " + "; ".join(reasons), fields=fields)


def _parse(model: typing.Type[BaseModel], raw: Any):
    if not isinstance(raw, dict):
        raise ValidationError("Invalid request: body must be a JSON object", fields=["body"])
    try:
        return model.model_validate(raw)
    except pydantic.ValidationError as e:
        raise _format_errors(e) from None


def parse_test_request(raw: Any) -> EvalTestRequest:
    return _parse(EvalTestRequest, raw)


def parse_init_request(raw: Any) -> InitRequest:
    return _parse(InitRequest, raw)
