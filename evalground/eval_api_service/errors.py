# -*- coding: utf-8 -*-
"""
errors

Error taxonomy of the eval API. Every error carries a message that is safe
to return to the caller, except InternalError which is never shown verbatim.
"""
from typing import List, Optional

INTERNAL_ERROR_MESSAGE = "An internal server error occurred"


class ServiceError(Exception):
    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(ServiceError):
    """Malformed request body, raised before any browser work."""

    def __init__(self, message: str, fields: Optional[List[str]] = None):
        super().__init__(message)
        self.fields = fields or []


class InitError(ServiceError):
    """Session bootstrap failed (CDP unreachable, auth failure...)."""


class ExecutionError(ServiceError):
    """The automation engine failed while running the command."""


class InternalError(ServiceError):
    def __init__(self, message: str = INTERNAL_ERROR_MESSAGE):
        super().__init__(message)
