# -*- coding: utf-8 -*-
"""
fault_supervisor

Process-wide boundary for faults that escape request handling.

Three sources are routed here: exceptions reaching ``sys.excepthook``,
exceptions raised in worker threads (``threading.excepthook``) and asyncio
errors nobody retrieved (the loop exception handler). Every fault is logged;
the process is only asked to stop when ``fail_fast`` is enabled.
"""

import asyncio
import logging
import os
import signal
import sys
import threading
from typing import Any, Dict, Optional

LOGGER = logging.getLogger(__name__)


class FaultSupervisor:
    def __init__(self, fail_fast: bool = False):
        self.fail_fast = fail_fast
        self.fault_count = 0
        self._installed = False
        self._prev_excepthook = None
        self._prev_threading_excepthook = None
        self._loop: Optional[asyncio.AbstractEventLoop] = None
        self._prev_loop_handler = None

    def install(self, loop: Optional[asyncio.AbstractEventLoop] = None) -> None:
        if self._installed:
            return
        self._prev_excepthook = sys.excepthook
        self._prev_threading_excepthook = threading.excepthook
        sys.excepthook = self._sys_excepthook
        threading.excepthook = self._threading_excepthook
        if loop is not None:
            self._loop = loop
            self._prev_loop_handler = loop.get_exception_handler()
            loop.set_exception_handler(self._loop_exception_handler)
        self._installed = True
        LOGGER.info("fault supervisor installed, fail_fast=%s", self.fail_fast)

    def uninstall(self) -> None:
        if not self._installed:
            return
        sys.excepthook = self._prev_excepthook
        threading.excepthook = self._prev_threading_excepthook
        if self._loop is not None and not self._loop.is_closed():
            self._loop.set_exception_handler(self._prev_loop_handler)
        self._loop = None
        self._installed = False

    def report(self, source: str, error: Optional[BaseException], detail: str = "") -> None:
        self.fault_count += 1
        exc_info = (type(error), error, error.__traceback__) if error is not None else None
        LOGGER.error("Unhandled %s: %s", source, detail or error, exc_info=exc_info)
        if self.fail_fast:
            LOGGER.critical("fail_fast enabled, shutting down after unhandled %s", source)
            os.kill(os.getpid(), signal.SIGTERM)

    def _sys_excepthook(self, exc_type, exc_value, exc_tb) -> None:
        if issubclass(exc_type, KeyboardInterrupt):
            self._prev_excepthook(exc_type, exc_value, exc_tb)
            return
        self.report("exception", exc_value)

    def _threading_excepthook(self, args: threading.ExceptHookArgs) -> None:
        if args.exc_type is SystemExit:
            return
        thread_name = args.thread.name if args.thread is not None else "unknown"
        self.report("thread exception", args.exc_value, f"thread {thread_name}: {args.exc_value!r}")

    def _loop_exception_handler(self, loop: asyncio.AbstractEventLoop, context: Dict[str, Any]) -> None:
        self.report("async rejection", context.get("exception"), context.get("message", ""))
