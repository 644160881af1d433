# -*- coding: utf-8 -*-
"""
evalground

Automation-dispatch service: validates eval commands, drives a remote browser
through Stagehand and streams the outcome back over SSE.
"""

__version__ = "0.1.0"
