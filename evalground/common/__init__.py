# -*- coding: utf-8 -*-
"""
common

Shared helpers: config args, logging setup and the process fault supervisor.
"""
