"""
Logging utilities for the Sigh front end.

Messages go to stderr and are filtered by the CompilationContext log level.
"""

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

import sys
import time
from typing import Optional

from sigh_context import CompilationContext, LogLevel

_LEVEL_TAGS = {
    LogLevel.ERROR: "ERROR",
    LogLevel.WARNING: "WARNING",
    LogLevel.INFO: "INFO",
    LogLevel.DEBUG: "DEBUG",
}


def log(context: Optional[CompilationContext], log_level: LogLevel, message: str) -> None:
    """
    Log a message if the context's level admits it.

    Args:
        context:    The compilation context holding the logging level. When None,
                    the message is printed unconditionally with a notice.
        log_level:  The level of the message to log.
        message:    The message to log.
    """
    if context is None:
        print("No context provided for logging.", file=sys.stderr)
        print(f"{message}", file=sys.stderr)
        return
    if context.log_level < log_level:
        return
    prefix = ""
    if context.log_rich_format:
        timestamp = time.strftime("%Y-%m-%d %H:%M:%S", time.localtime())
        tag = _LEVEL_TAGS.get(log_level)
        if tag is not None:
            prefix = f"{timestamp} [{tag}] "
    print(f"{prefix}{message}", file=sys.stderr)


def log_error(context: Optional[CompilationContext], message: str) -> None:
    log(context, LogLevel.ERROR, message)


def log_warning(context: Optional[CompilationContext], message: str) -> None:
    log(context, LogLevel.WARNING, message)


def log_info(context: Optional[CompilationContext], message: str) -> None:
    log(context, LogLevel.INFO, message)


def log_debug(context: Optional[CompilationContext], message: str) -> None:
    log(context, LogLevel.DEBUG, message)


def log_stage(context: Optional[CompilationContext], stage: str, source: Optional[str] = None) -> None:
    """
    Log the start of an analysis stage.

    Args:
        context: The compilation context.
        stage:   The name of the stage (e.g., "Lexing", "Parsing").
        source:  Optional name of the source being processed.
    """
    if source:
        log(context, LogLevel.INFO, f"{stage} '{source}'")
    else:
        log(context, LogLevel.INFO, f"{stage}...")
