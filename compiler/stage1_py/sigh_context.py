"""
Analysis context for cross-cutting front-end options.

This module defines the CompilationContext dataclass which holds the options
that affect several stages of the Sigh front end (logging, diagnostics policy).
"""

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from dataclasses import dataclass
from enum import IntEnum


class LogLevel(IntEnum):
    """Hierarchical logging levels for the Sigh front end."""
    SILENT = 0      # No logging
    ERROR = 3       # Error messages only
    WARNING = 6     # Warning messages (default)
    INFO = 10       # General progress messages (-v)
    DEBUG = 30      # Detailed diagnostic information (-vvv)


@dataclass
class CompilationContext:
    """
    Holds cross-cutting options that affect multiple analysis stages.

    Attributes:
        log_rich_format:    If True, emit logs in rich format: log level and timestamp prefix.
        log_level:          Current logging level.
        strict_signatures:  If True, redeclaring a function with an already registered
                            signature is an error instead of a warning.
    """
    log_rich_format: bool = False
    log_level: LogLevel = LogLevel.WARNING
    strict_signatures: bool = False

    @staticmethod
    def default() -> 'CompilationContext':
        """Create a CompilationContext with default settings."""
        return CompilationContext(log_level=LogLevel.WARNING)
