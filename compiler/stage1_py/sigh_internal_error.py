#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

# sigh_internal_error.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Optional

from sigh_ast import Node, Span


@dataclass(frozen=True)
class ICELocation:
    filename: Optional[str]
    span: Optional[Span]

    @staticmethod
    def of(node: Optional[Node], filename: Optional[str] = None) -> "ICELocation":
        return ICELocation(filename, node.span if node is not None else None)


class InternalCompilerError(RuntimeError):
    """
    ICE = analyzer bug / violated engine or walker invariant.
    Not for user mistakes (those are Diagnostics).
    """

    def __init__(self, message: str, loc: ICELocation | None = None):
        super().__init__(message)
        self.message = message
        self.loc = loc

    def format(self) -> str:
        message = self.message
        if "[ICE-" not in message:
            message = f"[ICE-9999] {message}"
        if self.loc is not None and self.loc.span is not None:
            where = f"{self.loc.span.start_line}:{self.loc.span.start_column}"
            if self.loc.filename:
                return f"{self.loc.filename}:{where}: internal compiler error: {message}"
            return f"{where}: internal compiler error: {message}"
        if self.loc is not None and self.loc.filename:
            return f"{self.loc.filename}: internal compiler error: {message}"
        return f"internal compiler error: {message}"
