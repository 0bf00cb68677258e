#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from dataclasses import is_dataclass, fields
from enum import Enum
from typing import Any, Callable, List, Optional

from sigh_ast import Span, Node, Root


def _format_span(span: Span | None) -> str:
    if span is None:
        return ""
    return f" @{span.start_line}:{span.start_column}-{span.end_line}:{span.end_column}"


def _format_scalar(value: Any) -> str:
    if isinstance(value, Enum):
        return repr(value.value)
    return repr(value)


def format_node(node: Any, indent: int = 0, annotate: Optional[Callable[[Node], str]] = None) -> List[str]:
    """
    Reflection-based syntax tree pretty-printer.

    - Shows the node class name and its scalar fields inline (excluding `span`).
    - Prints child nodes and lists of nodes on indented lines.
    - Appends the span as `@1:1-7:1` when available.
    - `annotate(node)` may return extra text appended to the header
      (the CLI uses it to show computed types).
    """
    ind = "  " * indent

    if isinstance(node, list):
        lines: List[str] = []
        for elem in node:
            lines.extend(format_node(elem, indent, annotate))
        return lines

    if isinstance(node, Node) and is_dataclass(node):
        simple_parts = []
        child_fields = []

        for f in fields(node):
            if f.name == "span":
                continue
            value = getattr(node, f.name)
            if isinstance(value, (Node, list)) and not (isinstance(value, list) and value
                                                       and not isinstance(value[0], Node)):
                child_fields.append((f.name, value))
            else:
                simple_parts.append((f.name, value))

        header = node.__class__.__name__
        if simple_parts:
            inner = ", ".join(f"{name}={_format_scalar(value)}" for name, value in simple_parts if value is not None)
            header = f"{header}({inner})"
        header += _format_span(node.span)
        if annotate is not None:
            extra = annotate(node)
            if extra:
                header += f" : {extra}"

        lines = [ind + header]
        for name, value in child_fields:
            if value is None or (isinstance(value, list) and not value):
                continue
            lines.append(ind + "  " + f"{name}:")
            lines.extend(format_node(value, indent + 2, annotate))
        return lines

    return [ind + repr(node)]


def format_root(root: Root, annotate: Optional[Callable[[Node], str]] = None) -> str:
    """Pretty-print a whole program as a string."""
    return "\n".join(format_node(root, indent=0, annotate=annotate))
