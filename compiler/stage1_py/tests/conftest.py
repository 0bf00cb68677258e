#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from __future__ import annotations

import sys
from dataclasses import fields, is_dataclass
from pathlib import Path
from textwrap import dedent
from typing import Iterator, List, Type, TypeVar

import pytest

PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from sigh_ast import Node
from sigh_context import CompilationContext
from sigh_driver import SighDriver

N = TypeVar("N", bound=Node)


@pytest.fixture
def repo_root() -> Path:
    return PROJECT_ROOT


@pytest.fixture
def write_sigh_file(tmp_path: Path):
    def _write(name: str, content: str) -> Path:
        file_path = tmp_path / name
        file_path.write_text(dedent(content))
        return file_path

    return _write


@pytest.fixture
def analyze_source():
    """Analyze a Sigh program from a source string.

    Usage:
        def test_something(analyze_source):
            result = analyze_source('''
                fun f(): Int { return 42 }
            ''')
            assert not result.has_errors()
    """

    def _analyze(src: str, strict_signatures: bool = False):
        context = CompilationContext(strict_signatures=strict_signatures)
        return SighDriver(context).analyze_source(dedent(src))

    return _analyze


@pytest.fixture
def parse_source():
    """Parse a Sigh program from a source string, raising on syntax errors."""

    def _parse(src: str):
        return SighDriver().parse_source(dedent(src))

    return _parse


def iter_nodes(node: Node) -> Iterator[Node]:
    """Yield `node` and all nodes below it, in source order."""
    yield node
    if not is_dataclass(node):
        return
    for f in fields(node):
        value = getattr(node, f.name)
        children = value if isinstance(value, list) else [value]
        for child in children:
            if isinstance(child, Node):
                yield from iter_nodes(child)


def find_nodes(node: Node, cls: Type[N]) -> List[N]:
    return [n for n in iter_nodes(node) if isinstance(n, cls)]


def has_error_code(diagnostics, code: str) -> bool:
    """Check if any diagnostic contains the given error code.

    Args:
        diagnostics: List of Diagnostic objects
        code: Error code string like "TYP-0110" or "[TYP-0110]"

    Returns:
        True if any diagnostic message contains the error code
    """
    if not code.startswith("["):
        code = f"[{code}]"
    return any(code in d.message for d in diagnostics)
