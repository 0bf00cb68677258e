#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

import os

from sigh_ast import IntLiteral, Span
from sigh_diagnostics import Diagnostic, diag_from_node, diag_from_token
from sigh_internal_error import ICELocation, InternalCompilerError
from sigh_lexer import Token, TokenKind


def test_format_with_full_location():
    diag = Diagnostic(kind="error", message="[TYP-0010] boom", filename="prog.sigh", line=2, column=7)

    assert diag.format() == f"{os.path.abspath('prog.sigh')}:2:7: error: [TYP-0010] boom"


def test_format_without_location():
    assert Diagnostic(kind="warning", message="[SIG-0030] again").format() == "warning: [SIG-0030] again"


def test_format_with_line_only():
    diag = Diagnostic(kind="error", message="boom", filename="prog.sigh", line=4)

    assert diag.format().endswith("prog.sigh:4: error: boom")


def test_code_is_read_from_message_prefix():
    assert Diagnostic(kind="error", message="[RES-0010] Could not resolve: x").code == "RES-0010"
    assert Diagnostic(kind="error", message="no code here").code is None


def test_diag_from_node_copies_span():
    node = IntLiteral(1, span=Span(3, 5, 3, 6))

    diag = diag_from_node("error", "[TYP-0010] boom", filename="f.sigh", node=node)

    assert (diag.line, diag.column, diag.end_line, diag.end_column) == (3, 5, 3, 6)
    assert diag.filename == "f.sigh"


def test_diag_from_node_without_span():
    diag = diag_from_node("error", "boom", filename=None, node=IntLiteral(1))

    assert diag.line is None and diag.column is None


def test_diag_from_token_spans_token_text():
    token = Token(TokenKind.IDENT, "name", 1, 10)

    diag = diag_from_token("error", "[PAR-0236] boom", filename=None, token=token)

    assert (diag.line, diag.column, diag.end_line, diag.end_column) == (1, 10, 1, 14)


def test_diag_from_eof_token_has_width_one():
    diag = diag_from_token("error", "boom", filename=None, token=Token(TokenKind.EOF, "", 5, 1))

    assert diag.end_column == 2


def test_internal_error_formats():
    span = Span(start_line=3, start_column=15, end_line=3, end_column=20)

    assert InternalCompilerError("boom").format() == "internal compiler error: [ICE-9999] boom"
    assert InternalCompilerError("boom", ICELocation(filename="a.sigh", span=None)).format() == \
        "a.sigh: internal compiler error: [ICE-9999] boom"
    assert InternalCompilerError("[ICE-0100] boom", ICELocation(filename="a.sigh", span=span)).format() == \
        "a.sigh:3:15: internal compiler error: [ICE-0100] boom"
    assert InternalCompilerError("[ICE-0200] boom", ICELocation(filename=None, span=span)).format() == \
        "3:15: internal compiler error: [ICE-0200] boom"


def test_ice_location_of_node():
    node = IntLiteral(1, span=Span(1, 2, 1, 3))

    assert ICELocation.of(node, "a.sigh") == ICELocation("a.sigh", node.span)
    assert ICELocation.of(None) == ICELocation(None, None)
