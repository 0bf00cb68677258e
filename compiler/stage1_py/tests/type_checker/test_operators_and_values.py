"""
Expression typing: literals, operators, assignments and types used as values.
"""

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

import pytest

from conftest import find_nodes, has_error_code
from sigh_ast import Assignment, BinaryExpr, FloatLiteral, IntLiteral, Reference, StringLiteral, UnaryExpr, VarDecl
from sigh_types import ArrayType, BOOL, INT, FLOAT, STRING, TYPE


def _initializer_type(result, index=0):
    decl = find_nodes(result.root, VarDecl)[index]
    return result.type_of(decl.initializer)


def test_literal_types(analyze_source):
    result = analyze_source("""
        var i: Int = 42
        var f: Float = 2.5
        var s: String = "hi"
    """)

    assert not result.has_errors()
    assert result.type_of(find_nodes(result.root, IntLiteral)[0]) == INT
    assert result.type_of(find_nodes(result.root, FloatLiteral)[0]) == FLOAT
    assert result.type_of(find_nodes(result.root, StringLiteral)[0]) == STRING


def test_builtin_values(analyze_source):
    result = analyze_source("""
        var b: Bool = true
        var c: Bool = false
        var s: String = null
        var a: Int[] = null
    """)

    assert not result.has_errors()
    assert _initializer_type(result, 0) == BOOL


@pytest.mark.parametrize(
    "expr, expected",
    [
        ("1 + 2", INT),
        ("7 - 2", INT),
        ("3 * 4", INT),
        ("9 / 2", INT),
        ("9 % 2", INT),
        ("1 + 2.5", FLOAT),
        ("2.5 * 2", FLOAT),
        ("\"a\" + 1", STRING),
        ("1 + \"a\"", STRING),
        ("\"a\" + true", STRING),
        ("(1 + 2) * 3", INT),
        ("[1, 2] + [3, 4]", ArrayType(INT)),
        ("[1, 2] * 2.5", ArrayType(FLOAT)),
        ("[1.5] - [2]", ArrayType(FLOAT)),
        ("1 < 2.5", BOOL),
        ("2 >= 1", BOOL),
        ("1 == 1.0", BOOL),
        ("\"a\" != null", BOOL),
        ("true == false", BOOL),
        ("true && false || !true", BOOL),
    ],
)
def test_binary_expression_types(analyze_source, expr, expected):
    result = analyze_source(f"print(\"\" + ({expr}))")

    assert not result.has_errors()
    outer = find_nodes(result.root, BinaryExpr)[0]
    assert result.type_of(outer.right) == expected


@pytest.mark.parametrize(
    "expr, code, message",
    [
        ("1 + true", "TYP-0040", "Trying to add Int with Bool"),
        ("true * 2", "TYP-0040", "Trying to multiply Bool with Int"),
        ("[1] + [\"a\"]", "TYP-0040", "Trying to add Int with String[]"),
        ("1 < \"a\"", "TYP-0041", "non-numeric type: String"),
        ("1 == \"a\"", "TYP-0042", "Trying to compare incomparable types Int and String"),
        ("1 && true", "TYP-0043", "binary logic on non-boolean type: Int"),
        ("!1", "TYP-0030", "Trying to negate type: Int"),
    ],
)
def test_operator_errors(analyze_source, expr, code, message):
    result = analyze_source(f"print(\"\" + ({expr}))")

    assert has_error_code(result.diagnostics, code)
    assert any(message in d.message for d in result.diagnostics)


def test_negation_is_always_bool(analyze_source):
    result = analyze_source("var b: Bool = !1")

    unary = find_nodes(result.root, UnaryExpr)[0]
    assert result.type_of(unary) == BOOL
    # the operand error does not cascade into the initializer check
    assert len(result.diagnostics) == 1


def test_assignment(analyze_source):
    result = analyze_source("""
        var x: Int = 1
        var f: Float = 1
        x = 2
        f = x
    """)

    assert not result.has_errors()
    assignments = find_nodes(result.root, Assignment)
    assert [result.type_of(a) for a in assignments] == [INT, FLOAT]


def test_assignment_of_incompatible_value(analyze_source):
    result = analyze_source("""
        var x: Int = 1
        x = "a"
    """)

    assert has_error_code(result.diagnostics, "TYP-0020")


def test_assignment_to_non_lvalue(analyze_source):
    result = analyze_source("1 = 2")

    assert has_error_code(result.diagnostics, "TYP-0021")
    assert any("non-lvalue" in d.message for d in result.diagnostics)


def test_incompatible_initializer(analyze_source):
    result = analyze_source("var x: Int = \"a\"")

    assert len(result.diagnostics) == 1
    diag = result.diagnostics[0]
    assert diag.message == ("[TYP-0010] incompatible initializer type provided for variable 'x': "
                            "expected Int but got String")
    assert (diag.line, diag.column) == (1, 14)


def test_types_as_values(analyze_source):
    result = analyze_source("""
        struct P {}
        var t: Type = Int
        var u: Type = P
        var s: String = "" + Int
    """)

    assert not result.has_errors()
    refs = [r for r in find_nodes(result.root, Reference) if r.name in ("Int", "P")]
    assert all(result.type_of(r) == TYPE for r in refs)


def test_type_is_not_a_value_of_its_own_type(analyze_source):
    result = analyze_source("var x: Int = Int")

    assert has_error_code(result.diagnostics, "TYP-0010")
    assert any("expected Int but got Type" in d.message for d in result.diagnostics)
