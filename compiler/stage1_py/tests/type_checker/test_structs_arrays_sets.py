#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

import pytest

from conftest import find_nodes, has_error_code
from sigh_ast import ArrayLiteral, FieldAccess, FunCall, ReturnStmt, SetLiteral, StructConstructor, StructDecl
from sigh_types import FuncType, StructType, ArrayType, SetType, BOOL, INT, FLOAT, STRING, TYPE


def test_struct_declaration_and_constructor(analyze_source):
    result = analyze_source("""
        struct P { var x: Int; var y: Int }
        return $P(1, 2).y
    """)

    assert not result.has_errors()
    decl = find_nodes(result.root, StructDecl)[0]
    point = StructType(decl)
    assert result.type_of(decl) == TYPE
    assert result.declared(decl) == point

    ctor = find_nodes(result.root, StructConstructor)[0]
    assert result.type_of(ctor) == FuncType(point, (INT, INT))
    ret = find_nodes(result.root, ReturnStmt)[0]
    assert result.type_of(ret.expr) == INT


def test_struct_fields_are_not_declared_in_enclosing_scope(analyze_source):
    result = analyze_source("""
        struct P { var x: Int }
        print("" + x)
    """)

    assert has_error_code(result.diagnostics, "RES-0010")


def test_struct_values(analyze_source):
    result = analyze_source("""
        struct P { var x: Int; var y: Float }
        var p: P = $P(1, 2)
        var q: Int = p.x
        p.y = 3.5
        var none: P = null
    """)

    assert not result.has_errors()


def test_missing_struct_field(analyze_source):
    result = analyze_source("""
        struct P { var x: Int }
        var p: P = $P(1)
        var y: Int = p.z
    """)

    assert has_error_code(result.diagnostics, "TYP-0072")
    assert any("Trying to access missing field z on struct P" in d.message for d in result.diagnostics)


def test_field_access_on_non_struct(analyze_source):
    result = analyze_source("""
        var x: Int = 1
        var y: Int = x.foo
    """)

    assert has_error_code(result.diagnostics, "TYP-0071")


@pytest.mark.parametrize(
    "args, code",
    [
        ("1", "SIG-0020"),
        ("\"a\", 2", "SIG-0021"),
    ],
)
def test_struct_constructor_arguments(analyze_source, args, code):
    result = analyze_source(f"""
        struct P {{ var x: Int; var y: Int }}
        var p: P = $P({args})
    """)

    assert has_error_code(result.diagnostics, code)


def test_constructor_on_non_struct(analyze_source):
    result = analyze_source("""
        var x: Int = 1
        var y: Int = $x(1)
    """)

    assert has_error_code(result.diagnostics, "TYP-0090")
    assert len(result.diagnostics) == 1


def test_arrays(analyze_source):
    result = analyze_source("""
        var a: Int[] = [1, 2]
        var x: Int = a[0]
        var n: Int = a.length
        a[1] = 5
        var m: Int[][] = [[1], [2, 3]]
        var f: Float[] = [1, 2.5]
        var s: String[] = [null, "a"]
    """)

    assert not result.has_errors()
    literals = find_nodes(result.root, ArrayLiteral)
    assert result.type_of(literals[0]) == ArrayType(INT)
    assert result.type_of(literals[1]) == ArrayType(ArrayType(INT))
    assert result.type_of(literals[4]) == ArrayType(FLOAT)
    assert result.type_of(literals[5]) == ArrayType(STRING)
    length = find_nodes(result.root, FieldAccess)[0]
    assert result.type_of(length) == INT


@pytest.mark.parametrize(
    "src, code",
    [
        ("var a: Int[] = [1]\nvar x: Int = a[\"0\"]", "TYP-0060"),
        ("var a: Int = 1\nvar x: Int = a[0]", "TYP-0061"),
        ("var a: Int[] = [1]\nvar x: Int = a.size", "TYP-0070"),
        ("var a: Int[] = [1, \"a\"]", "TYP-0051"),
        ("fun v() {}\nvar a: Int[] = [1, v()]", "TYP-0050"),
        ("fun v() {}\nvar a: Int[] = [v()]", "TYP-0052"),
    ],
)
def test_array_errors(analyze_source, src, code):
    result = analyze_source(src)

    assert has_error_code(result.diagnostics, code)


def test_void_element_does_not_hide_other_elements(analyze_source):
    result = analyze_source("""
        fun v() {}
        var a: Int[] = [1, v()]
    """)

    literal = find_nodes(result.root, ArrayLiteral)[0]
    assert result.type_of(literal) == ArrayType(INT)
    assert [d.message for d in result.diagnostics] == ["[TYP-0050] Void-valued expression in array literal"]


def test_sets(analyze_source):
    result = analyze_source("""
        var s: Int{} = {1, 2}
        s = addSetInt(s, 3)
        var b: Bool = containsSetInt(s, 2)
        var names: String{} = {}
        names = addSetString(names, "a")
    """)

    assert not result.has_errors()
    literals = find_nodes(result.root, SetLiteral)
    assert result.type_of(literals[0]) == SetType(INT)
    assert result.type_of(literals[1]) == SetType(STRING)
    contains = [c for c in find_nodes(result.root, FunCall) if c.function.name == "containsSetInt"][0]
    assert result.type_of(contains) == BOOL


def test_set_errors(analyze_source):
    result = analyze_source("var s: Int{} = {1, \"a\"}")
    assert has_error_code(result.diagnostics, "TYP-0051")
    assert any("set literal" in d.message for d in result.diagnostics)

    result = analyze_source("""
        var s: Int{} = {1}
        s = addSetInt(s, "a")
    """)
    assert has_error_code(result.diagnostics, "SIG-0021")
