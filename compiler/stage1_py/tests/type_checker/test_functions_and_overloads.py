#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

from conftest import find_nodes, has_error_code
from sigh_ast import FunCall, FunDecl, ModifierFunDecl, VarDecl
from sigh_types import FuncType, ArrayType, INT, FLOAT, STRING, VOID, get_modifier_type


def _calls(result):
    return [c for c in find_nodes(result.root, FunCall)]


def test_function_declaration_type(analyze_source):
    result = analyze_source("""
        fun add(a: Int, b: Float[]): Int { return a }
        fun log(msg: String) { print(msg) }
    """)

    assert not result.has_errors()
    add, log = find_nodes(result.root, FunDecl)
    assert result.type_of(add) == FuncType(INT, (INT, ArrayType(FLOAT)))
    assert result.type_of(log) == FuncType(VOID, (STRING,))
    assert result.scope_of(add) is not None
    assert result.scope_of(add.block).parent is result.scope_of(add)


def test_call_selects_declaration(analyze_source):
    result = analyze_source("""
        fun add(a: Int, b: Int): Int { return a + b }
        var x: Int = add(1, 2)
    """)

    assert not result.has_errors()
    call = _calls(result)[0]
    assert result.type_of(call) == INT
    assert result.overload_of(call) is find_nodes(result.root, FunDecl)[0]


def test_call_with_widened_argument(analyze_source):
    result = analyze_source("""
        fun half(a: Float): Float { return a / 2 }
        var x: Float = half(3)
    """)

    assert not result.has_errors()


def test_builtin_print(analyze_source):
    result = analyze_source("var s: String = print(\"hi\")")

    assert not result.has_errors()
    assert result.type_of(_calls(result)[0]) == STRING


def test_void_call_used_as_value(analyze_source):
    result = analyze_source("""
        fun nothing() {}
        var x: Int = nothing()
    """)

    assert has_error_code(result.diagnostics, "TYP-0010")
    assert any("expected Int but got Void" in d.message for d in result.diagnostics)


def test_call_on_non_function(analyze_source):
    result = analyze_source("""
        var x: Int = 1
        var y: Int = x(1)
    """)

    assert has_error_code(result.diagnostics, "SIG-0010")
    assert any("trying to call a non-function expression: x" in d.message for d in result.diagnostics)


def test_wrong_argument_count(analyze_source):
    result = analyze_source("""
        fun f(a: Int): Int { return a }
        var y: Int = f(1, 2)
    """)

    assert has_error_code(result.diagnostics, "SIG-0020")
    assert any("expected 1 but got 2" in d.message for d in result.diagnostics)


def test_incompatible_argument(analyze_source):
    result = analyze_source("""
        fun f(a: Int, b: Int): Int { return a }
        var y: Int = f("a", true)
    """)

    messages = [d.message for d in result.diagnostics]
    assert messages == [
        "[SIG-0021] incompatible argument provided for argument 0: expected Int but got String",
        "[SIG-0021] incompatible argument provided for argument 1: expected Int but got Bool",
    ]


def test_no_overload_accepts_arguments(analyze_source):
    result = analyze_source("""
        fun f(a: Int): Int { return a }
        fun f(a: Int, b: Int): Int { return a + b }
        var y: Int = f("a")
    """)

    assert has_error_code(result.diagnostics, "SIG-0022")


def test_arity_overloads(analyze_source):
    result = analyze_source("""
        fun sum(a: Int, b: Int): Int { return a + b }
        fun sum(a: Int, b: Int, c: Int): Int { return a + b + c }
        var two: Int = sum(1, 2)
        var three: Int = sum(1, 2, 3)
    """)

    assert not result.has_errors()
    two_decl, three_decl = find_nodes(result.root, FunDecl)
    two_call, three_call = _calls(result)
    assert result.overload_of(two_call) is two_decl
    assert result.overload_of(three_call) is three_decl


def test_arity_overloads_reject_other_counts(analyze_source):
    result = analyze_source("""
        fun sum(a: Int, b: Int): Int { return a + b }
        fun sum(a: Int, b: Int, c: Int): Int { return a + b + c }
        var five: Int = sum(1, 2, 3, 4, 5)
    """)

    assert has_error_code(result.diagnostics, "SIG-0020")
    assert any("expected 3 but got 5" in d.message for d in result.diagnostics)


def test_type_overloads(analyze_source):
    result = analyze_source("""
        fun sumar(a: Int, b: Int): Int { return a + b }
        fun sumar(a: Float, b: Float): Float { return a + b }
        fun sumar(a: String, b: String): String { return a + b }
        var i: Int = sumar(2, 3)
        var f: Float = sumar(2.4, 5.1)
        var s: String = sumar("a", "b")
    """)

    assert not result.has_errors()
    ints, floats, strings = find_nodes(result.root, FunDecl)
    i_call, f_call, s_call = _calls(result)
    assert result.overload_of(i_call) is ints
    assert result.overload_of(f_call) is floats
    assert result.overload_of(s_call) is strings
    assert [result.type_of(c) for c in (i_call, f_call, s_call)] == [INT, FLOAT, STRING]


def test_type_overloads_reject_mixed_arguments(analyze_source):
    result = analyze_source("""
        fun sumar(a: Int, b: Int): Int { return a + b }
        fun sumar(a: Float, b: Float): Float { return a + b }
        fun sumar(a: String, b: String): String { return a + b }
        var x: String = sumar(2, "5")
    """)

    assert result.has_errors()
    assert has_error_code(result.diagnostics, "SIG-0021")


def test_redeclared_signature_is_a_warning(analyze_source):
    result = analyze_source("""
        fun f(a: Int): Int { return 1 }
        fun f(a: Int): Int { return 2 }
        var x: Int = f(0)
    """)

    assert not result.has_errors()
    assert result.has_warnings()
    assert has_error_code(result.diagnostics, "SIG-0030")
    warning = result.diagnostics[0]
    assert warning.kind == "warning"
    assert "'f [Int]'" in warning.message
    # last declaration wins
    second = find_nodes(result.root, FunDecl)[1]
    assert result.overload_of(_calls(result)[0]) is second
    assert result.registry.lookup("f", ["Int"]) is second


def test_redeclared_signature_is_an_error_when_strict(analyze_source):
    result = analyze_source("""
        fun f(a: Int): Int { return 1 }
        fun f(a: Int): Int { return 2 }
    """, strict_signatures=True)

    assert result.has_errors()
    assert has_error_code(result.diagnostics, "SIG-0030")


def test_modifier_functions(analyze_source):
    result = analyze_source("""
        pub fun visible(): Int { return 1 }
        pvt fun hidden(s: String): String { return s }
        var x: Int = visible()
    """)

    assert not result.has_errors()
    visible, hidden = find_nodes(result.root, ModifierFunDecl)
    assert result.type_of(visible) == FuncType(INT)
    assert result.type_of(hidden) == FuncType(STRING, (STRING,))
    assert result.attribute(visible.modifier, "value") == get_modifier_type()


def test_overloaded_call_initializer_uses_selected_return_type(analyze_source):
    result = analyze_source("""
        fun g(a: Int): Int { return a }
        fun g(a: String): String { return a }
        var s: String = g("x")
        var i: Int = g(1)
    """)

    assert not result.has_errors()
    s_decl, i_decl = find_nodes(result.root, VarDecl)
    assert result.type_of(s_decl.initializer) == STRING
    assert result.type_of(i_decl.initializer) == INT
