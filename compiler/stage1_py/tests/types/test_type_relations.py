#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2026 gwz

import pytest

from sigh_ast import ClassDecl, SimpleType, Block, StructDecl, TemplateParam
from sigh_types import (
    ArrayType, SetType, StructType, ClassType, TemplateParamType, FuncType, TemplateType, BOOL, INT, FLOAT, STRING,
    VOID, TYPE, get_builtin_type, get_null_type, get_modifier_type, is_assignable_to, is_comparable_to,
    common_supertype, format_type,
)


def _struct(name: str) -> StructType:
    return StructType(StructDecl(name, []))


def _class(name: str) -> ClassType:
    return ClassType(ClassDecl(SimpleType("pub"), name, [], Block([])))


def test_builtin_types_are_canonical():
    assert get_builtin_type("Int") is INT
    assert get_builtin_type("Bool") is BOOL


def test_int_widens_to_float_but_not_back():
    assert is_assignable_to(INT, FLOAT)
    assert not is_assignable_to(FLOAT, INT)


@pytest.mark.parametrize("target", [STRING, ArrayType(INT), SetType(FLOAT)])
def test_null_is_assignable_to_reference_types(target):
    assert is_assignable_to(get_null_type(), target)


def test_null_is_assignable_to_declared_types():
    assert is_assignable_to(get_null_type(), _struct("P"))
    assert is_assignable_to(get_null_type(), _class("C"))


@pytest.mark.parametrize("target", [INT, FLOAT, BOOL, TYPE, FuncType(INT)])
def test_null_is_not_assignable_to_value_and_function_types(target):
    assert not is_assignable_to(get_null_type(), target)


@pytest.mark.parametrize("other", [INT, FLOAT, STRING, BOOL, ArrayType(INT), get_null_type()])
def test_void_is_never_assignable(other):
    assert not is_assignable_to(VOID, other)
    assert not is_assignable_to(other, VOID)
    assert not is_assignable_to(VOID, VOID)


def test_array_assignability_follows_components():
    assert is_assignable_to(ArrayType(INT), ArrayType(FLOAT))
    assert not is_assignable_to(ArrayType(FLOAT), ArrayType(INT))
    assert not is_assignable_to(ArrayType(INT), SetType(INT))


def test_set_assignability_follows_components():
    assert is_assignable_to(SetType(INT), SetType(FLOAT))
    assert not is_assignable_to(SetType(STRING), SetType(INT))


def test_declared_types_compare_by_declaration():
    decl = StructDecl("P", [])
    assert StructType(decl) == StructType(decl)
    assert _struct("P") != _struct("P")
    assert is_assignable_to(StructType(decl), StructType(decl))


def test_template_placeholders_are_opaque():
    t = TemplateParamType(TemplateParam("T", SimpleType("Type")))
    u = TemplateParamType(TemplateParam("T", SimpleType("Type")))
    assert is_assignable_to(t, t)
    assert not is_assignable_to(t, u)
    assert not is_assignable_to(INT, t)


def test_comparability():
    assert is_comparable_to(INT, FLOAT)
    assert is_comparable_to(STRING, get_null_type())
    assert is_comparable_to(ArrayType(INT), _struct("P"))
    assert not is_comparable_to(INT, STRING)
    assert not is_comparable_to(VOID, VOID)


def test_common_supertype():
    assert common_supertype(INT, FLOAT) == FLOAT
    assert common_supertype(FLOAT, INT) == FLOAT
    assert common_supertype(get_null_type(), STRING) == STRING
    assert common_supertype(INT, STRING) is None
    assert common_supertype(VOID, INT) is None


def test_format_type():
    assert format_type(ArrayType(SetType(INT))) == "Int{}[]"
    assert format_type(FuncType(STRING, (INT, FLOAT))) == "String(Int, Float)"
    assert format_type(get_null_type()) == "Null"
    assert format_type(get_modifier_type()) == "Modifier"
    assert format_type(_struct("Point")) == "Point"
    assert format_type(None) == "<unknown>"

    t = TemplateParamType(TemplateParam("T", SimpleType("Type")))
    assert format_type(TemplateType(t, 1, (t, INT))) == "template<T> T(Int)"
