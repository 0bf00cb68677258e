#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from sigh_ast import ClassDecl, StructDecl, TemplateParam

# ========================================
# The semantic type system for Sigh.
# ========================================

SIGH_PRIMITIVE_TYPES = ("Bool", "Int", "Float", "String", "Void", "Type")


class Type:
    """
    Base class for all semantic types.
    Used only as a common marker; concrete types are dataclasses below.
    """

    def is_reference(self) -> bool:
        return False


@dataclass(frozen=True)
class BuiltinType(Type):
    name: str  # "Int", "Float", ...

    def is_reference(self) -> bool:
        return self.name == "String"


@dataclass(frozen=True)
class NullType(Type):

    def is_reference(self) -> bool:
        return True


@dataclass(frozen=True)
class ModifierType(Type):
    """Value of the visibility markers `pub` and `pvt`."""
    pass


@dataclass(frozen=True)
class ArrayType(Type):
    component: Type

    def is_reference(self) -> bool:
        return True


@dataclass(frozen=True)
class SetType(Type):
    component: Type

    def is_reference(self) -> bool:
        return True


# Declared types compare by declaration identity, not by structure.

@dataclass(frozen=True, eq=False)
class StructType(Type):
    decl: StructDecl

    @property
    def name(self) -> str:
        return self.decl.name

    def is_reference(self) -> bool:
        return True

    def __eq__(self, other: object) -> bool:
        return isinstance(other, StructType) and other.decl is self.decl

    def __hash__(self) -> int:
        return hash(("struct", id(self.decl)))


@dataclass(frozen=True, eq=False)
class ClassType(Type):
    decl: ClassDecl

    @property
    def name(self) -> str:
        return self.decl.name

    def is_reference(self) -> bool:
        return True

    def __eq__(self, other: object) -> bool:
        return isinstance(other, ClassType) and other.decl is self.decl

    def __hash__(self) -> int:
        return hash(("class", id(self.decl)))


@dataclass(frozen=True, eq=False)
class TemplateParamType(Type):
    """Placeholder type of a template type parameter inside the template body."""
    decl: TemplateParam

    @property
    def name(self) -> str:
        return self.decl.name

    def __eq__(self, other: object) -> bool:
        return isinstance(other, TemplateParamType) and other.decl is self.decl

    def __hash__(self) -> int:
        return hash(("template-param", id(self.decl)))


@dataclass(frozen=True)
class FuncType(Type):
    result: Type
    params: Tuple[Type, ...] = ()


@dataclass(frozen=True)
class TemplateType(Type):
    result: Type
    param_count: int  # number of template type parameters
    params: Tuple[Type, ...] = ()  # placeholders first, then the value parameter types

    @property
    def placeholders(self) -> Tuple[Type, ...]:
        return self.params[:self.param_count]

    @property
    def value_params(self) -> Tuple[Type, ...]:
        return self.params[self.param_count:]


# --- helpers for builtins ---

_BUILTIN_CACHE: Dict[str, BuiltinType] = {}
_NULL_TYPE = NullType()
_MODIFIER_TYPE = ModifierType()


def get_builtin_type(name: str) -> BuiltinType:
    """
    Get (or create) a canonical BuiltinType for a given name.
    """
    if name not in _BUILTIN_CACHE:
        _BUILTIN_CACHE[name] = BuiltinType(name)
    return _BUILTIN_CACHE[name]


def get_null_type() -> NullType:
    return _NULL_TYPE


def get_modifier_type() -> ModifierType:
    return _MODIFIER_TYPE


BOOL = get_builtin_type("Bool")
INT = get_builtin_type("Int")
FLOAT = get_builtin_type("Float")
STRING = get_builtin_type("String")
VOID = get_builtin_type("Void")
TYPE = get_builtin_type("Type")


def is_numeric(t: Optional[Type]) -> bool:
    return t == INT or t == FLOAT


# --- relations ---

def is_assignable_to(source: Type, target: Type) -> bool:
    """
    Indicates whether a value of type `source` can be stored into a location
    (variable, parameter, field, return slot) of type `target`.
    """
    if source == VOID or target == VOID:
        return False

    if source == INT and target == FLOAT:
        return True

    if isinstance(source, ArrayType):
        return isinstance(target, ArrayType) and is_assignable_to(source.component, target.component)

    if isinstance(source, SetType):
        return isinstance(target, SetType) and is_assignable_to(source.component, target.component)

    if isinstance(source, NullType) and target.is_reference():
        return True

    return source == target


def is_comparable_to(a: Type, b: Type) -> bool:
    """Whether `a == b` / `a != b` is allowed."""
    if a == VOID or b == VOID:
        return False

    return (a.is_reference() and b.is_reference()) \
        or a == b \
        or (a == INT and b == FLOAT) \
        or (a == FLOAT and b == INT)


def common_supertype(a: Type, b: Type) -> Optional[Type]:
    """Common supertype of both types, or None if there is no such type."""
    if a == VOID or b == VOID:
        return None
    if is_assignable_to(a, b):
        return b
    if is_assignable_to(b, a):
        return a
    return None


# --- type stringification for messages and signature keys ---

def format_type(t: Optional[Type]) -> str:
    if t is None:
        return "<unknown>"
    if isinstance(t, BuiltinType):
        return t.name
    if isinstance(t, NullType):
        return "Null"
    if isinstance(t, ModifierType):
        return "Modifier"
    if isinstance(t, ArrayType):
        return f"{format_type(t.component)}[]"
    if isinstance(t, SetType):
        return f"{format_type(t.component)}{{}}"
    if isinstance(t, (StructType, ClassType, TemplateParamType)):
        return t.name
    if isinstance(t, FuncType):
        params = ", ".join(format_type(p) for p in t.params)
        return f"{format_type(t.result)}({params})"
    if isinstance(t, TemplateType):
        placeholders = ", ".join(format_type(p) for p in t.placeholders)
        params = ", ".join(format_type(p) for p in t.value_params)
        return f"template<{placeholders}> {format_type(t.result)}({params})"
    return repr(t)
