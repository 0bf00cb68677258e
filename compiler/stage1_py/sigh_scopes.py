#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional

from sigh_ast import Node, Declaration, DeclarationKind, SyntheticDecl, Root
from sigh_reactor import Reactor
from sigh_types import (
    Type, FuncType, SetType, BOOL, INT, FLOAT, STRING, VOID, TYPE, get_null_type, get_modifier_type,
)


@dataclass
class DeclarationContext:
    """Result of a successful lookup: the declaration and the scope holding it."""
    scope: Scope
    declaration: Declaration


@dataclass(eq=False)
class Scope:
    """
    A lexical scope: the node introducing it, its parent and its bindings.

    Scopes form a tree via the 'parent' link; only the root scope has no parent.
    """
    node: Node
    parent: Optional[Scope]
    declarations: Dict[str, Declaration] = field(default_factory=dict)

    def declare(self, name: str, declaration: Declaration) -> None:
        # no redeclaration check: a later binding replaces the earlier one
        self.declarations[name] = declaration

    def lookup_local(self, name: str) -> Optional[Declaration]:
        return self.declarations.get(name)

    def lookup(self, name: str) -> Optional[DeclarationContext]:
        scope: Optional[Scope] = self
        while scope is not None:
            decl = scope.declarations.get(name)
            if decl is not None:
                return DeclarationContext(scope, decl)
            scope = scope.parent
        return None

    def __repr__(self) -> str:
        return f"Scope({type(self.node).__name__}, {sorted(self.declarations)})"


SET_ELEMENT_TYPES = (INT, FLOAT, STRING)


class RootScope(Scope):
    """
    The outermost scope, seeded with the built-in declarations:

      - type names: Bool, Int, Float, String, Void, Type, plus `void`
      - visibility markers: pub, pvt
      - values: true, false, null
      - functions: print, and addSet<T> / containsSet<T> for T in Int, Float, String

    Built-ins get their `type` (and, for types, `declared`) attributes at once.
    """

    def __init__(self, root: Root, reactor: Reactor) -> None:
        super().__init__(root, None)
        self.reactor = reactor

        for t in (BOOL, INT, FLOAT, STRING, VOID, TYPE):
            self._declare_type(t.name, t)
        self._declare_type("void", VOID)
        self._declare_type("pub", get_modifier_type())
        self._declare_type("pvt", get_modifier_type())

        self._declare_value("true", BOOL)
        self._declare_value("false", BOOL)
        self._declare_value("null", get_null_type())

        self._declare_function("print", FuncType(STRING, (STRING,)))
        for element in SET_ELEMENT_TYPES:
            set_type = SetType(element)
            self._declare_function(f"addSet{element.name}", FuncType(set_type, (set_type, element)))
            self._declare_function(f"containsSet{element.name}", FuncType(BOOL, (set_type, element)))

    def _declare_synthetic(self, name: str, kind: DeclarationKind, typ: Type) -> SyntheticDecl:
        decl = SyntheticDecl(name, kind)
        self.declare(name, decl)
        self.reactor.set(decl, "type", typ)
        return decl

    def _declare_type(self, name: str, declared: Type) -> None:
        decl = self._declare_synthetic(name, DeclarationKind.TYPE, TYPE)
        self.reactor.set(decl, "declared", declared)

    def _declare_value(self, name: str, typ: Type) -> None:
        self._declare_synthetic(name, DeclarationKind.VARIABLE, typ)

    def _declare_function(self, name: str, typ: FuncType) -> None:
        self._declare_synthetic(name, DeclarationKind.FUNCTION, typ)
