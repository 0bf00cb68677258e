#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from __future__ import annotations

from typing import Callable, Dict, Iterator, List, Optional, Sequence, Tuple

from sigh_ast import TypeNode, SimpleType, ArrayTypeNode, SetTypeNode, Declaration
from sigh_types import FuncType, Type, is_assignable_to


def type_node_text(node: TypeNode) -> str:
    """Source spelling of a type annotation, e.g. `Int`, `Int[]`, `String{}`."""
    if isinstance(node, SimpleType):
        return node.name
    if isinstance(node, ArrayTypeNode):
        return f"{type_node_text(node.component)}[]"
    if isinstance(node, SetTypeNode):
        return f"{type_node_text(node.component)}{{}}"
    return "?"


def signature_key(name: str, param_type_texts: Sequence[str]) -> str:
    """`sum [Int, Int]`; `main []` for a function without parameters."""
    return f"{name} [{', '.join(param_type_texts)}]"


class SignatureRegistry:
    """
    Table of declared function signatures, keyed by name and the spelling of
    the parameter type annotations.

    Registering an existing key replaces the earlier declaration (last wins);
    `register` returns the replaced declaration so the caller can report it.
    """

    def __init__(self) -> None:
        self._entries: Dict[str, Tuple[str, Declaration]] = {}

    def register(self, name: str, param_type_texts: Sequence[str], declaration: Declaration) -> Optional[Declaration]:
        key = signature_key(name, param_type_texts)
        previous = self._entries.pop(key, None)
        self._entries[key] = (name, declaration)
        return previous[1] if previous is not None else None

    def lookup(self, name: str, param_type_texts: Sequence[str]) -> Optional[Declaration]:
        entry = self._entries.get(signature_key(name, param_type_texts))
        return entry[1] if entry is not None else None

    def candidates(self, name: str) -> List[Declaration]:
        """Live declarations registered under `name`, in registration order."""
        return [decl for entry_name, decl in self._entries.values() if entry_name == name]

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def __iter__(self) -> Iterator[str]:
        return iter(self._entries)


Overload = Tuple[Optional[Declaration], FuncType]


def select_overload(callee: Overload, candidates: Sequence[Overload], arg_types: Sequence[Type]) -> Optional[Overload]:
    """
    Pick the overload accepting `arg_types`.

    Exact positional matches are preferred over matches that need widening
    or null conversion; within each pass the callee's own type comes first.
    """
    ordered = [callee] + [c for c in candidates if c[0] is None or c[0] is not callee[0]]

    def accepts(func_type: FuncType, relation: Callable[[Type, Type], bool]) -> bool:
        if len(func_type.params) != len(arg_types):
            return False
        return all(relation(arg, param) for arg, param in zip(arg_types, func_type.params))

    for relation in (lambda a, p: a == p, is_assignable_to):
        for overload in ordered:
            if accepts(overload[1], relation):
                return overload
    return None
