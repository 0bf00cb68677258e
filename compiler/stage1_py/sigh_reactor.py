"""
Attribute/rule propagation engine.

Facts about syntax nodes (their type, the declaration a reference points to,
whether a statement returns, ...) are write-once *attributes*. *Rules* compute
attributes from other attributes: a rule runs once, as soon as every attribute
it depends on has a value. `Reactor.resolve()` runs ready rules in FIFO order
until no rule can make progress.

A rule that cannot compute its exports reports an error, and the exports are
marked as failed; rules that depend on failed attributes never run, and their
own exports fail in turn, so one mistake yields one diagnostic.
"""

#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from __future__ import annotations

from collections import deque
from dataclasses import dataclass
from typing import Any, Callable, Deque, Dict, Iterable, List, Optional, Sequence, Set, Tuple, Union

from sigh_ast import Node
from sigh_context import CompilationContext
from sigh_internal_error import ICELocation, InternalCompilerError
from sigh_logger import log_debug


@dataclass(frozen=True, eq=False)
class Attribute:
    """A named slot on a node, identified by node identity and name."""
    node: Node
    name: str

    def __eq__(self, other: object) -> bool:
        return isinstance(other, Attribute) and other.node is self.node and other.name == self.name

    def __hash__(self) -> int:
        return hash((id(self.node), self.name))

    def __repr__(self) -> str:
        return f"{type(self.node).__name__}.{self.name}"


AttributeLike = Union[Attribute, Tuple[Node, str]]


def as_attribute(attr: AttributeLike) -> Attribute:
    if isinstance(attr, Attribute):
        return attr
    node, name = attr
    return Attribute(node, name)


@dataclass
class SemanticError:
    message: str
    node: Optional[Node]


class Rule:
    """
    A computation that exports some attributes using others.

    Inside the action, `get(i)` reads dependency `i` and `set(i, value)`
    writes export `i`.
    """

    def __init__(self, reactor: Reactor, exports: Tuple[Attribute, ...], dependencies: Tuple[Attribute, ...],
                 action: Callable[[Rule], None]) -> None:
        self.reactor = reactor
        self.exports = exports
        self.dependencies = dependencies
        self.action = action
        self.remaining = 0
        self.done = False
        self.reported_error = False

    def get(self, index: int) -> Any:
        return self.reactor.get_attribute(self.dependencies[index])

    def set(self, index: int, value: Any) -> None:
        self.reactor.set_attribute(self.exports[index], value)

    def set_attr(self, node: Node, name: str, value: Any) -> None:
        self.reactor.set(node, name, value)

    def error(self, message: str, node: Optional[Node]) -> None:
        self.reported_error = True
        self.reactor.report(message, node)

    def error_for(self, message: str, node: Optional[Node], *attributes: AttributeLike) -> None:
        """Report an error and mark the given attributes as never produced."""
        self.error(message, node)
        for attr in attributes:
            self.reactor.fail(as_attribute(attr))

    def __repr__(self) -> str:
        return f"Rule(exports={list(self.exports)}, using={list(self.dependencies)})"


class Reactor:
    """
    Holds the attribute values and the rules computing them.

    Rules registered during the tree walk are queued until `resolve()`.
    Rules registered by a running action (continuations) join the same queue.
    """

    def __init__(self, context: Optional[CompilationContext] = None) -> None:
        self.context = context or CompilationContext.default()
        self.errors: List[SemanticError] = []

        self._values: Dict[Attribute, Any] = {}
        self._failed: Set[Attribute] = set()
        self._waiting: Dict[Attribute, List[Rule]] = {}
        self._ready: Deque[Rule] = deque()
        self._rules: List[Rule] = []

        self._started = False
        self._current: Optional[Rule] = None

    # --- attributes ---

    def set(self, node: Node, name: str, value: Any) -> None:
        self.set_attribute(Attribute(node, name), value)

    def set_attribute(self, attr: Attribute, value: Any) -> None:
        if attr in self._values:
            raise InternalCompilerError(f"[ICE-0100] attribute {attr!r} set twice", ICELocation.of(attr.node))
        if attr in self._failed:
            # a failed attribute stays failed; later writes are consequences of the reported error
            return
        self._values[attr] = value
        for rule in self._waiting.pop(attr, ()):
            if rule.done:
                continue
            rule.remaining -= 1
            if rule.remaining == 0:
                self._ready.append(rule)

    def get(self, node: Node, name: str) -> Any:
        return self._values.get(Attribute(node, name))

    def get_attribute(self, attr: Attribute) -> Any:
        if attr not in self._values:
            raise InternalCompilerError(f"[ICE-0101] attribute {attr!r} read before being set",
                                        ICELocation.of(attr.node))
        return self._values[attr]

    def has(self, node: Node, name: str) -> bool:
        return Attribute(node, name) in self._values

    def is_failed(self, node: Node, name: str) -> bool:
        return Attribute(node, name) in self._failed

    def attributes(self) -> Iterable[Tuple[Attribute, Any]]:
        return self._values.items()

    # --- rules ---

    def rule(self, *exports: AttributeLike, using: Sequence[AttributeLike] = (),
             by: Callable[[Rule], None]) -> Rule:
        """
        Register a rule exporting `exports`, run by `by(rule)` once every
        attribute in `using` has a value.
        """
        if self._started and self._current is None:
            raise InternalCompilerError("[ICE-0102] rule registered outside of a rule action after resolution started")

        rule = Rule(self, tuple(as_attribute(e) for e in exports), tuple(as_attribute(d) for d in using), by)
        self._rules.append(rule)

        if any(dep in self._failed for dep in rule.dependencies):
            self._fail_rule(rule)
            return rule

        missing = {dep for dep in rule.dependencies if dep not in self._values}
        rule.remaining = len(missing)
        if not missing:
            self._ready.append(rule)
        for dep in missing:
            self._waiting.setdefault(dep, []).append(rule)
        return rule

    def report(self, message: str, node: Optional[Node]) -> None:
        self.errors.append(SemanticError(message, node))

    def fail(self, attr: Attribute) -> None:
        """Mark an attribute as never produced, failing the rules waiting on it."""
        worklist = [attr]
        while worklist:
            current = worklist.pop()
            if current in self._values or current in self._failed:
                continue
            self._failed.add(current)
            for rule in self._waiting.pop(current, ()):
                if not rule.done:
                    rule.done = True
                    worklist.extend(rule.exports)

    def _fail_rule(self, rule: Rule) -> None:
        rule.done = True
        for export in rule.exports:
            self.fail(export)

    # --- resolution ---

    def resolve(self) -> None:
        """Run every runnable rule until a fixed point is reached."""
        self._started = True
        ran = 0
        while self._ready:
            rule = self._ready.popleft()
            if rule.done:
                continue
            rule.done = True
            self._current = rule
            try:
                rule.action(rule)
            finally:
                self._current = None
            ran += 1
            if rule.reported_error:
                for export in rule.exports:
                    self.fail(export)

        pending = [rule for rule in self._rules if not rule.done]
        log_debug(self.context, f"Reactor: {ran} rule(s) run, {len(pending)} pending, "
                                f"{len(self._values)} attribute(s), {len(self._failed)} failed")
        if pending:
            self._report_unresolved(pending)

    def _report_unresolved(self, pending: List[Rule]) -> None:
        """
        Report the dependencies of stuck rules that neither got a value nor
        failed. Dependencies computed by another stuck rule are left out, unless
        every stuck rule waits on another one (a cycle).
        """
        exported = {export for rule in pending for export in rule.exports}
        unset = [dep for rule in pending for dep in rule.dependencies
                 if dep not in self._values and dep not in self._failed]
        missing = [dep for dep in unset if dep not in exported] or unset
        reported: Set[Attribute] = set()
        for dep in missing:
            if dep in reported:
                continue
            reported.add(dep)
            self.report(f"[ENG-0010] unresolved attribute '{dep.name}' of {type(dep.node).__name__}", dep.node)
