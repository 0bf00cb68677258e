#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Optional, Sequence, Tuple

from sigh_ast import (
    Node, Root, Stmt, Block, ExprStmt, IfStmt, WhileStmt, ReturnStmt, Declaration, DeclarationKind, SyntheticDecl,
    VarDecl, FieldDecl, Param, FunDecl, ModifierFunDecl, StructDecl, ClassDecl, TemplateParam, TemplateDecl,
    TypeNode, SimpleType, ArrayTypeNode, SetTypeNode, Expr, IntLiteral, FloatLiteral, StringLiteral, Reference,
    ParenExpr, ArrayLiteral, SetLiteral, StructConstructor, ClassConstructor, FieldAccess, ClassFieldAccess,
    ArrayAccess, FunCall, TemplateCall, UnaryExpr, BinaryExpr, Assignment, ARITHMETIC_OPERATORS,
    COMPARISON_OPERATORS, EQUALITY_OPERATORS, LOGIC_OPERATORS, BinaryOperator)
from sigh_context import CompilationContext
from sigh_diagnostics import Diagnostic, diag_from_node
from sigh_internal_error import ICELocation, InternalCompilerError
from sigh_logger import log_debug
from sigh_reactor import Attribute, Reactor, Rule
from sigh_scopes import Scope, RootScope
from sigh_signatures import SignatureRegistry, select_overload, signature_key, type_node_text
from sigh_types import (
    Type, ArrayType, SetType, StructType, ClassType, TemplateParamType, FuncType, TemplateType, BOOL, INT, FLOAT,
    STRING, VOID, TYPE, is_numeric, is_assignable_to, is_comparable_to, common_supertype, format_type,
)


@dataclass
class AnalysisResult:
    """
    Outcome of analysing one program.

    Every fact computed about the tree is an attribute held by the reactor:

      - `type` on every expression and declaration
      - `decl` and `scope` on every reference
      - `scope` on scope-introducing nodes and on declarations
      - `declared` on type declarations (struct, class, template parameter)
      - `value` on type annotations
      - `returns` on blocks, if statements and return statements
      - `overload` on calls that selected a registered declaration
    """
    root: Optional[Root] = None
    context: CompilationContext = field(default_factory=CompilationContext.default)
    filename: Optional[str] = None
    reactor: Optional[Reactor] = None
    registry: SignatureRegistry = field(default_factory=SignatureRegistry)
    diagnostics: List[Diagnostic] = field(default_factory=list)

    def attribute(self, node: Node, name: str) -> Any:
        if self.reactor is None:
            return None
        return self.reactor.get(node, name)

    def type_of(self, node: Node) -> Optional[Type]:
        return self.attribute(node, "type")

    def decl_of(self, node: Node) -> Optional[Declaration]:
        return self.attribute(node, "decl")

    def scope_of(self, node: Node) -> Optional[Scope]:
        return self.attribute(node, "scope")

    def returns(self, node: Node) -> Optional[bool]:
        return self.attribute(node, "returns")

    def declared(self, node: Node) -> Optional[Type]:
        return self.attribute(node, "declared")

    def overload_of(self, node: FunCall) -> Optional[Declaration]:
        return self.attribute(node, "overload")

    def has_errors(self) -> bool:
        return any(d.kind == "error" for d in self.diagnostics)

    def has_warnings(self) -> bool:
        return any(d.kind == "warning" for d in self.diagnostics)


@dataclass
class _Inference:
    """Where an empty array or set literal takes its type from."""
    using: Tuple[Attribute, ...]
    pick: Callable[[List[Any]], Optional[Type]]


def _is_type_decl(decl: Declaration) -> bool:
    if isinstance(decl, SyntheticDecl):
        return decl.kind is DeclarationKind.TYPE
    return isinstance(decl, (StructDecl, ClassDecl, TemplateParam))


def _describe(expr: Expr) -> str:
    if isinstance(expr, Reference):
        return expr.name
    if isinstance(expr, (FieldAccess, ClassFieldAccess)):
        sep = "." if isinstance(expr, FieldAccess) else "$"
        return f"{_describe(expr.stem)}{sep}{expr.field_name}"
    if isinstance(expr, ParenExpr):
        return f"({_describe(expr.inner)})"
    return type(expr).__name__


def _callee_name(expr: Expr) -> Optional[str]:
    if isinstance(expr, Reference):
        return expr.name
    if isinstance(expr, ClassFieldAccess):
        return expr.field_name
    return None


def _substitute(t: Type, bindings: Dict[TemplateParamType, Type]) -> Type:
    if isinstance(t, TemplateParamType):
        return bindings.get(t, t)
    if isinstance(t, ArrayType):
        return ArrayType(_substitute(t.component, bindings))
    if isinstance(t, SetType):
        return SetType(_substitute(t.component, bindings))
    return t


# Statements that carry a `returns` attribute.
_RETURN_RELEVANT = (Block, IfStmt, ReturnStmt)

# Class body statements that can be reached through `$`.
_CLASS_MEMBERS = (FieldDecl, VarDecl, FunDecl, ModifierFunDecl, TemplateDecl)


class SemanticAnalysis:
    """
    Walks a syntax tree once, declaring names in scopes and registering the
    rules that compute every attribute, then resolves the rules to a fixed
    point.

    Usage:

        result = SemanticAnalysis(context, filename).analyze(root)
        if result.has_errors(): ...

    Each node class has exactly one handler; handlers visit their own
    children. The current scope, the enclosing function and the inference
    context are cursors restored on exit of every region that changes them.
    """

    def __init__(self, context: Optional[CompilationContext] = None, filename: Optional[str] = None) -> None:
        self.context = context or CompilationContext.default()
        self.filename = filename
        self.reactor = Reactor(self.context)
        self.registry = SignatureRegistry()
        self.warnings: List[Diagnostic] = []

        self.scope: Optional[Scope] = None
        self.function: Optional[Declaration] = None
        self.inference: Optional[_Inference] = None

        # flattened class declaration -> the class declaration written in the source
        self._class_origins: Dict[int, ClassDecl] = {}

        self._handlers: Dict[type, Callable[[Any], None]] = {
            Root: self._root,
            Block: self._block,
            ExprStmt: self._expr_stmt,
            IfStmt: self._if_stmt,
            WhileStmt: self._while_stmt,
            ReturnStmt: self._return_stmt,
            VarDecl: self._var_decl,
            FieldDecl: self._field_decl,
            Param: self._param,
            FunDecl: self._fun_decl,
            ModifierFunDecl: self._fun_decl,
            StructDecl: self._struct_decl,
            ClassDecl: self._class_decl,
            TemplateParam: self._template_param,
            TemplateDecl: self._template_decl,
            SimpleType: self._simple_type,
            ArrayTypeNode: self._array_type,
            SetTypeNode: self._set_type,
            IntLiteral: self._int_literal,
            FloatLiteral: self._float_literal,
            StringLiteral: self._string_literal,
            Reference: self._reference,
            ParenExpr: self._paren_expr,
            ArrayLiteral: self._collection_literal,
            SetLiteral: self._collection_literal,
            StructConstructor: self._struct_constructor,
            ClassConstructor: self._class_constructor,
            FieldAccess: self._field_access,
            ClassFieldAccess: self._class_field_access,
            ArrayAccess: self._array_access,
            FunCall: self._fun_call,
            TemplateCall: self._template_call,
            UnaryExpr: self._unary_expr,
            BinaryExpr: self._binary_expr,
            Assignment: self._assignment,
        }

    @property
    def handled_node_classes(self) -> Tuple[type, ...]:
        return tuple(self._handlers)

    # ------------------------------------------------------------------
    # Public entry point
    # ------------------------------------------------------------------

    def analyze(self, root: Root) -> AnalysisResult:
        self.walk(root)
        log_debug(self.context, f"Semantic analysis: {len(self.registry)} signature(s) registered")
        self.reactor.resolve()

        diagnostics = list(self.warnings)
        for error in self.reactor.errors:
            diagnostics.append(diag_from_node("error", error.message, filename=self.filename, node=error.node))

        return AnalysisResult(
            root=root,
            context=self.context,
            filename=self.filename,
            reactor=self.reactor,
            registry=self.registry,
            diagnostics=diagnostics,
        )

    def walk(self, node: Node) -> None:
        handler = self._handlers.get(type(node))
        if handler is None:
            raise InternalCompilerError(f"[ICE-0200] no semantic handler for node class {type(node).__name__}",
                                        ICELocation.of(node, self.filename))
        handler(node)

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _enter_scope(self, node: Node) -> Scope:
        scope = Scope(node, self.scope)
        self.reactor.set(node, "scope", scope)
        self.scope = scope
        return scope

    def _walk_with_inference(self, node: Expr, inference: Optional[_Inference]) -> None:
        saved = self.inference
        self.inference = inference
        try:
            self.walk(node)
        finally:
            self.inference = saved

    def _copy_type(self, node: Node, source: Node, source_attr: str = "type") -> None:
        self.reactor.rule((node, "type"), using=[(source, source_attr)], by=lambda r: r.set(0, r.get(0)))

    def _report(self, message: str, node: Optional[Node]) -> None:
        """Report an error outside of any attribute computation."""
        self.reactor.rule(by=lambda r: r.error(message, node))

    # ------------------------------------------------------------------
    # Root, blocks and statements
    # ------------------------------------------------------------------

    def _root(self, node: Root) -> None:
        self.scope = RootScope(node, self.reactor)
        self.reactor.set(node, "scope", self.scope)
        try:
            for stmt in node.statements:
                self.walk(stmt)
        finally:
            self.scope = None

    def _returns_rule(self, node: Node, stmts: Sequence[Optional[Stmt]], require_all: bool) -> None:
        """
        `node` returns when it has at least one return-relevant statement and
        one of them returns. With `require_all` (the two branches of an `if`),
        every entry of `stmts` must be return-relevant and return.
        """
        relevant = [s for s in stmts if isinstance(s, _RETURN_RELEVANT)]
        if not relevant or (require_all and len(relevant) != len(stmts)):
            self.reactor.set(node, "returns", False)
            return
        combine = all if require_all else any
        self.reactor.rule((node, "returns"), using=[(s, "returns") for s in relevant],
                          by=lambda r: r.set(0, combine(r.get(i) for i in range(len(relevant)))))

    def _block(self, node: Block) -> None:
        saved = self.scope
        self._enter_scope(node)
        try:
            for stmt in node.statements:
                self.walk(stmt)
        finally:
            self.scope = saved
        self._returns_rule(node, node.statements, require_all=False)

    def _expr_stmt(self, node: ExprStmt) -> None:
        self.walk(node.expr)

    def _condition_rule(self, condition: Expr, message: str) -> None:
        def check(r: Rule) -> None:
            cond_type = r.get(0)
            if cond_type != BOOL:
                r.error(f"{message}{format_type(cond_type)}", condition)

        self.reactor.rule(using=[(condition, "type")], by=check)

    def _if_stmt(self, node: IfStmt) -> None:
        self.walk(node.condition)
        self.walk(node.true_stmt)
        if node.false_stmt is not None:
            self.walk(node.false_stmt)

        self._condition_rule(node.condition, "[TYP-0100] If statement with a non-boolean condition of type: ")
        if node.false_stmt is None:
            self.reactor.set(node, "returns", False)
        else:
            self._returns_rule(node, [node.true_stmt, node.false_stmt], require_all=True)

    def _while_stmt(self, node: WhileStmt) -> None:
        self.walk(node.condition)
        self.walk(node.body)
        self._condition_rule(node.condition, "[TYP-0101] While statement with a non-boolean condition of type: ")

    def _return_stmt(self, node: ReturnStmt) -> None:
        self.reactor.set(node, "returns", True)
        function = self.function

        if function is None:
            # top-level return
            if node.expr is not None:
                self.walk(node.expr)
            return

        return_type = function.return_type  # type: ignore[attr-defined]

        if node.expr is None:
            def check_missing(r: Rule) -> None:
                if r.get(0) != VOID:
                    r.error("[TYP-0110] Return without value in a function with a return type.", node)

            self.reactor.rule(using=[(return_type, "value")], by=check_missing)
            return

        self._walk_with_inference(node.expr, _Inference((Attribute(return_type, "value"),), lambda v: v[0]))

        def check_value(r: Rule) -> None:
            formal = r.get(0)
            actual = r.get(1)
            if formal == VOID:
                r.error("[TYP-0111] Return with value in a Void function.", node)
            elif not is_assignable_to(actual, formal):
                r.error(f"[TYP-0112] Incompatible return type, expected {format_type(formal)} "
                        f"but got {format_type(actual)}", node.expr)

        self.reactor.rule(using=[(return_type, "value"), (node.expr, "type")], by=check_value)

    # ------------------------------------------------------------------
    # Declarations
    # ------------------------------------------------------------------

    def _declare(self, name: str, node: Declaration) -> None:
        assert self.scope is not None
        self.scope.declare(name, node)
        self.reactor.set(node, "scope", self.scope)

    def _var_decl(self, node: VarDecl) -> None:
        self._declare(node.name, node)
        self.walk(node.type)
        self._copy_type(node, node.type, "value")
        self._walk_with_inference(node.initializer, _Inference((Attribute(node, "type"),), lambda v: v[0]))

        def check(r: Rule) -> None:
            expected = r.get(0)
            actual = r.get(1)
            if not is_assignable_to(actual, expected):
                r.error(f"[TYP-0010] incompatible initializer type provided for variable '{node.name}': "
                        f"expected {format_type(expected)} but got {format_type(actual)}", node.initializer)

        self.reactor.rule(using=[(node, "type"), (node.initializer, "type")], by=check)

    def _field_decl(self, node: FieldDecl) -> None:
        self._declare(node.name, node)
        self.walk(node.type)
        self._copy_type(node, node.type, "value")

    def _param(self, node: Param) -> None:
        self._declare(node.name, node)
        self.walk(node.type)
        self._copy_type(node, node.type, "value")

    def _register_signature(self, node: Declaration, name: str, params: Sequence[Param]) -> None:
        texts = [type_node_text(p.type) for p in params]
        previous = self.registry.register(name, texts, node)
        if previous is None:
            return
        key = signature_key(name, texts)
        log_debug(self.context, f"Signature '{key}' redeclared; the later declaration replaces the earlier one")
        message = f"[SIG-0030] function '{name}' redeclared with the same signature '{key}'"
        if self.context.strict_signatures:
            self._report(message, node)
        else:
            self.warnings.append(diag_from_node("warning", message, filename=self.filename, node=node))

    def _missing_return_rule(self, node: Declaration, return_type: TypeNode, block: Block) -> None:
        def check(r: Rule) -> None:
            returns = r.get(0)
            if not returns and r.get(1) != VOID:
                r.error("[TYP-0120] Missing return in function.", node)

        self.reactor.rule(using=[(block, "returns"), (return_type, "value")], by=check)

    def _walk_function_body(self, node: Declaration, before_params: Sequence[Node], params: Sequence[Param],
                            return_type: TypeNode, block: Block) -> None:
        saved_scope, saved_function = self.scope, self.function
        self._enter_scope(node)
        self.function = node
        try:
            for child in before_params:
                self.walk(child)
            self.walk(return_type)
            for param in params:
                self.walk(param)
            self.walk(block)
        finally:
            self.scope, self.function = saved_scope, saved_function

    def _fun_decl(self, node: FunDecl | ModifierFunDecl) -> None:
        assert self.scope is not None
        self.scope.declare(node.name, node)
        if isinstance(node, ModifierFunDecl):
            self.walk(node.modifier)

        self._walk_function_body(node, (), node.params, node.return_type, node.block)

        deps = [(node.return_type, "value")] + [(p, "type") for p in node.params]
        self.reactor.rule((node, "type"), using=deps,
                          by=lambda r: r.set(0, FuncType(r.get(0), tuple(r.get(i) for i in range(1, len(deps))))))

        self._register_signature(node, node.name, node.params)
        self._missing_return_rule(node, node.return_type, node.block)

    def _struct_decl(self, node: StructDecl) -> None:
        self._declare(node.name, node)
        self.reactor.set(node, "type", TYPE)
        self.reactor.set(node, "declared", StructType(node))
        # fields live in the struct type, not in the enclosing scope
        for field_decl in node.fields:
            self.reactor.set(field_decl, "scope", self.scope)
            self.walk(field_decl.type)
            self._copy_type(field_decl, field_decl.type, "value")

    def _superclasses(self, node: ClassDecl) -> List[ClassDecl]:
        assert self.scope is not None
        parents: List[ClassDecl] = []
        scope = self.scope
        for name in node.superclasses:
            ctx = scope.lookup(name)
            if ctx is not None and isinstance(ctx.declaration, ClassDecl):
                parents.append(ctx.declaration)
            elif ctx is not None:
                self._report(f"[RES-0042] superclass {name} of class {node.name} is not a class but a "
                             f"{ctx.declaration.declared_thing}", node)
            else:
                def check_later(r: Rule, name: str = name) -> None:
                    later = scope.lookup(name)
                    if later is None:
                        r.error(f"[RES-0040] could not resolve superclass {name} of class {node.name}", node)
                    elif isinstance(later.declaration, ClassDecl):
                        r.error(f"[RES-0041] superclass {name} must be declared before class {node.name}", node)
                    else:
                        r.error(f"[RES-0042] superclass {name} of class {node.name} is not a class but a "
                                f"{later.declaration.declared_thing}", node)

                self.reactor.rule(by=check_later)
        return parents

    def _class_decl(self, node: ClassDecl) -> None:
        assert self.scope is not None
        parents = self._superclasses(node)

        inherited: List[Stmt] = []
        for parent in parents:
            origin = self._class_origins.get(id(parent), parent)
            inherited.extend(origin.block.statements)

        declared = node
        if inherited:
            flattened_body = Block(node.block.statements + inherited, span=node.block.span)
            declared = ClassDecl(node.modifier, node.name, node.superclasses, flattened_body, span=node.span)
            self._class_origins[id(declared)] = node
            self.reactor.set(declared, "type", TYPE)
            self.reactor.set(declared, "declared", ClassType(declared))

        self.scope.declare(node.name, declared)
        self.reactor.set(node, "type", TYPE)
        self.reactor.set(node, "declared", ClassType(declared))
        self.walk(node.modifier)

        saved = self.scope
        class_scope = self._enter_scope(node)
        try:
            for stmt in inherited:
                if isinstance(stmt, Declaration):
                    class_scope.declare(stmt.name, stmt)  # type: ignore[attr-defined]
            self.walk(node.block)
        finally:
            self.scope = saved

    def _template_param(self, node: TemplateParam) -> None:
        self._declare(node.name, node)
        self.reactor.set(node, "type", TYPE)
        self.reactor.set(node, "declared", TemplateParamType(node))
        self.walk(node.type)

        def check_bound(r: Rule) -> None:
            if r.get(0) != TYPE:
                r.error(f"[TYP-0130] template type parameter {node.name} must be bounded by Type, "
                        f"got {format_type(r.get(0))}", node.type)

        self.reactor.rule(using=[(node.type, "value")], by=check_bound)

    def _template_decl(self, node: TemplateDecl) -> None:
        assert self.scope is not None
        self.scope.declare(node.name, node)

        self._walk_function_body(node, node.template_params, node.params, node.return_type, node.block)

        placeholders = [TemplateParamType(tp) for tp in node.template_params]
        deps = [(node.return_type, "value")] + [(p, "type") for p in node.params]

        def template_type(r: Rule) -> None:
            params = tuple(placeholders) + tuple(r.get(i) for i in range(1, len(deps)))
            r.set(0, TemplateType(r.get(0), len(placeholders), params))

        self.reactor.rule((node, "type"), using=deps, by=template_type)
        self._missing_return_rule(node, node.return_type, node.block)

    # ------------------------------------------------------------------
    # Type annotations
    # ------------------------------------------------------------------

    def _simple_type(self, node: SimpleType) -> None:
        scope = self.scope
        assert scope is not None

        def resolve(r: Rule) -> None:
            # type declarations may occur after use
            ctx = scope.lookup(node.name)
            if ctx is None:
                r.error_for(f"[RES-0030] could not resolve: {node.name}", node, (node, "value"))
            elif not _is_type_decl(ctx.declaration):
                r.error_for(f"[RES-0031] {node.name} did not resolve to a type declaration but to a "
                            f"{ctx.declaration.declared_thing} declaration", node, (node, "value"))
            else:
                self.reactor.rule((node, "value"), using=[(ctx.declaration, "declared")],
                                  by=lambda rr: rr.set(0, rr.get(0)))

        self.reactor.rule(by=resolve)

    def _array_type(self, node: ArrayTypeNode) -> None:
        self.walk(node.component)
        self.reactor.rule((node, "value"), using=[(node.component, "value")],
                          by=lambda r: r.set(0, ArrayType(r.get(0))))

    def _set_type(self, node: SetTypeNode) -> None:
        self.walk(node.component)
        self.reactor.rule((node, "value"), using=[(node.component, "value")],
                          by=lambda r: r.set(0, SetType(r.get(0))))

    # ------------------------------------------------------------------
    # Expressions
    # ------------------------------------------------------------------

    def _int_literal(self, node: IntLiteral) -> None:
        self.reactor.set(node, "type", INT)

    def _float_literal(self, node: FloatLiteral) -> None:
        self.reactor.set(node, "type", FLOAT)

    def _string_literal(self, node: StringLiteral) -> None:
        self.reactor.set(node, "type", STRING)

    def _reference(self, node: Reference) -> None:
        scope = self.scope
        assert scope is not None

        ctx = scope.lookup(node.name)
        if ctx is not None:
            self.reactor.set(node, "decl", ctx.declaration)
            self.reactor.set(node, "scope", ctx.scope)
            self._copy_type(node, ctx.declaration)
            return

        # the name may be declared later in an enclosing scope
        def deferred(r: Rule) -> None:
            later = scope.lookup(node.name)
            if later is None:
                r.error(f"[RES-0010] Could not resolve: {node.name}", node)
            elif isinstance(later.declaration, VarDecl):
                r.error(f"[RES-0020] Variable used before declaration: {node.name}", node)
            else:
                r.set(0, later.declaration)
                r.set(1, later.scope)
                self._copy_type(node, later.declaration)

        self.reactor.rule((node, "decl"), (node, "scope"), (node, "type"), by=deferred)

    def _paren_expr(self, node: ParenExpr) -> None:
        self.walk(node.inner)
        self._copy_type(node, node.inner)

    def _collection_literal(self, node: ArrayLiteral | SetLiteral) -> None:
        is_array = isinstance(node, ArrayLiteral)
        what = "array" if is_array else "set"
        collection = ArrayType if is_array else SetType

        if not node.components:
            self._empty_literal(node, what, collection)
            return

        for component in node.components:
            self._walk_with_inference(component, None)

        def fold(r: Rule) -> None:
            supertype: Optional[Type] = None
            for i, component in enumerate(node.components):
                t = r.get(i)
                if t == VOID:
                    # reported, the other elements still give the literal a type
                    r.error(f"[TYP-0050] Void-valued expression in {what} literal", component)
                elif supertype is None:
                    supertype = t
                else:
                    supertype = common_supertype(supertype, t)
                    if supertype is None:
                        r.error(f"[TYP-0051] Could not find common supertype in {what} literal.", node)
                        return
            if supertype is None:
                r.error(f"[TYP-0052] Could not find common supertype in {what} literal: all members have Void type.",
                        node)
            else:
                r.set(0, collection(supertype))

        self.reactor.rule((node, "type"), using=[(c, "type") for c in node.components], by=fold)

    def _empty_literal(self, node: Expr, what: str, collection: type) -> None:
        inference = self.inference
        message = f"[TYP-0053] Could not infer type for empty {what} literal"

        if inference is None:
            self.reactor.rule((node, "type"), by=lambda r: r.error(message, node))
            return

        def infer(r: Rule) -> None:
            inferred = inference.pick([r.get(i) for i in range(len(inference.using))])
            if isinstance(inferred, collection):
                r.set(0, inferred)
            else:
                r.error(f"{message}: context expects {format_type(inferred)}", node)

        self.reactor.rule((node, "type"), using=inference.using, by=infer)

    def _struct_constructor(self, node: StructConstructor) -> None:
        self.walk(node.ref)

        def construct(r: Rule) -> None:
            decl = r.get(0)
            if not isinstance(decl, StructDecl):
                r.error(f"[TYP-0090] Applying the constructor operator ($) to non-struct reference for: "
                        f"{node.ref.name}", node)
                return
            deps = [(decl, "declared")] + [(f, "type") for f in decl.fields]
            self.reactor.rule((node, "type"), using=deps,
                              by=lambda rr: rr.set(0, FuncType(rr.get(0),
                                                               tuple(rr.get(i) for i in range(1, len(deps))))))

        self.reactor.rule((node, "type"), using=[(node.ref, "decl")], by=construct)

    def _class_constructor(self, node: ClassConstructor) -> None:
        self.walk(node.ref)

        def construct(r: Rule) -> None:
            decl = r.get(0)
            if not isinstance(decl, ClassDecl):
                r.error(f"[TYP-0091] Applying the class constructor (create) to non-class reference for: "
                        f"{node.ref.name}", node)
                return
            self.reactor.rule((node, "type"), using=[(decl, "declared")], by=lambda rr: rr.set(0, FuncType(rr.get(0))))

        self.reactor.rule((node, "type"), using=[(node.ref, "decl")], by=construct)

    def _field_access(self, node: FieldAccess) -> None:
        self._walk_with_inference(node.stem, None)

        def access(r: Rule) -> None:
            stem_type = r.get(0)
            if isinstance(stem_type, ArrayType):
                if node.field_name == "length":
                    r.set(0, INT)
                else:
                    r.error("[TYP-0070] Trying to access a non-length field on an array", node)
                return
            if not isinstance(stem_type, StructType):
                r.error(f"[TYP-0071] Trying to access a field on an expression of type {format_type(stem_type)}",
                        node)
                return
            for field_decl in stem_type.decl.fields:
                if field_decl.name == node.field_name:
                    self._copy_type(node, field_decl)
                    return
            r.error(f"[TYP-0072] Trying to access missing field {node.field_name} on struct {stem_type.name}", node)

        self.reactor.rule((node, "type"), using=[(node.stem, "type")], by=access)

    def _class_field_access(self, node: ClassFieldAccess) -> None:
        self._walk_with_inference(node.stem, None)

        def access(r: Rule) -> None:
            stem_type = r.get(0)
            if isinstance(stem_type, ArrayType):
                if node.field_name == "length":
                    r.set(0, INT)
                else:
                    r.error("[TYP-0080] Trying to access a non-length attribute on an array", node)
                return
            if not isinstance(stem_type, ClassType):
                r.error(f"[TYP-0081] Trying to access a class element on an expression of type "
                        f"{format_type(stem_type)}", node)
                return
            # own members come first in the flattened body, so they win over inherited ones
            for stmt in stem_type.decl.block.statements:
                if isinstance(stmt, _CLASS_MEMBERS) and stmt.name == node.field_name:
                    self._copy_type(node, stmt)
                    return
            r.error(f"[TYP-0082] Trying to access missing field {node.field_name} on class {stem_type.name}", node)

        self.reactor.rule((node, "type"), using=[(node.stem, "type")], by=access)

    def _array_access(self, node: ArrayAccess) -> None:
        self._walk_with_inference(node.array, None)
        self._walk_with_inference(node.index, None)

        def check_index(r: Rule) -> None:
            if r.get(0) != INT:
                r.error("[TYP-0060] Indexing an array using a non-Int-valued expression", node.index)

        self.reactor.rule(using=[(node.index, "type")], by=check_index)

        def component(r: Rule) -> None:
            array_type = r.get(0)
            if isinstance(array_type, ArrayType):
                r.set(0, array_type.component)
            else:
                r.error(f"[TYP-0061] Trying to index a non-array expression of type {format_type(array_type)}", node)

        self.reactor.rule((node, "type"), using=[(node.array, "type")], by=component)

    def _fun_call(self, node: FunCall) -> None:
        self._walk_with_inference(node.function, None)
        for i, arg in enumerate(node.arguments):
            self._walk_with_inference(arg, _Inference((Attribute(node.function, "type"),),
                                                      lambda v, i=i: v[0].params[i]
                                                      if isinstance(v[0], FuncType) and i < len(v[0].params)
                                                      else None))

        arg_count = len(node.arguments)
        deps = [(node.function, "type")] + [(arg, "type") for arg in node.arguments]

        def check_callee(r: Rule) -> None:
            callee = r.get(0)
            if not isinstance(callee, FuncType):
                r.error(f"[SIG-0010] trying to call a non-function expression: {_describe(node.function)}",
                        node.function)
                return
            arg_types = [r.get(i + 1) for i in range(arg_count)]
            name = _callee_name(node.function)
            candidates = self.registry.candidates(name) if name is not None else []
            callee_decl = self.reactor.get(node.function, "decl")

            def choose(rr: Rule) -> None:
                overloads = [(decl, rr.get(i)) for i, decl in enumerate(candidates)
                             if isinstance(rr.get(i), FuncType)]
                selected = select_overload((callee_decl, callee), overloads, arg_types)
                if selected is not None:
                    rr.set(0, selected[1].result)
                    if any(selected[0] is c for c in candidates):
                        rr.set_attr(node, "overload", selected[0])
                    return
                rr.set(0, callee.result)
                self._report_call_mismatch(rr, node, callee, overloads, arg_types)

            self.reactor.rule((node, "type"), using=[(c, "type") for c in candidates], by=choose)

        self.reactor.rule((node, "type"), using=deps, by=check_callee)

    def _report_call_mismatch(self, r: Rule, node: FunCall, callee: FuncType,
                              overloads: Sequence[Tuple[Optional[Declaration], FuncType]],
                              arg_types: Sequence[Type]) -> None:
        expected = len(callee.params)
        actual = len(arg_types)
        if expected == actual:
            for i, (arg_type, param_type) in enumerate(zip(arg_types, callee.params)):
                if not is_assignable_to(arg_type, param_type):
                    r.error(f"[SIG-0021] incompatible argument provided for argument {i}: expected "
                            f"{format_type(param_type)} but got {format_type(arg_type)}", node.arguments[i])
        elif any(len(t.params) == actual for _, t in overloads):
            r.error(f"[SIG-0022] wrong number of arguments/wrong args type, expected {expected} but got {actual}",
                    node)
        else:
            r.error(f"[SIG-0020] wrong number of arguments, expected {expected} but got {actual}", node)

    def _template_call(self, node: TemplateCall) -> None:
        self._walk_with_inference(node.template, None)
        for type_node in node.types:
            self.walk(type_node)

        type_deps = [Attribute(node.template, "type")] + [Attribute(t, "value") for t in node.types]

        def instantiated(values: List[Any]) -> Optional[TemplateType]:
            template = values[0]
            if not isinstance(template, TemplateType) or len(values) - 1 != template.param_count:
                return None
            bindings = dict(zip(template.placeholders, values[1:]))
            return TemplateType(_substitute(template.result, bindings), template.param_count,
                                tuple(_substitute(p, bindings) for p in template.params))

        for i, arg in enumerate(node.arguments):
            def pick(values: List[Any], i: int = i) -> Optional[Type]:
                inst = instantiated(values)
                if inst is None or i >= len(inst.value_params):
                    return None
                return inst.value_params[i]

            self._walk_with_inference(arg, _Inference(tuple(type_deps), pick))

        type_count = len(node.types)
        deps = type_deps + [Attribute(arg, "type") for arg in node.arguments]

        def check(r: Rule) -> None:
            template = r.get(0)
            if not isinstance(template, TemplateType):
                r.error(f"[SIG-0040] trying to call a non-template expression: {_describe(node.template)}",
                        node.template)
                return
            if type_count != template.param_count:
                r.error(f"[SIG-0041] wrong number of types passed, expected {template.param_count} "
                        f"but got {type_count}", node)
                return
            if len(node.arguments) != len(template.value_params):
                r.error(f"[SIG-0020] wrong number of arguments, expected {len(template.value_params)} "
                        f"but got {len(node.arguments)}", node)
                return
            inst = instantiated([r.get(i) for i in range(type_count + 1)])
            assert inst is not None
            r.set(0, inst.result)
            for i, (arg, param_type) in enumerate(zip(node.arguments, inst.value_params)):
                arg_type = r.get(type_count + 1 + i)
                if not is_assignable_to(arg_type, param_type):
                    r.error(f"[SIG-0021] incompatible argument provided for argument {i}: expected "
                            f"{format_type(param_type)} but got {format_type(arg_type)}", arg)

        self.reactor.rule((node, "type"), using=deps, by=check)

    def _unary_expr(self, node: UnaryExpr) -> None:
        self._walk_with_inference(node.operand, None)
        self.reactor.set(node, "type", BOOL)

        def check(r: Rule) -> None:
            operand_type = r.get(0)
            if operand_type != BOOL:
                r.error(f"[TYP-0030] Trying to negate type: {format_type(operand_type)}", node)

        self.reactor.rule(using=[(node.operand, "type")], by=check)

    def _binary_expr(self, node: BinaryExpr) -> None:
        self._walk_with_inference(node.left, None)
        self._walk_with_inference(node.right, None)

        def check(r: Rule) -> None:
            left = r.get(0)
            right = r.get(1)
            op = node.operator
            if op is BinaryOperator.ADD and (left == STRING or right == STRING):
                r.set(0, STRING)
            elif op in ARITHMETIC_OPERATORS:
                self._binary_arithmetic(r, node, left, right)
            elif op in COMPARISON_OPERATORS:
                r.set(0, BOOL)
                for operand, t in ((node.left, left), (node.right, right)):
                    if not is_numeric(t):
                        r.error(f"[TYP-0041] Attempting to perform arithmetic comparison on non-numeric type: "
                                f"{format_type(t)}", operand)
            elif op in EQUALITY_OPERATORS:
                r.set(0, BOOL)
                if not is_comparable_to(left, right):
                    r.error(f"[TYP-0042] Trying to compare incomparable types {format_type(left)} and "
                            f"{format_type(right)}", node)
            elif op in LOGIC_OPERATORS:
                r.set(0, BOOL)
                for operand, t in ((node.left, left), (node.right, right)):
                    if t != BOOL:
                        r.error(f"[TYP-0043] Attempting to perform binary logic on non-boolean type: "
                                f"{format_type(t)}", operand)

        self.reactor.rule((node, "type"), using=[(node.left, "type"), (node.right, "type")], by=check)

    @staticmethod
    def _binary_arithmetic(r: Rule, node: BinaryExpr, left: Type, right: Type) -> None:
        if isinstance(left, TemplateParamType) and (right == left or is_numeric(right)):
            r.set(0, left)
        elif isinstance(right, TemplateParamType) and is_numeric(left):
            r.set(0, right)
        elif isinstance(left, ArrayType) and is_numeric(left.component):
            other = right.component if isinstance(right, ArrayType) else right
            if is_numeric(other):
                r.set(0, ArrayType(FLOAT if FLOAT in (left.component, other) else INT))
            else:
                r.error(f"[TYP-0040] Trying to {node.operator.name.lower()} {format_type(left.component)} "
                        f"with {format_type(right)}", node)
        elif is_numeric(left) and is_numeric(right):
            r.set(0, FLOAT if FLOAT in (left, right) else INT)
        else:
            r.error(f"[TYP-0040] Trying to {node.operator.name.lower()} {format_type(left)} with {format_type(right)}", node)

    def _assignment(self, node: Assignment) -> None:
        self._walk_with_inference(node.left, None)
        self._walk_with_inference(node.right, _Inference((Attribute(node.left, "type"),), lambda v: v[0]))

        def check(r: Rule) -> None:
            left = r.get(0)
            right = r.get(1)
            # the type of the assignment is the type of the target
            r.set(0, left)
            if not isinstance(node.left, (Reference, FieldAccess, ArrayAccess, ClassFieldAccess)):
                r.error("[TYP-0021] Trying to assign to an non-lvalue expression.", node.left)
            elif not is_assignable_to(right, left):
                r.error("[TYP-0020] Trying to assign a value to a non-compatible lvalue.", node)

        self.reactor.rule((node, "type"), using=[(node.left, "type"), (node.right, "type")], by=check)


def analyze_root(root: Root, context: Optional[CompilationContext] = None,
                 filename: Optional[str] = None) -> AnalysisResult:
    return SemanticAnalysis(context, filename).analyze(root)

