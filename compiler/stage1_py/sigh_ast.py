#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional


# ==========================
# AST definitions
# ==========================


@dataclass
class Span:
    start_line: int
    start_column: int
    end_line: int
    end_column: int


@dataclass
class Node:
    span: Optional[Span] = field(default=None, repr=False, compare=False, kw_only=True)


# --- operators ---

class UnaryOperator(Enum):
    NOT = "!"


class BinaryOperator(Enum):
    MULTIPLY = "*"
    DIVIDE = "/"
    REMAINDER = "%"
    ADD = "+"
    SUBTRACT = "-"
    EQUALITY = "=="
    NOT_EQUALS = "!="
    GREATER = ">"
    LOWER = "<"
    GREATER_EQUAL = ">="
    LOWER_EQUAL = "<="
    AND = "&&"
    OR = "||"


ARITHMETIC_OPERATORS = frozenset({
    BinaryOperator.MULTIPLY, BinaryOperator.DIVIDE, BinaryOperator.REMAINDER,
    BinaryOperator.ADD, BinaryOperator.SUBTRACT,
})
COMPARISON_OPERATORS = frozenset({
    BinaryOperator.GREATER, BinaryOperator.LOWER, BinaryOperator.GREATER_EQUAL, BinaryOperator.LOWER_EQUAL,
})
EQUALITY_OPERATORS = frozenset({BinaryOperator.EQUALITY, BinaryOperator.NOT_EQUALS})
LOGIC_OPERATORS = frozenset({BinaryOperator.AND, BinaryOperator.OR})


# --- types ---

class TypeNode(Node):
    pass


@dataclass
class SimpleType(TypeNode):
    name: str  # e.g. "Int", "Point", "pub"


@dataclass
class ArrayTypeNode(TypeNode):
    component: TypeNode  # Int[]


@dataclass
class SetTypeNode(TypeNode):
    component: TypeNode  # Int{}


# --- expressions ---

class Expr(Node):
    pass


@dataclass
class IntLiteral(Expr):
    value: int


@dataclass
class FloatLiteral(Expr):
    value: float


@dataclass
class StringLiteral(Expr):
    value: str


@dataclass
class Reference(Expr):
    name: str


@dataclass
class ParenExpr(Expr):
    inner: Expr


@dataclass
class ArrayLiteral(Expr):
    components: List[Expr]


@dataclass
class SetLiteral(Expr):
    components: List[Expr]


@dataclass
class StructConstructor(Expr):
    ref: Reference  # $Point


@dataclass
class ClassConstructor(Expr):
    ref: Reference  # create Dog


@dataclass
class FieldAccess(Expr):
    stem: Expr
    field_name: str  # stem.field_name


@dataclass
class ClassFieldAccess(Expr):
    stem: Expr
    field_name: str  # stem$field_name


@dataclass
class ArrayAccess(Expr):
    array: Expr
    index: Expr


@dataclass
class FunCall(Expr):
    function: Expr
    arguments: List[Expr]


@dataclass
class TemplateCall(Expr):
    template: Expr
    types: List[TypeNode]
    arguments: List[Expr]


@dataclass
class UnaryExpr(Expr):
    operator: UnaryOperator
    operand: Expr


@dataclass
class BinaryExpr(Expr):
    left: Expr
    operator: BinaryOperator
    right: Expr


@dataclass
class Assignment(Expr):
    left: Expr
    right: Expr


# --- statements and declarations ---

class Stmt(Node):
    pass


class Declaration(Node):
    """A named entity introduced somewhere in the tree."""
    declared_thing: ClassVar[str] = "declaration"


@dataclass
class ExprStmt(Stmt):
    expr: Expr


@dataclass
class Block(Stmt):
    statements: List[Stmt]


@dataclass
class IfStmt(Stmt):
    condition: Expr
    true_stmt: Stmt
    false_stmt: Optional[Stmt] = None


@dataclass
class WhileStmt(Stmt):
    condition: Expr
    body: Stmt


@dataclass
class ReturnStmt(Stmt):
    expr: Optional[Expr] = None


@dataclass
class VarDecl(Stmt, Declaration):
    declared_thing: ClassVar[str] = "variable"
    name: str
    type: TypeNode
    initializer: Expr


@dataclass
class FieldDecl(Stmt, Declaration):
    declared_thing: ClassVar[str] = "field"
    name: str
    type: TypeNode


@dataclass
class Param(Declaration):
    declared_thing: ClassVar[str] = "parameter"
    name: str
    type: TypeNode


@dataclass
class FunDecl(Stmt, Declaration):
    declared_thing: ClassVar[str] = "function"
    name: str
    params: List[Param]
    return_type: TypeNode
    block: Block


@dataclass
class ModifierFunDecl(Stmt, Declaration):
    """`pub fun` / `pvt fun`: a function carrying a visibility modifier."""
    declared_thing: ClassVar[str] = "function"
    modifier: SimpleType
    name: str
    params: List[Param]
    return_type: TypeNode
    block: Block


@dataclass
class StructDecl(Stmt, Declaration):
    declared_thing: ClassVar[str] = "struct"
    name: str
    fields: List[FieldDecl]


@dataclass
class ClassDecl(Stmt, Declaration):
    declared_thing: ClassVar[str] = "class"
    modifier: SimpleType
    name: str
    superclasses: List[str]
    block: Block


@dataclass
class TemplateParam(Declaration):
    declared_thing: ClassVar[str] = "template type parameter"
    name: str
    type: TypeNode


@dataclass
class TemplateDecl(Stmt, Declaration):
    declared_thing: ClassVar[str] = "template"
    template_params: List[TemplateParam]
    name: str
    params: List[Param]
    return_type: TypeNode
    block: Block


class DeclarationKind(Enum):
    TYPE = "type"
    VARIABLE = "variable"
    FUNCTION = "function"


@dataclass
class SyntheticDecl(Declaration):
    """Built-in declaration of the root scope (no source location)."""
    name: str
    kind: DeclarationKind

    @property
    def declared_thing(self) -> str:  # type: ignore[override]
        return f"built-in {self.kind.value}"


@dataclass
class Root(Node):
    statements: List[Stmt]
