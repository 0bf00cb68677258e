#  SPDX-License-Identifier: MIT OR Apache-2.0
#  Copyright (c) 2025-2026 gwz

from dataclasses import dataclass
from typing import List, Optional

from sigh_ast import (
    Span, TypeNode, SimpleType, ArrayTypeNode, SetTypeNode, Expr, IntLiteral, FloatLiteral, StringLiteral, Reference,
    ParenExpr, ArrayLiteral, SetLiteral, StructConstructor, ClassConstructor, FieldAccess, ClassFieldAccess,
    ArrayAccess, FunCall, TemplateCall, UnaryExpr, BinaryExpr, Assignment, UnaryOperator, BinaryOperator, Stmt,
    ExprStmt, Block, IfStmt, WhileStmt, ReturnStmt, VarDecl, FieldDecl, Param, FunDecl, ModifierFunDecl, StructDecl,
    ClassDecl, TemplateParam, TemplateDecl, Root)
from sigh_lexer import TokenKind, Token, Lexer, MODIFIERS


# ==========================
# Parser
# ==========================

@dataclass
class ParseError(Exception):
    message: str
    token: Optional[Token] = None
    filename: Optional[str] = None


_BINARY_OPERATORS = {
    TokenKind.STAR: BinaryOperator.MULTIPLY,
    TokenKind.SLASH: BinaryOperator.DIVIDE,
    TokenKind.PERCENT: BinaryOperator.REMAINDER,
    TokenKind.PLUS: BinaryOperator.ADD,
    TokenKind.MINUS: BinaryOperator.SUBTRACT,
    TokenKind.EQEQ: BinaryOperator.EQUALITY,
    TokenKind.NE: BinaryOperator.NOT_EQUALS,
    TokenKind.GT: BinaryOperator.GREATER,
    TokenKind.LT: BinaryOperator.LOWER,
    TokenKind.GE: BinaryOperator.GREATER_EQUAL,
    TokenKind.LE: BinaryOperator.LOWER_EQUAL,
    TokenKind.ANDAND: BinaryOperator.AND,
    TokenKind.OROR: BinaryOperator.OR,
}

# Tokens that may begin an expression (used to detect `return <expr>`).
_EXPR_START_KINDS = frozenset({
    TokenKind.IDENT, TokenKind.INT, TokenKind.FLOAT, TokenKind.STRING, TokenKind.LPAREN, TokenKind.LBRACKET,
    TokenKind.LBRACE, TokenKind.BANG, TokenKind.DOLLAR, TokenKind.CREATE,
})


class Parser:
    def __init__(self, tokens: List[Token], filename: Optional[str] = None) -> None:
        self.tokens = tokens
        self.index = 0
        self.filename = filename

    @classmethod
    def from_source(cls, source: str) -> "Parser":
        lexer = Lexer.from_source(source)
        tokens = lexer.tokenize()
        return cls(tokens)

    # --- token utilities ---

    def _peek(self, offset: int = 0) -> Token:
        i = min(self.index + offset, len(self.tokens) - 1)
        return self.tokens[i]

    def _last(self) -> Token:
        return self.tokens[self.index - 1 if self.index > 0 else 0]

    def _at_end(self) -> bool:
        return self._peek().kind is TokenKind.EOF

    def _advance(self) -> Token:
        tok = self._peek()
        if not self._at_end():
            self.index += 1
        return tok

    def _check(self, kind: TokenKind) -> bool:
        return self._peek().kind is kind

    def _match(self, *kinds: TokenKind) -> bool:
        if self._peek().kind in kinds:
            self._advance()
            return True
        return False

    def _expect(self, kind: TokenKind, msg: str) -> Token:
        if not self._check(kind):
            raise ParseError(f"{msg}, got {self._peek()} instead", self._peek(), self.filename)
        return self._advance()

    def _span_start(self) -> Span:
        here = self._peek()
        return Span(here.line, here.column, here.line, here.column)

    def _extend_span(self, start: Span) -> Span:
        here = self._last()
        return Span(
            start.start_line,
            start.start_column,
            here.line,
            here.column + len(here.text),
        )

    def _at_modifier(self, kind: TokenKind) -> bool:
        """`pub`/`pvt` followed by the given keyword."""
        tok = self._peek()
        return tok.kind is TokenKind.IDENT and tok.text in MODIFIERS and self._peek(1).kind is kind

    # --- entry point ---

    def parse_root(self, filename: Optional[str] = None) -> Root:
        if filename is not None:
            self.filename = filename

        start = self._span_start()
        statements: List[Stmt] = []
        while not self._at_end():
            statements.append(self._parse_stmt())
        if not statements:
            raise ParseError("[PAR-0010] expected at least one statement", self._peek(), self.filename)
        return Root(statements, span=self._extend_span(start))

    # --- statements ---

    def _parse_stmt(self) -> Stmt:
        if self._check(TokenKind.LBRACE):
            return self._parse_block()
        elif self._check(TokenKind.VAR):
            return self._parse_var_decl()
        elif self._check(TokenKind.FUN):
            return self._parse_fun_decl()
        elif self._check(TokenKind.STRUCT):
            return self._parse_struct_decl()
        elif self._check(TokenKind.TEMPLATE):
            return self._parse_template_decl()
        elif self._at_modifier(TokenKind.CLASS):
            return self._parse_class_decl()
        elif self._at_modifier(TokenKind.FUN):
            return self._parse_modifier_fun_decl()
        elif self._check(TokenKind.IF):
            return self._parse_if_stmt()
        elif self._check(TokenKind.WHILE):
            return self._parse_while_stmt()
        elif self._check(TokenKind.RETURN):
            return self._parse_return_stmt()
        return self._parse_expr_stmt()

    def _parse_block(self) -> Block:
        start = self._span_start()
        self._expect(TokenKind.LBRACE, "[PAR-0020] expected '{' to start block")
        stmts: List[Stmt] = []
        while not self._check(TokenKind.RBRACE):
            if self._at_end():
                raise ParseError("[PAR-0021] unterminated block, expected '}'", self._peek(), self.filename)
            stmts.append(self._parse_stmt())
        self._expect(TokenKind.RBRACE, "[PAR-0021] expected '}' after block")
        return Block(stmts, span=self._extend_span(start))

    def _parse_var_decl(self) -> Stmt:
        # `var x: T = e` declares a variable, `var x: T` a field
        start = self._span_start()
        self._expect(TokenKind.VAR, "[PAR-0030] expected 'var'")
        name_tok = self._expect(TokenKind.IDENT, "[PAR-0031] expected variable name")
        self._expect(TokenKind.COLON, "[PAR-0032] expected ':' after variable name")
        var_type = self._parse_type()
        if self._match(TokenKind.EQ):
            initializer = self._parse_expr()
            return VarDecl(name_tok.text, var_type, initializer, span=self._extend_span(start))
        return FieldDecl(name_tok.text, var_type, span=self._extend_span(start))

    def _parse_params(self) -> List[Param]:
        self._expect(TokenKind.LPAREN, "[PAR-0040] expected '(' before parameters")
        params: List[Param] = []
        if not self._check(TokenKind.RPAREN):
            while True:
                start = self._span_start()
                param_name = self._expect(TokenKind.IDENT, "[PAR-0041] expected parameter name")
                self._expect(TokenKind.COLON, "[PAR-0042] expected ':' after parameter name")
                param_type = self._parse_type()
                params.append(Param(param_name.text, param_type, span=self._extend_span(start)))
                if not self._match(TokenKind.COMMA):
                    break
        self._expect(TokenKind.RPAREN, "[PAR-0043] expected ')' after parameters")
        return params

    def _parse_return_type(self) -> TypeNode:
        # no ':' means Void return type
        if not self._match(TokenKind.COLON):
            here = self._peek()
            return SimpleType("Void", span=Span(here.line, here.column, here.line, here.column))
        return self._parse_type(before_block=True)

    def _parse_fun_decl(self) -> FunDecl:
        start = self._span_start()
        self._expect(TokenKind.FUN, "[PAR-0050] expected 'fun'")
        name_tok = self._expect(TokenKind.IDENT, "[PAR-0051] expected function name")
        params = self._parse_params()
        ret_type = self._parse_return_type()
        block = self._parse_block()
        return FunDecl(name_tok.text, params, ret_type, block, span=self._extend_span(start))

    def _parse_modifier(self) -> SimpleType:
        start = self._span_start()
        tok = self._expect(TokenKind.IDENT, "[PAR-0060] expected visibility modifier")
        return SimpleType(tok.text, span=self._extend_span(start))

    def _parse_modifier_fun_decl(self) -> ModifierFunDecl:
        start = self._span_start()
        modifier = self._parse_modifier()
        self._expect(TokenKind.FUN, "[PAR-0050] expected 'fun'")
        name_tok = self._expect(TokenKind.IDENT, "[PAR-0051] expected function name")
        params = self._parse_params()
        ret_type = self._parse_return_type()
        block = self._parse_block()
        return ModifierFunDecl(modifier, name_tok.text, params, ret_type, block, span=self._extend_span(start))

    def _parse_struct_decl(self) -> StructDecl:
        start = self._span_start()
        self._expect(TokenKind.STRUCT, "[PAR-0070] expected 'struct'")
        name_tok = self._expect(TokenKind.IDENT, "[PAR-0071] expected struct name")
        self._expect(TokenKind.LBRACE, "[PAR-0072] expected '{' after struct name")
        fields: List[FieldDecl] = []
        while not self._check(TokenKind.RBRACE):
            field_start = self._span_start()
            self._expect(TokenKind.VAR, "[PAR-0073] expected 'var' in struct body")
            field_name = self._expect(TokenKind.IDENT, "[PAR-0074] expected field name")
            self._expect(TokenKind.COLON, "[PAR-0075] expected ':' after field name")
            field_type = self._parse_type()
            fields.append(FieldDecl(field_name.text, field_type, span=self._extend_span(field_start)))
        self._expect(TokenKind.RBRACE, "[PAR-0076] expected '}' after struct body")
        return StructDecl(name_tok.text, fields, span=self._extend_span(start))

    def _parse_class_decl(self) -> ClassDecl:
        start = self._span_start()
        modifier = self._parse_modifier()
        self._expect(TokenKind.CLASS, "[PAR-0080] expected 'class'")
        name_tok = self._expect(TokenKind.IDENT, "[PAR-0081] expected class name")
        superclasses: List[str] = []
        if self._match(TokenKind.FROM):
            while True:
                parent = self._expect(TokenKind.IDENT, "[PAR-0082] expected superclass name after 'from'")
                superclasses.append(parent.text)
                if not self._match(TokenKind.COMMA):
                    break
        block = self._parse_block()
        return ClassDecl(modifier, name_tok.text, superclasses, block, span=self._extend_span(start))

    def _parse_template_decl(self) -> TemplateDecl:
        start = self._span_start()
        self._expect(TokenKind.TEMPLATE, "[PAR-0090] expected 'template'")
        self._expect(TokenKind.LT, "[PAR-0091] expected '<' after 'template'")
        template_params: List[TemplateParam] = []
        while True:
            param_start = self._span_start()
            param_name = self._expect(TokenKind.IDENT, "[PAR-0092] expected template parameter name")
            self._expect(TokenKind.COLON, "[PAR-0093] expected ':' after template parameter name")
            bound = self._parse_type()
            template_params.append(TemplateParam(param_name.text, bound, span=self._extend_span(param_start)))
            if not self._match(TokenKind.COMMA):
                break
        self._expect(TokenKind.GT, "[PAR-0094] expected '>' after template parameters")
        self._expect(TokenKind.FUN, "[PAR-0095] expected 'fun' after template parameters")
        name_tok = self._expect(TokenKind.IDENT, "[PAR-0051] expected function name")
        params = self._parse_params()
        ret_type = self._parse_return_type()
        block = self._parse_block()
        return TemplateDecl(template_params, name_tok.text, params, ret_type, block, span=self._extend_span(start))

    def _parse_if_stmt(self) -> IfStmt:
        start = self._span_start()
        self._expect(TokenKind.IF, "[PAR-0100] expected 'if'")
        cond = self._parse_expr()
        then_stmt = self._parse_stmt()
        else_stmt: Optional[Stmt] = None
        if self._match(TokenKind.ELSE):
            else_stmt = self._parse_stmt()
        return IfStmt(cond, then_stmt, else_stmt, span=self._extend_span(start))

    def _parse_while_stmt(self) -> WhileStmt:
        start = self._span_start()
        self._expect(TokenKind.WHILE, "[PAR-0110] expected 'while'")
        cond = self._parse_expr()
        body = self._parse_stmt()
        return WhileStmt(cond, body, span=self._extend_span(start))

    def _parse_return_stmt(self) -> ReturnStmt:
        start = self._span_start()
        self._expect(TokenKind.RETURN, "[PAR-0120] expected 'return'")
        value: Optional[Expr] = None
        if self._peek().kind in _EXPR_START_KINDS:
            value = self._parse_expr()
        return ReturnStmt(value, span=self._extend_span(start))

    def _parse_expr_stmt(self) -> ExprStmt:
        start = self._span_start()
        tok = self._peek()
        expr = self._parse_expr()
        if not isinstance(expr, (Assignment, FunCall, TemplateCall)):
            raise ParseError("[PAR-0130] expression statement must be an assignment or a function call",
                             tok, self.filename)
        return ExprStmt(expr, span=self._extend_span(start))

    # --- types ---

    def _parse_type(self, before_block: bool = False) -> TypeNode:
        start = self._span_start()
        name_tok = self._expect(TokenKind.IDENT, "[PAR-0200] expected type name")
        type_node: TypeNode = SimpleType(name_tok.text, span=self._extend_span(start))
        while True:
            if self._check(TokenKind.LBRACKET) and self._peek(1).kind is TokenKind.RBRACKET:
                self._advance()
                self._advance()
                type_node = ArrayTypeNode(type_node, span=self._extend_span(start))
                continue
            if self._check(TokenKind.LBRACE) and self._peek(1).kind is TokenKind.RBRACE:
                # `fun f(): Int {}` has an empty body, not a set return type
                if before_block and self._peek(2).kind is not TokenKind.LBRACE:
                    break
                self._advance()
                self._advance()
                type_node = SetTypeNode(type_node, span=self._extend_span(start))
                continue
            break
        return type_node

    # --- expressions with precedence ---

    def _parse_expr(self) -> Expr:
        start = self._span_start()
        expr = self._parse_or_expr()
        if self._match(TokenKind.EQ):
            value = self._parse_expr()  # right associative
            return Assignment(expr, value, span=self._extend_span(start))
        return expr

    def _parse_binary_level(self, operand_parser, *kinds: TokenKind) -> Expr:
        start = self._span_start()
        expr = operand_parser()
        while self._match(*kinds):
            op_tok = self.tokens[self.index - 1]
            right = operand_parser()
            expr = BinaryExpr(expr, _BINARY_OPERATORS[op_tok.kind], right, span=self._extend_span(start))
        return expr

    def _parse_or_expr(self) -> Expr:
        return self._parse_binary_level(self._parse_and_expr, TokenKind.OROR)

    def _parse_and_expr(self) -> Expr:
        return self._parse_binary_level(self._parse_comparison_expr, TokenKind.ANDAND)

    def _parse_comparison_expr(self) -> Expr:
        return self._parse_binary_level(self._parse_add_expr, TokenKind.EQEQ, TokenKind.NE, TokenKind.LE,
                                        TokenKind.GE, TokenKind.LT, TokenKind.GT)

    def _parse_add_expr(self) -> Expr:
        return self._parse_binary_level(self._parse_mul_expr, TokenKind.PLUS, TokenKind.MINUS)

    def _parse_mul_expr(self) -> Expr:
        return self._parse_binary_level(self._parse_prefix_expr, TokenKind.STAR, TokenKind.SLASH, TokenKind.PERCENT)

    def _parse_prefix_expr(self) -> Expr:
        start = self._span_start()
        if self._match(TokenKind.BANG):
            operand = self._parse_prefix_expr()
            return UnaryExpr(UnaryOperator.NOT, operand, span=self._extend_span(start))
        return self._parse_suffix_expr()

    def _parse_arguments(self, closing: TokenKind, msg: str) -> List[Expr]:
        args: List[Expr] = []
        if not self._check(closing):
            while True:
                args.append(self._parse_expr())
                if not self._match(TokenKind.COMMA):
                    break
        self._expect(closing, msg)
        return args

    def _try_parse_template_types(self) -> Optional[List[TypeNode]]:
        """
        Parse `<T, U>` when it is followed by `(`; otherwise restore the
        position and return None (the `<` is then a comparison).
        """
        saved = self.index
        try:
            self._expect(TokenKind.LT, "[PAR-0210] expected '<'")
            types = [self._parse_type()]
            while self._match(TokenKind.COMMA):
                types.append(self._parse_type())
            self._expect(TokenKind.GT, "[PAR-0211] expected '>' after template types")
            if self._check(TokenKind.LPAREN):
                return types
        except ParseError:
            pass
        self.index = saved
        return None

    def _parse_suffix_expr(self) -> Expr:
        start = self._span_start()
        expr = self._parse_basic_expr()
        while True:
            if self._match(TokenKind.DOT):
                field_tok = self._expect(TokenKind.IDENT, "[PAR-0220] expected field name after '.'")
                expr = FieldAccess(expr, field_tok.text, span=self._extend_span(start))
                continue
            if self._match(TokenKind.LBRACKET):
                index = self._parse_expr()
                self._expect(TokenKind.RBRACKET, "[PAR-0221] expected ']' after index")
                expr = ArrayAccess(expr, index, span=self._extend_span(start))
                continue
            if self._match(TokenKind.LPAREN):
                args = self._parse_arguments(TokenKind.RPAREN, "[PAR-0222] expected ')' after arguments")
                expr = FunCall(expr, args, span=self._extend_span(start))
                continue
            if self._match(TokenKind.DOLLAR):
                member_tok = self._expect(TokenKind.IDENT, "[PAR-0223] expected member name after '$'")
                expr = ClassFieldAccess(expr, member_tok.text, span=self._extend_span(start))
                continue
            if self._check(TokenKind.LT):
                types = self._try_parse_template_types()
                if types is not None:
                    self._expect(TokenKind.LPAREN, "[PAR-0222] expected '(' before arguments")
                    args = self._parse_arguments(TokenKind.RPAREN, "[PAR-0222] expected ')' after arguments")
                    expr = TemplateCall(expr, types, args, span=self._extend_span(start))
                    continue
            break
        return expr

    def _parse_reference(self, msg: str) -> Reference:
        start = self._span_start()
        name_tok = self._expect(TokenKind.IDENT, msg)
        return Reference(name_tok.text, span=self._extend_span(start))

    def _parse_basic_expr(self) -> Expr:
        start = self._span_start()
        tok = self._peek()

        # constructors
        if self._match(TokenKind.DOLLAR):
            ref = self._parse_reference("[PAR-0230] expected struct name after '$'")
            return StructConstructor(ref, span=self._extend_span(start))
        if self._match(TokenKind.CREATE):
            ref = self._parse_reference("[PAR-0231] expected class name after 'create'")
            return ClassConstructor(ref, span=self._extend_span(start))

        # literals
        if self._match(TokenKind.INT):
            return IntLiteral(int(tok.text), span=self._extend_span(start))
        if self._match(TokenKind.FLOAT):
            return FloatLiteral(float(tok.text), span=self._extend_span(start))
        if self._match(TokenKind.STRING):
            return StringLiteral(tok.text, span=self._extend_span(start))

        if self._check(TokenKind.IDENT):
            return self._parse_reference("[PAR-0232] expected identifier")

        if self._match(TokenKind.LPAREN):
            inner = self._parse_expr()
            self._expect(TokenKind.RPAREN, "[PAR-0233] expected ')' after expression")
            return ParenExpr(inner, span=self._extend_span(start))

        if self._match(TokenKind.LBRACKET):
            components = self._parse_arguments(TokenKind.RBRACKET, "[PAR-0234] expected ']' after array literal")
            return ArrayLiteral(components, span=self._extend_span(start))

        if self._match(TokenKind.LBRACE):
            components = self._parse_arguments(TokenKind.RBRACE, "[PAR-0235] expected '}' after set literal")
            return SetLiteral(components, span=self._extend_span(start))

        raise ParseError(f"[PAR-0236] unexpected token in expression: {tok.kind.name}:'{tok.text}'", tok,
                         self.filename)
