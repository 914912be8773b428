"""Parser for the Glint language.

A recursive-descent parser over the token stream produced by
`glint.lexer.tokenize`. Each precedence level has its own method, from
`parse_assignment` (lowest) down to `parse_primary` (highest):

    assignment -> or -> and -> equality -> comparison
               -> term -> factor -> unary -> call -> primary

Binary operators loop to build left-associative trees; assignment
recurses on its right-hand side, making it right-associative.

The parser also rejects programs that cannot be meaningful at run time:
`return` outside a function, `self` outside a class, `super` outside a
subclass, and a class inheriting from itself.

When a statement fails to parse, the error is recorded and the parser
skips ahead to the next statement boundary so that one run reports as
many problems as possible. If anything went wrong a single ParseError
is raised; a partially parsed program is never returned.

`parse_program` is the public entry point and returns a `Program` AST
node representing the entire source.
"""

from __future__ import annotations

from typing import Iterable, List, Optional

from .ast import (
    Program, ExprStmt, PrintStmt, LetStmt, Block, IfStmt, WhileStmt,
    FuncDecl, ReturnStmt, ClassDecl,
    Literal, Variable, Assign, Unary, Binary, Logical, Call, Get, Set,
    Self, Super, Grouping, Node,
)
from .errors import ParseError
from .lexer import Token, TokenType, tokenize
from .types import ErrorVal

MAX_ARGS = 255

OPERATORS = {
    TokenType.BANG_EQUAL: '!=',
    TokenType.EQUAL_EQUAL: '==',
    TokenType.GREATER: '>',
    TokenType.GREATER_EQUAL: '>=',
    TokenType.LESS: '<',
    TokenType.LESS_EQUAL: '<=',
    TokenType.MINUS: '-',
    TokenType.PLUS: '+',
    TokenType.SLASH: '/',
    TokenType.STAR: '*',
    TokenType.BANG: '!',
}

# Tokens that begin a statement; used to resynchronise after an error.
STATEMENT_STARTS = {
    TokenType.CLASS, TokenType.FN, TokenType.LET, TokenType.FOR,
    TokenType.IF, TokenType.WHILE, TokenType.PRINT, TokenType.RETURN,
}


class _Abort(Exception):
    """Unwinds the current statement after an error has been recorded."""


class Parser:
    def __init__(self, tokens: Iterable[Token]):
        self.tokens: List[Token] = list(tokens)
        self.pos = 0
        self.errors: List[ErrorVal] = []
        self.function_depth = 0
        # None outside classes, 'class' or 'subclass' inside a class body
        self.current_class: Optional[str] = None

    # Token cursor helpers

    def peek(self) -> Token:
        return self.tokens[self.pos]

    def previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def at_end(self) -> bool:
        return self.peek().type is TokenType.EOF

    def advance(self) -> Token:
        token = self.peek()
        if not self.at_end():
            self.pos += 1
        return token

    def check(self, *types: TokenType) -> bool:
        return self.peek().type in types

    def match(self, *types: TokenType) -> bool:
        if self.check(*types):
            self.advance()
            return True
        return False

    def consume(self, expected: TokenType, message: str) -> Token:
        if self.check(expected):
            return self.advance()
        raise self.error(self.peek(), message)

    def error(self, token: Token, message: str) -> _Abort:
        self.report(token, message)
        return _Abort()

    def report(self, token: Token, message: str):
        where = 'at end' if token.type is TokenType.EOF else f"at '{token.lexeme}'"
        self.errors.append(ErrorVal('ParseError', f"{message} ({where})", token.line))

    def synchronize(self):
        self.advance()
        while not self.at_end():
            if self.previous().type is TokenType.SEMICOLON:
                return
            if self.peek().type in STATEMENT_STARTS:
                return
            self.advance()

    # Program and declarations

    def parse_program(self) -> Program:
        statements: List[Node] = []
        while not self.at_end():
            stmt = self.parse_declaration()
            if stmt is not None:
                statements.append(stmt)
        if self.errors:
            raise ParseError(self.errors[0], list(self.errors))
        return Program(statements)

    def parse_declaration(self) -> Optional[Node]:
        try:
            if self.match(TokenType.CLASS):
                return self.parse_class_decl()
            if self.match(TokenType.FN):
                return self.parse_function('function')
            if self.match(TokenType.LET):
                return self.parse_let_decl()
            return self.parse_statement()
        except _Abort:
            self.synchronize()
            return None
        except RecursionError:
            self.report(self.peek(), 'Expression nesting too deep.')
            self.synchronize()
            return None

    def parse_class_decl(self) -> ClassDecl:
        line = self.previous().line
        name = self.consume(TokenType.IDENT, 'Expected class name.')
        superclass: Optional[Variable] = None
        if self.match(TokenType.LESS):
            super_name = self.consume(TokenType.IDENT, 'Expected superclass name.')
            if super_name.lexeme == name.lexeme:
                self.report(super_name, "A class can't inherit from itself.")
            superclass = Variable(super_name.lexeme, super_name.line)
        self.consume(TokenType.LBRACE, "Expected '{' before class body.")

        enclosing_class = self.current_class
        self.current_class = 'subclass' if superclass is not None else 'class'
        try:
            methods: List[FuncDecl] = []
            while not self.check(TokenType.RBRACE) and not self.at_end():
                # methods may be written with or without a leading 'fn'
                self.match(TokenType.FN)
                methods.append(self.parse_function('method'))
        finally:
            self.current_class = enclosing_class
        self.consume(TokenType.RBRACE, "Expected '}' after class body.")
        return ClassDecl(name.lexeme, superclass, methods, line)

    def parse_function(self, kind: str) -> FuncDecl:
        name = self.consume(TokenType.IDENT, f'Expected {kind} name.')
        self.consume(TokenType.LPAR, f"Expected '(' after {kind} name.")
        params: List[str] = []
        if not self.check(TokenType.RPAR):
            while True:
                if len(params) >= MAX_ARGS:
                    self.report(self.peek(), f"Can't have more than {MAX_ARGS} parameters.")
                param = self.consume(TokenType.IDENT, 'Expected parameter name.')
                if param.lexeme in params:
                    self.report(param, f"Duplicate parameter '{param.lexeme}'.")
                params.append(param.lexeme)
                if not self.match(TokenType.COMMA):
                    break
        self.consume(TokenType.RPAR, "Expected ')' after parameters.")
        self.consume(TokenType.LBRACE, f"Expected '{{' before {kind} body.")
        self.function_depth += 1
        try:
            body = self.parse_block_statements()
        finally:
            self.function_depth -= 1
        return FuncDecl(name.lexeme, params, body, name.line)

    def parse_let_decl(self) -> LetStmt:
        name = self.consume(TokenType.IDENT, 'Expected variable name.')
        initializer: Optional[Node] = None
        if self.match(TokenType.EQUAL):
            initializer = self.parse_expression()
        self.consume(TokenType.SEMICOLON, "Expected ';' after variable declaration.")
        return LetStmt(name.lexeme, initializer, name.line)

    # Statements

    def parse_statement(self) -> Node:
        if self.match(TokenType.PRINT):
            return self.parse_print_stmt()
        if self.match(TokenType.IF):
            return self.parse_if_stmt()
        if self.match(TokenType.WHILE):
            return self.parse_while_stmt()
        if self.match(TokenType.FOR):
            return self.parse_for_stmt()
        if self.match(TokenType.RETURN):
            return self.parse_return_stmt()
        if self.match(TokenType.LBRACE):
            line = self.previous().line
            return Block(self.parse_block_statements(), line)
        return self.parse_expr_stmt()

    def parse_block_statements(self) -> List[Node]:
        statements: List[Node] = []
        while not self.check(TokenType.RBRACE) and not self.at_end():
            stmt = self.parse_declaration()
            if stmt is not None:
                statements.append(stmt)
        self.consume(TokenType.RBRACE, "Expected '}' after block.")
        return statements

    def parse_print_stmt(self) -> PrintStmt:
        line = self.previous().line
        value = self.parse_expression()
        self.consume(TokenType.SEMICOLON, "Expected ';' after value.")
        return PrintStmt(value, line)

    def parse_expr_stmt(self) -> ExprStmt:
        line = self.peek().line
        expr = self.parse_expression()
        self.consume(TokenType.SEMICOLON, "Expected ';' after expression.")
        return ExprStmt(expr, line)

    def parse_if_stmt(self) -> IfStmt:
        line = self.previous().line
        self.consume(TokenType.LPAR, "Expected '(' after 'if'.")
        condition = self.parse_expression()
        self.consume(TokenType.RPAR, "Expected ')' after if condition.")
        then_branch = self.parse_statement()
        else_branch = None
        if self.match(TokenType.ELSE):
            else_branch = self.parse_statement()
        return IfStmt(condition, then_branch, else_branch, line)

    def parse_while_stmt(self) -> WhileStmt:
        line = self.previous().line
        self.consume(TokenType.LPAR, "Expected '(' after 'while'.")
        condition = self.parse_expression()
        self.consume(TokenType.RPAR, "Expected ')' after condition.")
        body = self.parse_statement()
        return WhileStmt(condition, body, line)

    def parse_for_stmt(self) -> Node:
        """Parse a for loop and lower it into a while loop.

        ``for (init; cond; incr) body`` becomes
        ``{ init; while (cond) { body; incr; } }``. A missing condition
        is treated as ``true``.
        """
        line = self.previous().line
        self.consume(TokenType.LPAR, "Expected '(' after 'for'.")
        if self.match(TokenType.SEMICOLON):
            initializer = None
        elif self.match(TokenType.LET):
            initializer = self.parse_let_decl()
        else:
            initializer = self.parse_expr_stmt()

        condition = None
        if not self.check(TokenType.SEMICOLON):
            condition = self.parse_expression()
        self.consume(TokenType.SEMICOLON, "Expected ';' after loop condition.")

        increment = None
        if not self.check(TokenType.RPAR):
            increment = self.parse_expression()
        self.consume(TokenType.RPAR, "Expected ')' after for clauses.")

        body = self.parse_statement()
        if increment is not None:
            body = Block([body, ExprStmt(increment, increment.line)], line)
        if condition is None:
            condition = Literal(True, line)
        loop: Node = WhileStmt(condition, body, line)
        if initializer is not None:
            loop = Block([initializer, loop], line)
        return loop

    def parse_return_stmt(self) -> ReturnStmt:
        keyword = self.previous()
        if self.function_depth == 0:
            self.report(keyword, "Can't return from top-level code.")
        value = None
        if not self.check(TokenType.SEMICOLON):
            value = self.parse_expression()
        self.consume(TokenType.SEMICOLON, "Expected ';' after return value.")
        return ReturnStmt(value, keyword.line)

    # Expressions

    def parse_expression(self) -> Node:
        return self.parse_assignment()

    def parse_assignment(self) -> Node:
        expr = self.parse_or()
        if self.match(TokenType.EQUAL):
            equals = self.previous()
            value = self.parse_assignment()
            if isinstance(expr, Variable):
                return Assign(expr.name, value, expr.line)
            if isinstance(expr, Get):
                return Set(expr.target, expr.name, value, expr.line)
            # Report without aborting: the rest of the expression parsed fine.
            self.report(equals, 'Invalid assignment target.')
        return expr

    def parse_or(self) -> Node:
        expr = self.parse_and()
        while self.match(TokenType.OR):
            line = self.previous().line
            right = self.parse_and()
            expr = Logical('or', expr, right, line)
        return expr

    def parse_and(self) -> Node:
        expr = self.parse_equality()
        while self.match(TokenType.AND):
            line = self.previous().line
            right = self.parse_equality()
            expr = Logical('and', expr, right, line)
        return expr

    def parse_binary(self, operand, *types: TokenType) -> Node:
        expr = operand()
        while self.match(*types):
            op = self.previous()
            right = operand()
            expr = Binary(OPERATORS[op.type], expr, right, op.line)
        return expr

    def parse_equality(self) -> Node:
        return self.parse_binary(self.parse_comparison, TokenType.BANG_EQUAL, TokenType.EQUAL_EQUAL)

    def parse_comparison(self) -> Node:
        return self.parse_binary(
            self.parse_term,
            TokenType.GREATER, TokenType.GREATER_EQUAL, TokenType.LESS, TokenType.LESS_EQUAL,
        )

    def parse_term(self) -> Node:
        return self.parse_binary(self.parse_factor, TokenType.MINUS, TokenType.PLUS)

    def parse_factor(self) -> Node:
        return self.parse_binary(self.parse_unary, TokenType.SLASH, TokenType.STAR)

    def parse_unary(self) -> Node:
        if self.match(TokenType.BANG, TokenType.MINUS):
            op = self.previous()
            operand = self.parse_unary()
            return Unary(OPERATORS[op.type], operand, op.line)
        return self.parse_call()

    def parse_call(self) -> Node:
        expr = self.parse_primary()
        while True:
            if self.match(TokenType.LPAR):
                expr = self.finish_call(expr)
            elif self.match(TokenType.DOT):
                name = self.consume(TokenType.IDENT, "Expected property name after '.'.")
                expr = Get(expr, name.lexeme, name.line)
            else:
                break
        return expr

    def finish_call(self, callee: Node) -> Call:
        args: List[Node] = []
        if not self.check(TokenType.RPAR):
            while True:
                if len(args) >= MAX_ARGS:
                    self.report(self.peek(), f"Can't have more than {MAX_ARGS} arguments.")
                args.append(self.parse_expression())
                if not self.match(TokenType.COMMA):
                    break
        paren = self.consume(TokenType.RPAR, "Expected ')' after arguments.")
        return Call(callee, args, paren.line)

    def parse_primary(self) -> Node:
        token = self.peek()
        if self.match(TokenType.FALSE):
            return Literal(False, token.line)
        if self.match(TokenType.TRUE):
            return Literal(True, token.line)
        if self.match(TokenType.NULL):
            return Literal(None, token.line)
        if self.match(TokenType.NUMBER, TokenType.STRING):
            return Literal(token.literal, token.line)
        if self.match(TokenType.IDENT):
            return Variable(token.lexeme, token.line)
        if self.match(TokenType.SELF):
            if self.current_class is None:
                self.report(token, "Can't use 'self' outside of a class.")
            return Self(token.line)
        if self.match(TokenType.SUPER):
            if self.current_class is None:
                self.report(token, "Can't use 'super' outside of a class.")
            elif self.current_class != 'subclass':
                self.report(token, "Can't use 'super' in a class with no superclass.")
            self.consume(TokenType.DOT, "Expected '.' after 'super'.")
            method = self.consume(TokenType.IDENT, 'Expected superclass method name.')
            return Super(method.lexeme, token.line)
        if self.match(TokenType.LPAR):
            expr = self.parse_expression()
            self.consume(TokenType.RPAR, "Expected ')' after expression.")
            return Grouping(expr, token.line)
        raise self.error(token, 'Expected expression.')


def parse_program(source: str) -> Program:
    """Parse Glint source code into an AST Program.

    Lexer errors propagate as LexError; grammar errors are raised as a
    single ParseError listing every problem found.
    """
    return Parser(tokenize(source)).parse_program()


def parse_expression(source: str) -> Node:
    """Parse a single expression (no trailing ';'), mainly for tooling."""
    parser = Parser(tokenize(source))
    try:
        expr = parser.parse_expression()
        if not parser.at_end():
            parser.report(parser.peek(), 'Expected end of expression.')
    except _Abort:
        pass
    if parser.errors:
        raise ParseError(parser.errors[0], list(parser.errors))
    return expr
