"""Abstract Syntax Tree (AST) definitions for the Glint language.

The AST classes defined in this module represent the syntactic structure
of parsed Glint programs. Expressions and statements are separate
families; every node records the source line it started on so that
runtime errors can point back at the program text. The tree is built
once by the parser and never mutated by the interpreter.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional


@dataclass
class Node:
    """Base class for all AST nodes."""
    pass


# Expressions

@dataclass
class Literal(Node):
    value: Any  # float, str, bool or None
    line: int = 0


@dataclass
class Variable(Node):
    name: str
    line: int = 0


@dataclass
class Assign(Node):
    name: str
    value: Node
    line: int = 0


@dataclass
class Unary(Node):
    op: str
    operand: Node
    line: int = 0


@dataclass
class Binary(Node):
    op: str
    left: Node
    right: Node
    line: int = 0


@dataclass
class Logical(Node):
    op: str  # 'and' or 'or'
    left: Node
    right: Node
    line: int = 0


@dataclass
class Call(Node):
    callee: Node
    args: List[Node]
    line: int = 0


@dataclass
class Get(Node):
    target: Node
    name: str
    line: int = 0


@dataclass
class Set(Node):
    target: Node
    name: str
    value: Node
    line: int = 0


@dataclass
class Self(Node):
    line: int = 0


@dataclass
class Super(Node):
    method: str
    line: int = 0


@dataclass
class Grouping(Node):
    expr: Node
    line: int = 0


# Statements

@dataclass
class Program(Node):
    body: List[Node]


@dataclass
class ExprStmt(Node):
    expr: Node
    line: int = 0


@dataclass
class PrintStmt(Node):
    expr: Node
    line: int = 0


@dataclass
class LetStmt(Node):
    name: str
    initializer: Optional[Node]
    line: int = 0


@dataclass
class Block(Node):
    statements: List[Node]
    line: int = 0


@dataclass
class IfStmt(Node):
    condition: Node
    then_branch: Node
    else_branch: Optional[Node]
    line: int = 0


@dataclass
class WhileStmt(Node):
    condition: Node
    body: Node
    line: int = 0


@dataclass
class FuncDecl(Node):
    name: str
    params: List[str]
    body: List[Node]
    line: int = 0


@dataclass
class ReturnStmt(Node):
    value: Optional[Node]
    line: int = 0


@dataclass
class ClassDecl(Node):
    name: str
    superclass: Optional[Variable]
    methods: List[FuncDecl]
    line: int = 0


def to_sexpr(node: Node) -> str:
    """Render an expression as a parenthesized prefix string.

    ``1 == (2 + 3)`` becomes ``(== 1 (group (+ 2 3)))``. Used to check
    how the parser grouped operators.
    """
    if isinstance(node, Literal):
        from .types import to_string
        if isinstance(node.value, str):
            return repr(node.value)
        return to_string(node.value)
    if isinstance(node, Variable):
        return node.name
    if isinstance(node, Assign):
        return f"(= {node.name} {to_sexpr(node.value)})"
    if isinstance(node, Unary):
        return f"({node.op} {to_sexpr(node.operand)})"
    if isinstance(node, (Binary, Logical)):
        return f"({node.op} {to_sexpr(node.left)} {to_sexpr(node.right)})"
    if isinstance(node, Grouping):
        return f"(group {to_sexpr(node.expr)})"
    if isinstance(node, Call):
        parts = [to_sexpr(node.callee)] + [to_sexpr(a) for a in node.args]
        return f"(call {' '.join(parts)})"
    if isinstance(node, Get):
        return f"(. {to_sexpr(node.target)} {node.name})"
    if isinstance(node, Set):
        return f"(= (. {to_sexpr(node.target)} {node.name}) {to_sexpr(node.value)})"
    if isinstance(node, Self):
        return 'self'
    if isinstance(node, Super):
        return f"(super {node.method})"
    raise TypeError(f"to_sexpr: not an expression node: {type(node).__name__}")
