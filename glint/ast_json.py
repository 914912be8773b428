"""JSON serialization/deserialization for Glint AST.

This module converts between Glint AST dataclasses and plain Python
dict/list structures suitable for JSON encoding. Every node becomes a
dict tagged with its class name under ``"type"``; lists of nodes become
lists. It supports a full round-trip for all node types.
"""

from __future__ import annotations

from dataclasses import fields, is_dataclass
from typing import Any, Dict

from . import ast as glint_ast


NODE_TYPES: Dict[str, type] = {
    cls.__name__: cls
    for cls in (
        glint_ast.Program,
        glint_ast.ExprStmt,
        glint_ast.PrintStmt,
        glint_ast.LetStmt,
        glint_ast.Block,
        glint_ast.IfStmt,
        glint_ast.WhileStmt,
        glint_ast.FuncDecl,
        glint_ast.ReturnStmt,
        glint_ast.ClassDecl,
        glint_ast.Literal,
        glint_ast.Variable,
        glint_ast.Assign,
        glint_ast.Unary,
        glint_ast.Binary,
        glint_ast.Logical,
        glint_ast.Call,
        glint_ast.Get,
        glint_ast.Set,
        glint_ast.Self,
        glint_ast.Super,
        glint_ast.Grouping,
    )
}


def ast_to_obj(node: Any) -> Any:
    # Primitives
    if node is None or isinstance(node, (bool, int, float, str)):
        return node
    if isinstance(node, list):
        return [ast_to_obj(item) for item in node]
    if is_dataclass(node) and type(node).__name__ in NODE_TYPES:
        obj: Dict[str, Any] = {"type": type(node).__name__}
        for f in fields(node):
            obj[f.name] = ast_to_obj(getattr(node, f.name))
        return obj
    raise TypeError(f"cannot serialize {type(node).__name__}")


def ast_from_obj(obj: Any) -> Any:
    if obj is None or isinstance(obj, (bool, int, float, str)):
        return obj
    if isinstance(obj, list):
        return [ast_from_obj(item) for item in obj]
    if isinstance(obj, dict):
        type_tag = obj.get("type")
        if type_tag not in NODE_TYPES:
            raise ValueError(f"unknown AST node type: {type_tag!r}")
        cls = NODE_TYPES[type_tag]
        kwargs = {f.name: ast_from_obj(obj[f.name]) for f in fields(cls) if f.name in obj}
        node = cls(**kwargs)
        if isinstance(node, glint_ast.Literal) and isinstance(node.value, int) and not isinstance(node.value, bool):
            # integer JSON numbers still become Glint Numbers (floats)
            node.value = float(node.value)
        return node
    raise ValueError(f"cannot deserialize {type(obj).__name__}")
