"""Tree-walking interpreter for the Glint language.

`Interpreter.execute` runs statements and `Interpreter.evaluate`
computes expression values. Both take the environment to work in as an
argument, so entering a block or a call simply passes a new child
`Environment` down the recursion and leaving it drops that reference;
nothing has to be restored when a `ReturnSignal` or an error unwinds.

Closures fall out of the same design: a function value keeps the
environment it was declared in, and each call creates a fresh child of
that environment for its parameters. Methods are bound to an instance
by inserting one more environment holding `self` between the method's
closure and the call environment. When a class has a superclass, its
methods close over an environment that defines `super`, so `super.m()`
always starts looking in the superclass of the class that declared the
method.
"""

from __future__ import annotations

import sys
import time
from typing import Any, Callable, List, Optional

from .ast import (
    Program, ExprStmt, PrintStmt, LetStmt, Block, IfStmt, WhileStmt,
    FuncDecl, ReturnStmt, ClassDecl,
    Literal, Variable, Assign, Unary, Binary, Logical, Call, Get, Set,
    Self, Super, Grouping, Node,
)
from .builtin_function import BuiltinFunction
from .environment import Environment
from .errors import GlintRuntimeError, ReturnSignal
from .parser import parse_program
from .types import (
    ErrorVal, FunctionValue, ClassValue, InstanceValue,
    equal_values, is_truthy, to_string, type_name,
)

MAX_CALL_DEPTH = 200
# Python frames one interpreted call may use, including nested blocks
FRAMES_PER_CALL = 20


def is_number(value: Any) -> bool:
    # bool is not a float subclass, so true/false never pass
    return isinstance(value, float)


class Interpreter:
    """Core interpreter that executes Glint AST."""
    def __init__(
        self,
        debug_level: int = 0,
        debug_file: str = 'debug.txt',
        output: Optional[Callable[[str], Any]] = None,
        max_call_depth: int = MAX_CALL_DEPTH,
    ):
        self.global_env = Environment()
        self.debug_level = debug_level
        self.debug_file = debug_file
        self.debug_fp = None
        self.output = output if output is not None else print
        self.max_call_depth = max_call_depth
        self.call_depth = 0
        self.load_builtins()

    def debug(self, msg: str):
        if self.debug_level > 0:
            if self.debug_fp is None:
                self.debug_fp = open(self.debug_file, 'w', encoding='utf-8')
            self.debug_fp.write(msg + '\n')
            self.debug_fp.flush()

    def close(self):
        if self.debug_fp is not None:
            self.debug_fp.close()
            self.debug_fp = None

    def error(self, kind: str, message: str, line: int) -> GlintRuntimeError:
        return GlintRuntimeError(ErrorVal(kind, message, line))

    def load_builtins(self):
        def native_clock(args: List[Any]) -> Any:
            return time.time()

        self.global_env.declare('clock', BuiltinFunction('clock', 0, native_clock))

    # Public API
    def run(self, program: Program) -> Any:
        """Execute a program in the global environment.

        Returns the value of the final statement when it is an
        expression statement, otherwise None. Globals persist between
        calls, which is what the REPL relies on.

        The host recursion limit is raised for the duration of the run so
        that `max_call_depth` interpreted calls fit on the Python stack.
        """
        old_limit = sys.getrecursionlimit()
        sys.setrecursionlimit(old_limit + self.max_call_depth * FRAMES_PER_CALL)
        try:
            return self.run_statements(program)
        finally:
            sys.setrecursionlimit(old_limit)

    def run_statements(self, program: Program) -> Any:
        result = None
        for stmt in program.body:
            if self.debug_level >= 1:
                self.debug(f"line {getattr(stmt, 'line', 0)}: {type(stmt).__name__}")
            try:
                result = self.execute(stmt, self.global_env)
            except ReturnSignal:
                raise self.error('RuntimeError', "can't return from top-level code", getattr(stmt, 'line', 0)) from None
            except RecursionError:
                err = self.error('StackOverflow', 'maximum recursion depth exceeded', getattr(stmt, 'line', 0))
                if self.debug_level >= 1:
                    self.debug(f"runtime error: {err}")
                raise err from None
            except GlintRuntimeError as ex:
                if self.debug_level >= 1:
                    self.debug(f"runtime error: {ex}")
                raise
        return result

    def interpret(self, source: str) -> Any:
        """Lex, parse and run `source`; nothing runs if it fails to parse."""
        return self.run(parse_program(source))

    def execute_block(self, statements: List[Node], env: Environment):
        for stmt in statements:
            self.execute(stmt, env)

    def execute(self, node: Node, env: Environment) -> Any:
        if isinstance(node, ExprStmt):
            return self.evaluate(node.expr, env)
        if isinstance(node, PrintStmt):
            value = self.evaluate(node.expr, env)
            self.output(to_string(value))
            return None
        if isinstance(node, LetStmt):
            value = self.evaluate(node.initializer, env) if node.initializer is not None else None
            env.declare(node.name, value)
            if self.debug_level >= 2:
                self.debug(f"declare {node.name}: {type_name(value)} = {to_string(value)}")
            return None
        if isinstance(node, Block):
            self.execute_block(node.statements, Environment(parent=env))
            return None
        if isinstance(node, IfStmt):
            cond = self.evaluate(node.condition, env)
            truthy = is_truthy(cond)
            if self.debug_level >= 3:
                self.debug(f"if condition {to_string(cond)} -> {truthy}")
            if truthy:
                self.execute(node.then_branch, env)
            elif node.else_branch is not None:
                self.execute(node.else_branch, env)
            return None
        if isinstance(node, WhileStmt):
            while True:
                cond = self.evaluate(node.condition, env)
                if self.debug_level >= 3:
                    self.debug(f"while condition {to_string(cond)}")
                if not is_truthy(cond):
                    break
                self.execute(node.body, env)
            return None
        if isinstance(node, FuncDecl):
            env.declare(node.name, FunctionValue(node, env))
            if self.debug_level >= 2:
                self.debug(f"define function {node.name}")
            return None
        if isinstance(node, ReturnStmt):
            value = self.evaluate(node.value, env) if node.value is not None else None
            raise ReturnSignal(value)
        if isinstance(node, ClassDecl):
            self.declare_class(node, env)
            return None
        raise NotImplementedError(f"execute: unexpected node type {type(node)}")

    def declare_class(self, node: ClassDecl, env: Environment):
        superclass = None
        if node.superclass is not None:
            superclass = self.evaluate(node.superclass, env)
            if not isinstance(superclass, ClassValue):
                raise self.error(
                    'TypeError',
                    f"superclass of {node.name} must be a class, got {type_name(superclass)}",
                    node.superclass.line,
                )
        method_env = env
        if superclass is not None:
            method_env = Environment(parent=env)
            method_env.declare('super', superclass)
        methods = {
            method.name: FunctionValue(method, method_env, is_initializer=method.name == 'init')
            for method in node.methods
        }
        env.declare(node.name, ClassValue(node.name, superclass, methods))
        if self.debug_level >= 2:
            parent = f" < {superclass.name}" if superclass is not None else ''
            self.debug(f"define class {node.name}{parent} methods={sorted(methods)}")

    def evaluate(self, node: Node, env: Environment) -> Any:
        if isinstance(node, Literal):
            return node.value
        if isinstance(node, Grouping):
            return self.evaluate(node.expr, env)
        if isinstance(node, Variable):
            return env.get(node.name, node.line)
        if isinstance(node, Assign):
            value = self.evaluate(node.value, env)
            return env.assign(node.name, value, node.line)
        if isinstance(node, Unary):
            operand = self.evaluate(node.operand, env)
            if node.op == '!':
                return not is_truthy(operand)
            if node.op == '-':
                if not is_number(operand):
                    raise self.error('TypeError', f"operand of '-' must be a Number, got {type_name(operand)}", node.line)
                return -operand
            raise self.error('TypeError', f'unsupported unary operator {node.op}', node.line)
        if isinstance(node, Logical):
            left = self.evaluate(node.left, env)
            if node.op == 'or':
                if is_truthy(left):
                    return left
            elif not is_truthy(left):
                return left
            return self.evaluate(node.right, env)
        if isinstance(node, Binary):
            left = self.evaluate(node.left, env)
            right = self.evaluate(node.right, env)
            return self.apply_binary_op(node.op, left, right, node.line)
        if isinstance(node, Call):
            callee = self.evaluate(node.callee, env)
            args = [self.evaluate(arg, env) for arg in node.args]
            return self.call_function(callee, args, node.line)
        if isinstance(node, Get):
            target = self.evaluate(node.target, env)
            if not isinstance(target, InstanceValue):
                raise self.error('TypeError', f"only instances have properties, got {type_name(target)}", node.line)
            return self.get_property(target, node.name, node.line)
        if isinstance(node, Set):
            target = self.evaluate(node.target, env)
            if not isinstance(target, InstanceValue):
                raise self.error('TypeError', f"only instances have fields, got {type_name(target)}", node.line)
            value = self.evaluate(node.value, env)
            target.fields[node.name] = value
            return value
        if isinstance(node, Self):
            return env.get('self', node.line)
        if isinstance(node, Super):
            superclass = env.get('super', node.line)
            instance = env.get('self', node.line)
            method = superclass.find_method(node.method)
            if method is None:
                raise self.error('UndefinedProperty', f"undefined property '{node.method}' on superclass {superclass.name}", node.line)
            return method.bind(instance)
        raise NotImplementedError(f"evaluate: unexpected node type {type(node)}")

    def get_property(self, instance: InstanceValue, name: str, line: int) -> Any:
        # Fields shadow methods.
        if name in instance.fields:
            return instance.fields[name]
        method = instance.klass.find_method(name)
        if method is not None:
            return method.bind(instance)
        raise self.error('UndefinedProperty', f"undefined property '{name}' on {instance.klass.name} instance", line)

    def call_function(self, func: Any, args: List[Any], line: int = 0) -> Any:
        if self.debug_level >= 3:
            self.debug(f"call {to_string(func)}({', '.join(to_string(a) for a in args)})")
        if isinstance(func, BuiltinFunction):
            self.check_arity(func.name, func.arity, args, line)
            return func.fn(args)
        if isinstance(func, ClassValue):
            self.check_arity(func.name, func.arity(), args, line)
            instance = InstanceValue(func)
            initializer = func.find_method('init')
            if initializer is not None:
                self.call_function(initializer.bind(instance), args, line)
            return instance
        if isinstance(func, FunctionValue):
            self.check_arity(func.name, func.arity(), args, line)
            if self.call_depth >= self.max_call_depth:
                raise self.error('StackOverflow', f"maximum call depth {self.max_call_depth} exceeded in {func.name}", line)
            # Create new environment for call; closure's env is parent
            call_env = Environment(parent=func.closure)
            for name, arg in zip(func.params, args):
                call_env.declare(name, arg)
            self.call_depth += 1
            try:
                self.execute_block(func.declaration.body, call_env)
                result = None
            except ReturnSignal as r:
                result = r.value
            except RecursionError:
                raise self.error('StackOverflow', f"maximum recursion depth exceeded in {func.name}", line) from None
            finally:
                self.call_depth -= 1
            if func.is_initializer:
                return func.closure.get('self', line)
            return result
        raise self.error('TypeError', f"can only call functions and classes, got {type_name(func)}", line)

    def check_arity(self, name: str, arity: int, args: List[Any], line: int):
        if len(args) != arity:
            raise self.error('ArityError', f"{name} expects {arity} arguments but got {len(args)}", line)

    def apply_binary_op(self, op: str, a: Any, b: Any, line: int) -> Any:
        if op == '+':
            if is_number(a) and is_number(b):
                return a + b
            if isinstance(a, str) and isinstance(b, str):
                return a + b
            raise self.error(
                'TypeError',
                f"operands of '+' must be two Numbers or two Strings, got {type_name(a)} and {type_name(b)}",
                line,
            )
        if op in ('==', '!='):
            eq = equal_values(a, b)
            return eq if op == '==' else not eq
        if not (is_number(a) and is_number(b)):
            raise self.error('TypeError', f"operands of '{op}' must be Numbers, got {type_name(a)} and {type_name(b)}", line)
        if op == '-':
            return a - b
        if op == '*':
            return a * b
        if op == '/':
            if b == 0.0:
                raise self.error('DivisionByZero', 'division by zero', line)
            return a / b
        if op == '<':
            return a < b
        if op == '<=':
            return a <= b
        if op == '>':
            return a > b
        if op == '>=':
            return a >= b
        raise self.error('TypeError', f'unknown operator {op}', line)


def run_program(source: str, debug_level: int = 0) -> Any:
    """Convenience function to parse and run a Glint program from source string."""
    interpreter = Interpreter(debug_level=debug_level)
    try:
        return interpreter.interpret(source)
    finally:
        interpreter.close()


def run_file(file_path: str, debug_level: int = 0) -> Interpreter:
    """Parse and execute a Glint file, returning the interpreter instance."""
    with open(file_path, 'r', encoding='utf-8') as f:
        source = f.read()
    interpreter = Interpreter(debug_level=debug_level)
    try:
        interpreter.interpret(source)
    finally:
        interpreter.close()
    return interpreter
