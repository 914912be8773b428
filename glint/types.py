"""Runtime values for Glint.

This module defines the value model used by the Glint interpreter.
Primitive Glint values map directly onto Python objects:

- Number  -> ``float``
- String  -> ``str``
- Boolean -> ``bool``
- Null    -> ``None``

Functions, classes and instances are represented by the classes below.
Instances are ordinary mutable Python objects, so every reference to an
instance observes the same fields. The helpers at the bottom implement
the operator-independent rules (truthiness, equality, printing) that the
interpreter relies on.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, TYPE_CHECKING

from .builtin_function import BuiltinFunction

if TYPE_CHECKING:
    from .ast import FuncDecl
    from .environment import Environment


@dataclass(frozen=True)
class ErrorVal:
    """A structured diagnostic.

    Every lexer, parser and runtime failure is described by one of
    these: a `kind` (``LexError``, ``ParseError``, ``TypeError``,
    ``UndefinedVariable`` ...), a human readable `message` and the source
    `line` it originated from.
    """
    kind: str
    message: str
    line: int = 0

    def __str__(self) -> str:
        return f"[line {self.line}] {self.kind}: {self.message}"


class FunctionValue:
    """A user-defined function together with its closure environment."""
    def __init__(self, declaration: 'FuncDecl', closure: 'Environment', is_initializer: bool = False):
        self.declaration = declaration
        self.closure = closure
        self.is_initializer = is_initializer

    @property
    def name(self) -> str:
        return self.declaration.name

    @property
    def params(self) -> List[str]:
        return self.declaration.params

    def arity(self) -> int:
        return len(self.declaration.params)

    def bind(self, instance: 'InstanceValue') -> 'FunctionValue':
        """Return a copy of this method whose closure binds `self` to instance."""
        from .environment import Environment
        env = Environment(parent=self.closure)
        env.declare('self', instance)
        return FunctionValue(self.declaration, env, self.is_initializer)

    def __repr__(self) -> str:
        return f"<fn {self.name}>"


class ClassValue:
    """A Glint class: a name, an optional superclass and a method table."""
    def __init__(self, name: str, superclass: Optional['ClassValue'], methods: Dict[str, FunctionValue]):
        self.name = name
        self.superclass = superclass
        self.methods = methods

    def find_method(self, name: str) -> Optional[FunctionValue]:
        klass: Optional[ClassValue] = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def arity(self) -> int:
        initializer = self.find_method('init')
        if initializer is None:
            return 0
        return initializer.arity()

    def __repr__(self) -> str:
        return f"<class {self.name}>"


class InstanceValue:
    """An instance of a Glint class with its own mutable fields."""
    def __init__(self, klass: ClassValue):
        self.klass = klass
        self.fields: Dict[str, Any] = {}

    def __repr__(self) -> str:
        return f"{self.klass.name} instance"


def format_number(value: float) -> str:
    """Render a number in its shortest round-trippable decimal form.

    Python's shortest ``repr`` with a trailing ``.0`` dropped, so ``3.0``
    prints as ``3`` while ``1e+20`` keeps its exponent form.
    """
    text = repr(value)
    if text.endswith('.0'):
        return text[:-2]
    return text


def type_name(value: Any) -> str:
    """Return the Glint kind name of a runtime value."""
    # bool must be tested before the numeric check
    if isinstance(value, bool):
        return 'Boolean'
    if isinstance(value, float):
        return 'Number'
    if isinstance(value, str):
        return 'String'
    if value is None:
        return 'Null'
    if isinstance(value, InstanceValue):
        return 'Instance'
    if isinstance(value, ClassValue):
        return 'Class'
    if isinstance(value, (FunctionValue, BuiltinFunction)):
        return 'Function'
    return type(value).__name__


def to_string(value: Any) -> str:
    """Convert a Glint value to the text written by `print`."""
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float):
        return format_number(value)
    if isinstance(value, str):
        return value
    if value is None:
        return 'null'
    return repr(value)


def is_truthy(value: Any) -> bool:
    # Only null and false are falsy; 0 and "" are truthy.
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    return True


def equal_values(a: Any, b: Any) -> bool:
    """Equality for `==`: same-kind values only, never an error."""
    if type_name(a) != type_name(b):
        return False
    if isinstance(a, (bool, float, str)) or a is None:
        return a == b
    return a is b
