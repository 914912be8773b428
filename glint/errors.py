from typing import Any, List, Optional
from glint.types import ErrorVal


class GlintError(Exception):
    """Base exception carrying a structured Glint diagnostic."""
    def __init__(self, err: ErrorVal):
        super().__init__(str(err))
        self.err = err

    @property
    def kind(self) -> str:
        return self.err.kind

    @property
    def message(self) -> str:
        return self.err.message

    @property
    def line(self) -> int:
        return self.err.line


class LexError(GlintError):
    """Raised when the source contains a malformed token."""


class ParseError(GlintError):
    """Raised when the token stream violates the grammar.

    `err` is the first problem found; `errors` holds every problem the
    parser collected before giving up.
    """
    def __init__(self, err: ErrorVal, errors: Optional[List[ErrorVal]] = None):
        super().__init__(err)
        self.errors = errors if errors is not None else [err]

    def __str__(self) -> str:
        return '\n'.join(str(e) for e in self.errors)


class GlintRuntimeError(GlintError):
    """Raised while evaluating a program (type, name, arity errors ...)."""


class ReturnSignal(Exception):
    """Internal exception to handle return statements in functions."""
    def __init__(self, value: Any):
        super().__init__('return')
        self.value = value
