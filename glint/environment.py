from typing import Any, Dict, Optional
from glint.errors import GlintRuntimeError
from glint.types import ErrorVal


class Environment:
    """Represents a scope environment mapping identifiers to values."""
    def __init__(self, parent: Optional['Environment'] = None):
        self.parent = parent
        self.values: Dict[str, Any] = {}

    def get(self, name: str, line: int = 0) -> Any:
        env: Optional[Environment] = self
        while env is not None:
            if name in env.values:
                return env.values[name]
            env = env.parent
        raise GlintRuntimeError(ErrorVal('UndefinedVariable', f"undefined variable '{name}'", line))

    def assign(self, name: str, value: Any, line: int = 0) -> Any:
        # Never creates a binding: the nearest existing slot is updated.
        env: Optional[Environment] = self
        while env is not None:
            if name in env.values:
                env.values[name] = value
                return value
            env = env.parent
        raise GlintRuntimeError(ErrorVal('UndefinedVariable', f"undefined variable '{name}'", line))

    def declare(self, name: str, value: Any):
        self.values[name] = value
