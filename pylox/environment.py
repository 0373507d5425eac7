from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from pylox.errors import LoxRuntimeError
from pylox.tokens import Token


class Uninitialized:
    """Marker stored for a variable declared without an initializer."""
    def __repr__(self) -> str:
        return '<uninitialized>'


UNINITIALIZED = Uninitialized()


@dataclass(frozen=True)
class Location:
    """Where the resolver found a declaration: scopes to walk out, then slot index."""
    distance: int
    index: int

    def outward(self) -> 'Location':
        return Location(self.distance - 1, self.index)


class Environment:
    """One scope of variable storage.

    Local scopes keep their variables in `slots`, in declaration order,
    and are addressed by the (distance, index) pairs computed by the
    resolver. The global scope has no outer scope and keys its variables
    by name in `values`, because globals may be referenced before the
    resolver has seen their declaration.
    """
    def __init__(self, outer: Optional['Environment'] = None):
        self.outer = outer
        self.slots: List[Any] = []
        self.values: Dict[str, Any] = {}

    def define(self, value: Any) -> int:
        self.slots.append(value)
        return len(self.slots) - 1

    def declare(self, name: str, value: Any):
        self.values[name] = value

    def ancestor(self, distance: int) -> 'Environment':
        env = self
        for _ in range(distance):
            env = env.outer
        return env

    def get_at(self, location: Location, name: Token) -> Any:
        slots = self.ancestor(location.distance).slots
        value = slots[location.index] if location.index < len(slots) else UNINITIALIZED
        if value is UNINITIALIZED:
            raise LoxRuntimeError(name, f"Uninitialized variable '{name.lexeme}'.")
        return value

    def assign_at(self, location: Location, name: Token, value: Any):
        slots = self.ancestor(location.distance).slots
        if location.index >= len(slots):
            raise LoxRuntimeError(name, f"Uninitialized variable '{name.lexeme}'.")
        slots[location.index] = value

    def get(self, name: Token) -> Any:
        if name.lexeme not in self.values:
            raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")
        value = self.values[name.lexeme]
        if value is UNINITIALIZED:
            raise LoxRuntimeError(name, f"Uninitialized variable '{name.lexeme}'.")
        return value

    def assign(self, name: Token, value: Any):
        if name.lexeme not in self.values:
            raise LoxRuntimeError(name, f"Undefined variable '{name.lexeme}'.")
        self.values[name.lexeme] = value
