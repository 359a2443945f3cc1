"""Nz lexical environment — chained scope frames."""

from __future__ import annotations

from typing import TYPE_CHECKING

from .errors import InternalError, NzRuntimeError
from .tokens import Token

if TYPE_CHECKING:
    from .runtime import Value


class Environment:
    """One scope frame: its own bindings plus an optional enclosing frame.

    Frames are shared by reference. Every closure created while a frame is
    current keeps that frame alive and sees later writes to it.
    """

    def __init__(self, enclosing: Environment | None = None):
        self.values: dict[str, Value] = {}
        self.enclosing = enclosing

    def define(self, name: str, value: Value) -> None:
        self.values[name] = value

    def get(self, name: Token) -> Value:
        env: Environment | None = self
        while env is not None:
            if name.lexeme in env.values:
                return env.values[name.lexeme]
            env = env.enclosing
        raise NzRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def assign(self, name: Token, value: Value) -> None:
        env: Environment | None = self
        while env is not None:
            if name.lexeme in env.values:
                env.values[name.lexeme] = value
                return
            env = env.enclosing
        raise NzRuntimeError(name, f"Undefined variable '{name.lexeme}'.")

    def ancestor(self, distance: int) -> Environment:
        env = self
        for _ in range(distance):
            if env.enclosing is None:
                raise InternalError(f"no frame at distance {distance}")
            env = env.enclosing
        return env

    def get_at(self, distance: int, name: str) -> Value:
        """Read name from exactly the frame `distance` links out, no fallback."""
        frame = self.ancestor(distance)
        if name not in frame.values:
            raise InternalError(f"'{name}' not bound at distance {distance}")
        return frame.values[name]

    def depth_of(self, name: str) -> int | None:
        """Links from this frame to the nearest frame defining name."""
        depth = 0
        env: Environment | None = self
        while env is not None:
            if name in env.values:
                return depth
            env = env.enclosing
            depth += 1
        return None
