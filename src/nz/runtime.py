"""Nz runtime — values, the callable capability, and the object system.

Functions, classes and native builtins all expose `arity()` and
`invoke(interpreter, arguments)`. Instances carry a class reference and a
field dict that grows on assignment.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
import math
import time
from typing import TYPE_CHECKING, Callable

from .ast import Function
from .environment import Environment
from .errors import NzRuntimeError
from .tokens import Token

if TYPE_CHECKING:
    from .interpreter import Interpreter


# ============================================================
# Values
# ============================================================


class Value:
    """A runtime value."""

    def to_string(self) -> str:
        raise NotImplementedError


@dataclass
class VNil(Value):
    def to_string(self) -> str:
        return "nil"


@dataclass
class VBool(Value):
    value: bool

    def to_string(self) -> str:
        return "true" if self.value else "false"


@dataclass
class VNumber(Value):
    value: float

    def to_string(self) -> str:
        return format_number(self.value)


@dataclass
class VString(Value):
    value: str

    def to_string(self) -> str:
        return self.value


NIL = VNil()
TRUE = VBool(True)
FALSE = VBool(False)


def format_number(value: float) -> str:
    """Shortest positional decimal form; integral values drop the point."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "inf" if value > 0 else "-inf"
    if value == 0 and math.copysign(1.0, value) < 0:
        return "-0"
    shortest = Decimal(repr(value))
    if value.is_integer():
        return format(shortest.to_integral_value(), "f")
    return format(shortest, "f")


def from_literal(value: float | str | bool | None) -> Value:
    if value is None:
        return NIL
    if isinstance(value, bool):
        return TRUE if value else FALSE
    if isinstance(value, str):
        return VString(value)
    return VNumber(value)


def is_truthy(value: Value) -> bool:
    if isinstance(value, VNil):
        return False
    if isinstance(value, VBool):
        return value.value
    return True


# ============================================================
# Control flow signals (internal)
# ============================================================


class _Signal(Exception):
    pass


class ReturnSignal(_Signal):
    """Unwinds from a return statement to the nearest function invocation."""

    def __init__(self, value: Value):
        super().__init__()
        self.value = value


# ============================================================
# Callables
# ============================================================


class VCallable(Value):
    """Anything a call expression can invoke."""

    def arity(self) -> int:
        raise NotImplementedError

    def invoke(self, interpreter: Interpreter, arguments: list[Value]) -> Value:
        raise NotImplementedError


@dataclass(eq=False)
class NativeFunction(VCallable):
    name: str
    params: int
    fn: Callable[[list[Value]], Value]

    def arity(self) -> int:
        return self.params

    def invoke(self, interpreter: Interpreter, arguments: list[Value]) -> Value:
        return self.fn(arguments)

    def to_string(self) -> str:
        return "<native fn>"


def _clock(arguments: list[Value]) -> Value:
    return VNumber(time.time())


def native_builtins() -> list[NativeFunction]:
    return [NativeFunction("clock", 0, _clock)]


@dataclass(eq=False)
class NzFunction(VCallable):
    declaration: Function
    closure: Environment
    is_initializer: bool = False

    def arity(self) -> int:
        return len(self.declaration.params)

    def invoke(self, interpreter: Interpreter, arguments: list[Value]) -> Value:
        environment = Environment(self.closure)
        for param, arg in zip(self.declaration.params, arguments):
            environment.define(param.lexeme, arg)
        try:
            interpreter.execute_block(self.declaration.body, environment)
        except ReturnSignal as r:
            if self.is_initializer:
                return self.closure.get_at(0, "this")
            return r.value
        if self.is_initializer:
            return self.closure.get_at(0, "this")
        return NIL

    def bind(self, instance: NzInstance) -> NzFunction:
        """Copy of this method whose closure has `this` bound to instance."""
        environment = Environment(self.closure)
        environment.define("this", instance)
        return NzFunction(self.declaration, environment, self.is_initializer)

    def to_string(self) -> str:
        return f"<fn {self.declaration.name.lexeme}>"


@dataclass(eq=False)
class NzClass(VCallable):
    name: str
    superclass: NzClass | None
    methods: dict[str, NzFunction]

    def find_method(self, name: str) -> NzFunction | None:
        klass: NzClass | None = self
        while klass is not None:
            if name in klass.methods:
                return klass.methods[name]
            klass = klass.superclass
        return None

    def arity(self) -> int:
        initializer = self.find_method("init")
        if initializer is None:
            return 0
        return initializer.arity()

    def invoke(self, interpreter: Interpreter, arguments: list[Value]) -> Value:
        instance = NzInstance(self)
        initializer = self.find_method("init")
        if initializer is not None:
            initializer.bind(instance).invoke(interpreter, arguments)
        return instance

    def to_string(self) -> str:
        return f"Class {self.name}"


@dataclass(eq=False)
class NzInstance(Value):
    klass: NzClass
    fields: dict[str, Value] = field(default_factory=dict)

    def get(self, name: Token) -> Value:
        if name.lexeme in self.fields:
            return self.fields[name.lexeme]
        method = self.klass.find_method(name.lexeme)
        if method is not None:
            return method.bind(self)
        raise NzRuntimeError(name, f"Undefined property '{name.lexeme}'.")

    def set(self, name: Token, value: Value) -> None:
        self.fields[name.lexeme] = value

    def to_string(self) -> str:
        return f"{self.klass.name} Instance"
