"""Nz interpreter — tree-walking evaluation over chained environments."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, fields, is_dataclass
import logging
import math
import sys
from typing import TextIO

from .ast import (
    Assign,
    Binary,
    Block,
    Call,
    Class,
    Expr,
    Expression,
    Function,
    Get,
    Grouping,
    If,
    Literal,
    Logical,
    Print,
    Return,
    Set,
    Stmt,
    Super,
    This,
    Unary,
    Var,
    Variable,
    While,
)
from .environment import Environment
from .errors import InternalError, NzRuntimeError
from .runtime import (
    FALSE,
    NIL,
    TRUE,
    NzClass,
    NzFunction,
    NzInstance,
    ReturnSignal,
    Value,
    VCallable,
    VNil,
    VNumber,
    VString,
    from_literal,
    is_truthy,
    native_builtins,
)
from .tokens import Token

logger = logging.getLogger(__name__)


@dataclass
class Options:
    """Evaluation switches, settable from source pragmas."""

    # nil == nil and nil != nil are both false unless this is set
    nil_equality: bool = False


class Interpreter:
    def __init__(
        self, *, stdout: TextIO | None = None, options: Options | None = None
    ):
        self.stdout = stdout if stdout is not None else sys.stdout
        self.options = options if options is not None else Options()
        self.globals = Environment()
        self.environment = self.globals
        for builtin in native_builtins():
            logger.debug("defining builtin %s", builtin.name)
            self.globals.define(builtin.name, builtin)

    # ---- Entry point -------------------------------------------------------

    def interpret(self, statements: list[Stmt]) -> None:
        logger.debug("interpreting %d statements", len(statements))
        try:
            for st in statements:
                try:
                    self.execute(st)
                except RecursionError:
                    raise NzRuntimeError(
                        _first_token(st), "Stack overflow."
                    ) from None
        except ReturnSignal as r:
            raise InternalError("return signal escaped to program root") from r
        logger.debug("interpretation finished")

    # ---- Statements --------------------------------------------------------

    def execute_block(
        self, statements: list[Stmt], environment: Environment
    ) -> None:
        previous = self.environment
        self.environment = environment
        try:
            for st in statements:
                self.execute(st)
        finally:
            self.environment = previous

    def execute(self, st: Stmt) -> None:
        if isinstance(st, Expression):
            self.evaluate(st.expression)
            return
        if isinstance(st, Print):
            self._exec_print(st)
            return
        if isinstance(st, Var):
            self._exec_var(st)
            return
        if isinstance(st, Block):
            self.execute_block(st.statements, Environment(self.environment))
            return
        if isinstance(st, If):
            self._exec_if(st)
            return
        if isinstance(st, While):
            self._exec_while(st)
            return
        if isinstance(st, Function):
            self._exec_function(st)
            return
        if isinstance(st, Return):
            self._exec_return(st)
            return
        if isinstance(st, Class):
            self._exec_class(st)
            return
        raise InternalError(f"unsupported statement {type(st).__name__}")

    def _exec_print(self, st: Print) -> None:
        value = self.evaluate(st.expression)
        self.stdout.write(value.to_string() + "\n")

    def _exec_var(self, st: Var) -> None:
        value: Value = NIL
        if st.initializer is not None:
            value = self.evaluate(st.initializer)
        self.environment.define(st.name.lexeme, value)

    def _exec_if(self, st: If) -> None:
        if is_truthy(self.evaluate(st.condition)):
            self.execute(st.then_branch)
        elif st.else_branch is not None:
            self.execute(st.else_branch)

    def _exec_while(self, st: While) -> None:
        while is_truthy(self.evaluate(st.condition)):
            self.execute(st.body)

    def _exec_function(self, st: Function) -> None:
        function = NzFunction(st, self.environment)
        self.environment.define(st.name.lexeme, function)

    def _exec_return(self, st: Return) -> None:
        value: Value = NIL
        if st.value is not None:
            value = self.evaluate(st.value)
        raise ReturnSignal(value)

    def _exec_class(self, st: Class) -> None:
        superclass: NzClass | None = None
        if st.superclass is not None:
            value = self.evaluate(st.superclass)
            if not isinstance(value, NzClass):
                raise NzRuntimeError(
                    st.superclass.name, "Superclass must be a class."
                )
            superclass = value

        self.environment.define(st.name.lexeme, NIL)

        closure = self.environment
        if superclass is not None:
            closure = Environment(self.environment)
            closure.define("super", superclass)

        methods: dict[str, NzFunction] = {}
        for method in st.methods:
            is_init = method.name.lexeme == "init"
            methods[method.name.lexeme] = NzFunction(method, closure, is_init)

        klass = NzClass(st.name.lexeme, superclass, methods)
        self.environment.assign(st.name, klass)

    # ---- Expressions -------------------------------------------------------

    def evaluate(self, expr: Expr) -> Value:
        if isinstance(expr, Literal):
            return from_literal(expr.value)
        if isinstance(expr, Grouping):
            return self.evaluate(expr.expression)
        if isinstance(expr, Unary):
            return self._eval_unary(expr)
        if isinstance(expr, Binary):
            return self._eval_binary(expr)
        if isinstance(expr, Logical):
            return self._eval_logical(expr)
        if isinstance(expr, Variable):
            return self.environment.get(expr.name)
        if isinstance(expr, Assign):
            return self._eval_assign(expr)
        if isinstance(expr, Call):
            return self._eval_call(expr)
        if isinstance(expr, Get):
            return self._eval_get(expr)
        if isinstance(expr, Set):
            return self._eval_set(expr)
        if isinstance(expr, This):
            return self.environment.get(expr.keyword)
        if isinstance(expr, Super):
            return self._eval_super(expr)
        raise InternalError(f"unsupported expression {type(expr).__name__}")

    def _eval_unary(self, expr: Unary) -> Value:
        right = self.evaluate(expr.right)
        if expr.operator.kind == "-":
            if not isinstance(right, VNumber):
                raise NzRuntimeError(
                    expr.operator, "Operand must be a number for unary minus."
                )
            return VNumber(-right.value)
        if expr.operator.kind == "!":
            return FALSE if is_truthy(right) else TRUE
        raise NzRuntimeError(expr.operator, "Unknown operator.")

    def _eval_logical(self, expr: Logical) -> Value:
        left = self.evaluate(expr.left)
        if expr.operator.kind == "or":
            if is_truthy(left):
                return left
        elif not is_truthy(left):
            return left
        return self.evaluate(expr.right)

    def _eval_assign(self, expr: Assign) -> Value:
        value = self.evaluate(expr.value)
        self.environment.assign(expr.name, value)
        return value

    def _eval_call(self, expr: Call) -> Value:
        callee = self.evaluate(expr.callee)
        arguments = [self.evaluate(arg) for arg in expr.arguments]
        if not isinstance(callee, VCallable):
            raise NzRuntimeError(expr.paren, "Can only call functions and classes.")
        if len(arguments) != callee.arity():
            raise NzRuntimeError(
                expr.paren,
                f"Expected {callee.arity()} arguments but got {len(arguments)}.",
            )
        try:
            return callee.invoke(self, arguments)
        except RecursionError:
            raise NzRuntimeError(expr.paren, "Stack overflow.") from None

    def _eval_get(self, expr: Get) -> Value:
        obj = self.evaluate(expr.object)
        if not isinstance(obj, NzInstance):
            raise NzRuntimeError(expr.name, "Only instances have properties.")
        return obj.get(expr.name)

    def _eval_set(self, expr: Set) -> Value:
        obj = self.evaluate(expr.object)
        if not isinstance(obj, NzInstance):
            raise NzRuntimeError(expr.name, "Only instances have properties.")
        value = self.evaluate(expr.value)
        obj.set(expr.name, value)
        return value

    def _eval_super(self, expr: Super) -> Value:
        # Methods of a subclass close over [super] <- [this] <- call frame;
        # super is only valid in the frame directly enclosing the nearest this.
        distance = self.environment.depth_of("this")
        holder: Environment | None = None
        if distance is not None:
            holder = self.environment.ancestor(distance).enclosing
        if holder is None or "super" not in holder.values:
            raise NzRuntimeError(
                expr.keyword, "Can't use 'super' in a class with no superclass."
            )
        superclass = self.environment.get_at(distance + 1, "super")
        instance = self.environment.get_at(distance, "this")
        assert isinstance(superclass, NzClass)
        assert isinstance(instance, NzInstance)
        method = superclass.find_method(expr.method.lexeme)
        if method is None:
            raise NzRuntimeError(
                expr.method, f"Undefined property '{expr.method.lexeme}'."
            )
        return method.bind(instance)

    # ---- Operators ---------------------------------------------------------

    def _eval_binary(self, expr: Binary) -> Value:
        left = self.evaluate(expr.left)
        right = self.evaluate(expr.right)
        op = expr.operator

        if op.kind == "+":
            if isinstance(left, VNumber) and isinstance(right, VNumber):
                return VNumber(left.value + right.value)
            if isinstance(left, (VString, VNumber)) and isinstance(
                right, (VString, VNumber)
            ):
                return VString(left.to_string() + right.to_string())
            raise NzRuntimeError(op, "Cannot add two different types")

        if op.kind in ("-", "*", "/"):
            if not (isinstance(left, VNumber) and isinstance(right, VNumber)):
                verb = _ARITH_VERBS[op.kind]
                raise NzRuntimeError(op, f"Cannot {verb} two different types")
            if op.kind == "-":
                return VNumber(left.value - right.value)
            if op.kind == "*":
                return VNumber(left.value * right.value)
            return VNumber(_divide(left.value, right.value))

        if op.kind in (">", ">=", "<", "<="):
            if not (isinstance(left, VNumber) and isinstance(right, VNumber)):
                raise NzRuntimeError(op, "Cannot compare two different types")
            return TRUE if _cmp(op.kind, left.value, right.value) else FALSE

        if op.kind in ("==", "!="):
            # nil compared with nil is false under both operators by default
            if (
                isinstance(left, VNil)
                and isinstance(right, VNil)
                and not self.options.nil_equality
            ):
                return FALSE
            equal = _values_equal(left, right, op)
            if op.kind == "!=":
                equal = not equal
            return TRUE if equal else FALSE

        raise NzRuntimeError(op, "Unsupported binary operator")


def _values_equal(left: Value, right: Value, op: Token) -> bool:
    if isinstance(left, VNumber) and isinstance(right, VNumber):
        return left.value == right.value
    if isinstance(left, VString) and isinstance(right, VString):
        return left.value == right.value
    if isinstance(left, VNil) and isinstance(right, VNil):
        return True
    raise NzRuntimeError(op, "Cannot compare two different types.")


_ARITH_VERBS: dict[str, str] = {
    "-": "subtract",
    "*": "multiply",
    "/": "divide",
}


def _divide(a: float, b: float) -> float:
    # IEEE semantics; Python raises on float division by zero
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(1.0, a) * math.copysign(math.inf, b)
    return a / b


def _cmp(op: str, a: float, b: float) -> bool:
    if op == "<":
        return a < b
    if op == "<=":
        return a <= b
    if op == ">":
        return a > b
    if op == ">=":
        return a >= b
    raise AssertionError(op)


def _first_token(st: Stmt) -> Token:
    """Shallowest token under st, used to place errors without a call site."""
    queue: deque[object] = deque([st])
    while queue:
        node = queue.popleft()
        if isinstance(node, Token):
            return node
        if isinstance(node, list):
            queue.extend(node)
        elif is_dataclass(node):
            queue.extend(getattr(node, f.name) for f in fields(node))
    raise InternalError(f"no token under {type(st).__name__}")
