"""Nz parser — recursive descent, one method per grammar production."""

from __future__ import annotations

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
from .errors import ParseError
from .tokens import TK_EOF, TK_IDENT, TK_NUMBER, TK_STRING, Token

MAX_ARGS = 255

EQUALITY_OPS: tuple[str, ...] = ("!=", "==")
COMPARISON_OPS: tuple[str, ...] = (">", ">=", "<", "<=")
TERM_OPS: tuple[str, ...] = ("-", "+")
FACTOR_OPS: tuple[str, ...] = ("/", "*")
UNARY_OPS: tuple[str, ...] = ("!", "-")


class Parser:
    """Recursive descent parser for Nz."""

    def __init__(self, tokens: list[Token]):
        self.tokens: list[Token] = tokens
        self.pos: int = 0

    # ── Helpers ──────────────────────────────────────────────

    def current(self) -> Token:
        return self.tokens[self.pos]

    def previous(self) -> Token:
        return self.tokens[self.pos - 1]

    def at_end(self) -> bool:
        return self.current().kind == TK_EOF

    def advance(self) -> Token:
        tok = self.tokens[self.pos]
        if not self.at_end():
            self.pos += 1
        return tok

    def check(self, kind: str) -> bool:
        if self.at_end():
            return False
        return self.current().kind == kind

    def match(self, *kinds: str) -> bool:
        for kind in kinds:
            if self.check(kind):
                self.advance()
                return True
        return False

    def consume(self, kind: str, msg: str) -> Token:
        if self.check(kind):
            return self.advance()
        raise self.error(self.current(), msg)

    def error(self, tok: Token, msg: str) -> ParseError:
        return ParseError(tok, msg)

    # ── Top Level ────────────────────────────────────────────

    def parse(self) -> list[Stmt]:
        statements: list[Stmt] = []
        while not self.at_end():
            statements.append(self.parse_declaration())
        return statements

    def parse_declaration(self) -> Stmt:
        if self.match("class"):
            return self.parse_class_decl()
        if self.match("fun"):
            return self.parse_function("function")
        if self.match("var"):
            return self.parse_var_decl()
        return self.parse_statement()

    def parse_class_decl(self) -> Class:
        name = self.consume(TK_IDENT, "Expect class name.")
        superclass: Variable | None = None
        if self.match("<"):
            self.consume(TK_IDENT, "Expect superclass name.")
            superclass = Variable(self.previous())
        self.consume("{", "Expect '{' before class body.")
        methods: list[Function] = []
        while not self.check("}") and not self.at_end():
            methods.append(self.parse_function("method"))
        self.consume("}", "Expect '}' after class body.")
        return Class(name, superclass, methods)

    def parse_function(self, kind: str) -> Function:
        """Function = IDENT '(' Params? ')' Block — kind names it in errors."""
        name = self.consume(TK_IDENT, "Expect " + kind + " name.")
        self.consume("(", "Expect '(' after " + kind + " name.")
        params: list[Token] = []
        if not self.check(")"):
            params.append(self.consume(TK_IDENT, "Expect parameter name."))
            while self.match(","):
                if len(params) >= MAX_ARGS:
                    raise self.error(
                        self.current(), "Can't have more than 255 parameters."
                    )
                params.append(self.consume(TK_IDENT, "Expect parameter name."))
        self.consume(")", "Expect ')' after parameters.")
        self.consume("{", "Expect '{' before " + kind + " body.")
        body = self.parse_block()
        return Function(name, params, body)

    def parse_var_decl(self) -> Var:
        name = self.consume(TK_IDENT, "Expect variable name.")
        initializer: Expr | None = None
        if self.match("="):
            initializer = self.parse_expr()
        self.consume(";", "Expect ';' after variable declaration.")
        return Var(name, initializer)

    # ── Statements ───────────────────────────────────────────

    def parse_statement(self) -> Stmt:
        if self.match("for"):
            return self.parse_for_stmt()
        if self.match("if"):
            return self.parse_if_stmt()
        if self.match("print"):
            return self.parse_print_stmt()
        if self.match("return"):
            return self.parse_return_stmt()
        if self.match("while"):
            return self.parse_while_stmt()
        if self.match("{"):
            return Block(self.parse_block())
        return self.parse_expr_stmt()

    def parse_block(self) -> list[Stmt]:
        """Block body after the opening brace has been consumed."""
        statements: list[Stmt] = []
        while not self.check("}") and not self.at_end():
            statements.append(self.parse_declaration())
        self.consume("}", "Expect '}' after block.")
        return statements

    def parse_for_stmt(self) -> Stmt:
        """Desugar for (init; cond; incr) body into a block around a while."""
        self.consume("(", "Expect '(' after 'for'.")
        initializer: Stmt | None
        if self.match(";"):
            initializer = None
        elif self.match("var"):
            initializer = self.parse_var_decl()
        else:
            initializer = self.parse_expr_stmt()

        condition: Expr | None = None
        if not self.check(";"):
            condition = self.parse_expr()
        self.consume(";", "Expect ';' after loop condition.")

        increment: Expr | None = None
        if not self.check(")"):
            increment = self.parse_expr()
        self.consume(")", "Expect ')' after for clauses.")

        body = self.parse_statement()
        if increment is not None:
            body = Block([body, Expression(increment)])
        if condition is None:
            condition = Literal(True)
        loop = While(condition, body)
        if initializer is not None:
            return Block([initializer, loop])
        return Block([loop])

    def parse_if_stmt(self) -> If:
        self.consume("(", "Expect '(' after 'if'.")
        condition = self.parse_expr()
        self.consume(")", "Expect ')' after if condition.")
        then_branch = self.parse_statement()
        else_branch: Stmt | None = None
        if self.match("else"):
            else_branch = self.parse_statement()
        return If(condition, then_branch, else_branch)

    def parse_print_stmt(self) -> Print:
        value = self.parse_expr()
        self.consume(";", "Expect ';' after value.")
        return Print(value)

    def parse_return_stmt(self) -> Return:
        keyword = self.previous()
        value: Expr | None = None
        if not self.check(";"):
            value = self.parse_expr()
        self.consume(";", "Expect ';' after return value.")
        return Return(keyword, value)

    def parse_while_stmt(self) -> While:
        self.consume("(", "Expect '(' after 'while'.")
        condition = self.parse_expr()
        self.consume(")", "Expect ')' after condition.")
        body = self.parse_statement()
        return While(condition, body)

    def parse_expr_stmt(self) -> Expression:
        expr = self.parse_expr()
        self.consume(";", "Expect ';' after expression.")
        return Expression(expr)

    # ── Expressions ──────────────────────────────────────────

    def parse_expr(self) -> Expr:
        return self.parse_assignment()

    def parse_assignment(self) -> Expr:
        """Assignment = Or ( '=' Or )? — target must be a variable or property."""
        expr = self.parse_or()
        if self.match("="):
            equals = self.previous()
            value = self.parse_or()
            if isinstance(expr, Variable):
                return Assign(expr.name, value)
            if isinstance(expr, Get):
                return Set(expr.object, expr.name, value)
            raise self.error(equals, "Invalid assignment target.")
        return expr

    def parse_or(self) -> Expr:
        """Or = And ( 'or' And )*"""
        left = self.parse_and()
        while self.match("or"):
            op = self.previous()
            right = self.parse_and()
            left = Logical(left, op, right)
        return left

    def parse_and(self) -> Expr:
        """And = Equality ( 'and' Equality )*"""
        left = self.parse_equality()
        while self.match("and"):
            op = self.previous()
            right = self.parse_equality()
            left = Logical(left, op, right)
        return left

    def parse_equality(self) -> Expr:
        """Equality = Comparison ( ( '!=' | '==' ) Comparison )*"""
        left = self.parse_comparison()
        while self.match(*EQUALITY_OPS):
            op = self.previous()
            right = self.parse_comparison()
            left = Binary(left, op, right)
        return left

    def parse_comparison(self) -> Expr:
        """Comparison = Term ( ( '>' | '>=' | '<' | '<=' ) Term )*"""
        left = self.parse_term()
        while self.match(*COMPARISON_OPS):
            op = self.previous()
            right = self.parse_term()
            left = Binary(left, op, right)
        return left

    def parse_term(self) -> Expr:
        """Term = Factor ( ( '-' | '+' ) Factor )*"""
        left = self.parse_factor()
        while self.match(*TERM_OPS):
            op = self.previous()
            right = self.parse_factor()
            left = Binary(left, op, right)
        return left

    def parse_factor(self) -> Expr:
        """Factor = Unary ( ( '/' | '*' ) Unary )*"""
        left = self.parse_unary()
        while self.match(*FACTOR_OPS):
            op = self.previous()
            right = self.parse_unary()
            left = Binary(left, op, right)
        return left

    def parse_unary(self) -> Expr:
        """Unary = ( '!' | '-' ) Unary | Call"""
        if self.match(*UNARY_OPS):
            op = self.previous()
            right = self.parse_unary()
            return Unary(op, right)
        return self.parse_call()

    def parse_call(self) -> Expr:
        """Call = Primary ( '(' Args? ')' | '.' IDENT )*"""
        expr = self.parse_primary()
        while True:
            if self.match("("):
                expr = self.finish_call(expr)
            elif self.match("."):
                name = self.consume(TK_IDENT, "Expect property name after '.'.")
                expr = Get(expr, name)
            else:
                break
        return expr

    def finish_call(self, callee: Expr) -> Call:
        arguments: list[Expr] = []
        if not self.check(")"):
            arguments.append(self.parse_expr())
            while self.match(","):
                if len(arguments) >= MAX_ARGS:
                    raise self.error(
                        self.current(), "Can't have more than 255 arguments."
                    )
                arguments.append(self.parse_expr())
        paren = self.consume(")", "Expect ')' after arguments.")
        return Call(callee, paren, arguments)

    def parse_primary(self) -> Expr:
        """Parse a primary expression."""
        if self.match("false"):
            return Literal(False)
        if self.match("true"):
            return Literal(True)
        if self.match("nil"):
            return Literal(None)
        if self.match(TK_NUMBER, TK_STRING):
            return Literal(self.previous().literal)
        if self.match("super"):
            keyword = self.previous()
            self.consume(".", "Expect '.' after 'super'.")
            method = self.consume(TK_IDENT, "Expect superclass method name.")
            return Super(keyword, method)
        if self.match("this"):
            return This(self.previous())
        if self.match(TK_IDENT):
            return Variable(self.previous())
        if self.match("("):
            expr = self.parse_expr()
            self.consume(")", "Expect ')' after expression.")
            return Grouping(expr)
        raise self.error(self.current(), "Expect expression.")


def parse_tokens(tokens: list[Token]) -> list[Stmt]:
    """Parse a scanned token list into a statement list."""
    parser = Parser(tokens)
    try:
        return parser.parse()
    except RecursionError:
        raise parser.error(parser.current(), "Stack overflow.") from None
