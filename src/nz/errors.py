"""Nz diagnostics — the error taxonomy shared by every pipeline stage."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .tokens import Token


class NzError(Exception):
    """Base error for Nz scanning, parsing and evaluation."""

    def __init__(self, msg: str, line: int, *, at_end: bool = False):
        if at_end:
            super().__init__(f"{msg} at end")
        else:
            super().__init__(f"{msg} at line {line}")
        self.msg = msg
        self.line = line


class ScanError(NzError):
    """Malformed source text: unterminated string, unexpected character."""

    def __init__(self, msg: str, line: int, text: str):
        super().__init__(msg, line)
        self.text = text


class ParseError(NzError):
    """Unexpected token or invalid construct found while parsing."""

    def __init__(self, token: Token, msg: str):
        super().__init__(msg, token.line, at_end=token.kind == "EOF")
        self.token = token


class NzRuntimeError(NzError):
    """Failure while evaluating: type mismatch, undefined name, bad call."""

    def __init__(self, token: Token, msg: str):
        super().__init__(msg, token.line)
        self.token = token


class InternalError(RuntimeError):
    """Interpreter logic defect, never a user-facing diagnostic."""
