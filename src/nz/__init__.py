"""Nz scanner, parser and interpreter — public API."""

from __future__ import annotations

from dataclasses import dataclass
import io
import logging
from typing import TextIO

from .ast import Stmt
from .errors import (
    InternalError as InternalError,
    NzError as NzError,
    NzRuntimeError as NzRuntimeError,
    ParseError as ParseError,
    ScanError as ScanError,
)
from .interpreter import Interpreter, Options as Options
from .parse import parse_tokens
from .tokens import Token, scan as scan_source

logger = logging.getLogger(__name__)
logger.addHandler(logging.NullHandler())

EXIT_OK = 0
EXIT_PARSE = 1
EXIT_RUNTIME = 69


def _extract_pragmas(source: str) -> Options:
    """Scan leading comment lines for pragmas. Returns the options they set."""
    options = Options()
    for line in source.split("\n"):
        stripped = line.strip()
        if stripped == "":
            continue
        if not stripped.startswith("//"):
            break
        body = stripped[2:].strip()
        if body == "pragma nil-equality":
            logger.debug("pragma nil-equality enabled")
            options.nil_equality = True
    return options


def scan(source: str) -> list[Token]:
    """Scan Nz source into tokens."""
    tokens = scan_source(source)
    logger.debug("scanned %d tokens", len(tokens))
    return tokens


def parse(source: str | list[Token]) -> list[Stmt]:
    """Parse Nz source (or an already scanned token list) into statements."""
    tokens = scan(source) if isinstance(source, str) else source
    statements = parse_tokens(tokens)
    logger.debug("parsed %d statements", len(statements))
    return statements


def interpret(
    statements: list[Stmt],
    *,
    stdout: TextIO | None = None,
    options: Options | None = None,
) -> None:
    """Execute statements in a fresh global environment."""
    Interpreter(stdout=stdout, options=options).interpret(statements)


@dataclass
class RunResult:
    exit_code: int
    stdout: str
    stderr: str


def run(source: str, *, options: Options | None = None) -> RunResult:
    """Scan, parse and execute source in-process, capturing its output.

    Options default to whatever the source's leading pragmas select.
    """
    if options is None:
        options = _extract_pragmas(source)
    out = io.StringIO()
    try:
        statements = parse(source)
    except (ScanError, ParseError) as e:
        return RunResult(EXIT_PARSE, "", str(e) + "\n")
    try:
        interpret(statements, stdout=out, options=options)
    except NzRuntimeError as e:
        return RunResult(EXIT_RUNTIME, out.getvalue(), str(e) + "\n")
    return RunResult(EXIT_OK, out.getvalue(), "")
