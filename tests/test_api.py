"""Tests for the public nz API: scan, parse, interpret and run."""

import io
import logging
import sys

import pytest

import nz
from nz import (
    EXIT_OK,
    EXIT_PARSE,
    EXIT_RUNTIME,
    InternalError,
    NzError,
    Options,
    ParseError,
    ScanError,
)
from nz.ast import Print
from nz.interpreter import Interpreter
from nz.tokens import TK_EOF


def _params(n: int) -> str:
    return ", ".join(f"p{i}" for i in range(n))


def _args(n: int) -> str:
    return ", ".join(str(i) for i in range(n))


# ── run ──


def test_run_success():
    result = nz.run('print "hello";')
    assert result.exit_code == EXIT_OK == 0
    assert result.stdout == "hello\n"
    assert result.stderr == ""


def test_run_scan_error_exit_code():
    result = nz.run('print "open;')
    assert result.exit_code == EXIT_PARSE == 1
    assert result.stdout == ""
    assert result.stderr == "Unterminated string. at line 1\n"


def test_run_parse_error_runs_nothing():
    result = nz.run('print "first";\nprint ;')
    assert result.exit_code == EXIT_PARSE
    assert result.stdout == ""
    assert result.stderr == "Expect expression. at line 2\n"


def test_run_runtime_error_keeps_output():
    result = nz.run('print "first";\nprint -"x";\nprint "never";')
    assert result.exit_code == EXIT_RUNTIME == 69
    assert result.stdout == "first\n"
    assert result.stderr == "Operand must be a number for unary minus. at line 2\n"


def test_run_explicit_options_override_pragmas():
    source = "// pragma nil-equality\nprint nil == nil;"
    assert nz.run(source).stdout == "true\n"
    assert nz.run(source, options=Options()).stdout == "false\n"
    conventional = Options(nil_equality=True)
    assert nz.run("print nil == nil;", options=conventional).stdout == "true\n"


def test_pragma_only_read_from_leading_comments():
    source = "print 1;\n// pragma nil-equality\nprint nil == nil;"
    assert nz.run(source).stdout == "1\nfalse\n"


# ── scan / parse / interpret ──


def test_scan_returns_tokens():
    tokens = nz.scan("var x = 1;")
    assert [t.kind for t in tokens] == ["var", "IDENT", "=", "NUMBER", ";", TK_EOF]


def test_parse_accepts_tokens_or_source():
    tokens = nz.scan("print 1;")
    from_tokens = nz.parse(tokens)
    from_source = nz.parse("print 1;")
    assert from_tokens == from_source
    assert isinstance(from_source[0], Print)


def test_interpret_writes_to_stdout():
    out = io.StringIO()
    nz.interpret(nz.parse("print 1 + 2;"), stdout=out)
    assert out.getvalue() == "3\n"


def test_interpret_uses_fresh_globals():
    nz.interpret(nz.parse("var leaked = 1;"), stdout=io.StringIO())
    with pytest.raises(nz.NzRuntimeError, match="Undefined variable 'leaked'."):
        nz.interpret(nz.parse("print leaked;"), stdout=io.StringIO())


def test_top_level_return_is_internal_error():
    with pytest.raises(InternalError):
        nz.interpret(nz.parse("return 1;"), stdout=io.StringIO())
    assert not issubclass(InternalError, NzError)


def test_error_hierarchy():
    assert issubclass(ScanError, NzError)
    assert issubclass(ParseError, NzError)
    assert issubclass(nz.NzRuntimeError, NzError)


def test_parse_error_carries_token():
    with pytest.raises(ParseError) as exc:
        nz.parse("var 1;")
    assert exc.value.token.lexeme == "1"
    assert exc.value.line == 1
    assert exc.value.msg == "Expect variable name."


def test_scan_error_carries_text():
    with pytest.raises(ScanError) as exc:
        nz.scan("\n\n  $")
    assert exc.value.text == "$"
    assert exc.value.line == 3


# ── Argument ceiling ──


def test_255_parameters_accepted():
    statements = nz.parse(f"fun f({_params(255)}) {{}}")
    assert len(statements[0].params) == 255


def test_256_parameters_rejected():
    with pytest.raises(ParseError, match="Can't have more than 255 parameters."):
        nz.parse(f"fun f({_params(256)}) {{}}")


def test_255_arguments_accepted():
    source = f"fun f({_params(255)}) {{ return p254; }}\nprint f({_args(255)});"
    result = nz.run(source)
    assert result.exit_code == EXIT_OK
    assert result.stdout == "254\n"


def test_256_arguments_rejected():
    with pytest.raises(ParseError, match="Can't have more than 255 arguments."):
        nz.parse(f"f({_args(256)});")


# ── Stack overflow ──


def _depth() -> int:
    return sys.getrecursionlimit() * 2


def test_deep_expression_without_calls_is_runtime_error():
    result = nz.run('print "start";\nprint ' + "1 + " * _depth() + "1;")
    assert result.exit_code == EXIT_RUNTIME
    assert result.stdout == "start\n"
    assert result.stderr == "Stack overflow. at line 2\n"


def test_interpreter_usable_after_stack_overflow():
    interp = Interpreter(stdout=io.StringIO())
    deep = nz.parse("print " + "1 + " * _depth() + "1;")
    with pytest.raises(nz.NzRuntimeError, match="Stack overflow."):
        interp.interpret(deep)
    assert interp.environment is interp.globals
    interp.interpret(nz.parse("print 1 + 1;"))
    assert interp.stdout.getvalue() == "2\n"


def test_deep_nesting_is_parse_error():
    n = _depth()
    source = "print " + "(" * n + "1" + ")" * n + ";"
    with pytest.raises(ParseError, match="Stack overflow."):
        nz.parse(source)
    result = nz.run(source)
    assert result.exit_code == EXIT_PARSE
    assert result.stderr.startswith("Stack overflow. at line 1")


# ── Logging ──


def test_package_logger_is_silent_by_default():
    handlers = logging.getLogger("nz").handlers
    assert any(isinstance(h, logging.NullHandler) for h in handlers)


def test_debug_records_at_pipeline_boundaries(caplog):
    with caplog.at_level(logging.DEBUG, logger="nz"):
        nz.run("// pragma nil-equality\nprint 1;")
    messages = [r.getMessage() for r in caplog.records]
    assert "pragma nil-equality enabled" in messages
    assert any(m.startswith("scanned ") for m in messages)
    assert "parsed 1 statements" in messages
    assert "interpreting 1 statements" in messages
    assert "interpretation finished" in messages
