"""Nz tokenizer — scans source into a flat token list."""

from __future__ import annotations

from dataclasses import dataclass

from .errors import ScanError


# Token kind constants. Punctuation, operators and reserved words use their
# own lexeme as the kind.
TK_IDENT = "IDENT"
TK_NUMBER = "NUMBER"
TK_STRING = "STRING"
TK_EOF = "EOF"

KEYWORDS: set[str] = {
    "and",
    "class",
    "else",
    "false",
    "for",
    "fun",
    "if",
    "nil",
    "or",
    "print",
    "return",
    "super",
    "this",
    "true",
    "var",
    "while",
}

# Two-character operators, tried before their one-character prefixes
MULTI_OPS: list[str] = [
    "!=",
    "==",
    "<=",
    ">=",
]

SINGLE_OPS: set[str] = {
    "(",
    ")",
    "{",
    "}",
    ",",
    ".",
    "-",
    "+",
    ";",
    "/",
    "*",
    "!",
    "=",
    "<",
    ">",
}


@dataclass(frozen=True)
class Token:
    """A token with kind, exact source text, literal payload, and line."""

    kind: str
    lexeme: str
    literal: float | str | bool | None
    line: int

    def __repr__(self) -> str:
        return (
            "Token("
            + self.kind
            + ", "
            + repr(self.lexeme)
            + ", "
            + repr(self.literal)
            + ", "
            + str(self.line)
            + ")"
        )


def _is_digit(c: str) -> bool:
    return c >= "0" and c <= "9"


def _is_alpha(c: str) -> bool:
    return (c >= "a" and c <= "z") or (c >= "A" and c <= "Z") or c == "_"


def _is_alnum(c: str) -> bool:
    return _is_alpha(c) or _is_digit(c)


def scan(source: str) -> list[Token]:
    """Scan Nz source into a flat list ending with a single TK_EOF token."""
    tokens: list[Token] = []
    pos = 0
    line = 1
    length = len(source)

    while pos < length:
        c = source[pos]

        # Newlines
        if c == "\n":
            pos += 1
            line += 1
            continue

        # Whitespace
        if c == " " or c == "\t" or c == "\r":
            pos += 1
            continue

        # Line comment: //
        if c == "/" and pos + 1 < length and source[pos + 1] == "/":
            while pos < length and source[pos] != "\n":
                pos += 1
            continue

        start_pos = pos
        start_line = line

        # String literal: "...", may span lines, no escapes
        if c == '"':
            pos += 1
            while pos < length and source[pos] != '"':
                if source[pos] == "\n":
                    line += 1
                pos += 1
            if pos >= length:
                raise ScanError("Unterminated string.", start_line, source[start_pos:])
            pos += 1  # skip closing "
            lexeme = source[start_pos:pos]
            tokens.append(Token(TK_STRING, lexeme, lexeme[1:-1], start_line))
            continue

        # Number: digits, optionally '.' followed by digits
        if _is_digit(c):
            while pos < length and _is_digit(source[pos]):
                pos += 1
            if (
                pos + 1 < length
                and source[pos] == "."
                and _is_digit(source[pos + 1])
            ):
                pos += 1
                while pos < length and _is_digit(source[pos]):
                    pos += 1
            lexeme = source[start_pos:pos]
            tokens.append(Token(TK_NUMBER, lexeme, float(lexeme), line))
            continue

        # Identifier or keyword
        if _is_alpha(c):
            while pos < length and _is_alnum(source[pos]):
                pos += 1
            word = source[start_pos:pos]
            if word in KEYWORDS:
                literal: bool | None = None
                if word == "true":
                    literal = True
                elif word == "false":
                    literal = False
                tokens.append(Token(word, word, literal, line))
            else:
                tokens.append(Token(TK_IDENT, word, None, line))
            continue

        # Two-character operators
        matched = False
        for op in MULTI_OPS:
            if source[pos : pos + 2] == op:
                tokens.append(Token(op, op, None, line))
                pos += 2
                matched = True
                break
        if matched:
            continue

        # Single-character operators and punctuation
        if c in SINGLE_OPS:
            tokens.append(Token(c, c, None, line))
            pos += 1
            continue

        raise ScanError("Unexpected character.", line, c)

    tokens.append(Token(TK_EOF, "", None, line))
    return tokens
