"""
Base exceptions for user-facing errors.

Every expected failure of lexing or parsing a document inherits from
SmartScriptError and is meant to be shown to the user as a clean message.

Programming errors (wrong argument types passed to element or node
constructors) are plain TypeError/ValueError and are NOT SmartScriptError.
"""

from __future__ import annotations

import enum


class ErrorKind(enum.Enum):
    """Kinds of failure a parse attempt can end with."""
    LEX = "lex"
    UNEXPECTED_TOKEN = "unexpected_token"
    UNCLOSED_TAG = "unclosed_tag"
    UNKNOWN_TAG = "unknown_tag"
    ARITY = "arity"
    INVALID_ARGUMENT = "invalid_argument"
    END_ARGUMENTS = "end_arguments"
    UNBALANCED_END = "unbalanced_end"
    UNBALANCED_FOR = "unbalanced_for"


class SmartScriptError(Exception):
    """
    Base class for all user-facing errors of the template front end.

    Attributes:
        message: Description without positional suffix
        kind: Failure kind
        position: Offset in the source text (0-based)
        line: Line number (1-based)
        column: Column number (1-based)
    """

    def __init__(self, message: str, kind: ErrorKind, position: int, line: int, column: int):
        super().__init__(f"{message} at {line}:{column}")
        self.message = message
        self.kind = kind
        self.position = position
        self.line = line
        self.column = column


class LexerError(SmartScriptError):
    """Lexical analysis error."""

    def __init__(self, message: str, position: int, line: int, column: int):
        super().__init__(message, ErrorKind.LEX, position, line, column)


class ParserError(SmartScriptError):
    """Syntax error: the token stream does not form a valid document."""


__all__ = ["ErrorKind", "SmartScriptError", "LexerError", "ParserError"]
