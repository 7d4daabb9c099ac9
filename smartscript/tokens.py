"""
Lexical types of the template language.

Defines token types, lexer states and the token value itself.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Union


class TokenType(enum.Enum):
    """Token types produced by the lexer."""

    END_OF_INPUT = "END_OF_INPUT"

    # Text outside of tags
    TEXT_STRING = "TEXT_STRING"

    # Tag delimiters
    TAG_START = "TAG_START"                  # {$
    TAG_END = "TAG_END"                      # $}

    # Tag contents
    IDENTIFIER = "IDENTIFIER"                # tag names, variables, bare '='
    INTEGER = "INTEGER"
    DOUBLE = "DOUBLE"
    TAG_STRING = "TAG_STRING"                # "quoted"
    FUNCTION = "FUNCTION"                    # @name
    OPERATOR = "OPERATOR"                    # + - * / % ^


class LexerState(enum.Enum):
    """Lexer modes. Switched by the parser, never by the lexer itself."""
    TEXT = "TEXT"
    TAG = "TAG"


TokenValue = Union[str, int, float]


@dataclass(frozen=True)
class Token:
    """
    Token with positional information for precise error diagnostics.
    """
    type: TokenType
    value: Optional[TokenValue]
    position: int = 0    # Offset in the source text
    line: int = 1        # Line number (from 1)
    column: int = 1      # Column number (from 1)

    def __post_init__(self):
        if not isinstance(self.type, TokenType):
            raise TypeError(f"Token type must be a TokenType, got {type(self.type).__name__}")
        if self.type is TokenType.END_OF_INPUT:
            if self.value is not None:
                raise ValueError("END_OF_INPUT token carries no value")
        elif self.value is None:
            raise ValueError(f"{self.type.name} token requires a value")

    def __repr__(self) -> str:
        return f"Token({self.type.name}, {self.value!r}, {self.line}:{self.column})"


__all__ = ["TokenType", "LexerState", "TokenValue", "Token"]
