"""
Two-mode lexical analyzer for SmartScript documents.

Produces tokens on demand. In TEXT mode it splits plain text from tag
openings; in TAG mode it recognizes tag contents (identifiers, numbers,
strings, functions, operators) and the tag closing. The mode is set from the
outside: the parser switches to TAG after a TAG_START token and back to TEXT
once a tag is finished, so the lexer never has to guess what a `$` means.
"""

from __future__ import annotations

import logging
import math
import re
from typing import List, NoReturn, Optional

from .elements import (
    INTEGER_MAX,
    INTEGER_MIN,
    OPERATOR_SYMBOLS,
    is_identifier_part,
    is_identifier_start,
)
from .errors import LexerError
from .tokens import LexerState, Token, TokenType

logger = logging.getLogger(__name__)

TAG_START = "{$"
TAG_END = "$}"



class SmartScriptLexer:
    """
    Lexer of the template language.

    TEXT mode escapes: `\\\\` -> `\\`, `\\{` -> `{`.
    TAG string escapes: `\\\\`, `\\"`, `\\n`, `\\r`, `\\t`.

    A lexical error is final: once raised, every further request fails too.
    """

    _WHITESPACE = frozenset(" \t\r\n")

    _TEXT_ESCAPES = {"\\": "\\", "{": "{"}

    _STRING_ESCAPES = {
        "\\": "\\",
        '"': '"',
        "n": "\n",
        "r": "\r",
        "t": "\t",
    }

    # Maximal run that could belong to a numeric literal
    _NUMBER_RUN = re.compile(r'-?[0-9.]+')
    _INTEGER = re.compile(r'-?[0-9]+')
    _DOUBLE = re.compile(r'-?[0-9]+\.[0-9]+')

    def __init__(self, text: str):
        """
        Args:
            text: Whole document body
        """
        if not isinstance(text, str):
            raise TypeError(f"Lexer input must be a string, got {type(text).__name__}")

        self.text = text
        self.length = len(text)
        self.position = 0
        self.line = 1
        self.column = 1

        self._state = LexerState.TEXT
        self._token: Optional[Token] = None
        self._failure: Optional[LexerError] = None

    @property
    def state(self) -> LexerState:
        return self._state

    def set_state(self, state: LexerState) -> None:
        """
        Switches the lexer mode.

        Args:
            state: New mode

        Raises:
            TypeError: If state is not a LexerState
        """
        if not isinstance(state, LexerState):
            raise TypeError(f"Lexer state must be a LexerState, got {type(state).__name__}")
        if state is not self._state:
            logger.debug(f"Lexer state {self._state.name} -> {state.name} at {self.line}:{self.column}")
        self._state = state

    @property
    def token(self) -> Token:
        """
        Last produced token.

        Raises:
            LexerError: If nothing has been tokenized yet
        """
        if self._token is None:
            raise LexerError("No token has been produced yet", self.position, self.line, self.column)
        return self._token

    def next_token(self) -> Token:
        """
        Produces the next token according to the current mode.

        Returns:
            Next token (END_OF_INPUT once the text is exhausted)

        Raises:
            LexerError: On a malformed character sequence, after an earlier
                lexical error, or when called past END_OF_INPUT
        """
        if self._failure is not None:
            raise LexerError(
                f"Lexer stopped after an earlier error: {self._failure.message}",
                self._failure.position, self._failure.line, self._failure.column
            )

        if self._token is not None and self._token.type is TokenType.END_OF_INPUT:
            raise LexerError("Cannot tokenize past end of input", self.position, self.line, self.column)

        try:
            if self._state is LexerState.TEXT:
                token = self._tokenize_text()
            else:
                token = self._tokenize_tag()
        except LexerError as e:
            self._failure = e
            raise

        self._token = token
        logger.debug(f"Token {token!r} in {self._state.name} mode")
        return token

    # ---- TEXT mode ----

    def _tokenize_text(self) -> Token:
        start_pos, start_line, start_column = self.position, self.line, self.column

        if self.position >= self.length:
            return Token(TokenType.END_OF_INPUT, None, start_pos, start_line, start_column)

        if self._at(TAG_START):
            self._advance(len(TAG_START))
            return Token(TokenType.TAG_START, TAG_START, start_pos, start_line, start_column)

        parts: List[str] = []
        while self.position < self.length and not self._at(TAG_START):
            char = self.text[self.position]
            if char == "\\":
                escaped = self._peek(1)
                if escaped not in self._TEXT_ESCAPES:
                    self._fail(f"Invalid escape sequence in text: {self._describe_escape(escaped)}")
                parts.append(self._TEXT_ESCAPES[escaped])
                self._advance(2)
            else:
                parts.append(char)
                self._advance(1)

        return Token(TokenType.TEXT_STRING, "".join(parts), start_pos, start_line, start_column)

    # ---- TAG mode ----

    def _tokenize_tag(self) -> Token:
        self._skip_whitespace()

        start_pos, start_line, start_column = self.position, self.line, self.column

        if self.position >= self.length:
            return Token(TokenType.END_OF_INPUT, None, start_pos, start_line, start_column)

        char = self.text[self.position]

        if self._at(TAG_END):
            self._advance(len(TAG_END))
            return Token(TokenType.TAG_END, TAG_END, start_pos, start_line, start_column)

        if char == "=":
            self._advance(1)
            return Token(TokenType.IDENTIFIER, "=", start_pos, start_line, start_column)

        if is_identifier_start(char):
            name = self._read_name()
            return Token(TokenType.IDENTIFIER, name, start_pos, start_line, start_column)

        if self._is_digit(char) or (char == "-" and self._is_digit(self._peek(1))):
            return self._tokenize_number()

        if char == "@":
            if not is_identifier_start(self._peek(1) or " "):
                self._fail("Function name must start with a letter after '@'")
            self._advance(1)
            name = self._read_name()
            return Token(TokenType.FUNCTION, name, start_pos, start_line, start_column)

        if char == '"':
            return self._tokenize_string()

        if char in OPERATOR_SYMBOLS:
            self._advance(1)
            return Token(TokenType.OPERATOR, char, start_pos, start_line, start_column)

        self._fail(f"Unexpected character in tag: {char!r}")

    def _read_name(self) -> str:
        start = self.position
        self._advance(1)
        while self.position < self.length and is_identifier_part(self.text[self.position]):
            self._advance(1)
        return self.text[start:self.position]

    def _tokenize_number(self) -> Token:
        start_pos, start_line, start_column = self.position, self.line, self.column

        literal = self._NUMBER_RUN.match(self.text, self.position).group(0)
        end = self.position + len(literal)
        if end < self.length and is_identifier_part(self.text[end]):
            self._fail(f"Malformed number: {self.text[self.position:end + 1]!r}")

        if "." in literal:
            if not self._DOUBLE.fullmatch(literal):
                self._fail(f"Malformed number: {literal!r}")
            value = float(literal)
            if math.isinf(value):
                self._fail(f"Number out of range: {literal!r}")
            token_type = TokenType.DOUBLE
        else:
            if not self._INTEGER.fullmatch(literal):
                self._fail(f"Malformed number: {literal!r}")
            value = int(literal)
            if not INTEGER_MIN <= value <= INTEGER_MAX:
                self._fail(f"Integer out of range: {literal!r}")
            token_type = TokenType.INTEGER

        self._advance(len(literal))
        return Token(token_type, value, start_pos, start_line, start_column)

    def _tokenize_string(self) -> Token:
        start_pos, start_line, start_column = self.position, self.line, self.column
        self._advance(1)  # opening quote

        parts: List[str] = []
        while True:
            if self.position >= self.length:
                raise LexerError("Unterminated string", start_pos, start_line, start_column)

            char = self.text[self.position]
            if char == '"':
                self._advance(1)
                break
            if char == "\\":
                escaped = self._peek(1)
                if escaped not in self._STRING_ESCAPES:
                    self._fail(f"Invalid escape sequence in string: {self._describe_escape(escaped)}")
                parts.append(self._STRING_ESCAPES[escaped])
                self._advance(2)
            else:
                parts.append(char)
                self._advance(1)

        return Token(TokenType.TAG_STRING, "".join(parts), start_pos, start_line, start_column)

    # ---- helpers ----

    def _at(self, delimiter: str) -> bool:
        return self.text.startswith(delimiter, self.position)

    def _peek(self, offset: int) -> Optional[str]:
        pos = self.position + offset
        if pos >= self.length:
            return None
        return self.text[pos]

    @staticmethod
    def _is_digit(char: Optional[str]) -> bool:
        return char is not None and "0" <= char <= "9"

    @staticmethod
    def _describe_escape(escaped: Optional[str]) -> str:
        if escaped is None:
            return "'\\' at end of input"
        return repr("\\" + escaped)

    def _skip_whitespace(self) -> None:
        while self.position < self.length and self.text[self.position] in self._WHITESPACE:
            self._advance(1)

    def _fail(self, message: str) -> NoReturn:
        raise LexerError(message, self.position, self.line, self.column)

    def _advance(self, count: int) -> None:
        """
        Moves the position forward, keeping line and column numbers in sync.
        """
        for _ in range(count):
            if self.position >= self.length:
                break
            if self.text[self.position] == "\n":
                self.line += 1
                self.column = 1
            else:
                self.column += 1
            self.position += 1


def tokenize_document(text: str) -> List[Token]:
    """
    Tokenizes a whole document, switching modes at tag boundaries.

    Mode switching here is the one the parser performs: TAG right after
    TAG_START, TEXT right after TAG_END.

    Args:
        text: Document body

    Returns:
        List of tokens ending with END_OF_INPUT

    Raises:
        LexerError: On a lexical error
    """
    lexer = SmartScriptLexer(text)
    tokens: List[Token] = []

    while True:
        token = lexer.next_token()
        tokens.append(token)
        if token.type is TokenType.END_OF_INPUT:
            break
        if token.type is TokenType.TAG_START:
            lexer.set_state(LexerState.TAG)
        elif token.type is TokenType.TAG_END:
            lexer.set_state(LexerState.TEXT)

    return tokens


__all__ = ["SmartScriptLexer", "tokenize_document", "TAG_START", "TAG_END"]
