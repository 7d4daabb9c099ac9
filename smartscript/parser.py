"""
Parser for SmartScript documents.

Pulls tokens from the lexer on demand and builds the document tree with an
explicit construction stack:

document  → (TEXT_STRING | tag)* END_OF_INPUT
tag       → TAG_START (echo_tag | for_tag | end_tag)
echo_tag  → "=" element* TAG_END
for_tag   → "FOR" Variable element element [element] TAG_END
end_tag   → "END" TAG_END

Tag names FOR and END are case-insensitive. The stack starts with the
DocumentNode; FOR pushes its node, END pops it, and at end of input only the
DocumentNode may remain.
"""

from __future__ import annotations

import logging
from typing import List, NoReturn, Optional, Union

from .config import ParserOptions
from .elements import (
    ConstantDouble,
    ConstantInteger,
    Element,
    Function,
    Operator,
    String,
    Variable,
)
from .errors import ErrorKind, ParserError
from .lexer import SmartScriptLexer
from .nodes import DocumentNode, EchoNode, ForLoopNode, TextNode
from .tokens import LexerState, Token, TokenType

logger = logging.getLogger(__name__)

ECHO_TAG = "="
FOR_TAG = "FOR"
END_TAG = "END"

_ELEMENT_FACTORIES = {
    TokenType.IDENTIFIER: Variable,
    TokenType.INTEGER: ConstantInteger,
    TokenType.DOUBLE: ConstantDouble,
    TokenType.TAG_STRING: String,
    TokenType.FUNCTION: Function,
    TokenType.OPERATOR: Operator,
}


class SmartScriptParser:
    """
    Builds a document tree from the document body.

    Parsing happens in the constructor; the result is available through
    `document_node`. Any lexical or syntax error aborts the whole parse.
    """

    def __init__(self, document_body: str, options: Optional[ParserOptions] = None):
        """
        Args:
            document_body: Whole document text
            options: Grammar options (defaults if omitted)

        Raises:
            TypeError: If document_body is not a string
            LexerError: On a lexical error
            ParserError: On a syntax error
        """
        if not isinstance(document_body, str):
            raise TypeError(f"Document body must be a string, got {type(document_body).__name__}")

        self.options = options or ParserOptions()
        self.lexer = SmartScriptLexer(document_body)
        self._stack: List[Union[DocumentNode, ForLoopNode]] = []
        self._document_node = self._parse_document()

    @property
    def document_node(self) -> DocumentNode:
        return self._document_node

    def _parse_document(self) -> DocumentNode:
        self._stack.append(DocumentNode())

        token = self.lexer.next_token()
        while token.type is not TokenType.END_OF_INPUT:
            if token.type is TokenType.TEXT_STRING:
                self._top().add_child(TextNode(token.value))
            elif token.type is TokenType.TAG_START:
                self.lexer.set_state(LexerState.TAG)
                self._parse_tag(token)
                self.lexer.set_state(LexerState.TEXT)
            else:
                self._error(f"Unexpected token {token.type.name} outside of a tag",
                            ErrorKind.UNEXPECTED_TOKEN, token)
            token = self.lexer.next_token()

        if len(self._stack) != 1:
            unclosed = self._top()
            self._error(f"{len(self._stack) - 1} FOR tag(s) not closed with END "
                        f"(innermost: {unclosed.variable.name})",
                        ErrorKind.UNBALANCED_FOR, token)

        document = self._stack.pop()
        logger.debug(f"Parsed document with {document.number_of_children()} top-level nodes")
        return document

    def _parse_tag(self, tag_start: Token) -> None:
        name_token = self.lexer.next_token()

        if name_token.type is TokenType.END_OF_INPUT:
            self._error("Tag not closed", ErrorKind.UNCLOSED_TAG, tag_start)
        if name_token.type is not TokenType.IDENTIFIER:
            self._error(f"Expected tag name, got {name_token.type.name}",
                        ErrorKind.UNKNOWN_TAG, name_token)

        name = name_token.value
        logger.debug(f"Tag '{name}' at {name_token.line}:{name_token.column}")

        if name == ECHO_TAG:
            self._top().add_child(self._parse_echo_tag(tag_start))
        elif name.upper() == FOR_TAG:
            for_node = self._parse_for_tag(tag_start, name_token)
            self._top().add_child(for_node)
            self._stack.append(for_node)
        elif name.upper() == END_TAG:
            self._parse_end_tag(tag_start, name_token)
        else:
            self._error(f"Unknown tag name '{name}'", ErrorKind.UNKNOWN_TAG, name_token)

    def _parse_echo_tag(self, tag_start: Token) -> EchoNode:
        return EchoNode(tuple(self._collect_elements(tag_start, "=")))

    def _parse_for_tag(self, tag_start: Token, name_token: Token) -> ForLoopNode:
        elements = self._collect_elements(tag_start, FOR_TAG)

        if len(elements) not in (3, 4):
            self._error(f"FOR tag takes 3 or 4 arguments, got {len(elements)}",
                        ErrorKind.ARITY, name_token)
        if not isinstance(elements[0], Variable):
            self._error(f"FOR loop variable must be a variable, got '{elements[0].as_text()}'",
                        ErrorKind.INVALID_ARGUMENT, name_token)
        if self.options.strict_for_arguments:
            for element in elements[1:]:
                if isinstance(element, (Function, Operator)):
                    self._error(f"FOR bound or step cannot be '{element.as_text()}'",
                                ErrorKind.INVALID_ARGUMENT, name_token)

        variable, start, end, *step = elements
        return ForLoopNode(variable, start, end, step[0] if step else None)

    def _parse_end_tag(self, tag_start: Token, name_token: Token) -> None:
        token = self.lexer.next_token()
        if token.type is TokenType.END_OF_INPUT:
            self._error("END tag not closed", ErrorKind.UNCLOSED_TAG, tag_start)
        if token.type is not TokenType.TAG_END:
            self._error("END tag takes no arguments", ErrorKind.END_ARGUMENTS, token)

        if len(self._stack) == 1:
            self._error("END tag without a matching FOR", ErrorKind.UNBALANCED_END, name_token)
        closed = self._stack.pop()
        logger.debug(f"Closed FOR '{closed.variable.name}', depth {len(self._stack)}")

    def _collect_elements(self, tag_start: Token, tag_name: str) -> List[Element]:
        """
        Reads tag arguments up to TAG_END and maps them to elements.

        Raises:
            ParserError: If input ends before TAG_END or a token is not an argument
        """
        elements: List[Element] = []

        token = self.lexer.next_token()
        while token.type is not TokenType.TAG_END:
            if token.type is TokenType.END_OF_INPUT:
                self._error(f"{tag_name} tag not closed", ErrorKind.UNCLOSED_TAG, tag_start)

            factory = _ELEMENT_FACTORIES.get(token.type)
            if factory is None:
                self._error(f"Unexpected token {token.type.name} in {tag_name} tag",
                            ErrorKind.UNEXPECTED_TOKEN, token)
            if token.type is TokenType.IDENTIFIER and token.value == ECHO_TAG:
                self._error(f"'=' is not a valid argument in {tag_name} tag",
                            ErrorKind.INVALID_ARGUMENT, token)

            elements.append(factory(token.value))
            token = self.lexer.next_token()

        return elements

    def _top(self) -> Union[DocumentNode, ForLoopNode]:
        return self._stack[-1]

    @staticmethod
    def _error(message: str, kind: ErrorKind, token: Token) -> NoReturn:
        raise ParserError(message, kind, token.position, token.line, token.column)


def parse_document(text: str, options: Optional[ParserOptions] = None) -> DocumentNode:
    """
    Convenience function for parsing a document.

    Args:
        text: Document body
        options: Grammar options

    Returns:
        Root of the document tree

    Raises:
        LexerError: On a lexical error
        ParserError: On a syntax error
    """
    return SmartScriptParser(text, options).document_node


__all__ = ["SmartScriptParser", "parse_document"]
