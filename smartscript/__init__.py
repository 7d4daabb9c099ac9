"""
SmartScript template front end.

Tokenizes documents mixing plain text with `{$ ... $}` tags, parses them into
a document tree and renders the tree back into equivalent source text.
"""

from .config import ParserOptions, load_options
from .elements import (
    ConstantDouble,
    ConstantInteger,
    Element,
    Function,
    Operator,
    String,
    Variable,
)
from .errors import ErrorKind, LexerError, ParserError, SmartScriptError
from .lexer import SmartScriptLexer, tokenize_document
from .nodes import DocumentNode, EchoNode, ForLoopNode, Node, TextNode, format_tree
from .parser import SmartScriptParser, parse_document
from .tokens import LexerState, Token, TokenType
from .version import tool_version

__version__ = tool_version()

__all__ = [
    # Main entry points
    "parse_document",
    "SmartScriptParser",
    "tokenize_document",
    "SmartScriptLexer",

    # Configuration
    "ParserOptions",
    "load_options",

    # Errors
    "SmartScriptError",
    "LexerError",
    "ParserError",
    "ErrorKind",

    # Tree
    "Node",
    "DocumentNode",
    "TextNode",
    "EchoNode",
    "ForLoopNode",
    "format_tree",

    # Elements
    "Element",
    "ConstantInteger",
    "ConstantDouble",
    "String",
    "Function",
    "Operator",
    "Variable",

    # Tokens
    "Token",
    "TokenType",
    "LexerState",
]
