"""
Tests for the document parser.

Checks tree construction for text, echo and FOR tags, tag balancing
through the construction stack, and every kind of syntax error.
"""

import pytest

from smartscript.config import ParserOptions
from smartscript.elements import (
    ConstantDouble,
    ConstantInteger,
    Function,
    Operator,
    String,
    Variable,
)
from smartscript.errors import ErrorKind, LexerError, ParserError, SmartScriptError
from smartscript.nodes import DocumentNode, EchoNode, ForLoopNode, TextNode
from smartscript.parser import SmartScriptParser, parse_document


def parse_error(text: str, options=None) -> ParserError:
    with pytest.raises(ParserError) as exc_info:
        parse_document(text, options)
    return exc_info.value


class TestExampleScenarios:
    """Reference documents and the trees they produce."""

    def test_text_and_echo(self):
        document = parse_document("Text {$= 1 $}")
        assert document == DocumentNode([
            TextNode("Text "),
            EchoNode((ConstantInteger(1),)),
        ])

    def test_for_with_echo_body(self):
        document = parse_document("{$FOR i 1 10 1$}{$=i$}{$END$}")

        assert document.number_of_children() == 1
        loop = document.get_child(0)
        assert isinstance(loop, ForLoopNode)
        assert loop.expressions == (
            Variable("i"), ConstantInteger(1), ConstantInteger(10), ConstantInteger(1),
        )
        assert loop.children == [EchoNode((Variable("i"),))]

    def test_lone_end_fails(self):
        assert parse_error("{$END$}").kind is ErrorKind.UNBALANCED_END

    def test_for_without_end_fails(self):
        assert parse_error("{$FOR i 1 10$}").kind is ErrorKind.UNBALANCED_FOR

    def test_escaped_brace_in_text(self):
        document = parse_document("a\\{b")
        assert document == DocumentNode([TextNode("a{b")])

    def test_escaped_quotes_in_string(self):
        document = parse_document('{$= "it\'s a \\"quote\\"" $}')

        echo = document.get_child(0)
        assert echo == EchoNode((String('it\'s a "quote"'),))
        assert echo.render() == '{$= "it\'s a \\"quote\\"" $}'


class TestParserBasics:

    def test_rejects_non_string(self):
        with pytest.raises(TypeError):
            SmartScriptParser(None)  # type: ignore[arg-type]

    def test_empty_document(self):
        assert parse_document("") == DocumentNode()

    def test_document_node_property(self):
        parser = SmartScriptParser("plain")
        assert parser.document_node == DocumentNode([TextNode("plain")])

    def test_multiline_text_around_tags(self):
        document = parse_document("This is sample text.\n{$ FOR i 1 10 1 $}\n This is {$= i $}-th time.\n{$END$}\n")

        assert [type(n) for n in document.children] == [TextNode, ForLoopNode, TextNode]
        loop = document.get_child(1)
        assert [type(n) for n in loop.children] == [TextNode, EchoNode, TextNode]
        assert loop.get_child(0).text == "\n This is "
        assert loop.get_child(2).text == "-th time.\n"

    def test_echo_with_all_element_kinds(self):
        document = parse_document('{$= i i * @sin "0.000" @decfmt -2.5 3 % $}')
        assert document.get_child(0).elements == (
            Variable("i"),
            Variable("i"),
            Operator("*"),
            Function("sin"),
            String("0.000"),
            Function("decfmt"),
            ConstantDouble(-2.5),
            ConstantInteger(3),
            Operator("%"),
        )

    def test_empty_echo(self):
        assert parse_document("{$=$}") == DocumentNode([EchoNode()])

    def test_whitespace_before_tag_name(self):
        document = parse_document("{$   =  x $}{$ \n FOR i 0 1 $}{$ END $}")
        assert isinstance(document.get_child(0), EchoNode)
        assert isinstance(document.get_child(1), ForLoopNode)

    @pytest.mark.parametrize("name_for, name_end", [("for", "end"), ("For", "End"), ("fOR", "eNd")])
    def test_keywords_case_insensitive(self, name_for, name_end):
        document = parse_document(f"{{${name_for} i 1 2$}}x{{${name_end}$}}")
        assert isinstance(document.get_child(0), ForLoopNode)

    def test_nested_loops(self):
        document = parse_document(
            "{$FOR i 1 3$}a{$FOR j i 3 1$}{$= i j $}{$END$}b{$END$}c{$FOR k 0 1$}{$END$}"
        )

        assert [type(n) for n in document.children] == [ForLoopNode, TextNode, ForLoopNode]
        outer = document.get_child(0)
        assert [type(n) for n in outer.children] == [TextNode, ForLoopNode, TextNode]
        inner = outer.get_child(1)
        assert inner.variable == Variable("j")
        assert inner.start_expression == Variable("i")
        assert inner.children == [EchoNode((Variable("i"), Variable("j")))]
        assert document.get_child(2).children == []

    def test_for_with_mixed_bound_types(self):
        loop = parse_document('{$ FOR sco_re "-1" 10 "1" $}{$END$}').get_child(0)
        assert loop.expressions == (Variable("sco_re"), String("-1"), ConstantInteger(10), String("1"))

    def test_variable_named_like_keyword_in_echo(self):
        document = parse_document("{$= for end $}")
        assert document.get_child(0).elements == (Variable("for"), Variable("end"))


class TestForArguments:
    """FOR takes a variable and two or three more elements."""

    @pytest.mark.parametrize("arguments", ["", "i", "i 1", "i 1 2 3 4"])
    def test_wrong_arity(self, arguments):
        error = parse_error(f"{{$FOR {arguments}$}}{{$END$}}")
        assert error.kind is ErrorKind.ARITY

    @pytest.mark.parametrize("arguments", ["i 1 2", "i 1 2 3"])
    def test_valid_arity(self, arguments):
        assert isinstance(parse_document(f"{{$FOR {arguments}$}}{{$END$}}").get_child(0), ForLoopNode)

    @pytest.mark.parametrize("first", ["1", "1.5", '"i"', "@sin", "*"])
    def test_first_argument_must_be_variable(self, first):
        error = parse_error(f"{{$FOR {first} 1 2$}}{{$END$}}")
        assert error.kind is ErrorKind.INVALID_ARGUMENT

    def test_functions_and_operators_allowed_by_default(self):
        loop = parse_document("{$FOR i @start * @step$}{$END$}").get_child(0)
        assert loop.start_expression == Function("start")
        assert loop.end_expression == Operator("*")
        assert loop.step_expression == Function("step")

    @pytest.mark.parametrize("arguments", ["i @f 2", "i 1 + ", "i 1 2 @step"])
    def test_strict_mode_rejects_functions_and_operators(self, arguments):
        options = ParserOptions(strict_for_arguments=True)
        error = parse_error(f"{{$FOR {arguments}$}}{{$END$}}", options)
        assert error.kind is ErrorKind.INVALID_ARGUMENT

    def test_strict_mode_accepts_literals_and_variables(self):
        options = ParserOptions(strict_for_arguments=True)
        loop = parse_document('{$FOR i n "10" 0.5$}{$END$}', options).get_child(0)
        assert loop.expressions == (Variable("i"), Variable("n"), String("10"), ConstantDouble(0.5))


class TestSyntaxErrors:
    """Every grammar violation aborts the parse with a specific kind."""

    @pytest.mark.parametrize("text", ["{$", "{$   ", "{$= 1 2", "{$FOR i 1 2", "a {$END"])
    def test_unclosed_tag(self, text):
        assert parse_error(text).kind is ErrorKind.UNCLOSED_TAG

    @pytest.mark.parametrize("text", ["{$IF x$}", "{$ECHO 1$}", "{$FORi 1 2$}"])
    def test_unknown_tag_name(self, text):
        error = parse_error(text)
        assert error.kind is ErrorKind.UNKNOWN_TAG
        assert "Unknown tag name" in error.message

    @pytest.mark.parametrize("text", ["{$$}", "{$ 1 $}", '{$ "x" $}', "{$@f$}", "{$+$}"])
    def test_tag_must_start_with_name(self, text):
        error = parse_error(text)
        assert error.kind is ErrorKind.UNKNOWN_TAG
        assert "Expected tag name" in error.message

    def test_end_with_arguments(self):
        error = parse_error("{$FOR i 1 2$}{$END i$}")
        assert error.kind is ErrorKind.END_ARGUMENTS

    def test_more_ends_than_fors(self):
        error = parse_error("{$FOR i 1 2$}{$END$}{$END$}")
        assert error.kind is ErrorKind.UNBALANCED_END
        assert error.column == 23

    def test_more_fors_than_ends(self):
        error = parse_error("{$FOR i 1 2$}{$FOR j 1 2$}{$END$}")
        assert error.kind is ErrorKind.UNBALANCED_FOR
        assert "innermost: j" not in error.message
        assert "innermost: i" in error.message

    def test_echo_marker_as_argument(self):
        error = parse_error("{$= a = b $}")
        assert error.kind is ErrorKind.INVALID_ARGUMENT

    def test_lexer_errors_propagate_unchanged(self):
        with pytest.raises(LexerError, match="Unexpected character in tag") as exc_info:
            parse_document("ok {$= a # $}")
        assert exc_info.value.kind is ErrorKind.LEX

    def test_text_escape_error(self):
        with pytest.raises(LexerError, match="Invalid escape"):
            parse_document("bad \\n escape")

    def test_all_errors_share_base_class(self):
        for text in ["{$END$}", "{$= 1.2.3 $}"]:
            with pytest.raises(SmartScriptError):
                parse_document(text)

    def test_error_message_has_position(self):
        error = parse_error("line one\n  {$ WHILE $}")
        assert (error.line, error.column) == (2, 6)
        assert str(error) == "Unknown tag name 'WHILE' at 2:6"
