"""
Document tree produced by the parser.

Nodes are frozen dataclasses: attributes are fixed after construction and the
only mutation is appending children while the parser builds the tree. Every
node renders itself back to source text such that parsing the rendering
yields an equal tree.

Nesting depth is bounded only by the document, so rendering, traversal and
comparison of containers work with explicit stacks instead of recursion.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Sequence, Tuple, Union

from .elements import Element, Variable, is_element

END_TAG_TEXT = "{$END$}"


def _check_child(child: object) -> None:
    if not isinstance(child, (TextNode, EchoNode, ForLoopNode)):
        raise TypeError(f"Cannot add {type(child).__name__} as a child node")


class _ChildrenMixin:
    """Child access and structural equality shared by DocumentNode and ForLoopNode."""

    children: List["ChildNode"]

    # Children are a mutable list
    __hash__ = None  # type: ignore[assignment]

    def _init_children(self) -> None:
        children = list(self.children)
        for child in children:
            _check_child(child)
        object.__setattr__(self, "children", children)

    def add_child(self, child: "ChildNode") -> None:
        _check_child(child)
        self.children.append(child)

    def number_of_children(self) -> int:
        return len(self.children)

    def get_child(self, index: int) -> "ChildNode":
        if not 0 <= index < len(self.children):
            raise IndexError(f"Child index {index} out of range (0..{len(self.children) - 1})")
        return self.children[index]

    def render(self) -> str:
        return _render(self)

    def __eq__(self, other: object) -> bool:
        if type(other) is not type(self):
            return NotImplemented
        return _same_tree(self, other)

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class TextNode:
    """
    Plain text between tags.

    Holds the unescaped text; rendering escapes backslashes and braces again.
    """
    text: str

    def __post_init__(self):
        if not isinstance(self.text, str):
            raise TypeError(f"Text must be a string, got {type(self.text).__name__}")

    def render(self) -> str:
        return self.text.replace("\\", "\\\\").replace("{", "\\{")

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True)
class EchoNode:
    """Echo tag `{$= ... $}` with its ordered elements."""
    elements: Tuple[Element, ...] = ()

    def __post_init__(self):
        elements = tuple(self.elements)
        for element in elements:
            if not is_element(element):
                raise TypeError(f"Echo tag accepts only elements, got {type(element).__name__}")
        object.__setattr__(self, "elements", elements)

    def render(self) -> str:
        return " ".join(["{$=", *(e.as_text() for e in self.elements), "$}"])

    def __str__(self) -> str:
        return self.render()


@dataclass(frozen=True, eq=False)
class ForLoopNode(_ChildrenMixin):
    """
    FOR block `{$ FOR var start end [step] $} ... {$END$}`.

    Children are the nodes between the opening tag and its matching END.
    """
    variable: Variable
    start_expression: Element
    end_expression: Element
    step_expression: Optional[Element] = None
    children: List["ChildNode"] = field(default_factory=list)

    def __post_init__(self):
        if not isinstance(self.variable, Variable):
            raise TypeError(f"Loop variable must be a Variable, got {type(self.variable).__name__}")
        for name in ("start_expression", "end_expression"):
            if not is_element(getattr(self, name)):
                raise TypeError(f"FOR {name.replace('_', ' ')} must be an element")
        if self.step_expression is not None and not is_element(self.step_expression):
            raise TypeError("FOR step expression must be an element or None")
        self._init_children()

    @property
    def expressions(self) -> Tuple[Element, ...]:
        """Variable, start, end and step (when present) in source order."""
        parts: Tuple[Element, ...] = (self.variable, self.start_expression, self.end_expression)
        if self.step_expression is not None:
            parts += (self.step_expression,)
        return parts

    def opening_tag(self) -> str:
        return " ".join(["{$ FOR", *(e.as_text() for e in self.expressions), "$}"])


@dataclass(frozen=True, eq=False)
class DocumentNode(_ChildrenMixin):
    """Root of the document tree."""
    children: List["ChildNode"] = field(default_factory=list)

    def __post_init__(self):
        self._init_children()


ChildNode = Union[TextNode, EchoNode, ForLoopNode]
Node = Union[DocumentNode, TextNode, EchoNode, ForLoopNode]


def _render(node: Node) -> str:
    parts: List[str] = []
    # Pending nodes, plus the END tags of loops whose bodies are still open
    stack: List[Union[Node, str]] = [node]

    while stack:
        item = stack.pop()
        if isinstance(item, str):
            parts.append(item)
        elif isinstance(item, (TextNode, EchoNode)):
            parts.append(item.render())
        else:
            if isinstance(item, ForLoopNode):
                parts.append(item.opening_tag())
                stack.append(END_TAG_TEXT)
            stack.extend(reversed(item.children))

    return "".join(parts)


def _same_tree(first: Node, second: Node) -> bool:
    pending = [(first, second)]

    while pending:
        left, right = pending.pop()
        if type(left) is not type(right):
            return False
        if isinstance(left, (TextNode, EchoNode)):
            if left != right:
                return False
            continue
        if isinstance(left, ForLoopNode) and left.expressions != right.expressions:
            return False
        if len(left.children) != len(right.children):
            return False
        pending.extend(zip(left.children, right.children))

    return True


def _walk_with_depth(node: Node) -> Iterator[Tuple[Node, int]]:
    stack = [(node, 0)]
    while stack:
        current, depth = stack.pop()
        yield current, depth
        if isinstance(current, (DocumentNode, ForLoopNode)):
            stack.extend((child, depth + 1) for child in reversed(current.children))


def walk(node: Node) -> Iterator[Node]:
    """Yields the node and all of its descendants depth-first, in render order."""
    for current, _ in _walk_with_depth(node):
        yield current


def count_nodes(node: Node) -> int:
    return sum(1 for _ in walk(node))


def _elements_text(elements: Sequence[Element]) -> str:
    return " ".join(e.as_text() for e in elements)


def format_tree(node: Node, indent: int = 0) -> str:
    """Formats a tree for debugging."""
    lines = []

    for current, depth in _walk_with_depth(node):
        prefix = "  " * (indent + depth)
        if isinstance(current, TextNode):
            text_preview = repr(current.text[:50] + "..." if len(current.text) > 50 else current.text)
            lines.append(f"{prefix}TextNode({text_preview})")
        elif isinstance(current, EchoNode):
            lines.append(f"{prefix}EchoNode({_elements_text(current.elements)})")
        elif isinstance(current, ForLoopNode):
            lines.append(f"{prefix}ForLoopNode({_elements_text(current.expressions)})")
        else:
            lines.append(f"{prefix}DocumentNode")

    return "\n".join(lines)


__all__ = [
    "Node",
    "ChildNode",
    "DocumentNode",
    "TextNode",
    "EchoNode",
    "ForLoopNode",
    "walk",
    "count_nodes",
    "format_tree",
]
