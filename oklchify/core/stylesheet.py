"""
Stylesheet tree

A small mutable node tree over CSS source text. Tokenizing is delegated to
tinycss2; this module groups the tokens into rules, at-rules and
declarations and remembers the exact source span of every node, so that
``Document.serialize()`` reproduces untouched source byte-for-byte and only
emits new text for nodes that were added after parsing.
"""

from __future__ import annotations

import re
from typing import Iterator, List, Optional, Sequence, Tuple

import tinycss2

from .errors import ParseFailure

__all__ = [
    "Node",
    "Container",
    "Document",
    "Rule",
    "AtRule",
    "Declaration",
    "Comment",
    "Statement",
    "parse_stylesheet",
    "line_indent",
    "newline_style",
]

_LINE_BREAK = re.compile(r"\r\n|[\r\n\f]")
_NEWLINE = re.compile(r"\r\n|[\r\n]")
_COMMENT = re.compile(r"/\*.*?\*/", re.DOTALL)
_IMPORTANT = re.compile(r"\s*!\s*important\s*$", re.IGNORECASE)
_UNMATCHED = {"}", ")", "]"}

DEFAULT_INDENT_UNIT = "    "


class Node:
    """Base node. ``start``/``end`` are source offsets; both ``None`` for new nodes."""

    type = "node"

    def __init__(self, start: Optional[int] = None, end: Optional[int] = None) -> None:
        self.start = start
        self.end = end
        self.parent: Optional[Container] = None
        # Layout of generated nodes: text emitted before the node, its indent
        # and the indent unit used for its children.
        self.before = ""
        self.indent = ""
        self.unit = DEFAULT_INDENT_UNIT

    @property
    def is_generated(self) -> bool:
        return self.start is None

    def ancestors(self) -> Iterator["Container"]:
        current = self.parent
        while current is not None:
            yield current
            current = current.parent

    def root(self) -> Optional["Document"]:
        node: Node = self
        while node.parent is not None:
            node = node.parent
        return node if isinstance(node, Document) else None

    def next_sibling(self, significant: bool = True) -> Optional["Node"]:
        """Following sibling; comments are skipped when ``significant``."""
        if self.parent is None:
            return None
        siblings = self.parent.children
        index = siblings.index(self)
        for candidate in siblings[index + 1:]:
            if significant and isinstance(candidate, Comment):
                continue
            return candidate
        return None

    def render(self, indent: str, unit: str) -> str:
        raise NotImplementedError

    def serialize(self, source: str) -> str:
        if self.is_generated:
            text = self.before + self.render(self.indent, self.unit)
            newline = newline_style(source)
            return text if newline == "\n" else text.replace("\n", newline)
        return source[self.start:self.end]


class Container(Node):
    """A node owning an ordered list of children between ``{`` and ``}``."""

    type = "container"

    def __init__(
        self,
        start: Optional[int] = None,
        end: Optional[int] = None,
        content_start: Optional[int] = None,
        content_end: Optional[int] = None,
    ) -> None:
        super().__init__(start, end)
        self.content_start = content_start
        self.content_end = content_end
        self.children: List[Node] = []

    def append(self, node: Node) -> Node:
        node.parent = self
        self.children.append(node)
        return node

    def insert_after(self, anchor: Node, node: Node) -> Node:
        index = self.children.index(anchor)
        node.parent = self
        self.children.insert(index + 1, node)
        return node

    def walk(self) -> Iterator[Node]:
        """Depth-first, document-order iteration over all descendants."""
        for child in list(self.children):
            yield child
            if isinstance(child, Container):
                yield from child.walk()

    def walk_rules(self) -> Iterator["Rule"]:
        for node in self.walk():
            if isinstance(node, Rule):
                yield node

    def walk_declarations(self) -> Iterator["Declaration"]:
        for node in self.walk():
            if isinstance(node, Declaration):
                yield node

    def declarations(self) -> List["Declaration"]:
        """Direct declaration children, in source order."""
        return [child for child in self.children if isinstance(child, Declaration)]

    def _render_children(self, indent: str, unit: str) -> str:
        return "".join(
            "\n" + child.render(indent + unit, unit) for child in self.children
        )

    def serialize(self, source: str) -> str:
        if self.is_generated:
            return super().serialize(source)
        parts = [source[self.start:self.content_start]]
        cursor = self.content_start
        for child in self.children:
            if child.is_generated:
                parts.append(child.serialize(source))
                continue
            parts.append(source[cursor:child.start])
            parts.append(child.serialize(source))
            cursor = child.end
        parts.append(source[cursor:self.content_end])
        parts.append(source[self.content_end:self.end])
        return "".join(parts)


class Document(Container):
    type = "document"

    def __init__(self, source: str) -> None:
        super().__init__(0, len(source), 0, len(source))
        self.source = source

    def to_string(self) -> str:
        return self.serialize(self.source)

    def __str__(self) -> str:
        return self.to_string()


class Rule(Container):
    type = "rule"

    def __init__(self, selector: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.selector = selector

    def render(self, indent: str, unit: str) -> str:
        return f"{indent}{self.selector} {{{self._render_children(indent, unit)}\n{indent}}}"

    def __repr__(self) -> str:
        return f"Rule({self.selector!r})"


class AtRule(Container):
    """``@name params { ... }``; ``has_block`` is False for ``@import ...;`` forms."""

    type = "atrule"

    def __init__(self, name: str, params: str = "", has_block: bool = True, **kwargs) -> None:
        super().__init__(**kwargs)
        self.name = name
        self.params = params
        self.has_block = has_block

    @property
    def lower_name(self) -> str:
        return self.name.lower()

    def render(self, indent: str, unit: str) -> str:
        head = f"{indent}@{self.name}" + (f" {self.params}" if self.params else "")
        if not self.has_block:
            return head + ";"
        return f"{head} {{{self._render_children(indent, unit)}\n{indent}}}"

    def serialize(self, source: str) -> str:
        if not self.has_block and not self.is_generated:
            return source[self.start:self.end]
        return super().serialize(source)

    def __repr__(self) -> str:
        return f"AtRule({self.name!r}, {self.params!r})"


class Declaration(Node):
    type = "decl"

    def __init__(self, prop: str, value: str, important: bool = False, **kwargs) -> None:
        super().__init__(**kwargs)
        self.prop = prop
        self.value = value
        self.important = important

    def render(self, indent: str, unit: str) -> str:
        important = " !important" if self.important else ""
        return f"{indent}{self.prop}: {self.value}{important};"

    def __repr__(self) -> str:
        return f"Declaration({self.prop!r}, {self.value!r})"


class Comment(Node):
    type = "comment"

    def __init__(self, text: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.text = text

    def render(self, indent: str, unit: str) -> str:
        return f"{indent}/*{self.text}*/"


class Statement(Node):
    """Anything else terminated by ``;`` that is kept verbatim."""

    type = "statement"

    def __init__(self, text: str, **kwargs) -> None:
        super().__init__(**kwargs)
        self.text = text

    def render(self, indent: str, unit: str) -> str:
        return f"{indent}{self.text}"


def newline_style(source: str) -> str:
    """First line break used in ``source``; ``\\n`` when it has none."""
    match = _NEWLINE.search(source)
    return match.group(0) if match else "\n"


def line_indent(source: str, offset: int) -> str:
    """Leading whitespace of the line holding ``offset`` (empty if text precedes it)."""
    line_start = max(source.rfind("\n", 0, offset), source.rfind("\r", 0, offset)) + 1
    prefix = source[line_start:offset]
    return prefix if prefix.strip() == "" else ""


# -----------------------------
# Parsing
# -----------------------------

_Span = Tuple[object, int, int]


class _TreeBuilder:
    def __init__(self, source: str) -> None:
        self.source = source
        self._line_starts = [0] + [m.end() for m in _LINE_BREAK.finditer(source)]

    def offset(self, token) -> int:
        # tinycss2 lines/columns are 1-based over newline-normalised text;
        # normalisation never changes lengths within a line.
        return self._line_starts[token.source_line - 1] + token.source_column - 1

    def build(self) -> Document:
        tokens = tinycss2.parse_component_value_list(self.source, skip_comments=False)
        _raise_first_error(tokens)
        self._check_comments(tokens)
        document = Document(self.source)
        self._fill(document, tokens, len(self.source))
        return document

    def _check_comments(self, tokens: Sequence) -> None:
        """Raise on a comment left open at the end of the source."""
        for token in tokens:
            if token.type == "comment":
                start = self.offset(token)
                if self.source.find("*/", start + 2) == -1:
                    raise ParseFailure("Unclosed comment", token.source_line, token.source_column)
            nested = getattr(token, "content", None)
            if nested is None:
                nested = getattr(token, "arguments", None)
            if isinstance(nested, list):
                self._check_comments(nested)

    def _spans(self, tokens: Sequence, end: int) -> List[_Span]:
        starts = [self.offset(token) for token in tokens]
        stops = starts[1:] + [end]
        return list(zip(tokens, starts, stops))

    def _fill(self, container: Container, tokens: Sequence, end: int) -> None:
        segment: List[_Span] = []
        for span in self._spans(tokens, end):
            token = span[0]
            if not segment and token.type in ("whitespace", "comment"):
                if token.type == "comment":
                    container.append(Comment(token.value, start=span[1], end=span[2]))
                continue
            segment.append(span)
            if token.type == "{} block":
                container.append(self._block_node(segment))
                segment = []
            elif token.type == "literal" and token.value == ";":
                container.append(self._statement_node(segment))
                segment = []
        while segment and segment[-1][0].type in ("whitespace", "comment"):
            segment.pop()
        if segment:
            container.append(self._statement_node(segment))

    def _block_node(self, segment: List[_Span]) -> Container:
        block, block_start, block_stop = segment[-1]
        if self.source[block_stop - 1:block_stop] != "}":
            raise ParseFailure("Unclosed block", block.source_line, block.source_column)
        content_start, content_end = block_start + 1, block_stop - 1
        first, start, first_stop = segment[0]
        bounds = dict(
            start=start,
            end=block_stop,
            content_start=content_start,
            content_end=content_end,
        )
        if first.type == "at-keyword":
            params = _COMMENT.sub("", self.source[first_stop:block_start]).strip()
            node: Container = AtRule(first.value, params, **bounds)
        else:
            node = Rule(self.source[start:block_start].strip(), **bounds)
        self._fill(node, block.content, content_end)
        return node

    def _statement_node(self, segment: List[_Span]) -> Node:
        first, start, first_stop = segment[0]
        end = segment[-1][2]
        terminated = segment[-1][0].type == "literal" and segment[-1][0].value == ";"
        body_end = segment[-1][1] if terminated else end
        if first.type == "at-keyword":
            params = _COMMENT.sub("", self.source[first_stop:body_end]).strip()
            return AtRule(first.value, params, has_block=False, start=start, end=end)
        colon = self._declaration_colon(segment)
        if colon is not None:
            raw_value = _COMMENT.sub("", self.source[colon:body_end]).strip()
            important = _IMPORTANT.search(raw_value)
            if important:
                raw_value = raw_value[:important.start()].rstrip()
            return Declaration(
                self.source[start:first_stop],
                raw_value,
                important=bool(important),
                start=start,
                end=end,
            )
        return Statement(self.source[start:end], start=start, end=end)

    @staticmethod
    def _declaration_colon(segment: List[_Span]) -> Optional[int]:
        """Offset just past ``:`` when the segment reads ``<ident> :``."""
        if segment[0][0].type != "ident":
            return None
        for token, _start, stop in segment[1:]:
            if token.type in ("whitespace", "comment"):
                continue
            if token.type == "literal" and token.value == ":":
                return stop
            return None
        return None


def _raise_first_error(tokens: Sequence) -> None:
    for token in tokens:
        if token.type == "error":
            raise ParseFailure(token.message, token.source_line, token.source_column)
        if token.type == "literal" and token.value in _UNMATCHED:
            raise ParseFailure(f"Unmatched {token.value}", token.source_line, token.source_column)
        nested = getattr(token, "content", None)
        if nested is None:
            nested = getattr(token, "arguments", None)
        if isinstance(nested, list):
            _raise_first_error(nested)


def parse_stylesheet(source: str) -> Document:
    """Parse CSS text into a :class:`Document`. Raises :class:`ParseFailure`."""
    return _TreeBuilder(source).build()
