"""Parse DOT text back into :class:`DotGraph` values.

Covers the subset of the DOT language that :mod:`dotweave.printing` emits,
plus the common hand-written spellings of it (comments, optional separators,
edge chains, ``ID = ID`` graph attributes, string concatenation).
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Hashable, List, Optional, Tuple

from .errors import MalformedInputError
from .model import Attribute, AttributeKind, DotEdge, DotGraph, DotNode, GlobalAttributes, Statement, Subgroup
from .printing import KEYWORDS

_INTEGER = re.compile(r"-?[0-9]+\Z")
_TOKEN = re.compile(
    r"""
    (?P<ws>[ \t\r\f\v]+)
  | (?P<newline>\n)
  | (?P<line_comment>//[^\n]*)
  | (?P<block_comment>/\*.*?\*/)
  | (?P<edgeop>->|--)
  | (?P<numeral>-?(?:\.[0-9]+|[0-9]+(?:\.[0-9]*)?))
  | (?P<name>[A-Za-z_\u0080-\U0010ffff][A-Za-z0-9_\u0080-\U0010ffff]*)
  | (?P<punct>[{}\[\]=;,:+])
  | (?P<quote>")
    """,
    re.VERBOSE | re.DOTALL,
)


@dataclass
class _Token:
    kind: str  # "id", "keyword", "edgeop", a punctuation character, or "eof"
    text: str
    line: int
    column: int
    quoted: bool = False


def _read_quoted(source: str, start: int, line: int, column: int) -> Tuple[str, int, int]:
    """Read a quoted string whose opening quote is at ``start``.

    Returns the unescaped text, the index after the closing quote and the
    line number reached.
    """
    out: List[str] = []
    i = start + 1
    while i < len(source):
        ch = source[i]
        if ch == '"':
            return "".join(out), i + 1, line
        if ch == "\\" and i + 1 < len(source):
            nxt = source[i + 1]
            if nxt == "\n":
                line += 1
            elif nxt == '"' or nxt == "\\":
                out.append(nxt)
            elif nxt == "n":
                out.append("\n")
            else:
                out.append(ch + nxt)
            i += 2
            continue
        if ch == "\n":
            line += 1
        out.append(ch)
        i += 1
    raise MalformedInputError("unterminated quoted string", line=line, column=column)


def tokenize(source: str) -> List[_Token]:
    tokens: List[_Token] = []
    pos = 0
    line = 1
    line_start = 0
    while pos < len(source):
        column = pos - line_start + 1
        if source[pos] == "#" and not source[line_start:pos].strip():
            # C preprocessor output lines are ignored
            end = source.find("\n", pos)
            pos = len(source) if end == -1 else end
            continue
        match = _TOKEN.match(source, pos)
        if match is None:
            if source.startswith("/*", pos):
                raise MalformedInputError("unterminated comment", line=line, column=column)
            raise MalformedInputError(f"unexpected character {source[pos]!r}", line=line, column=column)
        kind = match.lastgroup
        text = match.group()
        if kind == "quote":
            value, end, new_line = _read_quoted(source, pos, line, column)
            tokens.append(_Token("id", value, line, column, quoted=True))
            if new_line != line:
                line = new_line
                line_start = source.rfind("\n", pos, end) + 1
            pos = end
            continue
        if kind == "newline":
            line += 1
            line_start = match.end()
        elif kind == "block_comment":
            newlines = text.count("\n")
            if newlines:
                line += newlines
                line_start = pos + text.rfind("\n") + 1
        elif kind == "edgeop":
            tokens.append(_Token("edgeop", text, line, column))
        elif kind in ("numeral", "name"):
            if kind == "name" and text.lower() in KEYWORDS:
                tokens.append(_Token("keyword", text.lower(), line, column))
            else:
                tokens.append(_Token("id", text, line, column))
        elif kind == "punct":
            tokens.append(_Token(text, text, line, column))
        pos = match.end()
    tokens.append(_Token("eof", "", line, pos - line_start + 1))
    return tokens


def _label(token: _Token) -> Hashable:
    if not token.quoted and _INTEGER.match(token.text):
        return int(token.text)
    return token.text


class _Parser:
    def __init__(self, tokens: List[_Token]) -> None:
        self.tokens = tokens
        self.index = 0
        self.directed = False

    def peek(self, offset: int = 0) -> _Token:
        return self.tokens[min(self.index + offset, len(self.tokens) - 1)]

    def advance(self) -> _Token:
        token = self.peek()
        self.index += 1
        return token

    def fail(self, message: str, token: Optional[_Token] = None) -> MalformedInputError:
        token = token or self.peek()
        return MalformedInputError(message, line=token.line, column=token.column)

    def expect(self, kind: str, what: Optional[str] = None) -> _Token:
        token = self.peek()
        if token.kind != kind:
            found = token.text or token.kind
            raise self.fail(f"expected {what or kind!r}, found {found!r}", token)
        return self.advance()

    def accept(self, kind: str) -> bool:
        if self.peek().kind == kind:
            self.index += 1
            return True
        return False

    def identifier(self) -> _Token:
        token = self.expect("id", "identifier")
        if not token.quoted or self.peek().kind != "+":
            return token
        parts = [token.text]
        while self.peek().kind == "+":
            self.advance()
            nxt = self.expect("id", "quoted string")
            if not nxt.quoted:
                raise self.fail("only quoted strings can be concatenated", nxt)
            parts.append(nxt.text)
        return _Token("id", "".join(parts), token.line, token.column, quoted=True)

    def graph(self) -> DotGraph:
        strict = False
        if self.peek().kind == "keyword" and self.peek().text == "strict":
            self.advance()
            strict = True
        head = self.expect("keyword", "graph or digraph")
        if head.text not in ("graph", "digraph"):
            raise self.fail(f"expected 'graph' or 'digraph', found {head.text!r}", head)
        self.directed = head.text == "digraph"
        identifier = None
        if self.peek().kind == "id":
            identifier = _label(self.identifier())
        statements = self.block()
        if self.peek().kind != "eof":
            raise self.fail("unexpected input after the closing brace")
        return DotGraph(strict=strict, directed=self.directed, identifier=identifier, statements=statements)

    def block(self) -> Tuple[Statement, ...]:
        self.expect("{")
        statements: List[Statement] = []
        while not self.accept("}"):
            if self.peek().kind == "eof":
                raise self.fail("missing closing brace")
            statements.extend(self.statement())
            self.accept(";")
        return tuple(statements)

    def statement(self) -> List[Statement]:
        token = self.peek()
        if token.kind == "keyword":
            if token.text == "subgraph":
                return [self.subgraph()]
            if token.text in ("graph", "node", "edge"):
                self.advance()
                return [GlobalAttributes(AttributeKind(token.text), self.attribute_lists(required=True))]
            raise self.fail(f"unexpected keyword {token.text!r}", token)
        if token.kind == "{":
            raise self.fail("anonymous subgraphs are not supported", token)
        first = self.identifier()
        if self.peek().kind == ":":
            raise self.fail("node ports are not supported")
        if self.accept("="):
            value = self.identifier()
            return [GlobalAttributes(AttributeKind.GRAPH, (Attribute(first.text, value.text),))]
        if self.peek().kind == "edgeop":
            return self.edges(first)
        return [DotNode(_label(first), self.attribute_lists())]

    def edges(self, first: _Token) -> List[Statement]:
        endpoints = [_label(first)]
        while self.peek().kind == "edgeop":
            op = self.advance()
            if op.text == "--" and self.directed:
                raise self.fail("undirected edge operator '--' in a digraph", op)
            if op.text == "->" and not self.directed:
                raise self.fail("directed edge operator '->' in an undirected graph", op)
            if self.peek().kind in ("{", "keyword"):
                raise self.fail("subgraphs as edge endpoints are not supported")
            endpoints.append(_label(self.identifier()))
            if self.peek().kind == ":":
                raise self.fail("node ports are not supported")
        attributes = self.attribute_lists()
        return [DotEdge(a, b, attributes) for a, b in zip(endpoints, endpoints[1:])]

    def subgraph(self) -> Subgroup:
        keyword = self.advance()
        if self.peek().kind != "id":
            raise self.fail("anonymous subgraphs are not supported", keyword)
        name = self.identifier()
        if not name.text.startswith("cluster"):
            raise self.fail(f"subgraph {name.text!r} is not a cluster", name)
        suffix = name.text[len("cluster_"):] if name.text.startswith("cluster_") else name.text[len("cluster"):]
        identifier: Hashable = suffix
        if not name.quoted and _INTEGER.match(suffix):
            identifier = int(suffix)
        return Subgroup(identifier, self.block())

    def attribute_lists(self, required: bool = False) -> Tuple[Attribute, ...]:
        if required and self.peek().kind != "[":
            raise self.fail("expected '['")
        attributes: List[Attribute] = []
        while self.accept("["):
            while not self.accept("]"):
                name = self.identifier()
                self.expect("=", "'='")
                value = self.identifier()
                attributes.append(Attribute(name.text, value.text))
                if not self.accept(","):
                    self.accept(";")
        return tuple(attributes)


def parse_dot(text: str) -> DotGraph:
    """Parse one DOT graph, raising :class:`MalformedInputError` on bad input."""
    return _Parser(tokenize(text)).graph()
