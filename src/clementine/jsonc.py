"""
JSON-with-comments support for wrangler config files.

`parse_tree()` builds a node tree that keeps source offsets, tolerating `//` and
`/* */` comments, trailing commas and a leading BOM. `append_array_item()`
computes a minimal splice that appends one value to an array addressed by a key
path, creating missing intermediate objects and arrays. Every byte outside the
splice is left untouched, so comments and formatting survive.
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any

_WS = " \t\r\n"
_NUMBER_RE = re.compile(r"-?(?:0|[1-9][0-9]*)(?:\.[0-9]+)?(?:[eE][+-]?[0-9]+)?")
_LITERALS: dict[str, Any] = {"true": True, "false": False, "null": None}
_DEFAULT_INDENT = "  "


class JsoncParseError(ValueError):
    def __init__(self, message: str, *, offset: int, text: str) -> None:
        line = text.count("\n", 0, offset) + 1
        column = offset - (text.rfind("\n", 0, offset) + 1) + 1
        super().__init__(f"{message} at line {line}, column {column}")
        self.offset = offset
        self.line = line
        self.column = column


class JsoncEditError(ValueError):
    pass


@dataclass
class Node:
    kind: str
    start: int
    end: int
    value: Any = None
    items: list[Node] = field(default_factory=list)
    members: list[Member] = field(default_factory=list)


@dataclass
class Member:
    key: str
    start: int
    end: int
    value: Node


class _Parser:
    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def fail(self, message: str, offset: int | None = None) -> JsoncParseError:
        return JsoncParseError(message, offset=self.pos if offset is None else offset, text=self.text)

    def skip_trivia(self) -> None:
        self.pos = skip_trivia(self.text, self.pos)

    def peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def parse_document(self) -> Node:
        if self.text.startswith("\ufeff"):
            self.pos = 1
        self.skip_trivia()
        if self.pos >= len(self.text):
            raise self.fail("Empty document")
        node = self.parse_value()
        self.skip_trivia()
        if self.pos < len(self.text):
            raise self.fail("Unexpected content after document")
        return node

    def parse_value(self) -> Node:
        ch = self.peek()
        if ch == "{":
            return self.parse_object()
        if ch == "[":
            return self.parse_array()
        if ch == '"':
            start = self.pos
            value = self.parse_string()
            return Node("string", start, self.pos, value=value)
        if ch == "-" or ch.isdigit():
            match = _NUMBER_RE.match(self.text, self.pos)
            if match is None:
                raise self.fail("Invalid number")
            start = self.pos
            self.pos = match.end()
            return Node("number", start, self.pos, value=json.loads(match.group(0)))
        for literal, value in _LITERALS.items():
            if self.text.startswith(literal, self.pos):
                start = self.pos
                self.pos += len(literal)
                kind = "null" if value is None else "boolean"
                return Node(kind, start, self.pos, value=value)
        if not ch:
            raise self.fail("Unexpected end of document")
        raise self.fail(f"Unexpected character {ch!r}")

    def parse_string(self) -> str:
        start = self.pos
        i = self.pos + 1
        while i < len(self.text):
            ch = self.text[i]
            if ch == "\\":
                i += 2
                continue
            if ch == '"':
                self.pos = i + 1
                try:
                    return json.loads(self.text[start : self.pos])
                except json.JSONDecodeError as e:
                    raise self.fail(f"Invalid string ({e.msg})", start) from e
            if ch == "\n":
                break
            i += 1
        raise self.fail("Unterminated string", start)

    def parse_array(self) -> Node:
        node = Node("array", self.pos, self.pos)
        self.pos += 1
        self.skip_trivia()
        while self.peek() != "]":
            if not self.peek():
                raise self.fail("Unterminated array", node.start)
            node.items.append(self.parse_value())
            self.skip_trivia()
            if self.peek() == ",":
                self.pos += 1
                self.skip_trivia()
            elif self.peek() != "]":
                raise self.fail("Expected ',' or ']'")
        self.pos += 1
        node.end = self.pos
        return node

    def parse_object(self) -> Node:
        node = Node("object", self.pos, self.pos)
        self.pos += 1
        self.skip_trivia()
        while self.peek() != "}":
            if not self.peek():
                raise self.fail("Unterminated object", node.start)
            if self.peek() != '"':
                raise self.fail("Expected property name")
            key_start = self.pos
            key = self.parse_string()
            self.skip_trivia()
            if self.peek() != ":":
                raise self.fail("Expected ':'")
            self.pos += 1
            self.skip_trivia()
            value = self.parse_value()
            node.members.append(Member(key=key, start=key_start, end=value.end, value=value))
            self.skip_trivia()
            if self.peek() == ",":
                self.pos += 1
                self.skip_trivia()
            elif self.peek() != "}":
                raise self.fail("Expected ',' or '}'")
        self.pos += 1
        node.end = self.pos
        return node


def skip_trivia(text: str, pos: int) -> int:
    """Return the first offset at or after `pos` that is not whitespace or a comment."""
    n = len(text)
    while pos < n:
        ch = text[pos]
        if ch in _WS:
            pos += 1
        elif text.startswith("//", pos):
            newline = text.find("\n", pos)
            pos = n if newline == -1 else newline
        elif text.startswith("/*", pos):
            close = text.find("*/", pos + 2)
            if close == -1:
                raise JsoncParseError("Unterminated block comment", offset=pos, text=text)
            pos = close + 2
        else:
            break
    return pos


def parse_tree(text: str) -> Node:
    try:
        return _Parser(text).parse_document()
    except RecursionError as e:
        raise JsoncParseError("Document is nested too deeply", offset=0, text=text) from e


def to_value(node: Node) -> Any:
    if node.kind == "object":
        # Duplicate keys: last one wins, as in JSON.parse.
        return {m.key: to_value(m.value) for m in node.members}
    if node.kind == "array":
        return [to_value(item) for item in node.items]
    return node.value


def loads(text: str) -> Any:
    tree = parse_tree(text)
    try:
        return to_value(tree)
    except RecursionError as e:
        raise JsoncParseError("Document is nested too deeply", offset=0, text=text) from e


def find_member(node: Node, key: str) -> Member | None:
    found: Member | None = None
    for member in node.members:
        if member.key == key:
            found = member
    return found


def find_node(root: Node, path: Sequence[str]) -> Node | None:
    node = root
    for key in path:
        if node.kind != "object":
            return None
        member = find_member(node, key)
        if member is None:
            return None
        node = member.value
    return node


# ---------------------------------------------------------------------------
# Editing


@dataclass(frozen=True)
class Edit:
    offset: int
    length: int
    content: str


def apply_edits(text: str, edits: Sequence[Edit]) -> str:
    out = text
    for edit in sorted(edits, key=lambda e: e.offset, reverse=True):
        out = out[: edit.offset] + edit.content + out[edit.offset + edit.length :]
    return out


def detect_indent_unit(text: str) -> str:
    for line in text.splitlines():
        stripped = line.lstrip(" \t")
        if not stripped or len(stripped) == len(line):
            continue
        if stripped.startswith(("*", "//")):
            continue
        leading = line[: len(line) - len(stripped)]
        return "\t" if leading.startswith("\t") else leading
    return _DEFAULT_INDENT


def detect_eol(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def _line_indent(text: str, offset: int) -> str:
    line_start = text.rfind("\n", 0, offset) + 1
    i = line_start
    while i < len(text) and text[i] in " \t":
        i += 1
    return text[line_start:i]


def _starts_line(text: str, offset: int) -> bool:
    line_start = text.rfind("\n", 0, offset) + 1
    return text[line_start:offset].strip(" \t") == ""


def _render(value: Any, *, indent: str | None, unit: str, eol: str) -> str:
    if indent is None:
        return json.dumps(value, ensure_ascii=False, separators=(", ", ": "))
    rendered = json.dumps(value, ensure_ascii=False, indent=unit)
    return rendered.replace("\n", eol + indent)


def _render_member(key: str | None, value: Any, *, indent: str | None, unit: str, eol: str) -> str:
    body = _render(value, indent=indent, unit=unit, eol=eol)
    if key is None:
        return body
    return f"{json.dumps(key, ensure_ascii=False)}: {body}"


def _insert_child_edits(text: str, container: Node, key: str | None, value: Any) -> list[Edit]:
    """
    Edits that append one element (array) or member (object) to `container`.

    Multi-line containers get the new child on its own line, indented like the
    existing children. Single-line containers stay on one line, except empty ones,
    which are expanded.
    """

    unit = detect_indent_unit(text)
    eol = detect_eol(text)
    close = container.end - 1
    spans: list[tuple[int, int]] = (
        [(m.start, m.end) for m in container.members]
        if container.kind == "object"
        else [(n.start, n.end) for n in container.items]
    )
    multiline = "\n" in text[container.start : close]
    container_indent = _line_indent(text, container.start)

    if not spans:
        child_indent = container_indent + unit
        member = _render_member(key, value, indent=child_indent, unit=unit, eol=eol)
        insert_at = close
        while insert_at > container.start + 1 and text[insert_at - 1] in _WS:
            insert_at -= 1
        if multiline:
            return [Edit(insert_at, 0, eol + child_indent + member)]
        return [Edit(insert_at, close - insert_at, eol + child_indent + member + eol + container_indent)]

    last_start, last_end = spans[-1]
    after_last = skip_trivia(text, last_end)
    trailing_comma = after_last < close and text[after_last] == ","

    if not multiline:
        member = _render_member(key, value, indent=None, unit=unit, eol=eol)
        if trailing_comma:
            return [Edit(after_last + 1, 0, " " + member)]
        return [Edit(last_end, 0, ", " + member)]

    if _starts_line(text, last_start):
        child_indent = _line_indent(text, last_start)
    else:
        child_indent = container_indent + unit
    member = _render_member(key, value, indent=child_indent, unit=unit, eol=eol)

    insert_at = close
    while insert_at > last_end and text[insert_at - 1] in _WS:
        insert_at -= 1
    edits = [Edit(insert_at, 0, eol + child_indent + member)]
    if not trailing_comma:
        edits.append(Edit(last_end, 0, ","))
    return edits


def _replace_value_edits(text: str, node: Node, value: Any) -> list[Edit]:
    unit = detect_indent_unit(text)
    eol = detect_eol(text)
    multiline = "\n" in text
    indent = _line_indent(text, node.start) if multiline else None
    return [Edit(node.start, node.end - node.start, _render(value, indent=indent, unit=unit, eol=eol))]


def append_array_item_edits(text: str, path: Sequence[str], item: Any) -> list[Edit]:
    if not path:
        raise JsoncEditError("Empty key path")
    root = parse_tree(text)
    if root.kind != "object":
        raise JsoncEditError("Document root must be an object")

    node = root
    for idx, key in enumerate(path):
        member = find_member(node, key)
        remaining = list(path[idx + 1 :])
        if member is None:
            value: Any = [item]
            for inner_key in reversed(remaining):
                value = {inner_key: value}
            return _insert_child_edits(text, node, key, value)
        child = member.value
        if not remaining:
            if child.kind == "array":
                return _insert_child_edits(text, child, None, item)
            if child.kind == "null":
                return _replace_value_edits(text, child, [item])
            raise JsoncEditError(f"Expected array at {'.'.join(path)}, found {child.kind}")
        if child.kind == "null":
            value = [item]
            for inner_key in reversed(remaining):
                value = {inner_key: value}
            return _replace_value_edits(text, child, value)
        if child.kind != "object":
            raise JsoncEditError(f"Expected object at {'.'.join(path[: idx + 1])}, found {child.kind}")
        node = child
    raise JsoncEditError("unreachable")  # pragma: no cover


def append_array_item(text: str, path: Sequence[str], item: Any) -> str:
    return apply_edits(text, append_array_item_edits(text, path, item))


__all__ = [
    "Edit",
    "JsoncEditError",
    "JsoncParseError",
    "Member",
    "Node",
    "append_array_item",
    "append_array_item_edits",
    "apply_edits",
    "find_member",
    "find_node",
    "loads",
    "parse_tree",
    "skip_trivia",
    "to_value",
]
