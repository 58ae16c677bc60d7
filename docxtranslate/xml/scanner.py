# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
"""
Single-pass tag scanner for WordprocessingML.

The scanner only tokenizes ``<...>`` constructs; character data between them
is never interpreted. Element boundaries are found by counting same-name
nesting depth, so a text box paragraph inside a run does not end the outer
paragraph early.
"""
from dataclasses import dataclass
from typing import Iterator, Literal

from docxtranslate.errors import MarkupError

TagKind = Literal["open", "close", "empty", "other"]

PARAGRAPH_TAG = "w:p"
RUN_TAG = "w:r"
TEXT_TAG = "w:t"

# prefix -> terminator for constructs that are not elements
_SPECIAL_CONSTRUCTS = (
    ("<!--", "-->"),
    ("<![CDATA[", "]]>"),
    ("<?", "?>"),
)


@dataclass(frozen=True)
class Tag:
    kind: TagKind
    name: str
    start: int
    end: int


def _scan_to_tag_end(markup: str, pos: int, limit: int) -> int:
    """Return the offset just past the ``>`` closing the tag, honouring quoted attribute values."""
    quote = None
    i = pos
    while i < limit:
        ch = markup[i]
        if quote:
            if ch == quote:
                quote = None
        elif ch == '"' or ch == "'":
            quote = ch
        elif ch == ">":
            return i + 1
        i += 1
    raise MarkupError(f"Unterminated tag starting at position {pos - 1}")


def _tag_name(body: str, start: int) -> str:
    parts = body.split(None, 1)
    if not parts:
        raise MarkupError(f"Tag without a name at position {start}")
    return parts[0]


def iter_tags(markup: str, start: int = 0, end: int | None = None) -> Iterator[Tag]:
    """Yield every tag-like construct of ``markup[start:end]`` from left to right."""
    limit = len(markup) if end is None else end
    pos = markup.find("<", start, limit)
    while pos != -1:
        for prefix, terminator in _SPECIAL_CONSTRUCTS:
            if markup.startswith(prefix, pos):
                close = markup.find(terminator, pos + len(prefix), limit)
                if close == -1:
                    raise MarkupError(f"Unterminated {prefix} construct at position {pos}")
                tag = Tag("other", "", pos, close + len(terminator))
                break
        else:
            tag_end = _scan_to_tag_end(markup, pos + 1, limit)
            body = markup[pos + 1:tag_end - 1]
            if body.startswith("!"):
                # <!DOCTYPE ...> and friends
                tag = Tag("other", "", pos, tag_end)
            elif body.startswith("/"):
                tag = Tag("close", _tag_name(body[1:], pos), pos, tag_end)
            elif body.endswith("/"):
                tag = Tag("empty", _tag_name(body[:-1], pos), pos, tag_end)
            else:
                tag = Tag("open", _tag_name(body, pos), pos, tag_end)
        yield tag
        pos = markup.find("<", tag.end, limit)


def next_tag(markup: str, names: tuple[str, ...], start: int = 0, end: int | None = None,
             kinds: tuple[TagKind, ...] = ("open", "empty")) -> Tag | None:
    for tag in iter_tags(markup, start, end):
        if tag.kind in kinds and tag.name in names:
            return tag
    return None


def match_close(markup: str, open_tag: Tag) -> Tag:
    """Find the close tag matching ``open_tag``, skipping nested elements of the same name."""
    depth = 1
    for tag in iter_tags(markup, open_tag.end):
        if tag.name != open_tag.name:
            continue
        if tag.kind == "open":
            depth += 1
        elif tag.kind == "close":
            depth -= 1
            if depth == 0:
                return tag
    raise MarkupError(f"Unclosed <{open_tag.name}> at position {open_tag.start}")


def element_end(markup: str, tag: Tag) -> int:
    if tag.kind == "empty":
        return tag.end
    return match_close(markup, tag).end
