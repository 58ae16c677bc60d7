# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
"""
Separate translatable text from WordprocessingML structure.

Every paragraph block is rewritten as a simplified string in which each text
node becomes ``[RUN:n]text[/RUN:n]`` and every other non-whitespace span
becomes ``[TAG:n]``. The markup a marker stands for is kept in a fragment map
keyed by ``n``; IDs are unique across the whole document.
"""
import html
import itertools
from dataclasses import dataclass, replace
from typing import Iterator, Sequence

from docxtranslate.ir.paragraph import (
    FragmentMap,
    OpaqueFragment,
    ParagraphUnit,
    TEXT_PLACEHOLDER,
    TextRunTemplate,
    run_marker,
    tag_marker,
)
from docxtranslate.xml.scanner import PARAGRAPH_TAG, RUN_TAG, TEXT_TAG, element_end, match_close, next_tag


@dataclass(frozen=True)
class _TextNode:
    start: int
    content_start: int
    content_end: int
    end: int


def decode_text(raw: str) -> str:
    return html.unescape(raw)


def _text_nodes(block: str, start: int, end: int) -> Iterator[_TextNode]:
    """Text nodes of ``block[start:end]``, skipping the ones of nested paragraphs."""
    pos = start
    while True:
        tag = next_tag(block, (TEXT_TAG, PARAGRAPH_TAG), pos, end, kinds=("open",))
        if tag is None:
            return
        if tag.name == PARAGRAPH_TAG:
            pos = element_end(block, tag)
            continue
        close = match_close(block, tag)
        yield _TextNode(tag.start, tag.end, close.start, close.end)
        pos = close.end


def _runs(block: str, start: int) -> Iterator[tuple[int, int]]:
    pos = start
    while True:
        tag = next_tag(block, (RUN_TAG, PARAGRAPH_TAG), pos)
        if tag is None:
            return
        end = element_end(block, tag)
        if tag.name == RUN_TAG:
            yield tag.start, end
        pos = end


def paragraph_text(block: str) -> str:
    opening = next_tag(block, (PARAGRAPH_TAG,))
    if opening is None or opening.kind == "empty":
        return ""
    return "".join(
        decode_text(block[node.content_start:node.content_end])
        for node in _text_nodes(block, opening.end, len(block))
    )


class _ParagraphBuilder:
    def __init__(self, block: str, fragments: FragmentMap, ids: Iterator[int]):
        self.block = block
        self.fragments = fragments
        self.ids = ids
        self.parts: list[str] = []
        self.last_id: int | None = None

    def _store(self, fragment) -> int:
        fragment_id = next(self.ids)
        self.fragments[fragment_id] = fragment
        self.last_id = fragment_id
        return fragment_id

    def add_span(self, start: int, end: int):
        span = self.block[start:end]
        if not span:
            return
        if span.strip():
            self.parts.append(tag_marker(self._store(OpaqueFragment(span))))
        elif self.last_id is not None:
            # whitespace between runs carries no marker; it rides on the previous fragment
            previous = self.fragments[self.last_id]
            if isinstance(previous, OpaqueFragment):
                self.fragments[self.last_id] = OpaqueFragment(previous.markup + span)
            else:
                self.fragments[self.last_id] = replace(previous, after=previous.after + span)

    def add_run(self, start: int, end: int):
        nodes = list(_text_nodes(self.block, start, end))
        if not nodes:
            self.parts.append(tag_marker(self._store(OpaqueFragment(self.block[start:end]))))
            return
        prefix_start = start
        for i, node in enumerate(nodes):
            raw = self.block[node.content_start:node.content_end]
            template = self.block[node.start:node.content_start] + TEXT_PLACEHOLDER + self.block[node.content_end:node.end]
            after = self.block[node.end:end] if i == len(nodes) - 1 else ""
            fragment_id = self._store(TextRunTemplate(
                before=self.block[prefix_start:node.start],
                after=after,
                template=template,
                source=raw,
            ))
            self.parts.append(run_marker(fragment_id, decode_text(raw)))
            prefix_start = node.end

    def build(self) -> str:
        opening = next_tag(self.block, (PARAGRAPH_TAG,))
        pos = 0
        for run_start, run_end in _runs(self.block, opening.end):
            self.add_span(pos, run_start)
            self.add_run(run_start, run_end)
            pos = run_end
        self.add_span(pos, len(self.block))
        return "".join(self.parts)


def extract(paragraph_blocks: Sequence[str]) -> tuple[list[ParagraphUnit], FragmentMap]:
    """
    Build one ParagraphUnit per block plus the shared ID -> fragment map.

    Paragraphs without non-whitespace text get an empty simplified text and
    allocate no IDs.
    """
    fragments: FragmentMap = {}
    ids = itertools.count(1)
    units = []
    for index, block in enumerate(paragraph_blocks):
        if not paragraph_text(block).strip():
            units.append(ParagraphUnit(index=index, simplified_text="", has_text=False))
            continue
        simplified = _ParagraphBuilder(block, fragments, ids).build()
        units.append(ParagraphUnit(index=index, simplified_text=simplified, has_text=True))
    return units, fragments
