# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import re
from dataclasses import dataclass, replace
from typing import Self

TEXT_PLACEHOLDER = "{{TEXT}}"

# [RUN:n]text[/RUN:n] wraps translatable text, [TAG:n] stands for an opaque span
MARKER_PATTERN = re.compile(r"\[RUN:(\d+)\]([\s\S]*?)\[/RUN:\1\]|\[TAG:(\d+)\]")
TAG_MARKER_PATTERN = re.compile(r"\[TAG:(\d+)\]")
STRAY_MARKER_PATTERN = re.compile(r"\[/?RUN:\d+\]")


def run_marker(fragment_id: int, text: str) -> str:
    return f"[RUN:{fragment_id}]{text}[/RUN:{fragment_id}]"


def tag_marker(fragment_id: int) -> str:
    return f"[TAG:{fragment_id}]"


@dataclass(frozen=True)
class ParagraphUnit:
    """
    One paragraph block of the document, in source order.

    ``index`` is the join key through the whole pipeline and is never renumbered.
    """
    index: int
    simplified_text: str
    has_text: bool

    def with_text(self, simplified_text: str) -> Self:
        return replace(self, simplified_text=simplified_text, has_text=True)

    @property
    def is_translatable(self) -> bool:
        return self.has_text and bool(self.simplified_text.strip())


@dataclass(frozen=True)
class OpaqueFragment:
    markup: str


@dataclass(frozen=True)
class TextRunTemplate:
    """
    Markup around one text node.

    ``template`` is the text node itself with its content replaced by
    TEXT_PLACEHOLDER at the content's position; ``source`` keeps the raw
    (still escaped) content so an unchanged text is written back byte-exact.
    """
    before: str
    after: str
    template: str
    source: str = ""

    def fill(self, escaped_text: str) -> str:
        head, sep, tail = self.template.partition(TEXT_PLACEHOLDER)
        if not sep:
            raise ValueError("template has no text placeholder")
        return self.before + head + escaped_text + tail + self.after


MarkerFragment = OpaqueFragment | TextRunTemplate
FragmentMap = dict[int, MarkerFragment]


def marker_ids(simplified_text: str) -> list[int]:
    """IDs referenced by the markers of a simplified text, left to right."""
    ids = []
    for match in MARKER_PATTERN.finditer(simplified_text):
        ids.append(int(match.group(1) or match.group(3)))
        if match.group(2):
            ids.extend(int(x) for x in TAG_MARKER_PATTERN.findall(match.group(2)))
    return ids
