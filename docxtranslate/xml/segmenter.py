# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from typing import Iterator

from docxtranslate.xml.scanner import PARAGRAPH_TAG, element_end, next_tag


def iter_paragraph_spans(document_xml: str) -> Iterator[tuple[int, int]]:
    """
    Yield ``(start, end)`` offsets of every outermost ``<w:p>`` element.

    Paragraphs nested in another paragraph (text boxes) are part of the outer
    block. Everything outside the yielded spans is left to the caller.
    """
    pos = 0
    while True:
        tag = next_tag(document_xml, (PARAGRAPH_TAG,), pos)
        if tag is None:
            return
        end = element_end(document_xml, tag)
        yield tag.start, end
        pos = end


def split_paragraphs(document_xml: str) -> list[str]:
    """Return the raw markup of each paragraph block, in document order."""
    return [document_xml[start:end] for start, end in iter_paragraph_spans(document_xml)]
