# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
"""
Inverse of the extractor: turn (possibly translated) simplified paragraphs
back into WordprocessingML.

Restoration is best effort and never raises: a marker whose fragment is
unknown degrades to plain escaped text or to nothing.
"""
import logging
from typing import Sequence
from xml.sax.saxutils import escape

from docxtranslate.ir.paragraph import (
    FragmentMap,
    MARKER_PATTERN,
    MarkerFragment,
    OpaqueFragment,
    ParagraphUnit,
    STRAY_MARKER_PATTERN,
    TAG_MARKER_PATTERN,
    TextRunTemplate,
)
from docxtranslate.logger import global_logger
from docxtranslate.xml.extractor import decode_text
from docxtranslate.xml.segmenter import iter_paragraph_spans

_EXTRA_ENTITIES = {'"': "&quot;", "'": "&apos;"}


def escape_text(text: str) -> str:
    """Escape the five XML metacharacters ``& < > " '``."""
    return escape(text, _EXTRA_ENTITIES)


def _restore_run(fragment: MarkerFragment | None, text: str) -> str:
    if not isinstance(fragment, TextRunTemplate):
        return escape_text(text)
    content = fragment.source if decode_text(fragment.source) == text else escape_text(text)
    try:
        return fragment.fill(content)
    except ValueError:
        return escape_text(text)


def _restore_opaque(fragment: MarkerFragment | None) -> str:
    if isinstance(fragment, OpaqueFragment):
        return fragment.markup
    if isinstance(fragment, TextRunTemplate):
        # a run ID used as an unpaired marker: put the untouched run back
        return _restore_run(fragment, decode_text(fragment.source))
    return ""


def restore_paragraph(simplified_text: str, fragments: FragmentMap,
                      logger: logging.Logger = global_logger) -> str:
    # opaque markup as str, runs as [fragment_id, text] so loose text can still join them
    parts: list[str | list] = []
    pending = ""
    last_run: list | None = None
    pos = 0

    def attach_loose(loose: str):
        nonlocal pending
        loose = STRAY_MARKER_PATTERN.sub("", loose)
        if not loose.strip():
            return
        logger.warning(f"Text outside markers joined to the nearest run: {loose!r}")
        if last_run is not None:
            last_run[1] += loose
        else:
            pending += loose

    for match in MARKER_PATTERN.finditer(simplified_text):
        attach_loose(simplified_text[pos:match.start()])
        pos = match.end()
        if match.group(3) is not None:
            parts.append(_restore_opaque(fragments.get(int(match.group(3)))))
            continue
        text = match.group(2)
        # unpaired markers moved inside a run are put back right after it
        hoisted = [int(x) for x in TAG_MARKER_PATTERN.findall(text)]
        text = STRAY_MARKER_PATTERN.sub("", TAG_MARKER_PATTERN.sub("", text))
        last_run = [int(match.group(1)), pending + text]
        pending = ""
        parts.append(last_run)
        parts.extend(_restore_opaque(fragments.get(fragment_id)) for fragment_id in hoisted)
    attach_loose(simplified_text[pos:])
    if pending:
        logger.warning(f"Discarding text outside markers, no run to join: {pending!r}")
    return "".join(
        part if isinstance(part, str) else _restore_run(fragments.get(part[0]), part[1]) for part in parts
    )


def reconstruct(original_document: str, units: Sequence[ParagraphUnit], fragments: FragmentMap,
                logger: logging.Logger = global_logger) -> str:
    """
    Replace each paragraph of ``original_document`` that has a text-bearing
    unit with its restored markup; every other byte is copied as is.
    """
    restored_by_index = {unit.index: unit.simplified_text for unit in units if unit.has_text}
    parts = []
    pos = 0
    for index, (start, end) in enumerate(iter_paragraph_spans(original_document)):
        parts.append(original_document[pos:start])
        simplified = restored_by_index.get(index)
        if simplified is None:
            parts.append(original_document[start:end])
        else:
            parts.append(restore_paragraph(simplified, fragments, logger))
        pos = end
    parts.append(original_document[pos:])
    return "".join(parts)
