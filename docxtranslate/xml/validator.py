# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from docxtranslate.errors import MalformedMarkupError
from docxtranslate.xml.scanner import iter_tags

_CONTEXT_CHARS = 80


def check_well_formed(markup: str) -> None:
    """
    Verify that every open tag has a matching close tag and vice versa.

    Raises MalformedMarkupError on the first mismatch so a corrupt document
    is never written.
    """
    stack: list[str] = []
    for tag in iter_tags(markup):
        if tag.kind == "open":
            stack.append(tag.name)
        elif tag.kind == "close":
            expected = stack.pop() if stack else None
            if expected != tag.name:
                context = markup[max(0, tag.start - _CONTEXT_CHARS):tag.start + _CONTEXT_CHARS]
                raise MalformedMarkupError(
                    f"Malformed XML: closing </{tag.name}> but expected </{expected or '?'}> "
                    f"near position {tag.start}\nContext: ...{context}...",
                    position=tag.start,
                )
    if stack:
        raise MalformedMarkupError(f"Malformed XML: unclosed tags: {', '.join(stack)}")
