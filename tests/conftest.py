from __future__ import annotations

import re
import sys
from pathlib import Path
from xml.sax.saxutils import escape, unescape

import pytest


def pytest_configure() -> None:
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))


PAYLOAD_LINE = re.compile(r'<p id="\d+">[\s\S]*?</p>')
RUN_MARKER = re.compile(r"\[RUN:(\d+)\]([\s\S]*?)\[/RUN:\1\]")


def payload_lines(prompt: str) -> list[str]:
    return PAYLOAD_LINE.findall(prompt)


def make_backend(transform=lambda text: text, calls: list | None = None):
    """A fake translation backend that rewrites the text inside each run marker."""

    def rewrite(match: re.Match) -> str:
        text = escape(transform(unescape(match.group(2))))
        return f"[RUN:{match.group(1)}]{text}[/RUN:{match.group(1)}]"

    async def complete(prompt: str) -> str:
        if calls is not None:
            calls.append(prompt)
        return "\n".join(RUN_MARKER.sub(rewrite, line) for line in payload_lines(prompt))

    return complete


def make_echo_backend(calls: list | None = None):
    """A backend that answers with the prompt itself, byte for byte."""

    async def complete(prompt: str) -> str:
        if calls is not None:
            calls.append(prompt)
        return prompt

    return complete


@pytest.fixture
def sample_docx(tmp_path):
    import docx

    document = docx.Document()
    paragraph = document.add_paragraph("Hello ")
    paragraph.add_run("World").bold = True
    document.add_paragraph("")
    document.add_paragraph("Fish & Chips")
    path = tmp_path / "sample.docx"
    document.save(str(path))
    return path
