# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0


class DocxTranslateError(Exception):
    """Base class for every fatal error raised by docxtranslate."""


class DocxFormatError(DocxTranslateError):
    """The input is not a readable .docx package or lacks word/document.xml."""


class MarkupError(DocxTranslateError):
    """The scanner hit a construct it cannot tokenize (e.g. an unterminated tag)."""


class MalformedMarkupError(MarkupError):
    """Open/close tags of the rebuilt document do not nest."""

    def __init__(self, message: str, position: int | None = None):
        super().__init__(message)
        self.position = position


class TranslationCancelledError(DocxTranslateError):
    """The shared cancellation token was signaled; no partial result exists."""
