# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import asyncio
import logging
import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Sequence
from xml.sax.saxutils import escape, unescape

from docxtranslate.ir.paragraph import ParagraphUnit, marker_ids
from docxtranslate.logger import global_logger
from docxtranslate.translator.cancellation import CallRegistry, CancellationToken

CompleteFunc = Callable[[str], Awaitable[str]]
ProgressFunc = Callable[[str], None]

# a unit's body runs up to the last </p> before the next opening (or the end of the response)
OPENING_PATTERN = re.compile(r'<p id="(\d+)">')
CLOSING_TAG = "</p>"

TRANSLATION_PROMPT = """You are a document translator. Your task is to translate text while preserving all markup markers exactly.

Input Format:
The input contains multiple paragraphs, each wrapped in <p id="n">...</p> tags.

Rules:
- Translate the text INSIDE each <p> tag
- PRESERVE the <p id="n">...</p> wrapper tags and their IDs exactly
- Preserve ALL [RUN:nnn]...[/RUN:nnn] markers exactly: do not translate, reorder, or remove them
- Preserve ALL [TAG:nnn] markers exactly inside the text
- Do not add any explanation or commentary
- Output ONLY the translated result, maintaining the XML-like structure"""


class UnitState(Enum):
    PENDING = "pending"
    TRANSLATED = "translated"
    MISSING = "missing"
    GIVEN_UP = "given_up"


@dataclass
class UnitTracker:
    """
    Per-unit retry state.

    PENDING -> TRANSLATED | MISSING; MISSING -> TRANSLATED | MISSING | GIVEN_UP.
    A unit gives up once it has come back missing more than ``max_retries`` times.
    """
    unit: ParagraphUnit
    state: UnitState = UnitState.PENDING
    misses: int = 0
    translated: ParagraphUnit | None = None

    def accept(self, text: str):
        if self.state not in (UnitState.PENDING, UnitState.MISSING):
            raise ValueError(f"Paragraph {self.unit.index} cannot accept a translation in state {self.state.name}")
        self.translated = self.unit.with_text(text or self.unit.simplified_text)
        self.state = UnitState.TRANSLATED

    def mark_missing(self, max_retries: int):
        if self.state not in (UnitState.PENDING, UnitState.MISSING):
            raise ValueError(f"Paragraph {self.unit.index} cannot go missing in state {self.state.name}")
        self.misses += 1
        self.state = UnitState.GIVEN_UP if self.misses > max_retries else UnitState.MISSING

    @property
    def result(self) -> ParagraphUnit:
        # given-up and never-sent units keep their original text
        return self.translated if self.state is UnitState.TRANSLATED else self.unit


@dataclass(kw_only=True)
class TranslateOptions:
    target_language: str
    source_language: str | None = None
    batch_size: int = 50
    concurrency: int = 5
    max_retries: int = 2
    on_progress: ProgressFunc | None = None
    logger: logging.Logger = field(default=global_logger)

    def __post_init__(self):
        if self.batch_size < 1:
            raise ValueError("batch_size must be at least 1")
        if self.concurrency < 1:
            raise ValueError("concurrency must be at least 1")
        if self.max_retries < 0:
            raise ValueError("max_retries cannot be negative")


def build_prompt(units: Sequence[ParagraphUnit], target_language: str, source_language: str | None = None) -> str:
    lang_hint = f"from {source_language} " if source_language else ""
    # & < > are escaped so document text can never pose as a <p> wrapper
    payload = "\n".join(f'<p id="{unit.index}">{escape(unit.simplified_text)}</p>' for unit in units)
    return f"{TRANSLATION_PROMPT}\n\nTranslate the following {lang_hint}to {target_language}:\n\n{payload}"


def parse_response(response: str, requested: set[int]) -> dict[int, str]:
    """Map each requested paragraph index found in ``response`` to its translated text."""
    openings = list(OPENING_PATTERN.finditer(response))
    found: dict[int, str] = {}
    for i, match in enumerate(openings):
        index = int(match.group(1))
        if index not in requested or index in found:
            continue
        body_end = openings[i + 1].start() if i + 1 < len(openings) else len(response)
        close = response.rfind(CLOSING_TAG, match.end(), body_end)
        if close == -1:
            continue
        found[index] = unescape(response[match.end():close]).strip()
    return found


class BatchTranslator:
    """
    Send translatable paragraph units to a ``complete(prompt) -> response``
    backend in batches, ``concurrency`` batches per wave, and retry the
    units a response left out.
    """

    def __init__(self, complete: CompleteFunc, options: TranslateOptions):
        self.complete = complete
        self.options = options
        self.logger = options.logger

    def _progress(self, message: str, level: int = logging.DEBUG):
        self.logger.log(level, message)
        if self.options.on_progress:
            self.options.on_progress(message)

    def _check_markers(self, unit: ParagraphUnit, text: str):
        if not text:
            return
        expected = sorted(marker_ids(unit.simplified_text))
        received = sorted(marker_ids(text))
        if received != expected:
            lost = sorted(set(expected) - set(received))
            self.logger.warning(
                f"Paragraph {unit.index}: response markers differ from the request (lost: {lost}); "
                f"restoring on a best-effort basis"
            )

    async def _send_batch(self, batch: list[UnitTracker]) -> dict[int, str]:
        units = [tracker.unit for tracker in batch]
        prompt = build_prompt(units, self.options.target_language, self.options.source_language)
        response = await self.complete(prompt)
        return parse_response(response, {unit.index for unit in units})

    async def _run_waves(self, batches: list[list[UnitTracker]], cancel_token: CancellationToken,
                         registry: CallRegistry):
        concurrency = self.options.concurrency
        for start in range(0, len(batches), concurrency):
            cancel_token.raise_if_cancelled()
            wave = batches[start:start + concurrency]
            tasks = [asyncio.create_task(self._send_batch(batch)) for batch in wave]
            for task in tasks:
                registry.register(task)
            try:
                outcomes = await asyncio.gather(*tasks, return_exceptions=True)
            finally:
                for task in tasks:
                    registry.discard(task)
            # results of a wave that finished after cancellation are discarded
            cancel_token.raise_if_cancelled()

            for batch, outcome in zip(wave, outcomes):
                if isinstance(outcome, BaseException):
                    indices = [tracker.unit.index for tracker in batch]
                    self.logger.error(f"Batch translation failed for paragraphs {indices}: {outcome!r}")
                    outcome = {}
                for tracker in batch:
                    text = outcome.get(tracker.unit.index)
                    if text is None:
                        tracker.mark_missing(self.options.max_retries)
                    else:
                        self._check_markers(tracker.unit, text)
                        tracker.accept(text)

    async def translate_all(self, units: Sequence[ParagraphUnit], cancel_token: CancellationToken | None = None,
                            registry: CallRegistry | None = None) -> list[ParagraphUnit]:
        cancel_token = cancel_token or CancellationToken()
        registry = registry or CallRegistry()
        cancel_token.raise_if_cancelled()
        results = list(units)
        position = {unit.index: pos for pos, unit in enumerate(units)}

        trackers = [UnitTracker(unit) for unit in units if unit.is_translatable]
        batch_size = self.options.batch_size
        batches = [trackers[i:i + batch_size] for i in range(0, len(trackers), batch_size)]
        self.logger.info(
            f"Scheduling {len(trackers)} paragraphs in {len(batches)} batches; concurrency: {self.options.concurrency}"
        )
        await self._run_waves(batches, cancel_token, registry)

        attempt = 0
        while missing := [tracker for tracker in trackers if tracker.state is UnitState.MISSING]:
            attempt += 1
            indices = [tracker.unit.index for tracker in missing]
            self._progress(
                f"Retry {attempt}/{self.options.max_retries}: {len(missing)} paragraphs missing from response {indices}",
                logging.WARNING,
            )
            # one unit per batch on retry
            await self._run_waves([[tracker] for tracker in missing], cancel_token, registry)

        given_up = [tracker.unit.index for tracker in trackers if tracker.state is UnitState.GIVEN_UP]
        if given_up:
            self._progress(
                f"Warning: {len(given_up)} paragraphs kept their original text after retries: {given_up}",
                logging.WARNING,
            )

        for tracker in trackers:
            results[position[tracker.unit.index]] = tracker.result
        return results


async def translate_all(units: Sequence[ParagraphUnit], complete: CompleteFunc, options: TranslateOptions,
                        cancel_token: CancellationToken | None = None,
                        registry: CallRegistry | None = None) -> list[ParagraphUnit]:
    return await BatchTranslator(complete, options).translate_all(units, cancel_token, registry)
