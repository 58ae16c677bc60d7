# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import asyncio
import logging
from dataclasses import dataclass
from pathlib import Path

from docxtranslate.archive.package import open_docx, save_docx
from docxtranslate.logger import global_logger
from docxtranslate.translator.batch_translator import (
    CompleteFunc,
    ProgressFunc,
    TranslateOptions,
    translate_all,
)
from docxtranslate.translator.cancellation import CallRegistry, CancellationToken
from docxtranslate.xml.extractor import extract
from docxtranslate.xml.reconstructor import reconstruct
from docxtranslate.xml.segmenter import split_paragraphs
from docxtranslate.xml.validator import check_well_formed


@dataclass(kw_only=True)
class DocxWorkflowConfig:
    input_path: str | Path
    output_path: str | Path
    target_language: str
    source_language: str | None = None
    concurrency: int = 5
    batch_size: int = 50
    max_retries: int = 2
    on_progress: ProgressFunc | None = None
    logger: logging.Logger = global_logger


@dataclass
class TranslateDocxResult:
    output_path: str
    chunks_translated: int
    target_language: str

    def to_dict(self) -> dict:
        return {
            "outputPath": self.output_path,
            "chunksTranslated": self.chunks_translated,
            "targetLanguage": self.target_language,
        }


class DocxWorkflow:
    """Open a .docx, translate the text of word/document.xml and write the result."""

    def __init__(self, config: DocxWorkflowConfig):
        self.config = config
        self.logger = config.logger

    def _progress(self, message: str):
        self.logger.debug(message)
        if self.config.on_progress:
            self.config.on_progress(message)

    async def translate_async(self, complete: CompleteFunc, cancel_token: CancellationToken | None = None,
                              registry: CallRegistry | None = None) -> TranslateDocxResult:
        config = self.config
        output_path = str(config.output_path)

        self._progress("Extracting document XML...")
        package = open_docx(config.input_path)

        self._progress("Chunking paragraphs...")
        paragraphs = split_paragraphs(package.document_xml)
        units, fragments = extract(paragraphs)
        translatable_count = sum(1 for unit in units if unit.has_text)

        if translatable_count == 0:
            self._progress("No translatable text found.")
            # still produce an output file (copy of the original)
            save_docx(package, package.document_xml, config.output_path)
            return TranslateDocxResult(output_path, 0, config.target_language)

        self._progress(f"Found {len(paragraphs)} paragraphs, {translatable_count} with text.")
        self._progress(f"Translating {translatable_count} chunks to {config.target_language}...")
        options = TranslateOptions(
            target_language=config.target_language,
            source_language=config.source_language,
            batch_size=config.batch_size,
            concurrency=config.concurrency,
            max_retries=config.max_retries,
            on_progress=config.on_progress,
            logger=self.logger,
        )
        translated_units = await translate_all(units, complete, options, cancel_token, registry)

        self._progress("Reconstructing document...")
        translated_xml = reconstruct(package.document_xml, translated_units, fragments, self.logger)
        check_well_formed(translated_xml)
        save_docx(package, translated_xml, config.output_path)

        self._progress(f"Done. Translated {translatable_count} chunks to {config.target_language}.")
        return TranslateDocxResult(output_path, translatable_count, config.target_language)

    def translate(self, complete: CompleteFunc, cancel_token: CancellationToken | None = None,
                  registry: CallRegistry | None = None) -> TranslateDocxResult:
        return asyncio.run(self.translate_async(complete, cancel_token, registry))


async def translate_docx(config: DocxWorkflowConfig, complete: CompleteFunc,
                         cancel_token: CancellationToken | None = None,
                         registry: CallRegistry | None = None) -> TranslateDocxResult:
    return await DocxWorkflow(config).translate_async(complete, cancel_token, registry)
