# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from docxtranslate.xml.extractor import extract
from docxtranslate.xml.reconstructor import reconstruct, restore_paragraph
from docxtranslate.xml.segmenter import split_paragraphs
from docxtranslate.xml.validator import check_well_formed

__all__ = ["check_well_formed", "extract", "reconstruct", "restore_paragraph", "split_paragraphs"]
