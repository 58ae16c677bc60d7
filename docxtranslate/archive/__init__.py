# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from docxtranslate.archive.package import DOCUMENT_XML_PATH, DocxPackage, open_docx, save_docx

__all__ = ["DOCUMENT_XML_PATH", "DocxPackage", "open_docx", "save_docx"]
