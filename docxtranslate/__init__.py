# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
__version__ = "0.1.0"

from docxtranslate.workflow import DocxWorkflow, DocxWorkflowConfig, TranslateDocxResult, translate_docx
