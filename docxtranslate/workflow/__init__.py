# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from docxtranslate.workflow.docx_workflow import DocxWorkflow, DocxWorkflowConfig, TranslateDocxResult, translate_docx

__all__ = ["DocxWorkflow", "DocxWorkflowConfig", "TranslateDocxResult", "translate_docx"]
