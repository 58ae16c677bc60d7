# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from docxtranslate.translator.batch_translator import (
    BatchTranslator,
    TranslateOptions,
    UnitState,
    translate_all,
)
from docxtranslate.translator.cancellation import CallRegistry, CancellationToken

default_params = {
    "batch_size": 50,
    "concurrent": 5,
    "max_retries": 2,
    "temperature": 0.7,
    "timeout": 1200,
    "thinking": "disable",
}

__all__ = [
    "BatchTranslator",
    "CallRegistry",
    "CancellationToken",
    "TranslateOptions",
    "UnitState",
    "default_params",
    "translate_all",
]
