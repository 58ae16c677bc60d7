# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from docxtranslate.ir.paragraph import (
    FragmentMap,
    MarkerFragment,
    OpaqueFragment,
    ParagraphUnit,
    TextRunTemplate,
)

__all__ = ["FragmentMap", "MarkerFragment", "OpaqueFragment", "ParagraphUnit", "TextRunTemplate"]
