# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from docxtranslate.logger.logger import global_logger, console_handler

__all__ = ["global_logger", "console_handler"]
