# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import logging

# Create logger object
global_logger = logging.getLogger("DocxTranslateLogger")
global_logger.setLevel(logging.DEBUG)
# Output to console (stderr keeps stdout free for the JSON result)
console_handler = logging.StreamHandler()
console_handler.setLevel(logging.INFO)
console_handler.setFormatter(logging.Formatter("%(levelname)s %(message)s"))
global_logger.addHandler(console_handler)
