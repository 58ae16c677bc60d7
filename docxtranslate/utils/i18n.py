# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from __future__ import annotations

import os


MESSAGES = {
    "en": {
        "file_not_found": "File not found: {path}",
        "invalid_docx": "Invalid input document: {error}",
        "missing_model_config": "Missing model configuration: {missing}. Pass the flag or set the environment variable.",
        "env_loaded": "Loaded {count} variables from {path}",
        "signal_received": "Received signal, aborting translation...",
        "cancelled": "Translation aborted by user.",
        "malformed_output": "Refusing to write a corrupt document: {error}",
        "write_failed": "Could not write output: {error}",
        "translation_failed": "Translation failed: {error}",
    },
    "zh": {
        "file_not_found": "找不到文件: {path}",
        "invalid_docx": "输入文档无效: {error}",
        "missing_model_config": "缺少模型配置: {missing}。请传入参数或设置环境变量。",
        "env_loaded": "已从 {path} 加载 {count} 个变量",
        "signal_received": "收到信号，正在中止翻译...",
        "cancelled": "翻译已被用户中止。",
        "malformed_output": "拒绝写入损坏的文档: {error}",
        "write_failed": "无法写入输出: {error}",
        "translation_failed": "翻译失败: {error}",
    },
}


def t(key: str, *, lang: str | None = None, **kwargs) -> str:
    l = (lang or os.getenv("DOCXTRANSLATE_LANG") or "en").lower()
    if l not in MESSAGES:
        l = "en"
    msg = MESSAGES[l].get(key) or MESSAGES["en"].get(key) or key
    try:
        return msg.format(**kwargs)
    except (KeyError, IndexError):
        return msg
