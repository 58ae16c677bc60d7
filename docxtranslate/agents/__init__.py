# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
from docxtranslate.agents.agent import Agent, AgentConfig

__all__ = ["Agent", "AgentConfig"]
