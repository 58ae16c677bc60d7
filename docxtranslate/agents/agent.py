# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0

import logging
import os
from dataclasses import dataclass
from typing import Literal, Self
from urllib.parse import urlparse

import httpx

from docxtranslate.logger import global_logger

ThinkingMode = Literal["enable", "disable", "default"]

SYSTEM_PROMPT = "You are a professional machine translation engine."


@dataclass(kw_only=True)
class AgentConfig:
    logger: logging.Logger = global_logger
    base_url: str
    api_key: str | None = None
    model_id: str
    temperature: float = 0.7
    concurrent: int = 5
    timeout: int = 1200  # seconds (httpx read timeout)
    thinking: ThinkingMode = "disable"
    system_proxy_enable: bool = False


def extract_token_info(response_data: dict) -> tuple[int, int, int, int]:
    """
    Extract token usage from an OpenAI-compatible response.

    Returns:
        tuple: (input_tokens, cached_tokens, output_tokens, reasoning_tokens)
    """
    usage = response_data.get("usage")
    if not isinstance(usage, dict):
        return 0, 0, 0, 0
    input_tokens = usage.get("prompt_tokens", 0) or 0
    output_tokens = usage.get("completion_tokens", 0) or 0

    cached_tokens = 0
    for details_key in ("input_tokens_details", "prompt_tokens_details"):
        details = usage.get(details_key)
        if isinstance(details, dict) and "cached_tokens" in details:
            cached_tokens = details["cached_tokens"] or 0
            break
    else:
        cached_tokens = usage.get("prompt_cache_hit_tokens", 0) or 0

    reasoning_tokens = 0
    for details_key in ("output_tokens_details", "completion_tokens_details"):
        details = usage.get(details_key)
        if isinstance(details, dict) and "reasoning_tokens" in details:
            reasoning_tokens = details["reasoning_tokens"] or 0
            break
    return input_tokens, cached_tokens, output_tokens, reasoning_tokens


class TokenCounter:
    def __init__(self):
        self.input_tokens = 0
        self.cached_tokens = 0
        self.output_tokens = 0
        self.reasoning_tokens = 0

    def add(self, input_tokens: int, cached_tokens: int, output_tokens: int, reasoning_tokens: int):
        self.input_tokens += input_tokens
        self.cached_tokens += cached_tokens
        self.output_tokens += output_tokens
        self.reasoning_tokens += reasoning_tokens

    @property
    def total_tokens(self) -> int:
        return self.input_tokens + self.output_tokens

    def summary(self) -> str:
        return (
            f"Token usage - input: {self.input_tokens / 1000:.2f}K (cached: {self.cached_tokens / 1000:.2f}K), "
            f"output: {self.output_tokens / 1000:.2f}K (reasoning: {self.reasoning_tokens / 1000:.2f}K), "
            f"total: {self.total_tokens / 1000:.2f}K"
        )


class Agent:
    """
    Stateless OpenAI-compatible chat-completions backend.

    Use as an async context manager; every complete_async() call is one
    independent request over the shared client.
    """
    _think_factory = {
        "open.bigmodel.cn": ("thinking", {"type": "enabled"}, {"type": "disabled"}),
        "dashscope.aliyuncs.com": (
            "extra_body",
            {"enable_thinking": True},
            {"enable_thinking": False},
        ),
        "generativelanguage.googleapis.com": (
            "extra_body",
            {"google": {"thinking_config": {"thinking_budget": -1, "include_thoughts": True}}},
            {"google": {"thinking_config": {"thinking_budget": 0, "include_thoughts": False}}},
        ),
        "api.siliconflow.cn": ("enable_thinking", True, False),
    }

    def __init__(self, config: AgentConfig, transport: httpx.AsyncBaseTransport | None = None):
        self.baseurl = config.base_url.strip().rstrip("/")
        self.domain = urlparse(self.baseurl).netloc
        self.key = config.api_key.strip() if config.api_key else "xx"
        self.model_id = config.model_id.strip()
        self.system_prompt = SYSTEM_PROMPT
        self.temperature = config.temperature
        self.max_concurrent = config.concurrent
        self.timeout = httpx.Timeout(connect=5, read=config.timeout, write=300, pool=10)
        self.thinking = config.thinking
        self.logger = config.logger
        self.system_proxy_enable = config.system_proxy_enable
        self.token_counter = TokenCounter()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    def _add_thinking_mode(self, data: dict):
        if self.domain not in self._think_factory:
            return
        field_thinking, val_enable, val_disable = self._think_factory[self.domain]
        if self.thinking == "enable":
            data[field_thinking] = val_enable
        elif self.thinking == "disable":
            data[field_thinking] = val_disable

    def _prepare_request_data(self, prompt: str, top_p=0.9) -> tuple[dict, dict]:
        headers = {
            "Content-Type": "application/json",
            "Authorization": f"Bearer {self.key}",
        }
        if self.domain == "generativelanguage.googleapis.com":
            # Gemini OpenAI-compatible endpoint expects x-goog-api-key
            headers.pop("Authorization", None)
            headers["x-goog-api-key"] = self.key
        elif self.domain.endswith("openrouter.ai"):
            ref = os.getenv("OPENROUTER_REFERRER") or os.getenv("HTTP_REFERER")
            title = os.getenv("OPENROUTER_TITLE")
            if ref:
                headers["HTTP-Referer"] = ref
            if title:
                headers["X-Title"] = title
        data = {
            "model": self.model_id,
            "messages": [
                {"role": "system", "content": self.system_prompt},
                {"role": "user", "content": prompt},
            ],
            "temperature": self.temperature,
            "top_p": top_p,
        }
        if self.thinking != "default":
            self._add_thinking_mode(data)
        return headers, data

    async def __aenter__(self) -> Self:
        limits = httpx.Limits(
            max_connections=self.max_concurrent * 2,
            max_keepalive_connections=self.max_concurrent,
        )
        self._client = httpx.AsyncClient(
            trust_env=self.system_proxy_enable, limits=limits, transport=self._transport
        )
        self.logger.info(
            f"base-url:{self.baseurl}, model-id:{self.model_id}, concurrent:{self.max_concurrent}, "
            f"temperature:{self.temperature}, system_proxy:{self.system_proxy_enable}"
        )
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        self.logger.info(self.token_counter.summary())

    async def complete_async(self, prompt: str) -> str:
        """Send one prompt and return the assistant text. Transport and HTTP errors propagate."""
        if self._client is None:
            raise RuntimeError("Agent client is not open; use 'async with Agent(config) as agent'")
        headers, data = self._prepare_request_data(prompt)
        try:
            response = await self._client.post(
                f"{self.baseurl}/chat/completions",
                json=data,
                headers=headers,
                timeout=self.timeout,
            )
            response.raise_for_status()
            response_data = response.json()
            result = response_data["choices"][0]["message"]["content"]
        except httpx.HTTPStatusError as e:
            self.logger.error(f"HTTP status error: {e.response.status_code} - {e.response.text}")
            raise
        except httpx.RequestError as e:
            self.logger.error(f"Request error: {e!r}")
            raise
        except (KeyError, IndexError, TypeError, ValueError) as e:
            self.logger.error(f"Response format/value error: {e!r}")
            raise

        self.token_counter.add(*extract_token_info(response_data))
        return result or ""
