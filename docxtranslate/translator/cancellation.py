# SPDX-FileCopyrightText: 2025 RealTimeX
# SPDX-License-Identifier: MPL-2.0
import asyncio

from docxtranslate.errors import TranslationCancelledError


class CancellationToken:
    """A one-way flag shared by the caller and the orchestrator."""

    def __init__(self):
        self._cancelled = False
        self.reason: str | None = None

    def cancel(self, reason: str = "Translation aborted"):
        self._cancelled = True
        self.reason = reason

    @property
    def cancelled(self) -> bool:
        return self._cancelled

    def raise_if_cancelled(self):
        if self._cancelled:
            raise TranslationCancelledError(self.reason or "Translation aborted")


class CallRegistry:
    """
    In-flight backend calls of one translate_all invocation.

    Owned by the caller so a signal handler can tear the calls down with
    cancel_all() without any process-wide state.
    """

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    def register(self, task: asyncio.Task):
        self._tasks.add(task)

    def discard(self, task: asyncio.Task):
        self._tasks.discard(task)

    def cancel_all(self) -> int:
        cancelled = 0
        for task in list(self._tasks):
            if not task.done():
                task.cancel()
                cancelled += 1
        self._tasks.clear()
        return cancelled

    def __len__(self):
        return len(self._tasks)
