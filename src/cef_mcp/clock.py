"""Time source used for every pacing delay."""

import asyncio
import time
from abc import ABC, abstractmethod


class Clock(ABC):
    """Interface for sleeping and reading time.

    Input pacing and page settle delays go through a clock so that they can
    be observed without real waiting.
    """

    @abstractmethod
    def monotonic(self) -> float:
        ...

    @abstractmethod
    async def sleep(self, seconds: float) -> None:
        ...


class SystemClock(Clock):
    """Wall-clock implementation backed by asyncio."""

    def monotonic(self) -> float:
        return time.monotonic()

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)
