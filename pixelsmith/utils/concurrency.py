"""
Structured fan-out helpers.
"""
import asyncio
from dataclasses import dataclass
from typing import Any, Awaitable, Dict, List, Optional


@dataclass(frozen=True)
class Outcome:
    """Result of one task in a join: exactly one of value / error is meaningful."""
    name: str
    value: Any = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None


async def join_all(tasks: Dict[str, Awaitable[Any]]) -> List[Outcome]:
    """
    Run every awaitable to completion and report each outcome individually.

    A failing task never cancels its siblings. Outcomes keep the insertion order of `tasks`.
    Cancellation of the caller still propagates.
    """
    names = list(tasks.keys())
    results = await asyncio.gather(*tasks.values(), return_exceptions=True)

    outcomes = []
    for name, result in zip(names, results):
        if isinstance(result, asyncio.CancelledError):
            raise result
        if isinstance(result, BaseException):
            outcomes.append(Outcome(name=name, error=result))
        else:
            outcomes.append(Outcome(name=name, value=result))
    return outcomes
