"""Fan-out helpers: settle all branches, keep successes, record failures"""

import asyncio
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Generic, Iterable, List, Optional, Tuple, TypeVar

from loguru import logger

T = TypeVar("T")
K = TypeVar("K")


@dataclass
class Settled(Generic[K, T]):
    """Outcome of a fan-out, successes in input order"""
    values: List[T] = field(default_factory=list)
    failures: List[Tuple[K, Exception]] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return len(self.failures)


def _report(label: str, settled: Settled) -> None:
    if settled.failures:
        logger.info(f"{label}: {len(settled.values)} succeeded, {settled.failed} failed")


async def settle_all(
    keys: Iterable[K],
    task: Callable[[K], Awaitable[T]],
    label: str = "branch",
    semaphore: Optional[asyncio.Semaphore] = None,
    describe: Callable[[K], Any] = str,
) -> Settled[K, T]:
    """
    Run ``task(key)`` for every key concurrently and wait for all of them

    A branch that raises is logged and left out; siblings are unaffected.
    Results keep the order of ``keys``, not completion order. Cancellation
    and other non-``Exception`` errors are re-raised.
    """
    keys = list(keys)

    async def run(key: K) -> Any:
        if semaphore is None:
            return await task(key)
        async with semaphore:
            return await task(key)

    results = await asyncio.gather(*[run(key) for key in keys], return_exceptions=True)

    settled: Settled[K, T] = Settled()
    for key, result in zip(keys, results):
        if isinstance(result, BaseException) and not isinstance(result, Exception):
            raise result
        if isinstance(result, Exception):
            logger.warning(f"{label} {describe(key)} failed: {result!r}")
            settled.failures.append((key, result))
            continue
        settled.values.append(result)

    _report(label, settled)
    return settled


def settle_each(
    keys: Iterable[K],
    func: Callable[[K], T],
    label: str = "item",
    describe: Callable[[K], Any] = str,
) -> Settled[K, T]:
    """Synchronous counterpart of ``settle_all`` for per-item transforms"""
    settled: Settled[K, T] = Settled()
    for key in keys:
        try:
            settled.values.append(func(key))
        except Exception as e:
            logger.warning(f"{label} {describe(key)} failed: {e!r}")
            settled.failures.append((key, e))

    _report(label, settled)
    return settled
