"""
Strategy interface shared by every way of producing a DiagnosisRecord.

Provides:
- canonicalize: order-independent key for a set of symptom labels
- SymptomPredictor: the one capability the presenter depends on
- run_cancellable: races a pending prediction against a cancel token
- build_predictor: picks the strategy for a deployment from settings
"""
import asyncio
from abc import ABC, abstractmethod
from typing import Awaitable, Iterable, Optional, TypeVar

from pydantic_models import DiagnosisRecord
from prediction_errors import CancelledError

T = TypeVar("T")

KEY_DELIMITER = ","


def canonicalize(symptoms: Iterable[str]) -> str:
    return KEY_DELIMITER.join(sorted(set(symptoms)))


class SymptomPredictor(ABC):
    """Produces a DiagnosisRecord from a set of symptom labels."""

    @abstractmethod
    async def predict(
        self, symptoms: Iterable[str], cancel_token: Optional[asyncio.Event] = None
    ) -> Optional[DiagnosisRecord]:
        """
        Returns a record, None when there is nothing to predict (table mode),
        or raises a PredictionError.
        """


async def run_cancellable(awaitable: Awaitable[T], cancel_token: Optional[asyncio.Event] = None) -> T:
    """
    Await `awaitable` unless `cancel_token` fires first, in which case the
    pending work is cancelled and CancelledError is raised.
    """
    if cancel_token is None:
        return await awaitable

    if cancel_token.is_set():
        if asyncio.iscoroutine(awaitable):
            awaitable.close()
        raise CancelledError()

    task = asyncio.ensure_future(awaitable)
    waiter = asyncio.ensure_future(cancel_token.wait())
    try:
        await asyncio.wait({task, waiter}, return_when=asyncio.FIRST_COMPLETED)
    except asyncio.CancelledError:
        task.cancel()
        waiter.cancel()
        raise

    if task.done():
        waiter.cancel()
        return task.result()

    task.cancel()
    await asyncio.gather(task, return_exceptions=True)
    raise CancelledError()


def build_predictor(settings) -> SymptomPredictor:
    """One strategy per deployment: the table in demo mode, the backend in live mode."""
    from rule_based import TableMatchStrategy
    from api_client import BackendClient

    if settings.mode == "live":
        return BackendClient(settings.api_url, timeout=settings.timeout)
    return TableMatchStrategy()
