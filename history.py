from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional, Tuple

import pandas as pd

from pydantic_models import DiagnosisRecord

HISTORY_LIMIT = 10


@dataclass(frozen=True)
class HistoryEntry:
    symptoms: Tuple[str, ...]
    record: DiagnosisRecord
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class PredictionHistory:
    """Most recent successful predictions for one session; the oldest is evicted first."""

    def __init__(self, limit: int = HISTORY_LIMIT):
        self._entries = deque(maxlen=limit)

    def __len__(self):
        return len(self._entries)

    def add(self, symptoms, record: DiagnosisRecord, timestamp: Optional[datetime] = None) -> HistoryEntry:
        entry = HistoryEntry(tuple(symptoms), record, timestamp or datetime.now(timezone.utc))
        self._entries.append(entry)
        return entry

    def entries(self) -> List[HistoryEntry]:
        return list(self._entries)

    def latest(self) -> Optional[HistoryEntry]:
        return self._entries[-1] if self._entries else None

    def clear(self):
        self._entries.clear()

    def to_dataframe(self) -> pd.DataFrame:
        rows = [
            {
                "time": e.timestamp.strftime("%H:%M:%S"),
                "symptoms": ", ".join(e.symptoms),
                "disease": e.record.disease,
                "confidence": e.record.confidence,
                "severity": e.record.severity,
            }
            for e in reversed(self._entries)
        ]
        return pd.DataFrame(rows, columns=["time", "symptoms", "disease", "confidence", "severity"])
