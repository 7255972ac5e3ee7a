"""Time-boxed cache of validation verdicts keyed by lead and campaign."""
from __future__ import annotations

import threading
import time
from dataclasses import dataclass, replace
from typing import Callable, Dict, Optional, Tuple

from .models import CampaignAssignmentResult

DEFAULT_TTL_SECONDS = 60 * 60

CacheKey = Tuple[str, str]


@dataclass
class CacheEntry:
    result: CampaignAssignmentResult
    computed_at: float
    expires_at: float
    computation_time_ms: float = 0.0


class ValidationCache:
    """Thread-safe TTL cache for :class:`CampaignAssignmentResult` objects.

    Verdicts are copied on the way in and on the way out, so callers never
    share list state with a stored entry.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        *,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = float(ttl_seconds)
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: Dict[CacheKey, CacheEntry] = {}

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    def get(self, lead_id: str, campaign_id: str) -> Optional[CampaignAssignmentResult]:
        """Return a copy of the stored verdict, or ``None`` on a miss."""

        entry = self.get_entry(lead_id, campaign_id)
        return entry.result if entry else None

    def get_entry(self, lead_id: str, campaign_id: str) -> Optional[CacheEntry]:
        key = (lead_id, campaign_id)
        with self._lock:
            entry = self._entries.get(key)
            if entry is None:
                return None
            if self._clock() >= entry.expires_at:
                del self._entries[key]
                return None
        return replace(entry, result=entry.result.copy())

    def put(
        self,
        lead_id: str,
        campaign_id: str,
        result: CampaignAssignmentResult,
        *,
        computation_time_ms: float = 0.0,
    ) -> None:
        now = self._clock()
        entry = CacheEntry(
            result=result.copy(),
            computed_at=now,
            expires_at=now + self._ttl,
            computation_time_ms=computation_time_ms,
        )
        with self._lock:
            self._entries[(lead_id, campaign_id)] = entry

    def invalidate(self, *, lead_id: Optional[str] = None, campaign_id: Optional[str] = None) -> int:
        """Drop entries matching the given ids; with no ids, drop everything."""

        with self._lock:
            keys = [
                key
                for key in self._entries
                if (lead_id is None or key[0] == lead_id) and (campaign_id is None or key[1] == campaign_id)
            ]
            for key in keys:
                del self._entries[key]
        return len(keys)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


__all__ = ["DEFAULT_TTL_SECONDS", "CacheEntry", "ValidationCache"]
