"""
Time-bounded record of endpoints that recently failed.

The cache is shared by every in-flight call on one load-balance strategy:
- Request threads read it on every selection (``get``)
- Retry feedback writes it (``mark_failed``)
- A background sweep evicts expired records (``sweep``)

Reads never take a lock: a dict membership test is atomic, and selection
must not be serialized across concurrent callers. Writes and the sweep share
a private lock held only for the mutation, so a sweep never evicts a record
that was refreshed after the sweep took its snapshot.
"""

import threading
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

import structlog

from resilient_http.models.endpoint import Endpoint
from resilient_http.retry.exceptions import ConfigurationError

logger = structlog.get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class FailedEndpointRecord:
    """
    An endpoint judged to have failed, and when.

    Attributes:
        endpoint: The failed endpoint
        failed_at: Time of the retry that reported the failure
    """

    endpoint: Endpoint
    failed_at: datetime

    def expired(self, ttl: timedelta, now: datetime) -> bool:
        return self.failed_at + ttl < now


class FailedEndpointCache:
    """
    Concurrent mapping of Endpoint -> FailedEndpointRecord.

    Eviction by ``sweep`` is the only way back to eligibility; there is no
    explicit "endpoint healthy" signal.
    """

    def __init__(self, ttl: timedelta, clock: Clock = utc_now):
        if ttl < timedelta(0):
            raise ConfigurationError("ttl must be >= 0", {"ttl": str(ttl)})
        self.ttl = ttl
        self._clock = clock
        self._records: dict[Endpoint, FailedEndpointRecord] = {}
        self._write_lock = threading.Lock()

    def mark_failed(self, endpoint: Endpoint) -> FailedEndpointRecord:
        """Insert or overwrite the record for ``endpoint`` with the current time."""
        record = FailedEndpointRecord(endpoint=endpoint, failed_at=self._clock())
        with self._write_lock:
            self._records[endpoint] = record
        return record

    def __contains__(self, endpoint: object) -> bool:
        return endpoint in self._records

    def __len__(self) -> int:
        return len(self._records)

    def get(self, endpoint: Endpoint) -> FailedEndpointRecord | None:
        """The record for ``endpoint``, or None when it is eligible."""
        return self._records.get(endpoint)

    def records(self) -> list[FailedEndpointRecord]:
        """Snapshot of the current records."""
        return list(self._records.values())

    def sweep(self) -> list[FailedEndpointRecord]:
        """
        Evict every record whose ``failed_at + ttl`` lies before now.

        Returns:
            The evicted records
        """
        now = self._clock()
        evicted: list[FailedEndpointRecord] = []
        for record in self.records():
            if not record.expired(self.ttl, now):
                continue
            with self._write_lock:
                # Skip records refreshed by mark_failed since the snapshot
                if self._records.get(record.endpoint) is record:
                    del self._records[record.endpoint]
                    evicted.append(record)
        for record in evicted:
            logger.info(
                "Evicted failed endpoint",
                endpoint=str(record.endpoint),
                failed_at=record.failed_at.isoformat(),
            )
        return evicted
