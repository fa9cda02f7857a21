"""
Watchlist Store

In-memory list of target plates fetched from a plain-text resource
(one plate per line). Refreshes replace the whole snapshot at once.
"""

from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime
from typing import FrozenSet, Iterable, Optional, Tuple

import requests

from platewatch.plates.normalize import normalize_text


@dataclass(frozen=True)
class WatchlistSnapshot:
    """Immutable view of the watchlist at one refresh"""
    entries: Tuple[str, ...]  # trimmed, uppercased lines in source order
    members: FrozenSet[str]  # normalized form used for lookups
    refreshed_at: Optional[datetime] = None

    @classmethod
    def from_lines(
        cls,
        lines: Iterable[str],
        refreshed_at: Optional[datetime] = None
    ) -> "WatchlistSnapshot":
        entries = tuple(
            line.strip().upper() for line in lines if line.strip()
        )
        members = frozenset(
            normalized for normalized in (normalize_text(e) for e in entries) if normalized
        )
        return cls(entries=entries, members=members, refreshed_at=refreshed_at)


EMPTY_SNAPSHOT = WatchlistSnapshot(entries=(), members=frozenset())


class Watchlist:
    """
    Watchlist of plates considered a match.

    Readers always see one complete snapshot: the refresh path builds a new
    WatchlistSnapshot and publishes it with a single assignment.
    """

    def __init__(
        self,
        source_url: Optional[str] = None,
        timeout: float = 10.0,
        session: Optional[requests.Session] = None,
        entries: Optional[Iterable[str]] = None
    ):
        """
        Args:
            source_url: URL of the newline-delimited watchlist
            timeout: Request timeout in seconds
            session: Optional requests session (tests inject a fake)
            entries: Optional initial entries
        """
        self.source_url = source_url
        self.timeout = timeout
        self.session = session or requests.Session()

        self._snapshot = EMPTY_SNAPSHOT
        if entries is not None:
            self._snapshot = WatchlistSnapshot.from_lines(entries)

        self._executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="watchlist")

        self.refresh_attempts = 0
        self.refresh_failures = 0

    @property
    def snapshot(self) -> WatchlistSnapshot:
        return self._snapshot

    @property
    def entries(self) -> Tuple[str, ...]:
        return self._snapshot.entries

    @property
    def count(self) -> int:
        return len(self._snapshot.entries)

    @property
    def last_refresh(self) -> Optional[datetime]:
        return self._snapshot.refreshed_at

    def contains(self, text: str) -> bool:
        """Check normalized text against the current snapshot"""
        return normalize_text(text) in self._snapshot.members

    def refresh(self) -> Future:
        """
        Refresh the watchlist in the background.

        Never blocks and never raises. The returned future resolves to True
        when a new snapshot was published.
        """
        return self._executor.submit(self.refresh_now)

    def refresh_now(self) -> bool:
        """
        Fetch and publish synchronously.

        On any failure the previous snapshot and timestamp stay in place.

        Returns:
            True if the snapshot was replaced
        """
        self.refresh_attempts += 1

        if not self.source_url:
            print("[Watchlist] No source URL configured, skipping refresh")
            self.refresh_failures += 1
            return False

        try:
            response = self.session.get(self.source_url, timeout=self.timeout)
            response.raise_for_status()
            text = response.content.decode("utf-8")
        except requests.exceptions.RequestException as e:
            print(f"[Watchlist] Fetch failed: {e}")
            self.refresh_failures += 1
            return False
        except UnicodeDecodeError as e:
            print(f"[Watchlist] Decode failed: {e}")
            self.refresh_failures += 1
            return False

        snapshot = WatchlistSnapshot.from_lines(text.splitlines(), refreshed_at=datetime.now())
        self._snapshot = snapshot

        print(f"[Watchlist] Loaded {len(snapshot.entries)} entries")
        return True

    def replace(self, entries: Iterable[str]) -> None:
        """Publish a snapshot built from local entries"""
        self._snapshot = WatchlistSnapshot.from_lines(entries, refreshed_at=datetime.now())

    def last_update_string(self) -> str:
        """Human-readable time of the last successful refresh"""
        refreshed_at = self._snapshot.refreshed_at
        if refreshed_at is None:
            return "Never"
        return refreshed_at.strftime("%d.%m.%Y %H:%M:%S")

    def get_stats(self) -> dict:
        return {
            "entries": self.count,
            "last_refresh": self.last_update_string(),
            "refresh_attempts": self.refresh_attempts,
            "refresh_failures": self.refresh_failures,
        }

    def close(self) -> None:
        self._executor.shutdown(wait=False)
