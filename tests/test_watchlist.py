"""
Tests for the watchlist store

Tests fetching, snapshot replacement and failure handling.
"""

from datetime import datetime

import pytest
import requests

from platewatch.plates.watchlist_store import Watchlist, WatchlistSnapshot

from conftest import FakeResponse, FakeSession


URL = "https://example.invalid/watchlist.txt"


@pytest.fixture
def make_watchlist():
    created = []

    def factory(session, **kwargs):
        watchlist = Watchlist(source_url=URL, session=session, **kwargs)
        created.append(watchlist)
        return watchlist

    yield factory

    for watchlist in created:
        watchlist.close()


class TestSnapshot:
    """Test snapshot construction"""

    def test_from_lines_trims_and_uppercases(self):
        snapshot = WatchlistSnapshot.from_lines(["  kr 1234a ", "", "   ", "AB-1234"])
        assert snapshot.entries == ("KR 1234A", "AB-1234")
        assert snapshot.members == frozenset({"KR1234A", "AB1234"})

    def test_symbol_only_lines_are_not_members(self):
        snapshot = WatchlistSnapshot.from_lines(["---", "PO5511"])
        assert snapshot.members == frozenset({"PO5511"})


class TestRefresh:
    """Test fetching the watchlist"""

    def test_successful_refresh(self, make_watchlist):
        session = FakeSession(FakeResponse(b"KR1234A\nab 1234\n\n"))
        watchlist = make_watchlist(session, timeout=3)

        assert watchlist.refresh_now()
        assert watchlist.count == 2
        assert watchlist.entries == ("KR1234A", "AB 1234")
        assert watchlist.contains("kr-1234a")
        assert watchlist.contains("AB1234")
        assert watchlist.last_refresh is not None
        assert session.requests == [(URL, 3)]

    def test_refresh_replaces_snapshot(self, make_watchlist):
        session = FakeSession(FakeResponse(b"KR1234A\n"))
        watchlist = make_watchlist(session)
        watchlist.refresh_now()

        session.response = FakeResponse(b"PO5511\n")
        watchlist.refresh_now()

        assert not watchlist.contains("KR1234A")
        assert watchlist.contains("PO5511")

    def test_network_failure_keeps_previous(self, make_watchlist):
        session = FakeSession(FakeResponse(b"KR1234A\n"))
        watchlist = make_watchlist(session)
        watchlist.refresh_now()
        previous = watchlist.snapshot

        session.error = requests.exceptions.ConnectionError("offline")
        assert not watchlist.refresh_now()

        assert watchlist.snapshot is previous
        assert watchlist.contains("KR1234A")
        assert watchlist.refresh_failures == 1

    def test_http_error_keeps_previous(self, make_watchlist):
        watchlist = make_watchlist(FakeSession(FakeResponse(b"oops", status_code=503)))
        watchlist.replace(["KR1234A"])

        assert not watchlist.refresh_now()
        assert watchlist.contains("KR1234A")

    def test_decode_failure_keeps_previous(self, make_watchlist):
        watchlist = make_watchlist(FakeSession(FakeResponse(b"\xff\xfe\xfa")))
        watchlist.replace(["KR1234A"])
        stamp = watchlist.last_refresh

        assert not watchlist.refresh_now()
        assert watchlist.entries == ("KR1234A",)
        assert watchlist.last_refresh == stamp

    def test_no_url_is_a_noop(self):
        watchlist = Watchlist(session=FakeSession())
        try:
            assert not watchlist.refresh_now()
            assert watchlist.count == 0
        finally:
            watchlist.close()

    def test_background_refresh(self, make_watchlist):
        watchlist = make_watchlist(FakeSession(FakeResponse(b"KR1234A\n")))

        future = watchlist.refresh()

        assert future.result(timeout=5) is True
        assert watchlist.contains("KR1234A")


class TestStatus:
    """Test watchlist status reporting"""

    def test_never_refreshed(self):
        watchlist = Watchlist(session=FakeSession())
        try:
            assert watchlist.last_update_string() == "Never"
        finally:
            watchlist.close()

    def test_last_update_format(self):
        watchlist = Watchlist(session=FakeSession())
        try:
            watchlist._snapshot = WatchlistSnapshot.from_lines(
                ["KR1234A"], refreshed_at=datetime(2024, 3, 7, 9, 5, 2)
            )
            assert watchlist.last_update_string() == "07.03.2024 09:05:02"
            assert watchlist.get_stats()["entries"] == 1
        finally:
            watchlist.close()
