from __future__ import annotations

import threading

import pytest

from bluepresence.exceptions import PresenceConfigError
from bluepresence.log import EventLogAccumulator, LogState, LogStream
from bluepresence.state.tracker import PresenceTracker


def test_append_publishes_full_buffer() -> None:
    log = EventLogAccumulator()
    published: list[LogState] = []
    log.subscribe(published.append)

    log.append(LogStream.REGION, "ENTER: Lobby")
    log.append(LogStream.REGION, "EXIT: Lobby")

    assert [state.region_status for state in published] == [
        "ENTER: Lobby\n",
        "ENTER: Lobby\nEXIT: Lobby\n",
    ]
    assert log.state.beacon_status == ""


def test_streams_are_independent() -> None:
    log = EventLogAccumulator()
    log.append(LogStream.BEACON, "ENTER: desk 4")
    log.append(LogStream.REGION, "ENTER: Lobby")

    log.clear(LogStream.BEACON)

    assert log.text(LogStream.BEACON) == ""
    assert log.text(LogStream.REGION) == "ENTER: Lobby\n"


def test_extend_is_a_single_publication() -> None:
    log = EventLogAccumulator()
    published: list[LogState] = []
    log.subscribe(published.append)

    log.extend(LogStream.REGION, ["ENTER: A", "EXIT: B"])
    log.extend(LogStream.REGION, [])

    assert len(published) == 1
    assert published[0].region_status == "ENTER: A\nEXIT: B\n"


def test_clear_region_resets_tracker() -> None:
    tracker = PresenceTracker()
    log = EventLogAccumulator(tracker=tracker)
    tracker.apply_snapshot({"tagA": ["Lobby"]})

    log.clear(LogStream.REGION)

    assert tracker.snapshot() == {}
    assert log.state == LogState()


def test_clear_beacon_keeps_tracker() -> None:
    tracker = PresenceTracker()
    log = EventLogAccumulator(tracker=tracker)
    tracker.apply_snapshot({"tagA": ["Lobby"]})

    log.clear(LogStream.BEACON)

    assert tracker.regions_for("tagA") == frozenset({"Lobby"})


def test_clear_publishes_empty_stream() -> None:
    log = EventLogAccumulator()
    log.append(LogStream.REGION, "ENTER: Lobby")
    published: list[LogState] = []
    log.subscribe(published.append)

    log.clear(LogStream.REGION)

    assert published == [LogState()]


def test_max_lines_drops_oldest() -> None:
    log = EventLogAccumulator(max_lines=2)

    log.extend(LogStream.BEACON, ["one", "two", "three"])
    log.append(LogStream.BEACON, "four")

    assert log.text(LogStream.BEACON) == "three\nfour\n"


def test_invalid_max_lines_rejected() -> None:
    with pytest.raises(PresenceConfigError):
        EventLogAccumulator(max_lines=0)


def test_unsubscribe_stops_updates() -> None:
    log = EventLogAccumulator()
    published: list[LogState] = []
    unsubscribe = log.subscribe(published.append)

    log.append(LogStream.REGION, "ENTER: A")
    unsubscribe()
    log.append(LogStream.REGION, "ENTER: B")

    assert len(published) == 1


def test_failing_observer_does_not_block_others() -> None:
    log = EventLogAccumulator()
    published: list[LogState] = []

    def broken(_state: LogState) -> None:
        raise RuntimeError("boom")

    log.subscribe(broken)
    log.subscribe(published.append)

    log.append(LogStream.REGION, "ENTER: A")

    assert published[-1].region_status == "ENTER: A\n"


def test_concurrent_appends_never_tear_lines() -> None:
    log = EventLogAccumulator()
    seen: list[str] = []
    log.subscribe(lambda state: seen.append(state.region_status))

    def writer(prefix: str) -> None:
        for i in range(200):
            log.append(LogStream.REGION, f"{prefix}-{i}")

    threads = [threading.Thread(target=writer, args=(name,)) for name in ("a", "b", "c")]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()

    final = log.text(LogStream.REGION)
    assert final.count("\n") == 600
    for text in seen:
        assert text.endswith("\n")
    assert [len(text) for text in seen] == sorted(len(text) for text in seen)


def test_stream_names_accepted_as_strings() -> None:
    tracker = PresenceTracker()
    log = EventLogAccumulator(tracker=tracker)
    tracker.apply_snapshot({"tagA": ["Lobby"]})
    log.append("region", "ENTER: Lobby")
    log.append("beacon", "ENTER: desk 4")

    log.clear("region")

    assert log.text(LogStream.REGION) == ""
    assert log.text(LogStream.BEACON) == "ENTER: desk 4\n"
    assert tracker.snapshot() == {}


def test_unknown_stream_name_rejected() -> None:
    log = EventLogAccumulator()

    with pytest.raises(ValueError):
        log.append("regions", "ENTER: Lobby")
    with pytest.raises(ValueError):
        log.clear("nope")
    assert log.state == LogState()


def test_embedded_newlines_stay_one_line() -> None:
    log = EventLogAccumulator(max_lines=2)

    log.append(LogStream.BEACON, "first")
    log.append(LogStream.BEACON, "ENTER: Desk 4\nnear window")

    assert log.text(LogStream.BEACON) == "first\nENTER: Desk 4 near window\n"
