"""
Unit tests for the single-flight guard used around summary generation
"""
import threading

import pytest

from studyai.services.singleflight import SingleFlight


class TestSingleFlight:
    def test_sequential_calls_each_run(self):
        flight = SingleFlight()
        assert flight.do("k", lambda: 1) == 1
        assert flight.do("k", lambda: 2) == 2
        assert not flight.pending("k")

    def test_concurrent_callers_share_one_call(self):
        flight = SingleFlight()
        release = threading.Event()
        started = threading.Event()
        calls = []

        def leader_fn():
            calls.append("leader")
            started.set()
            release.wait(timeout=5)
            return "summary"

        def follower_fn():
            calls.append("follower")
            return "duplicate"

        results = []
        leader = threading.Thread(target=lambda: results.append(flight.do("doc-1", leader_fn)))
        leader.start()
        assert started.wait(timeout=5)
        assert flight.pending("doc-1")

        followers = [
            threading.Thread(target=lambda: results.append(flight.do("doc-1", follower_fn)))
            for _ in range(3)
        ]
        for t in followers:
            t.start()
        for t in followers:
            t.join(timeout=0.2)
            # Still waiting on the leader's result
            assert t.is_alive()

        release.set()
        leader.join(timeout=5)
        for t in followers:
            t.join(timeout=5)

        assert calls == ["leader"]
        assert results == ["summary"] * 4
        assert not flight.pending("doc-1")

    def test_different_keys_do_not_share(self):
        flight = SingleFlight()
        assert flight.do("a", lambda: "A") == "A"
        assert flight.do("b", lambda: "B") == "B"

    def test_error_released_and_not_cached(self):
        flight = SingleFlight()

        def boom():
            raise RuntimeError("model down")

        with pytest.raises(RuntimeError):
            flight.do("k", boom)
        assert not flight.pending("k")
        assert flight.do("k", lambda: "ok") == "ok"
