"""Tests for MutationKey, MutationRegistry and SingleFlight."""

from __future__ import annotations

import asyncio

import pytest

from conduct.exceptions import MutationInFlightError
from conduct.store.pending import (
    MutationKey,
    MutationRegistry,
    PendingStatus,
    SingleFlight,
)


class TestMutationKey:
    def test_string_forms(self):
        assert str(MutationKey("v1")) == "v1"
        assert str(MutationKey("v1", 2)) == "v1:2"
        assert str(MutationKey("v1", 2, 21)) == "v1:2:21"

    def test_task_needs_step(self):
        with pytest.raises(ValueError):
            MutationKey("v1", task_id=21)

    def test_keys_are_distinct_by_level(self):
        keys = {MutationKey("v1"), MutationKey("v1", 1), MutationKey("v1", 1, 11)}
        assert len(keys) == 3
        assert MutationKey("v1", 1) == MutationKey("v1", 1)


class TestMutationRegistry:
    def test_second_begin_on_same_key_raises(self):
        registry = MutationRegistry()
        registry.begin(MutationKey("v1", 1), "toggle_procedure")

        with pytest.raises(MutationInFlightError) as excinfo:
            registry.begin(MutationKey("v1", 1), "toggle_procedure")

        assert excinfo.value.key == "v1:1"
        # Other keys are unaffected.
        registry.begin(MutationKey("v1", 2), "toggle_procedure")
        assert len(registry) == 2

    def test_track_releases_on_success(self):
        registry = MutationRegistry()
        key = MutationKey("v1")
        with registry.track(key, "delete_violation") as handle:
            assert registry.is_pending(key)
            assert key in registry
            assert registry.get(key) is handle
        assert not registry.is_pending(key)
        assert handle.status is PendingStatus.SUCCEEDED
        assert handle.error is None

    def test_track_releases_on_failure(self):
        registry = MutationRegistry()
        key = MutationKey("v1", 1, 11)
        with pytest.raises(RuntimeError):
            with registry.track(key, "toggle_procedure_task") as handle:
                raise RuntimeError("boom")
        assert registry.keys == set()
        assert handle.status is PendingStatus.FAILED
        assert str(handle.error) == "boom"

    def test_finish_of_stale_handle_keeps_newer_one(self):
        registry = MutationRegistry()
        key = MutationKey("v1")
        old = registry.begin(key, "delete_violation")
        registry.finish(old)
        new = registry.begin(key, "delete_violation")
        registry.finish(old)
        assert registry.get(key) is new

    def test_repr(self):
        registry = MutationRegistry()
        handle = registry.begin(MutationKey("v1", 3), "toggle_procedure")
        assert repr(handle) == "<PendingMutation: toggle_procedure v1:3, pending>"


class TestSingleFlight:
    def test_concurrent_calls_share_one_request(self):
        calls = []

        async def scenario():
            flights = SingleFlight()
            gate = asyncio.Event()

            async def fetch():
                calls.append(1)
                await gate.wait()
                return ["S1"]

            first = asyncio.create_task(flights.run("students", fetch))
            second = asyncio.create_task(flights.run("students", fetch))
            await asyncio.sleep(0)
            assert flights.is_running("students")
            gate.set()
            return await first, await second, flights.is_running("students")

        first, second, running = asyncio.run(scenario())
        assert calls == [1]
        assert first == second == ["S1"]
        assert running is False

    def test_failure_reaches_every_caller(self):
        async def scenario():
            flights = SingleFlight()

            async def fetch():
                await asyncio.sleep(0)
                raise RuntimeError("down")

            return await asyncio.gather(
                flights.run("k", fetch), flights.run("k", fetch), return_exceptions=True
            )

        results = asyncio.run(scenario())
        assert [str(r) for r in results] == ["down", "down"]

    def test_sequential_calls_run_again(self):
        calls = []

        async def scenario():
            flights = SingleFlight()

            async def fetch():
                calls.append(1)
                return len(calls)

            return await flights.run("k", fetch), await flights.run("k", fetch)

        assert asyncio.run(scenario()) == (1, 2)

    def test_different_keys_do_not_share(self):
        async def scenario():
            flights = SingleFlight()

            async def fetch(value):
                await asyncio.sleep(0)
                return value

            return await asyncio.gather(
                flights.run("a", lambda: fetch("a")), flights.run("b", lambda: fetch("b"))
            )

        assert asyncio.run(scenario()) == ["a", "b"]
