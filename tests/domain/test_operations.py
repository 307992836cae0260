"""Unit tests for OperationTracker."""

import asyncio

import pytest

from clinicdesk.domain.operations import OperationStatus, OperationTracker


class TestOperationTracker:
    """Test suite for OperationTracker."""

    def test_initial_state(self):
        tracker = OperationTracker()

        assert not tracker.loading
        assert tracker.in_flight == 0
        assert tracker.status("create") == OperationStatus.IDLE
        assert tracker.last_error("create") is None

    @pytest.mark.asyncio
    async def test_loading_while_in_flight(self):
        tracker = OperationTracker()

        async with tracker.track("list"):
            assert tracker.loading
            assert tracker.status("list") == OperationStatus.IN_FLIGHT

        assert not tracker.loading
        assert tracker.status("list") == OperationStatus.SUCCEEDED

    @pytest.mark.asyncio
    async def test_mark_failed(self):
        tracker = OperationTracker()

        async with tracker.track("create") as op:
            op.mark_failed("duplicate key")

        assert tracker.status("create") == OperationStatus.FAILED
        assert tracker.last_error("create") == "duplicate key"
        assert not tracker.loading

    @pytest.mark.asyncio
    async def test_exception_marks_failed_and_propagates(self):
        tracker = OperationTracker()

        with pytest.raises(RuntimeError):
            async with tracker.track("delete"):
                raise RuntimeError("connection reset")

        assert tracker.status("delete") == OperationStatus.FAILED
        assert tracker.last_error("delete") == "connection reset"
        assert tracker.in_flight == 0

    @pytest.mark.asyncio
    async def test_overlapping_operations(self):
        """Loading stays true until the last overlapping call finishes."""
        tracker = OperationTracker()
        release_first = asyncio.Event()
        release_second = asyncio.Event()

        async def run(event):
            async with tracker.track("update"):
                await event.wait()

        first = asyncio.create_task(run(release_first))
        second = asyncio.create_task(run(release_second))
        await asyncio.sleep(0)
        assert tracker.in_flight == 2

        release_first.set()
        await first
        assert tracker.loading
        assert tracker.status("update") == OperationStatus.IN_FLIGHT

        release_second.set()
        await second
        assert not tracker.loading
        assert tracker.status("update") == OperationStatus.SUCCEEDED
