"""Tests for debounce and suppression timers."""

import asyncio

import pytest

from forkwatch.core.sync.timers import (
    CLIENT_FALLBACK_WINDOW,
    KEY_RENAME_SUPPRESSION_WINDOW,
    SETTLE_WINDOW,
    Debouncer,
    SuppressionWindow,
)


class TestConstants:
    """Test the timing windows."""

    def test_values(self) -> None:
        """Windows are ordered settle < suppression < client fallback."""
        assert SETTLE_WINDOW == 0.1
        assert KEY_RENAME_SUPPRESSION_WINDOW == 0.5
        assert CLIENT_FALLBACK_WINDOW == 2.5


class TestDebouncer:
    """Test keyed debounce timers."""

    @pytest.mark.asyncio
    async def test_fires_once_after_delay(self) -> None:
        calls: list[str] = []
        debouncer = Debouncer(delay=0.01)

        debouncer.schedule("k", lambda: calls.append("k"))
        assert debouncer.pending("k")
        await asyncio.sleep(0.05)

        assert calls == ["k"]
        assert not debouncer.pending("k")

    @pytest.mark.asyncio
    async def test_reschedule_replaces_pending(self) -> None:
        """A burst of events collapses into one callback."""
        calls: list[int] = []
        debouncer = Debouncer(delay=0.02)

        for i in range(5):
            debouncer.schedule("k", lambda i=i: calls.append(i))
        assert len(debouncer) == 1
        await asyncio.sleep(0.08)

        assert calls == [4]

    @pytest.mark.asyncio
    async def test_keys_are_independent(self) -> None:
        calls: list[str] = []
        debouncer = Debouncer(delay=0.01)

        debouncer.schedule(("Widget", "files"), lambda: calls.append("files"))
        debouncer.schedule(("Widget", "manifest"), lambda: calls.append("manifest"))
        await asyncio.sleep(0.05)

        assert sorted(calls) == ["files", "manifest"]

    @pytest.mark.asyncio
    async def test_cancel(self) -> None:
        calls: list[str] = []
        debouncer = Debouncer(delay=0.01)

        debouncer.schedule("a", lambda: calls.append("a"))
        debouncer.schedule("b", lambda: calls.append("b"))
        assert debouncer.cancel("a") is True
        assert debouncer.cancel("missing") is False
        debouncer.cancel_all()
        await asyncio.sleep(0.03)

        assert calls == []

    @pytest.mark.asyncio
    async def test_coroutine_callbacks_awaited(self) -> None:
        """Coroutines returned by callbacks run as tasks and wait_idle waits for them."""
        done = asyncio.Event()
        debouncer = Debouncer(delay=0.01)

        async def work() -> None:
            await asyncio.sleep(0.1)
            done.set()

        debouncer.schedule("k", work)
        await asyncio.sleep(0.03)
        assert not done.is_set()
        await debouncer.wait_idle()

        assert done.is_set()


class TestSuppressionWindow:
    """Test the clock-based suppression window."""

    def test_inactive_until_armed(self) -> None:
        assert SuppressionWindow().active is False

    def test_expires(self) -> None:
        now = [10.0]
        window = SuppressionWindow(duration=0.5, clock=lambda: now[0])

        window.arm()
        assert window.active
        now[0] = 10.49
        assert window.active
        now[0] = 10.5
        assert not window.active

    def test_rearm_extends(self) -> None:
        now = [0.0]
        window = SuppressionWindow(duration=0.5, clock=lambda: now[0])

        window.arm()
        now[0] = 0.4
        window.arm()
        now[0] = 0.8
        assert window.active

    def test_clear(self) -> None:
        window = SuppressionWindow()
        window.arm()
        window.clear()
        assert not window.active
