"""Tests for the session hook chain."""

import pytest

from docsync.live_sync.sync_hooks import HookEventType, SyncContext, SyncHooks


class TestSyncHooks:
    """Tests for SyncHooks."""

    def test_hook_registration(self):
        """Should register hooks via decorator."""
        hooks = SyncHooks()

        @hooks.on_document_loaded()
        async def my_hook(ctx):
            pass

        assert hooks.registered(HookEventType.DOCUMENT_LOADED) == [my_hook]

    @pytest.mark.asyncio
    async def test_priority_order(self):
        """Lower priority numbers run first; ties keep registration order."""
        hooks = SyncHooks()
        order = []

        @hooks.on_files_updated(priority=50)
        async def second(ctx):
            order.append("second")

        @hooks.on_files_updated(priority=50)
        async def third(ctx):
            order.append("third")

        @hooks.on_files_updated(priority=10)
        async def first(ctx):
            order.append("first")

        await hooks.emit(HookEventType.FILES_UPDATED, SyncContext(event_type=HookEventType.FILES_UPDATED))

        assert order == ["first", "second", "third"]

    @pytest.mark.asyncio
    async def test_bound_methods(self):
        """Bound methods should be registrable."""
        calls = []

        class Tracker:
            async def track(self, ctx):
                calls.append(ctx.current_path)

        hooks = SyncHooks()
        hooks.on_current_cleared(priority=5)(Tracker().track)

        await hooks.emit(HookEventType.CURRENT_CLEARED, SyncContext(event_type=HookEventType.CURRENT_CLEARED))

        assert calls == [""]

    @pytest.mark.asyncio
    async def test_abort_stops_chain(self):
        hooks = SyncHooks()
        ran = []

        @hooks.on_document_loaded(priority=1)
        async def stopper(ctx):
            ctx.abort("enough")

        @hooks.on_document_loaded(priority=2)
        async def skipped(ctx):
            ran.append(True)

        ctx = await hooks.emit(HookEventType.DOCUMENT_LOADED, SyncContext(event_type=HookEventType.DOCUMENT_LOADED))

        assert ran == []
        assert ctx.is_aborted
        assert ctx.abort_reason == "enough"

    @pytest.mark.asyncio
    async def test_exception_runs_error_chain(self):
        """A failing hook should abort the chain and run ON_ERROR hooks."""
        hooks = SyncHooks()
        handled = []

        @hooks.on_document_loaded()
        async def broken(ctx):
            raise RuntimeError("render failed")

        @hooks.on_error()
        async def handler(ctx):
            handled.append(str(ctx.errors[0]))

        ctx = await hooks.emit(HookEventType.DOCUMENT_LOADED, SyncContext(event_type=HookEventType.DOCUMENT_LOADED))

        assert handled == ["render failed"]
        assert ctx.is_aborted

    def test_clear(self):
        hooks = SyncHooks()
        hooks.register(HookEventType.FILES_UPDATED, lambda ctx: None)
        hooks.register(HookEventType.ON_ERROR, lambda ctx: None)

        hooks.clear(HookEventType.FILES_UPDATED)
        assert hooks.registered(HookEventType.FILES_UPDATED) == []
        assert len(hooks.registered(HookEventType.ON_ERROR)) == 1

        hooks.clear()
        assert all(not hooks.registered(event) for event in HookEventType)
