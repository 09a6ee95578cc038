"""Tests for signal-driven shutdown."""

import signal

import pytest

from wooscrape.shutdown import ShutdownHandler


class TestShutdownHandler:

    def test_install_and_restore_handlers(self):
        before = signal.getsignal(signal.SIGINT)

        with ShutdownHandler() as handler:
            assert handler.installed
            assert signal.getsignal(signal.SIGINT) == handler._on_signal

        assert signal.getsignal(signal.SIGINT) == before
        assert not handler.installed

    def test_first_signal_sets_the_stop_event(self):
        handler = ShutdownHandler()

        handler._on_signal(signal.SIGINT, None)

        assert handler.shutdown_requested
        assert handler.signals_received == 1

    def test_second_signal_runs_cleanup_and_exits(self):
        handler = ShutdownHandler()
        released = []
        handler.register_cleanup(lambda: released.append("pool"))

        handler._on_signal(signal.SIGTERM, None)
        with pytest.raises(SystemExit) as exc_info:
            handler._on_signal(signal.SIGTERM, None)

        assert exc_info.value.code == 1
        assert released == ["pool"]

    def test_failing_cleanup_does_not_stop_the_others(self):
        handler = ShutdownHandler()
        ran = []

        def broken():
            raise RuntimeError("already closed")

        handler.register_cleanup(broken)
        handler.register_cleanup(lambda: ran.append(True))
        handler.cleanup()
        handler.cleanup()

        assert ran == [True]

    def test_request_shutdown(self):
        handler = ShutdownHandler()

        handler.request_shutdown()

        assert handler.event.is_set()
