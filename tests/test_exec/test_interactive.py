"""Tests for the interactivity arbiter."""

from __future__ import annotations

import pytest

from execauth.exec.interactive import (
    NO_TTY_REASON,
    STDIN_RESERVED_REASON,
    Verdict,
    arbitrate,
)
from execauth.models import InteractiveMode, InvocationContext


def _ctx(reserved: bool, tty: bool) -> InvocationContext:
    return InvocationContext(stdin_reserved_by_caller=reserved, is_tty_available=tty)


# ---------------------------------------------------------------------------
# Decision table
# ---------------------------------------------------------------------------


class TestDecisionTable:
    @pytest.mark.parametrize(
        "mode,reserved,tty,expected",
        [
            (InteractiveMode.NEVER, False, False, Verdict.PROCEED_NON_INTERACTIVE),
            (InteractiveMode.NEVER, False, True, Verdict.PROCEED_NON_INTERACTIVE),
            (InteractiveMode.NEVER, True, False, Verdict.PROCEED_NON_INTERACTIVE),
            (InteractiveMode.NEVER, True, True, Verdict.PROCEED_NON_INTERACTIVE),
            (InteractiveMode.IF_AVAILABLE, False, False, Verdict.PROCEED_NON_INTERACTIVE),
            (InteractiveMode.IF_AVAILABLE, False, True, Verdict.PROCEED),
            (InteractiveMode.IF_AVAILABLE, True, False, Verdict.PROCEED_NON_INTERACTIVE),
            (InteractiveMode.IF_AVAILABLE, True, True, Verdict.PROCEED_NON_INTERACTIVE),
            (InteractiveMode.ALWAYS, False, False, Verdict.REFUSE),
            (InteractiveMode.ALWAYS, False, True, Verdict.PROCEED),
            (InteractiveMode.ALWAYS, True, False, Verdict.REFUSE),
            (InteractiveMode.ALWAYS, True, True, Verdict.REFUSE),
        ],
    )
    def test_verdict(
        self, mode: InteractiveMode, reserved: bool, tty: bool, expected: Verdict
    ) -> None:
        assert arbitrate(mode, _ctx(reserved, tty)).verdict == expected

    def test_never_mode_never_refuses(self) -> None:
        for reserved in (True, False):
            for tty in (True, False):
                assert not arbitrate(InteractiveMode.NEVER, _ctx(reserved, tty)).refused


# ---------------------------------------------------------------------------
# Refusal reasons
# ---------------------------------------------------------------------------


class TestRefusalReason:
    def test_reserved_stdin_reason(self) -> None:
        decision = arbitrate(InteractiveMode.ALWAYS, _ctx(reserved=True, tty=True))
        assert decision.refused
        assert decision.reason == STDIN_RESERVED_REASON
        assert decision.reason == "used by stdin resource manifest reader"

    def test_reserved_stdin_reported_before_missing_tty(self) -> None:
        decision = arbitrate(InteractiveMode.ALWAYS, _ctx(reserved=True, tty=False))
        assert decision.reason == STDIN_RESERVED_REASON

    def test_no_tty_reason(self) -> None:
        decision = arbitrate(InteractiveMode.ALWAYS, _ctx(reserved=False, tty=False))
        assert decision.reason == NO_TTY_REASON

    def test_proceed_has_no_reason(self) -> None:
        decision = arbitrate(InteractiveMode.ALWAYS, _ctx(reserved=False, tty=True))
        assert decision.reason is None
        assert decision.interactive


# ---------------------------------------------------------------------------
# InvocationContext.detect
# ---------------------------------------------------------------------------


class TestDetect:
    def test_detect_reads_isatty(self, monkeypatch: pytest.MonkeyPatch) -> None:
        class FakeStdin:
            def isatty(self) -> bool:
                return True

        monkeypatch.setattr("sys.stdin", FakeStdin())
        ctx = InvocationContext.detect(stdin_reserved=True)
        assert ctx.is_tty_available is True
        assert ctx.stdin_reserved_by_caller is True

    def test_detect_without_stdin(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("sys.stdin", None)
        ctx = InvocationContext.detect()
        assert ctx.is_tty_available is False
        assert ctx.stdin_reserved_by_caller is False
