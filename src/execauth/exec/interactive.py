"""Interactivity arbiter -- may this exec plugin touch standard input?

Standard input of the client process is a single shared resource. A command
such as ``apply -f -`` consumes all of it to read a manifest; handing the
same stream to a plugin that prompts for a password would corrupt both
readers or deadlock. :func:`arbitrate` turns that conflict into an explicit
decision made *before* any process is spawned.

Decision table, by ``interactiveMode``:

* ``Never`` -- always ``PROCEED_NON_INTERACTIVE``.
* ``IfAvailable`` -- ``PROCEED`` when a TTY is available and stdin is not
  reserved, else ``PROCEED_NON_INTERACTIVE``.
* ``Always`` -- ``REFUSE`` when stdin is reserved by the caller or no TTY is
  available, else ``PROCEED``.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional

from execauth.models import InteractiveMode, InvocationContext

STDIN_RESERVED_REASON = "used by stdin resource manifest reader"
NO_TTY_REASON = "standard input is not a terminal"


class Verdict(str, enum.Enum):
    PROCEED = "proceed"
    PROCEED_NON_INTERACTIVE = "proceed_non_interactive"
    REFUSE = "refuse"


@dataclass(frozen=True)
class InteractivityDecision:
    """Outcome of :func:`arbitrate`. ``reason`` is set only for ``REFUSE``."""

    verdict: Verdict
    reason: Optional[str] = None

    @property
    def interactive(self) -> bool:
        """Whether the plugin is given the terminal."""
        return self.verdict == Verdict.PROCEED

    @property
    def refused(self) -> bool:
        return self.verdict == Verdict.REFUSE


def arbitrate(mode: InteractiveMode, context: InvocationContext) -> InteractivityDecision:
    """Decide whether, and how, a plugin with *mode* may run under *context*.

    Pure function; never spawns anything and never fails.
    """
    if mode == InteractiveMode.NEVER:
        return InteractivityDecision(Verdict.PROCEED_NON_INTERACTIVE)

    if mode == InteractiveMode.IF_AVAILABLE:
        if context.is_tty_available and not context.stdin_reserved_by_caller:
            return InteractivityDecision(Verdict.PROCEED)
        return InteractivityDecision(Verdict.PROCEED_NON_INTERACTIVE)

    # InteractiveMode.ALWAYS
    if context.stdin_reserved_by_caller:
        return InteractivityDecision(Verdict.REFUSE, STDIN_RESERVED_REASON)
    if not context.is_tty_available:
        return InteractivityDecision(Verdict.REFUSE, NO_TTY_REASON)
    return InteractivityDecision(Verdict.PROCEED)
