"""Exec credential plugin support.

* :mod:`~execauth.exec.interactive` -- whether a plugin may run and whether
  it gets the terminal.
* :mod:`~execauth.exec.invoker` -- spawning the plugin with a bounded wait.
* :mod:`~execauth.exec.response` -- validating what the plugin printed.
"""

from execauth.exec.interactive import InteractivityDecision, Verdict, arbitrate
from execauth.exec.invoker import InvocationResult, PluginInvoker
from execauth.exec.response import parse_exec_credential

__all__ = [
    "InteractivityDecision",
    "InvocationResult",
    "PluginInvoker",
    "Verdict",
    "arbitrate",
    "parse_exec_credential",
]
