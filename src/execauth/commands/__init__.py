"""Built-in CLI sub-commands for execauth.

* :mod:`~execauth.commands.resolve` -- print the credential that would be
  used for the current context.
* :mod:`~execauth.commands.get` -- send an authenticated GET to the cluster.

Both are plain callback functions registered directly on the root app.
"""
