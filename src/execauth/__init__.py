"""execauth -- Resolve API credentials from explicit sources or exec plugins.

This package decides, for each API request, which single credential to
use: an explicit token, a username/password, a pre-existing client
certificate, or the output of an external *exec credential plugin*
following the Kubernetes ``client.authentication.k8s.io`` protocol.

Typical usage::

    execauth resolve                  # print the active credential (redacted)
    cat deploy.yaml | execauth resolve -f -   # stdin stays with the caller
    execauth get /version             # authenticated GET against the cluster

Modules:
    app: Typer application and CLI entry point.
    models: Pydantic models shared across the entire package.
    config: XDG-aware engine settings and kubeconfig loading.
    exceptions: Exception hierarchy with exit-code mapping.
    exit_codes: Numeric exit codes.
    output: stdout/stderr formatting system with Rich support.
"""

__version__ = "0.1.0"
