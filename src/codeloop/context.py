# codeloop: Console I/O and logging seam shared by the dispatcher, the session loop and the CLI. Components take an optional Context so tests and embedding servers can run them silently.

import sys
from typing import Any, Dict, Optional


class Context:
    """
    Thin wrapper around console I/O and logging used by codeloop.

    The session core never prints directly; everything user-facing or
    diagnostic goes through one of these methods.
    """

    def __init__(self, settings: Optional[Dict[str, Any]] = None, quiet: bool = False) -> None:
        self.settings: Dict[str, Any] = settings or {}
        self.quiet = quiet

    def send_to_user(self, message: str) -> None:
        """Send a user-facing message to stdout."""
        print(message)

    def log(self, message: str) -> None:
        """Emit a lightweight log line to stdout unless the context is quiet."""
        if self.quiet:
            return
        print(f"[LOG] {message}")

    def error_message(self, message: str) -> None:
        """Print an error message to stderr."""
        print(f"Error: {message}", file=sys.stderr)


def quiet_context() -> Context:
    return Context(quiet=True)
