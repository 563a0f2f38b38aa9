"""Error taxonomy for the CLI.

Every error carries a one-line message.  Errors the user can fix by running
a specific command also carry a ``hint`` with that exact command.  Errors
raised for a remote call name the originating service (``auth``, ``da``,
``dapp``) in the message.
"""

from __future__ import annotations

LOGIN_HINT = "pcl auth login"
STORE_HINT = "pcl store <assertion_contract> [constructor args...]"


class PclError(RuntimeError):
    """Base class for every error the CLI reports to the user."""

    hint: str = ""

    def __init__(self, message: str, *, hint: str | None = None) -> None:
        super().__init__(message)
        if hint is not None:
            self.hint = hint


# ---------------------------------------------------------------------------
# Config
# ---------------------------------------------------------------------------


class ConfigError(PclError):
    """The persisted state file could not be used. Aborts the command."""


class ConfigCorrupt(ConfigError):
    """The state file exists but cannot be parsed."""


class ConfigIoError(ConfigError):
    """The state file could not be read or written."""


# ---------------------------------------------------------------------------
# Auth
# ---------------------------------------------------------------------------


class AuthError(PclError):
    """Authentication is missing, expired, rejected, or failed to complete."""


class NotAuthenticated(AuthError):
    hint = LOGIN_HINT

    def __init__(self, message: str = "Not authenticated.", **kwargs) -> None:
        super().__init__(message, **kwargs)


class CredentialExpired(AuthError):
    hint = LOGIN_HINT

    def __init__(self, message: str = "Stored credential has expired.", **kwargs) -> None:
        super().__init__(message, **kwargs)


class CredentialRejected(AuthError):
    """A service answered 401/403; the stored credential has been cleared."""

    hint = LOGIN_HINT


class AuthDenied(AuthError):
    """The wallet owner denied the pairing request."""


class AuthExpired(AuthError):
    """The pairing code lapsed before it was approved."""

    hint = LOGIN_HINT


class AuthCancelled(AuthError):
    """Login was interrupted by the user."""


class AuthNetworkError(AuthError):
    """The auth service stayed unreachable after bounded retries."""


class AuthFailed(AuthError):
    """The auth service answered with something unusable."""


class InvalidAuthTransition(AuthError):
    """Raised when the login state machine is driven out of order."""


# ---------------------------------------------------------------------------
# Build
# ---------------------------------------------------------------------------


class BuildError(PclError):
    """The external build tool could not produce the requested artifact.

    ``diagnostics`` holds the tool's own output, surfaced verbatim.
    """

    def __init__(self, reason: str, diagnostics: str = "", **kwargs) -> None:
        super().__init__(reason, **kwargs)
        self.reason = reason
        self.diagnostics = diagnostics


# ---------------------------------------------------------------------------
# Submission
# ---------------------------------------------------------------------------


class SubmissionError(PclError):
    """A DA or dApp submission could not be completed."""


class SubmissionNetworkError(SubmissionError):
    """The service could not be reached. Retryable by re-running."""


class SubmissionRejected(SubmissionError):
    """The service answered with an application error. Retryable by re-running."""

    def __init__(self, message: str, detail: str = "", **kwargs) -> None:
        super().__init__(message, **kwargs)
        self.detail = detail


class ProjectNotFound(SubmissionError):
    pass


class NoProjectsAvailable(SubmissionError):
    pass


class AssertionNotFound(SubmissionError):
    hint = STORE_HINT

    def __init__(self, selectors: list[str], project: str, **kwargs) -> None:
        joined = ", ".join(selectors)
        super().__init__(
            f"No pending assertion matching {joined} for project {project!r}.",
            **kwargs,
        )
        self.selectors = selectors


class NoPendingAssertions(SubmissionError):
    hint = STORE_HINT


class NothingSelected(SubmissionError):
    pass


class InvalidConstructorArgs(SubmissionError):
    def __init__(self, expected: int, given: int, signature: str, **kwargs) -> None:
        super().__init__(
            f"Constructor {signature} expects {expected} argument(s), got {given}.",
            **kwargs,
        )
        self.expected = expected
        self.given = given


class SelectionCancelled(SubmissionError):
    """The interactive picker was aborted (Ctrl-C / Esc)."""
