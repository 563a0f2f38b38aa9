"""Device-authorization models — credential, wire types, and the login state machine."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class AuthState(str, Enum):
    """States of a single device-authorization login attempt."""

    IDLE = "idle"
    CODE_REQUESTED = "code_requested"
    POLLING = "polling"
    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"
    CANCELLED = "cancelled"
    FAILED = "failed"


TERMINAL_AUTH_STATES: frozenset[AuthState] = frozenset(
    {
        AuthState.AUTHENTICATED,
        AuthState.EXPIRED,
        AuthState.CANCELLED,
        AuthState.FAILED,
    }
)

# Valid login transitions, enforced by DeviceAuthFlow.
# Terminal states have no outgoing transitions.
VALID_AUTH_TRANSITIONS: dict[AuthState, set[AuthState]] = {
    AuthState.IDLE: {AuthState.CODE_REQUESTED, AuthState.FAILED, AuthState.CANCELLED},
    AuthState.CODE_REQUESTED: {AuthState.POLLING, AuthState.FAILED, AuthState.CANCELLED},
    AuthState.POLLING: {
        AuthState.AUTHENTICATED,
        AuthState.EXPIRED,
        AuthState.CANCELLED,
        AuthState.FAILED,
    },
    AuthState.AUTHENTICATED: set(),  # terminal
    AuthState.EXPIRED: set(),  # terminal
    AuthState.CANCELLED: set(),  # terminal
    AuthState.FAILED: set(),  # terminal
}


class Credential(BaseModel):
    """Bearer credential issued by the auth service after wallet approval."""

    model_config = ConfigDict(frozen=True)

    token: str
    refresh_token: str = ""
    user_address: str = ""  # connected wallet, e.g. "0xabc..."
    issued_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc)
    )
    expires_at: datetime | None = None

    def is_expired(self, now: datetime | None = None) -> bool:
        """Whether the credential is known to be past its expiry hint."""
        if self.expires_at is None:
            return False
        now = now or datetime.now(timezone.utc)
        expires_at = self.expires_at
        if expires_at.tzinfo is None:
            expires_at = expires_at.replace(tzinfo=timezone.utc)
        return expires_at <= now


class AuthStatus(str, Enum):
    """Result of a local, network-free status check."""

    AUTHENTICATED = "authenticated"
    EXPIRED = "expired"
    NOT_AUTHENTICATED = "not_authenticated"


class DeviceCode(BaseModel):
    """Response of ``POST /device/code``."""

    model_config = ConfigDict(frozen=True)

    pairing_url: str
    poll_token: str
    expires_in: float  # seconds until the pairing code lapses
    interval: float | None = None  # server-suggested poll interval, seconds
    user_code: str = ""


class DeviceStatusKind(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DENIED = "denied"
    EXPIRED = "expired"


class DeviceStatus(BaseModel):
    """Response of ``GET /device/status``."""

    model_config = ConfigDict(frozen=True)

    status: DeviceStatusKind
    credential: Credential | None = None
