"""Wallet device-authorization: login state machine, logout, and status.

Login flow::

    IDLE -> CODE_REQUESTED -> POLLING -> AUTHENTICATED | EXPIRED | CANCELLED | FAILED

The CLI asks the auth service for a pairing code, shows the pairing URL to
the user, then polls the status endpoint until the wallet owner approves or
denies, the code expires, or the user interrupts.  Only ``AUTHENTICATED``
persists anything: the credential is written through the ``ConfigStore``.

Clock, sleep, and cancellation are injected so the loop can be driven
synchronously in tests.
"""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Callable
from typing import Protocol, TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from pcl.config import Settings
from pcl.core.config_store import ConfigStore
from pcl.core.errors import (
    AuthCancelled,
    AuthDenied,
    AuthError,
    AuthExpired,
    AuthFailed,
    AuthNetworkError,
    CredentialExpired,
    InvalidAuthTransition,
    NotAuthenticated,
)
from pcl.core.http import MalformedResponse, ServiceClient, ServiceUnavailable, describe_error
from pcl.models.auth import (
    TERMINAL_AUTH_STATES,
    VALID_AUTH_TRANSITIONS,
    AuthState,
    AuthStatus,
    Credential,
    DeviceCode,
    DeviceStatus,
    DeviceStatusKind,
)
from pcl.models.config import PersistedConfig

logger = logging.getLogger(__name__)

SERVICE = "auth"
CODE_PATH = "/device/code"
STATUS_PATH = "/device/status"

_M = TypeVar("_M", bound=BaseModel)
_T = TypeVar("_T")


class CancelToken(Protocol):
    """Anything with ``is_set()``; ``threading.Event`` satisfies this."""

    def is_set(self) -> bool: ...


class _TransientError(Exception):
    """A poll or code request failed in a way worth retrying."""


# ---------------------------------------------------------------------------
# Login state machine
# ---------------------------------------------------------------------------


class DeviceAuthFlow:
    """One device-authorization attempt.

    Parameters
    ----------
    client:
        ``ServiceClient`` bound to the auth service.
    clock:
        Monotonic clock in seconds.
    sleep:
        Blocks for the given number of seconds.
    cancel:
        Checked before every request; when set the flow ends ``CANCELLED``.
    default_interval:
        Poll interval used when the server does not suggest one.
    max_network_retries:
        Consecutive transient failures tolerated before ending ``FAILED``.
    backoff_seconds / max_backoff_seconds:
        Exponential backoff base and cap between retries.
    on_code:
        Called once with the ``DeviceCode`` so the caller can display it.
    """

    def __init__(
        self,
        client: ServiceClient,
        *,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], object] = time.sleep,
        cancel: CancelToken | None = None,
        default_interval: float = 2.0,
        max_network_retries: int = 5,
        backoff_seconds: float = 1.0,
        max_backoff_seconds: float = 30.0,
        on_code: Callable[[DeviceCode], None] | None = None,
    ) -> None:
        self._client = client
        self._clock = clock
        self._sleep = sleep
        self._cancel = cancel or threading.Event()
        self._default_interval = default_interval
        self._max_retries = max_network_retries
        self._backoff = backoff_seconds
        self._max_backoff = max_backoff_seconds
        self._on_code = on_code

        self._state = AuthState.IDLE
        self.history: list[tuple[AuthState, AuthState]] = []
        self.device_code: DeviceCode | None = None
        self.polls = 0

    @property
    def state(self) -> AuthState:
        return self._state

    def _transition(self, target: AuthState) -> None:
        allowed = VALID_AUTH_TRANSITIONS.get(self._state, set())
        if target not in allowed:
            raise InvalidAuthTransition(
                f"Cannot transition login from {self._state.value} to {target.value}. "
                f"Allowed: {sorted(s.value for s in allowed)}"
            )
        logger.debug("auth: %s -> %s", self._state.value, target.value)
        self.history.append((self._state, target))
        self._state = target

    def _end(self, target: AuthState, error: AuthError) -> AuthError:
        self._transition(target)
        return error

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self) -> Credential:
        """Drive the flow to a terminal state.

        Returns the credential on ``AUTHENTICATED``; every other terminal
        state raises the matching ``AuthError`` subclass.
        """
        if self._state != AuthState.IDLE:
            raise InvalidAuthTransition(f"Login flow already ran (state={self._state.value})")

        try:
            return self._run()
        except KeyboardInterrupt:
            if self._state not in TERMINAL_AUTH_STATES:
                raise self._end(AuthState.CANCELLED, AuthCancelled("Login cancelled.")) from None
            raise

    def _run(self) -> Credential:
        self._check_cancelled()
        self._transition(AuthState.CODE_REQUESTED)
        code = self._with_retries(self._request_code, deadline=None)
        self.device_code = code
        if self._on_code is not None:
            self._on_code(code)

        self._transition(AuthState.POLLING)
        deadline = self._clock() + code.expires_in
        interval = code.interval if code.interval and code.interval > 0 else self._default_interval

        while True:
            self._check_cancelled()
            if self._clock() >= deadline:
                raise self._end(
                    AuthState.EXPIRED,
                    AuthExpired("auth: pairing code expired before it was approved."),
                )

            status = self._with_retries(lambda: self._poll(code), deadline=deadline)
            if status is None:
                continue  # deadline reached while backing off

            if status.status == DeviceStatusKind.APPROVED:
                if status.credential is None:
                    raise self._end(
                        AuthState.FAILED,
                        AuthFailed("auth: login approved but no credential was returned."),
                    )
                self._transition(AuthState.AUTHENTICATED)
                return status.credential
            if status.status == DeviceStatusKind.DENIED:
                raise self._end(AuthState.FAILED, AuthDenied("auth: login was denied."))
            if status.status == DeviceStatusKind.EXPIRED:
                raise self._end(
                    AuthState.EXPIRED,
                    AuthExpired("auth: pairing code expired before it was approved."),
                )

            self._sleep_bounded(interval, deadline)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def _request_code(self) -> DeviceCode:
        response = self._client.post(CODE_PATH)
        return self._parse(response, DeviceCode)

    def _poll(self, code: DeviceCode) -> DeviceStatus:
        self.polls += 1
        response = self._client.get(STATUS_PATH, params={"poll_token": code.poll_token})
        return self._parse(response, DeviceStatus)

    def _parse(self, response: httpx.Response, model: type[_M]) -> _M:
        if response.status_code >= 500:
            raise _TransientError(describe_error(response))
        if response.is_error:
            raise self._end(
                AuthState.FAILED,
                AuthFailed(f"auth: request rejected ({describe_error(response)})."),
            )
        try:
            return model.model_validate(self._client.json(response))
        except (MalformedResponse, ValidationError) as exc:
            raise self._end(
                AuthState.FAILED, AuthFailed(f"auth: unexpected response: {exc}")
            ) from exc

    def _with_retries(self, call: Callable[[], _T], *, deadline: float | None) -> _T | None:
        """Run *call*, retrying transient failures with exponential backoff.

        Returns ``None`` if *deadline* passes while backing off.
        """
        failures = 0
        while True:
            try:
                return call()
            except (ServiceUnavailable, _TransientError) as exc:
                failures += 1
                if failures > self._max_retries:
                    raise self._end(
                        AuthState.FAILED,
                        AuthNetworkError(
                            f"auth: service unreachable after {failures} attempts: {exc}"
                        ),
                    ) from exc
                delay = min(self._backoff * (2 ** (failures - 1)), self._max_backoff)
                logger.warning(
                    "auth: request failed (%s), retrying in %.1fs (attempt %d/%d)",
                    exc,
                    delay,
                    failures,
                    self._max_retries,
                )
                if deadline is None:
                    self._sleep(delay)
                else:
                    self._sleep_bounded(delay, deadline)
                    if self._clock() >= deadline:
                        return None
                self._check_cancelled()

    def _sleep_bounded(self, seconds: float, deadline: float) -> None:
        """Sleep *seconds*, but never past *deadline*."""
        remaining = deadline - self._clock()
        delay = min(seconds, remaining)
        if delay > 0:
            self._sleep(delay)

    def _check_cancelled(self) -> None:
        if self._cancel.is_set():
            raise self._end(AuthState.CANCELLED, AuthCancelled("Login cancelled."))


# ---------------------------------------------------------------------------
# Credential helpers
# ---------------------------------------------------------------------------


def require_credential(config: PersistedConfig) -> Credential:
    """Return the stored credential or raise before any network call."""
    credential = config.credential
    if credential is None:
        raise NotAuthenticated()
    if credential.is_expired():
        raise CredentialExpired()
    return credential


def invalidate_credential(config: PersistedConfig, store: ConfigStore) -> None:
    """Clear a credential the server rejected and persist the change."""
    if config.credential is None:
        return
    logger.info("auth: clearing rejected credential")
    config.credential = None
    store.save(config)


# ---------------------------------------------------------------------------
# Manager
# ---------------------------------------------------------------------------


class AuthManager:
    """Login, logout, and status against an explicit ``PersistedConfig``.

    Parameters
    ----------
    store:
        Where the credential is persisted.
    settings:
        Source of the auth URL, timeouts, and polling parameters.
    transport:
        Optional ``httpx`` transport, for tests.
    clock / sleep / cancel:
        Injected into the ``DeviceAuthFlow``.  When *sleep* is omitted the
        flow waits on the cancel event, so setting it wakes the loop.
    """

    def __init__(
        self,
        store: ConfigStore,
        settings: Settings,
        *,
        transport: httpx.BaseTransport | None = None,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], object] | None = None,
        cancel: threading.Event | None = None,
    ) -> None:
        self._store = store
        self._settings = settings
        self._transport = transport
        self._clock = clock
        self._cancel = cancel or threading.Event()
        self._sleep = sleep or self._cancel.wait
        self.last_flow: DeviceAuthFlow | None = None

    def login(
        self,
        config: PersistedConfig,
        on_code: Callable[[DeviceCode], None] | None = None,
    ) -> Credential:
        """Run the device flow and persist the credential on success."""
        with ServiceClient(
            SERVICE,
            self._settings.auth_url,
            timeout=self._settings.http_timeout_seconds,
            connect_timeout=self._settings.http_connect_timeout_seconds,
            transport=self._transport,
        ) as client:
            flow = DeviceAuthFlow(
                client,
                clock=self._clock,
                sleep=self._sleep,
                cancel=self._cancel,
                default_interval=self._settings.auth_poll_interval_seconds,
                max_network_retries=self._settings.auth_max_network_retries,
                backoff_seconds=self._settings.auth_backoff_seconds,
                max_backoff_seconds=self._settings.auth_max_backoff_seconds,
                on_code=on_code,
            )
            self.last_flow = flow
            credential = flow.run()

        config.credential = credential
        self._store.save(config)
        logger.info("auth: logged in as %s", credential.user_address or "<unknown>")
        return credential

    def logout(self, config: PersistedConfig) -> bool:
        """Clear the stored credential. Returns ``False`` if there was none."""
        if config.credential is None:
            return False
        config.credential = None
        self._store.save(config)
        return True

    @staticmethod
    def status(config: PersistedConfig) -> AuthStatus:
        """Local status check; never touches the network."""
        if config.credential is None:
            return AuthStatus.NOT_AUTHENTICATED
        if config.credential.is_expired():
            return AuthStatus.EXPIRED
        return AuthStatus.AUTHENTICATED
