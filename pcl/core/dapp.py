"""dApp client — registers pending assertions against a project.

Resolution
----------
- Project: an explicit name is matched against the account's projects;
  without one the user picks interactively.
- Assertions: explicit selectors (``Name`` or ``Name(arg0,arg1)``) must each
  match a pending entry exactly; without selectors the user picks from the
  project's pending entries.

Registration is per item and partial-failure tolerant.  Each success is
removed from the pending table and persisted immediately; failures stay
pending and are collected into the ``SubmissionReport``.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any
from urllib.parse import quote

import httpx
from pydantic import ValidationError

from pcl.config import Settings
from pcl.core.auth import invalidate_credential, require_credential
from pcl.core.config_store import ConfigStore
from pcl.core.errors import (
    AssertionNotFound,
    CredentialRejected,
    NoPendingAssertions,
    NoProjectsAvailable,
    NothingSelected,
    ProjectNotFound,
    SubmissionError,
    SubmissionNetworkError,
    SubmissionRejected,
)
from pcl.core.http import (
    MalformedResponse,
    ServiceClient,
    ServiceUnavailable,
    describe_error,
    is_auth_rejection,
)
from pcl.core.selection import Choice, Prompter
from pcl.models.assertions import AssertionKey, PendingAssertion
from pcl.models.config import PersistedConfig
from pcl.models.projects import Project
from pcl.models.reports import RegisteredAssertion, RegistrationFailure, SubmissionReport

logger = logging.getLogger(__name__)

SERVICE = "dapp"
PROJECTS_PATH = "/projects"
DAPP_HOME = "https://dapp.phylax.systems"


class DappSubmissionClient:
    """Resolves a project and pending assertions, then registers them.

    Parameters
    ----------
    store:
        Persists the pending table after each successful registration.
    base_url:
        Root URL of the dApp registration API.
    prompter:
        Selection capability used when project or assertions are not given
        explicitly.
    timeout / connect_timeout:
        HTTP timeouts in seconds.
    transport:
        Optional ``httpx`` transport, for tests.
    """

    def __init__(
        self,
        store: ConfigStore,
        base_url: str,
        prompter: Prompter,
        *,
        timeout: float = 30.0,
        connect_timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._store = store
        self._base_url = base_url
        self._prompter = prompter
        self._timeout = timeout
        self._connect_timeout = connect_timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        store: ConfigStore,
        settings: Settings,
        prompter: Prompter,
        transport: httpx.BaseTransport | None = None,
    ) -> DappSubmissionClient:
        return cls(
            store,
            settings.dapp_url,
            prompter,
            timeout=settings.http_timeout_seconds,
            connect_timeout=settings.http_connect_timeout_seconds,
            transport=transport,
        )

    # ------------------------------------------------------------------
    # Entry point
    # ------------------------------------------------------------------

    def submit(
        self,
        config: PersistedConfig,
        project_name: str | None = None,
        selectors: Sequence[str | AssertionKey] | None = None,
    ) -> SubmissionReport:
        """Resolve, then register.  See the module docstring.

        Raises before any registration call on resolution errors
        (``ProjectNotFound``, ``NoProjectsAvailable``, ``AssertionNotFound``,
        ``NoPendingAssertions``, ``NothingSelected``) and before any network
        call at all when there is no usable credential.
        """
        credential = require_credential(config)
        with ServiceClient(
            SERVICE,
            self._base_url,
            token=credential.token,
            timeout=self._timeout,
            connect_timeout=self._connect_timeout,
            transport=self._transport,
        ) as client:
            projects = self.list_projects(client, config)
            project = self.resolve_project(projects, project_name)
            entries = self.resolve_assertions(config, project, selectors)
            return self.register(client, config, project, entries)

    # ------------------------------------------------------------------
    # Projects
    # ------------------------------------------------------------------

    def list_projects(self, client: ServiceClient, config: PersistedConfig) -> list[Project]:
        """``GET /projects`` for the authenticated account."""
        try:
            response = client.get(PROJECTS_PATH)
        except ServiceUnavailable as exc:
            raise SubmissionNetworkError(str(exc)) from exc

        if is_auth_rejection(response):
            invalidate_credential(config, self._store)
            raise CredentialRejected(f"dapp: credential rejected ({describe_error(response)}).")
        if response.is_error:
            detail = describe_error(response)
            raise SubmissionRejected(f"dapp: could not list projects ({detail}).", detail=detail)

        try:
            body = client.json(response)
            items = body.get("projects", []) if isinstance(body, dict) else body
            return [Project.model_validate(item) for item in items]
        except (MalformedResponse, ValidationError, TypeError, AttributeError) as exc:
            raise SubmissionRejected(
                f"dapp: unexpected project list: {exc}", detail=response.text
            ) from exc

    def resolve_project(self, projects: list[Project], project_name: str | None) -> Project:
        if project_name:
            for project in projects:
                if project.name == project_name:
                    return project
            available = ", ".join(p.name for p in projects) or "none"
            raise ProjectNotFound(
                f"dapp: project {project_name!r} not found (available: {available})."
            )

        if not projects:
            raise NoProjectsAvailable(
                "dapp: no projects found for the authenticated account.",
                hint=f"Create a project at {DAPP_HOME}",
            )
        return self._prompter.select_one(
            "Select a project to submit assertions to:",
            [Choice(p.name, p) for p in projects],
        )

    # ------------------------------------------------------------------
    # Assertions
    # ------------------------------------------------------------------

    def resolve_assertions(
        self,
        config: PersistedConfig,
        project: Project,
        selectors: Sequence[str | AssertionKey] | None,
    ) -> list[PendingAssertion]:
        pending = config.pending_for(project.name)

        if selectors:
            keys: list[AssertionKey] = []
            seen: set[str] = set()
            for selector in selectors:
                key = selector if isinstance(selector, AssertionKey) else AssertionKey.parse(selector)
                ident = f"{key.name}{key.args_encoding}"
                if ident not in seen:
                    seen.add(ident)
                    keys.append(key)

            matched: list[PendingAssertion] = []
            missing: list[str] = []
            for key in keys:
                entry = config.find_pending(project.name, key)
                if entry is None:
                    missing.append(str(key))
                else:
                    matched.append(entry)
            if missing:
                raise AssertionNotFound(missing, project.name)
            return matched

        if not pending:
            raise NoPendingAssertions(f"No pending assertions for project {project.name!r}.")
        chosen = self._prompter.select_many(
            "Select assertions to submit:",
            [Choice(str(e.key), e) for e in pending],
        )
        if not chosen:
            raise NothingSelected("No assertions selected.")
        return chosen

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------

    def register(
        self,
        client: ServiceClient,
        config: PersistedConfig,
        project: Project,
        entries: list[PendingAssertion],
    ) -> SubmissionReport:
        """Register each entry; one failure never rolls back another."""
        registered: list[RegisteredAssertion] = []
        failed: list[RegistrationFailure] = []
        rejected: CredentialRejected | None = None

        for entry in entries:
            if rejected is not None:
                failed.append(self._failure(entry, rejected))
                continue
            try:
                self._register_one(client, project, entry)
            except CredentialRejected as exc:
                invalidate_credential(config, self._store)
                rejected = exc
                failed.append(self._failure(entry, exc))
                continue
            except SubmissionError as exc:
                logger.warning("dapp: %s failed: %s", entry.key, exc)
                failed.append(self._failure(entry, exc))
                continue

            config.remove_pending(project.name, entry.key)
            self._store.save(config)
            registered.append(RegisteredAssertion(key=entry.key, artifact_id=entry.artifact_id))
            logger.info("dapp: registered %s with project %s", entry.key, project.name)

        return SubmissionReport(project=project, registered=registered, failed=failed)

    def _register_one(
        self, client: ServiceClient, project: Project, entry: PendingAssertion
    ) -> None:
        body: dict[str, Any] = {
            "artifact_id": entry.artifact_id,
            "name": entry.name,
            "constructor_args": list(entry.constructor_args),
        }
        if entry.signature:
            body["signature"] = entry.signature

        path = f"{PROJECTS_PATH}/{quote(project.id, safe='')}/assertions"
        try:
            response = client.post(path, json=body)
        except ServiceUnavailable as exc:
            raise SubmissionNetworkError(str(exc)) from exc

        if is_auth_rejection(response):
            raise CredentialRejected(f"dapp: credential rejected ({describe_error(response)}).")
        if response.is_error:
            detail = describe_error(response)
            raise SubmissionRejected(f"dapp: {entry.key} rejected ({detail}).", detail=detail)

        try:
            result = client.json(response)
        except MalformedResponse as exc:
            raise SubmissionRejected(str(exc), detail=response.text) from exc
        if not isinstance(result, dict) or result.get("registered") is not True:
            raise SubmissionRejected(
                f"dapp: {entry.key} was not registered.", detail=str(result)
            )

    @staticmethod
    def _failure(entry: PendingAssertion, error: Exception) -> RegistrationFailure:
        return RegistrationFailure(key=entry.key, artifact_id=entry.artifact_id, error=str(error))
