"""Assertion DA client — stores built artifacts in the data-availability layer.

A successful submission records a ``PendingAssertion`` under the target
project so a later ``pcl submit`` can register it.  Resubmitting the same
(project, name, constructor args) replaces the pending entry: last write
wins.
"""

from __future__ import annotations

import logging
from typing import Any

import httpx

from pcl.config import Settings
from pcl.core.auth import invalidate_credential, require_credential
from pcl.core.config_store import ConfigStore
from pcl.core.errors import (
    CredentialRejected,
    InvalidConstructorArgs,
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
from pcl.models.artifacts import BuildArtifact
from pcl.models.assertions import PendingAssertion
from pcl.models.config import PersistedConfig

logger = logging.getLogger(__name__)

SERVICE = "da"
SUBMIT_PATH = "/assertions"


def build_payload(artifact: BuildArtifact, constructor_args: list[str]) -> dict[str, Any]:
    """JSON body for ``POST /assertions``."""
    return {
        "name": artifact.contract_name,
        "bytecode": artifact.bytecode,
        "source": artifact.flattened_source,
        "constructor_signature": artifact.constructor_signature,
        "constructor_args": list(constructor_args),
        "compiler_version": artifact.compiler_version,
    }


class DaSubmissionClient:
    """Submits artifacts to the DA service and tracks them as pending.

    Parameters
    ----------
    store:
        Persists the pending table after a successful submission.
    base_url:
        Root URL of the DA service.
    timeout / connect_timeout:
        HTTP timeouts in seconds.
    transport:
        Optional ``httpx`` transport, for tests.
    """

    def __init__(
        self,
        store: ConfigStore,
        base_url: str,
        *,
        timeout: float = 30.0,
        connect_timeout: float = 10.0,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._store = store
        self._base_url = base_url
        self._timeout = timeout
        self._connect_timeout = connect_timeout
        self._transport = transport

    @classmethod
    def from_settings(
        cls,
        store: ConfigStore,
        settings: Settings,
        transport: httpx.BaseTransport | None = None,
    ) -> DaSubmissionClient:
        return cls(
            store,
            settings.da_url,
            timeout=settings.http_timeout_seconds,
            connect_timeout=settings.http_connect_timeout_seconds,
            transport=transport,
        )

    def submit(
        self,
        config: PersistedConfig,
        project: str,
        artifact: BuildArtifact,
        constructor_args: list[str] | None = None,
    ) -> str:
        """Store *artifact* in the DA layer and record it as pending.

        Returns the DA artifact id.

        Raises
        ------
        NotAuthenticated / CredentialExpired
            Before any network call, if there is no usable credential.
        InvalidConstructorArgs
            If the argument count does not match the constructor.
        CredentialRejected
            On 401/403; the stored credential is cleared.
        SubmissionNetworkError / SubmissionRejected
            On transport failure / application error.  The pending table is
            left unchanged.
        """
        args = list(constructor_args or [])
        credential = require_credential(config)

        if len(args) != artifact.constructor_arity:
            raise InvalidConstructorArgs(
                artifact.constructor_arity,
                len(args),
                artifact.constructor_signature,
                hint=f"pcl store {artifact.contract_name} <arg0> <arg1> ...",
            )

        with ServiceClient(
            SERVICE,
            self._base_url,
            token=credential.token,
            timeout=self._timeout,
            connect_timeout=self._connect_timeout,
            transport=self._transport,
        ) as client:
            try:
                response = client.post(SUBMIT_PATH, json=build_payload(artifact, args))
            except ServiceUnavailable as exc:
                raise SubmissionNetworkError(str(exc)) from exc

            if is_auth_rejection(response):
                invalidate_credential(config, self._store)
                raise CredentialRejected(
                    f"da: credential rejected ({describe_error(response)})."
                )
            if response.is_error:
                detail = describe_error(response)
                raise SubmissionRejected(f"da: submission rejected ({detail}).", detail=detail)

            try:
                body = client.json(response)
            except MalformedResponse as exc:
                raise SubmissionRejected(str(exc), detail=response.text) from exc

        if not isinstance(body, dict) or not body.get("artifact_id"):
            raise SubmissionRejected(
                "da: response did not include an artifact_id.", detail=str(body)
            )

        artifact_id = str(body["artifact_id"])
        entry = PendingAssertion(
            name=artifact.contract_name,
            constructor_args=args,
            artifact_id=artifact_id,
            signature=str(body.get("signature") or ""),
        )
        replaced = config.upsert_pending(project, entry)
        self._store.save(config)

        if replaced is not None:
            logger.info(
                "da: %s replaced pending %s -> %s",
                entry.key,
                replaced.artifact_id,
                artifact_id,
            )
        else:
            logger.info("da: %s stored as %s (project %s)", entry.key, artifact_id, project)
        return artifact_id
