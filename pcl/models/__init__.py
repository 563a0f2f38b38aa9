"""pcl data models — all Pydantic v2; value objects are frozen."""

from pcl.models.artifacts import BuildArtifact
from pcl.models.assertions import AssertionKey, PendingAssertion, encode_args
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
from pcl.models.config import CONFIG_SCHEMA_VERSION, PersistedConfig
from pcl.models.projects import Project
from pcl.models.reports import (
    RegisteredAssertion,
    RegistrationFailure,
    SubmissionReport,
)

__all__ = [
    # auth
    "AuthState",
    "AuthStatus",
    "Credential",
    "DeviceCode",
    "DeviceStatus",
    "DeviceStatusKind",
    "TERMINAL_AUTH_STATES",
    "VALID_AUTH_TRANSITIONS",
    # assertions
    "AssertionKey",
    "PendingAssertion",
    "encode_args",
    # artifacts
    "BuildArtifact",
    # config
    "CONFIG_SCHEMA_VERSION",
    "PersistedConfig",
    # projects
    "Project",
    # reports
    "RegisteredAssertion",
    "RegistrationFailure",
    "SubmissionReport",
]
