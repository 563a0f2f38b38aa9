"""Submission report models — outcome of a ``pcl submit`` run."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from pcl.models.assertions import AssertionKey
from pcl.models.projects import Project


class RegisteredAssertion(BaseModel):
    """A pending assertion the dApp accepted."""

    model_config = ConfigDict(frozen=True)

    key: AssertionKey
    artifact_id: str


class RegistrationFailure(BaseModel):
    """A pending assertion the dApp did not accept; it stays pending."""

    model_config = ConfigDict(frozen=True)

    key: AssertionKey
    artifact_id: str
    error: str  # one-line cause, attributed to its service


class SubmissionReport(BaseModel):
    """Per-item outcome of registering assertions against one project.

    Registration is partial-failure tolerant: failed items do not roll
    back registered siblings.
    """

    model_config = ConfigDict(frozen=True)

    project: Project
    registered: list[RegisteredAssertion] = []
    failed: list[RegistrationFailure] = []

    @property
    def ok(self) -> bool:
        return not self.failed

    @property
    def registered_ids(self) -> list[str]:
        return [r.artifact_id for r in self.registered]
