"""dApp-side project model."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field


class Project(BaseModel):
    """A project owned by the authenticated account.

    The CLI never creates projects; it resolves existing ones by name or by
    interactive choice.  The registration API has used both ``id``/``name``
    and ``project_id``/``project_name``; either spelling is accepted.
    """

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str = Field(validation_alias=AliasChoices("id", "project_id"))
    name: str = Field(validation_alias=AliasChoices("name", "project_name"))
