"""Persisted CLI state — the credential plus the pending-assertion table."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from pcl.models.assertions import AssertionKey, PendingAssertion
from pcl.models.auth import Credential

CONFIG_SCHEMA_VERSION = 1


class PersistedConfig(BaseModel):
    """Root of the per-user state file.

    Loaded once per command, mutated in memory, and written back by the
    ``ConfigStore``.  Unlike the value models it holds, this object is
    mutable.  Unknown fields are ignored on load so older CLIs can read
    files written by newer ones.

    Holds at most one pending entry per (project, name, args encoding).
    """

    model_config = ConfigDict(extra="ignore")

    version: int = CONFIG_SCHEMA_VERSION
    credential: Credential | None = None
    pending: dict[str, list[PendingAssertion]] = Field(default_factory=dict)

    # ------------------------------------------------------------------
    # Pending table
    # ------------------------------------------------------------------

    def pending_for(self, project: str) -> list[PendingAssertion]:
        """Return a copy of the pending entries for *project*."""
        return list(self.pending.get(project, []))

    def find_pending(self, project: str, key: AssertionKey) -> PendingAssertion | None:
        for entry in self.pending.get(project, []):
            if entry.matches(key):
                return entry
        return None

    def upsert_pending(
        self, project: str, entry: PendingAssertion
    ) -> PendingAssertion | None:
        """Insert *entry*, replacing any entry with the same key.

        Returns the replaced entry, if there was one.
        """
        bucket = self.pending.setdefault(project, [])
        key = entry.key
        for idx, existing in enumerate(bucket):
            if existing.matches(key):
                bucket[idx] = entry
                return existing
        bucket.append(entry)
        return None

    def remove_pending(self, project: str, key: AssertionKey) -> bool:
        """Remove the entry matching *key*; drop the bucket when it empties."""
        bucket = self.pending.get(project)
        if not bucket:
            return False
        remaining = [e for e in bucket if not e.matches(key)]
        if len(remaining) == len(bucket):
            return False
        if remaining:
            self.pending[project] = remaining
        else:
            del self.pending[project]
        return True
