"""Build artifact model — transient output of the build adapter."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict


class BuildArtifact(BaseModel):
    """Everything the DA service needs for one assertion contract.

    Produced by the build adapter and consumed by the DA client within the
    same command.  Never persisted.
    """

    model_config = ConfigDict(frozen=True)

    contract_name: str
    bytecode: str  # deployed bytecode, 0x-prefixed hex
    flattened_source: str
    constructor_signature: str = "constructor()"
    constructor_inputs: list[dict[str, Any]] = []  # raw ABI inputs
    compiler_version: str = ""  # e.g. "0.8.28"

    @property
    def constructor_arity(self) -> int:
        return len(self.constructor_inputs)
