"""Build adapter — drives the external Forge-compatible binary.

Defines the ``BuildAdapter`` Protocol the DA client depends on, and the
default subprocess-backed ``ForgeBuildAdapter``.  Compilation itself is
entirely the external tool's business: this module only invokes it and
interprets its output.

Sequence for one assertion contract::

    forge build   --root R --contracts A
    forge inspect --root R --contracts A <Name> deployedBytecode
    forge inspect --root R --contracts A <Name> abi --json
    forge inspect --root R --contracts A <Name> metadata --json
    forge flatten --root R <source file>

Compilation failures are deterministic, so nothing here retries.
"""

from __future__ import annotations

import json
import logging
import re
import shutil
import subprocess
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, Protocol, runtime_checkable

from pcl.core.errors import BuildError
from pcl.models.artifacts import BuildArtifact

logger = logging.getLogger(__name__)

SOURCE_EXTENSIONS: tuple[str, ...] = (".a.sol", ".sol")

Runner = Callable[[Sequence[str]], "subprocess.CompletedProcess[str]"]


# ---------------------------------------------------------------------------
# Protocol
# ---------------------------------------------------------------------------


@runtime_checkable
class BuildAdapter(Protocol):
    """Anything that can turn a contract name into a ``BuildArtifact``."""

    def build_and_flatten(self, contract_name: str) -> BuildArtifact:
        """Compile, inspect, and flatten one assertion contract.

        Raises
        ------
        BuildError
            If the contract does not exist, fails to compile, or the tool
            exits non-zero.
        """
        ...


# ---------------------------------------------------------------------------
# ABI helpers
# ---------------------------------------------------------------------------


def selector_type(param: dict[str, Any]) -> str:
    """Canonical selector type of an ABI parameter, expanding tuples."""
    abi_type = param.get("type", "")
    if abi_type.startswith("tuple"):
        inner = ",".join(selector_type(c) for c in param.get("components", []))
        return f"({inner}){abi_type[len('tuple'):]}"
    return abi_type


def constructor_inputs(abi: list[dict[str, Any]]) -> list[dict[str, Any]]:
    for item in abi:
        if item.get("type") == "constructor":
            return list(item.get("inputs", []))
    return []


def constructor_signature(inputs: list[dict[str, Any]]) -> str:
    """``constructor(address,uint256)`` style signature for *inputs*."""
    return "constructor(" + ",".join(selector_type(p) for p in inputs) + ")"


# ---------------------------------------------------------------------------
# Forge adapter
# ---------------------------------------------------------------------------


class ForgeBuildAdapter:
    """Subprocess-backed adapter around ``forge`` (or a compatible fork).

    Parameters
    ----------
    binary:
        Executable name or path of the build tool.
    root:
        Root of the local assertion project.
    assertions_dir:
        Assertion sources, relative to *root* unless absolute.
    runner:
        Executes one command and returns the completed process.  Defaults
        to ``subprocess.run`` with captured text output.  Tests inject a
        scripted runner.
    """

    def __init__(
        self,
        binary: str = "forge",
        root: Path | None = None,
        assertions_dir: Path = Path("assertions/src"),
        runner: Runner | None = None,
    ) -> None:
        self._binary = binary
        self._root = Path(root) if root is not None else Path.cwd()
        self._assertions_dir = (
            assertions_dir if assertions_dir.is_absolute() else self._root / assertions_dir
        )
        self._runner = runner or self._run_subprocess

    @property
    def root(self) -> Path:
        return self._root

    @property
    def assertions_dir(self) -> Path:
        return self._assertions_dir

    # ------------------------------------------------------------------
    # Build + flatten
    # ------------------------------------------------------------------

    def build_and_flatten(self, contract_name: str) -> BuildArtifact:
        source = self.find_source(contract_name)
        project_args = ["--root", str(self._root), "--contracts", str(self._assertions_dir)]

        self._invoke(["build", *project_args], f"Compilation of {contract_name} failed")

        bytecode = self._invoke(
            ["inspect", *project_args, contract_name, "deployedBytecode"],
            f"Could not read deployed bytecode of {contract_name}",
        ).strip()
        if not bytecode.startswith("0x"):
            bytecode = f"0x{bytecode}"
        if bytecode == "0x":
            raise BuildError(
                f"{contract_name} has no deployed bytecode (abstract contract or interface?)"
            )

        abi = self._invoke_json(
            ["inspect", *project_args, contract_name, "abi", "--json"],
            f"Could not read ABI of {contract_name}",
        )
        if not isinstance(abi, list):
            raise BuildError(f"Unexpected ABI output for {contract_name}", json.dumps(abi))

        metadata = self._invoke_json(
            ["inspect", *project_args, contract_name, "metadata", "--json"],
            f"Could not read metadata of {contract_name}",
        )
        compiler_version = ""
        if isinstance(metadata, dict):
            raw_version = str(metadata.get("compiler", {}).get("version", ""))
            compiler_version = raw_version.split("+", 1)[0]

        flattened = self._invoke(
            ["flatten", "--root", str(self._root), str(source)],
            f"Flattening {source.name} failed",
        )

        inputs = constructor_inputs(abi)
        artifact = BuildArtifact(
            contract_name=contract_name,
            bytecode=bytecode,
            flattened_source=flattened,
            constructor_signature=constructor_signature(inputs),
            constructor_inputs=inputs,
            compiler_version=compiler_version,
        )
        logger.info(
            "build: %s ready (%s, solc %s, %d bytes of source)",
            contract_name,
            artifact.constructor_signature,
            compiler_version or "?",
            len(flattened),
        )
        return artifact

    def find_source(self, contract_name: str) -> Path:
        """Locate the source file declaring *contract_name*.

        Tries ``<Name>.a.sol`` and ``<Name>.sol`` directly under the
        assertions directory, then anywhere below it, then any ``.sol`` file
        that declares ``contract <Name>``.
        """
        base = self._assertions_dir
        if not base.is_dir():
            raise BuildError(f"Assertions directory not found: {base}")

        for ext in SOURCE_EXTENSIONS:
            candidate = base / f"{contract_name}{ext}"
            if candidate.is_file():
                return candidate

        for ext in SOURCE_EXTENSIONS:
            matches = sorted(base.rglob(f"{contract_name}{ext}"))
            if matches:
                return matches[0]

        declaration = re.compile(rf"\bcontract\s+{re.escape(contract_name)}\b")
        for path in sorted(base.rglob("*.sol")):
            try:
                if declaration.search(path.read_text(encoding="utf-8", errors="replace")):
                    return path
            except OSError:
                logger.debug("build: could not read %s", path)

        raise BuildError(f"Assertion contract {contract_name} not found in {base}")

    # ------------------------------------------------------------------
    # Passthrough (pcl test / pcl build)
    # ------------------------------------------------------------------

    def passthrough(self, args: Sequence[str]) -> int:
        """Run the tool with inherited stdio and return its exit code."""
        self._require_binary()
        cmd = [self._binary, *args]
        logger.debug("build: passthrough %s", cmd)
        try:
            return subprocess.run(cmd, cwd=self._root).returncode
        except OSError as exc:
            raise BuildError(f"Failed to run {self._binary}: {exc}") from exc

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _invoke(self, args: list[str], failure: str) -> str:
        cmd = [self._binary, *args]
        logger.debug("build: running %s", " ".join(cmd))
        result = self._runner(cmd)
        if result.returncode != 0:
            diagnostics = (result.stderr or "").strip() or (result.stdout or "").strip()
            raise BuildError(f"{failure} ({self._binary} exited {result.returncode})", diagnostics)
        return result.stdout or ""

    def _invoke_json(self, args: list[str], failure: str) -> Any:
        output = self._invoke(args, failure)
        try:
            return json.loads(output)
        except ValueError as exc:
            raise BuildError(f"{failure}: output is not JSON", output.strip()) from exc

    def _require_binary(self) -> None:
        if shutil.which(self._binary) is None:
            raise BuildError(f"{self._binary} is not installed or not available on PATH")

    def _run_subprocess(self, cmd: Sequence[str]) -> subprocess.CompletedProcess[str]:
        self._require_binary()
        try:
            return subprocess.run(
                list(cmd),
                capture_output=True,
                text=True,
                cwd=self._root,
            )
        except OSError as exc:
            raise BuildError(f"Failed to run {self._binary}: {exc}") from exc
