"""Single-file store for the credential and the pending-assertion table.

Layout: ``{config_dir}/config.json`` (``~/.pcl/config.json`` by default).

Writes go to a sibling temporary file which is fsynced and then renamed
over the target, so the file on disk is always either the previous valid
state or the new one.  There is no cross-process lock: two concurrent
invocations may race and the last save wins.
"""

from __future__ import annotations

import json
import logging
import os
from pathlib import Path
from tempfile import NamedTemporaryFile

from pydantic import ValidationError

from pcl.core.errors import ConfigCorrupt, ConfigIoError
from pcl.models.config import PersistedConfig

logger = logging.getLogger(__name__)


class ConfigStore:
    """Loads and atomically saves a ``PersistedConfig``.

    Parameters
    ----------
    path:
        Location of the JSON state file.  Parent directories are created on
        first save.
    """

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Load
    # ------------------------------------------------------------------

    def load(self) -> PersistedConfig:
        """Read the state file.

        Returns an empty config when the file does not exist.

        Raises
        ------
        ConfigCorrupt
            If the file exists but is not a valid config document.
        ConfigIoError
            If the file exists but cannot be read.
        """
        try:
            raw = self._path.read_bytes()
        except FileNotFoundError:
            logger.debug("ConfigStore: %s absent, using empty config", self._path)
            return PersistedConfig()
        except OSError as exc:
            raise ConfigIoError(f"Failed to read config file {self._path}: {exc}") from exc

        try:
            data = json.loads(raw)
            config = PersistedConfig.model_validate(data)
        except (ValueError, ValidationError) as exc:
            raise ConfigCorrupt(
                f"Failed to parse config file {self._path}: {exc}",
                hint=f"Fix or remove {self._path}",
            ) from exc

        logger.debug(
            "ConfigStore: loaded %s (credential=%s, projects=%d)",
            self._path,
            config.credential is not None,
            len(config.pending),
        )
        return config

    # ------------------------------------------------------------------
    # Save
    # ------------------------------------------------------------------

    def save(self, config: PersistedConfig) -> None:
        """Write *config* atomically (temp file + rename).

        Raises
        ------
        ConfigIoError
            If any step fails.  The previous file is left untouched.
        """
        payload = config.model_dump_json(indent=2).encode("utf-8")
        tmp_path: Path | None = None
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with NamedTemporaryFile(
                mode="wb",
                prefix=f".{self._path.name}-",
                suffix=".tmp",
                dir=self._path.parent,
                delete=False,
            ) as handle:
                tmp_path = Path(handle.name)
                handle.write(payload)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, self._path)
            tmp_path = None
        except OSError as exc:
            raise ConfigIoError(f"Failed to write config file {self._path}: {exc}") from exc
        finally:
            if tmp_path is not None:
                tmp_path.unlink(missing_ok=True)

        logger.debug("ConfigStore: saved %s (%d bytes)", self._path, len(payload))
