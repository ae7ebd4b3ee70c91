"""Persistent WebPA configuration holding the last known firmware version."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path

log = logging.getLogger(__name__)

WEBPA_CFG_FILE = "/nvram/webpa_cfg.json"
FIRMWARE_KEY = "oldFirmwareVersion"
_VERSION_LIMIT = 255


@dataclass
class WebpaConfig:
    """The configuration file's contents that the notifier relies on."""

    old_firmware_version: str = ""

    @classmethod
    def load(cls, path: str | Path = WEBPA_CFG_FILE) -> "WebpaConfig":
        """Load the configuration.

        A missing file is created holding an empty object; a file that is not
        valid JSON is replaced with an empty object.
        """
        cfg_path = Path(path)
        try:
            text = cfg_path.read_text(encoding="utf-8", errors="replace")
        except OSError:
            log.error("Failed to open cfg file in read mode, creating new file %s", cfg_path)
            try:
                cfg_path.write_text("{\n}", encoding="utf-8")
            except OSError as exc:
                log.error("Failed to create cfg file %s: %s", cfg_path, exc)
            return cls()

        try:
            document = json.loads(text)
        except ValueError:
            log.error("Error parsing WebPA config file. Replace it with empty json")
            try:
                cfg_path.write_text("{}", encoding="utf-8")
            except OSError as exc:
                log.error("Could not rewrite %s: %s", cfg_path, exc)
            return cls()

        version = document.get(FIRMWARE_KEY) if isinstance(document, dict) else None
        return cls(version if isinstance(version, str) else "")

    def update_firmware_version(self, path: str | Path, version: str) -> None:
        """Record a firmware version in the file and in this object.

        This object is updated even when the file cannot be; in that case
        OSError (missing or unwritable file) or ValueError (corrupt file) is raised.
        """
        cfg_path = Path(path)
        try:
            document = json.loads(cfg_path.read_text(encoding="utf-8", errors="replace"))
            if not isinstance(document, dict):
                raise ValueError(f"{cfg_path} does not hold a JSON object")
            document[FIRMWARE_KEY] = version
            cfg_path.write_text(json.dumps(document, indent="\t", ensure_ascii=False), encoding="utf-8")
        finally:
            self.old_firmware_version = version[:_VERSION_LIMIT]