"""Remembered login, kept in a local JSON file."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Optional

from workhours.config import get_settings
from workhours.models import Credentials

logger = logging.getLogger(__name__)


class CredentialStore:
    def __init__(self, path: str | Path | None = None) -> None:
        self.path = Path(path or get_settings().credentials_path)

    def load(self) -> Optional[Credentials]:
        if not self.path.exists():
            return None
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
            creds = Credentials(
                organization=data["organization"],
                project=data["project"],
                pat=data["pat"],
            )
        except (ValueError, KeyError, TypeError) as exc:
            logger.warning("Discarding unreadable credentials file %s: %s", self.path, exc)
            self.clear()
            return None
        return creds

    def save(self, creds: Credentials) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        payload = {"organization": creds.organization, "project": creds.project, "pat": creds.pat}
        self.path.write_text(json.dumps(payload), encoding="utf-8")
        try:
            self.path.chmod(0o600)
        except OSError:
            logger.debug("Could not restrict permissions on %s", self.path)

    def clear(self) -> None:
        self.path.unlink(missing_ok=True)
