"""
history.py - Persisted quick-entry command history.

Keeps the last few distinct commands (most recent first) in a local JSON
file so the quick-entry box can offer them again. No auth, no multi-user
state; one file per deployment.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator

from logging_config import get_logger

logger = get_logger(__name__)

HISTORY_FILE_ENV = "BOOKMATE_HISTORY_FILE"
DEFAULT_HISTORY_FILE = "data/command_history.json"
MAX_HISTORY = 5


class HistoryState(BaseModel):
    """Persisted command history."""

    model_config = ConfigDict(extra="ignore")

    commands: list[str] = Field(default_factory=list)
    updated_at: Optional[str] = None

    @field_validator("commands", mode="before")
    @classmethod
    def _normalize_commands(cls, value: Any) -> list[str]:
        source = value if isinstance(value, list) else []
        result: list[str] = []
        for raw in source:
            text = str(raw or "").strip()
            if text and text not in result:
                result.append(text)
        return result


class CommandHistory:
    """Disk-backed command history using one JSON file and atomic writes."""

    def __init__(self, path: Optional[str] = None, limit: int = MAX_HISTORY) -> None:
        target = path or os.getenv(HISTORY_FILE_ENV, DEFAULT_HISTORY_FILE)
        self.path = Path(target).resolve()
        self.limit = max(1, int(limit))
        self._lock = threading.Lock()

    def load(self) -> list[str]:
        """Return saved commands, most recent first. Unreadable files yield []."""
        if not self.path.exists():
            return []

        try:
            raw = json.loads(self.path.read_text(encoding="utf-8"))
            state = HistoryState.model_validate(raw)
            return state.commands[: self.limit]
        except Exception as exc:
            logger.warning(
                "history_load_warning | path=%s | error_type=%s | error=%s | fallback=[]",
                self.path,
                type(exc).__name__,
                exc,
            )
            return []

    def add(self, command: str) -> list[str]:
        """Put `command` first, drop its older copy, keep at most `limit` entries."""
        text = str(command or "").strip()
        with self._lock:
            commands = self.load()
            if not text:
                return commands
            commands = [text] + [item for item in commands if item != text]
            commands = commands[: self.limit]
            self._save(commands)
        return commands

    def clear(self) -> None:
        """Remove persisted history file if present."""
        with self._lock:
            try:
                if self.path.exists():
                    self.path.unlink()
            except OSError as exc:
                logger.warning(
                    "history_clear_warning | path=%s | error_type=%s | error=%s",
                    self.path,
                    type(exc).__name__,
                    exc,
                )

    def _save(self, commands: list[str]) -> None:
        state = HistoryState(commands=commands, updated_at=datetime.now(timezone.utc).isoformat())
        self.path.parent.mkdir(parents=True, exist_ok=True)

        with tempfile.NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=str(self.path.parent),
            delete=False,
            suffix=".tmp",
            prefix="history-",
        ) as tmp_file:
            json.dump(state.model_dump(mode="json"), tmp_file, ensure_ascii=False, indent=2)
            tmp_file.flush()
            os.fsync(tmp_file.fileno())
            tmp_path = Path(tmp_file.name)

        os.replace(tmp_path, self.path)
