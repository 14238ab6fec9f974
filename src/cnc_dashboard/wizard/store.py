"""
CNC Dashboard Wizard Persistence

Key-value backends, the resumable wizard slot, the draft store and the
authoritative configuration repository.
"""

import copy
import json
import os
import tempfile
from dataclasses import dataclass, field, asdict
from datetime import datetime
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from cnc_dashboard.wizard.exceptions import PersistenceError
from cnc_dashboard.wizard.logging_config import get_logger
from cnc_dashboard.wizard.models import Draft, DraftPatch

logger = get_logger("store")

DEFAULT_NAMESPACE = "cncDashboard"
STEP_KEY = "setupWizardStep"
DRAFT_KEY = "setupWizardProgress"
CONFIG_KEY = "config"
CONFIG_META_KEY = "configMeta"
REMEDIATION_KEY = "remediation"

FIRST_STEP = 0
LAST_STEP = 6


class KeyValueBackend:
    """String key-value storage. Subclasses implement get/set/delete."""

    def get(self, key: str) -> Optional[str]:
        raise NotImplementedError

    def set(self, key: str, value: str) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError

    def set_many(self, items: Dict[str, str]) -> None:
        for key, value in items.items():
            self.set(key, value)

    def delete_many(self, keys: Iterable[str]) -> None:
        for key in keys:
            self.delete(key)


class MemoryBackend(KeyValueBackend):
    """In-process backend, used by tests and one-shot runs."""

    def __init__(self, initial: Optional[Dict[str, str]] = None):
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class JsonFileBackend(KeyValueBackend):
    """All keys in one JSON object on disk, replaced atomically on write."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def _read(self) -> Dict[str, str]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (json.JSONDecodeError, UnicodeDecodeError) as e:
            raise PersistenceError(
                f"State file {self.path} is corrupt",
                slot=str(self.path),
                details=str(e)
            ) from e
        if not isinstance(data, dict):
            raise PersistenceError(f"State file {self.path} is corrupt", slot=str(self.path))
        return data

    def _write(self, data: Dict[str, str]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=self.path.parent, prefix=".state-", suffix=".json")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as handle:
                json.dump(data, handle, indent=2, ensure_ascii=False)
            os.replace(tmp_name, self.path)
        except OSError:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise

    def _read_for_update(self) -> Dict[str, str]:
        # A corrupt file is replaced rather than blocking every later write
        try:
            return self._read()
        except PersistenceError as e:
            logger.warning("Discarding corrupt state file %s: %s", self.path, e.details)
            return {}

    def get(self, key: str) -> Optional[str]:
        value = self._read().get(key)
        if value is not None and not isinstance(value, str):
            raise PersistenceError(f"Value for '{key}' is not a string", slot=key)
        return value

    def set(self, key: str, value: str) -> None:
        self.set_many({key: value})

    def delete(self, key: str) -> None:
        self.delete_many([key])

    def set_many(self, items: Dict[str, str]) -> None:
        data = self._read_for_update()
        data.update(items)
        self._write(data)

    def delete_many(self, keys: Iterable[str]) -> None:
        data = self._read_for_update()
        removed = [key for key in keys if data.pop(key, None) is not None]
        if removed:
            self._write(data)


@dataclass
class WizardSnapshot:
    """Step position and draft, always saved and restored together."""
    step: int
    draft: Draft


class WizardPersistence:
    """Port for the resumable wizard slot."""

    def load(self) -> Optional[WizardSnapshot]:
        """Return the saved snapshot, None if there is none.

        Raises:
            PersistenceError: if the slot holds unreadable data
        """
        raise NotImplementedError

    def save(self, snapshot: WizardSnapshot) -> None:
        raise NotImplementedError

    def clear(self) -> None:
        raise NotImplementedError


class SlotPersistence(WizardPersistence):
    """Resumable slot stored as two keys of a key-value backend."""

    def __init__(self, backend: KeyValueBackend, namespace: str = DEFAULT_NAMESPACE):
        self.backend = backend
        self.step_key = f"{namespace}.{STEP_KEY}"
        self.draft_key = f"{namespace}.{DRAFT_KEY}"

    def load(self) -> Optional[WizardSnapshot]:
        raw_step = self.backend.get(self.step_key)
        raw_draft = self.backend.get(self.draft_key)

        if raw_step is None and raw_draft is None:
            return None
        if raw_step is None or raw_draft is None:
            raise PersistenceError("Saved wizard progress is incomplete", slot=self.draft_key)

        try:
            step = int(raw_step)
        except ValueError as e:
            raise PersistenceError(f"Invalid saved step: {raw_step!r}", slot=self.step_key) from e
        if not FIRST_STEP <= step <= LAST_STEP:
            raise PersistenceError(f"Saved step {step} is out of range", slot=self.step_key)

        try:
            data = json.loads(raw_draft)
        except json.JSONDecodeError as e:
            raise PersistenceError(
                "Saved wizard draft is not valid JSON",
                slot=self.draft_key,
                details=str(e)
            ) from e

        return WizardSnapshot(step=step, draft=Draft.from_dict(data))

    def save(self, snapshot: WizardSnapshot) -> None:
        self.backend.set_many({
            self.step_key: str(snapshot.step),
            self.draft_key: json.dumps(snapshot.draft.to_dict(), ensure_ascii=False),
        })

    def clear(self) -> None:
        self.backend.delete_many([self.step_key, self.draft_key])


class DraftStore:
    """Holds the in-progress draft and step index, mirrored to persistence."""

    def __init__(self, persistence: WizardPersistence, initial: Optional[Draft] = None):
        self.persistence = persistence
        self._initial = initial or Draft()
        self._draft = copy.deepcopy(self._initial)
        self._step = FIRST_STEP

    @property
    def step(self) -> int:
        return self._step

    def get(self) -> Draft:
        """Copy of the current draft."""
        return copy.deepcopy(self._draft)

    def merge(self, patch: DraftPatch) -> Draft:
        """Apply a partial update and persist immediately."""
        self._draft = patch.apply(self._draft)
        self.persist()
        return self.get()

    def set_step(self, step: int) -> None:
        if not FIRST_STEP <= step <= LAST_STEP:
            raise ValueError(f"Step must be between {FIRST_STEP} and {LAST_STEP}, got {step}")
        self._step = step
        self.persist()

    def persist(self) -> bool:
        """Write step and draft to the resumable slot.

        Returns:
            True if written; write failures are logged, the in-memory
            state is kept
        """
        try:
            self.persistence.save(WizardSnapshot(step=self._step, draft=self._draft))
            return True
        except (OSError, PersistenceError) as e:
            logger.error("Failed to save wizard progress: %s", e)
            return False

    def load(self) -> Tuple[int, Draft]:
        """Restore step and draft from the resumable slot.

        Missing or corrupt data falls back to the initial draft at step 0.
        """
        try:
            snapshot = self.persistence.load()
        except (OSError, PersistenceError) as e:
            logger.error("Failed to load wizard progress, starting fresh: %s", e)
            snapshot = None

        if snapshot is None:
            self._step = FIRST_STEP
            self._draft = copy.deepcopy(self._initial)
        else:
            self._step = snapshot.step
            self._draft = snapshot.draft
        return self._step, self.get()

    def clear(self) -> None:
        """Delete the resumable slot. In-memory state is untouched."""
        self.persistence.clear()

    def reset(self) -> None:
        """Delete the resumable slot and return to the initial draft at step 0."""
        self.clear()
        self._step = FIRST_STEP
        self._draft = copy.deepcopy(self._initial)


@dataclass
class RemediationRecord:
    """Follow-up items left after completion."""
    overridden_checks: List[Dict[str, str]] = field(default_factory=list)
    failed_services: List[str] = field(default_factory=list)
    updated_at: str = ""

    def is_empty(self) -> bool:
        return not self.overridden_checks and not self.failed_services

    def to_dict(self) -> dict:
        data = asdict(self)
        return {
            "overriddenChecks": data["overridden_checks"],
            "failedServices": data["failed_services"],
            "updatedAt": data["updated_at"],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "RemediationRecord":
        return cls(
            overridden_checks=list(data.get("overriddenChecks", [])),
            failed_services=list(data.get("failedServices", [])),
            updated_at=data.get("updatedAt", ""),
        )


class ConfigRepository:
    """The authoritative configuration slot, separate from the resumable one."""

    def __init__(self, backend: KeyValueBackend, namespace: str = DEFAULT_NAMESPACE):
        self.backend = backend
        self.config_key = f"{namespace}.{CONFIG_KEY}"
        self.meta_key = f"{namespace}.{CONFIG_META_KEY}"
        self.remediation_key = f"{namespace}.{REMEDIATION_KEY}"

    def _load_json(self, key: str) -> Optional[dict]:
        raw = self.backend.get(key)
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise PersistenceError(f"Stored '{key}' is not valid JSON", slot=key, details=str(e)) from e

    def load(self) -> Optional[Draft]:
        """The finished configuration, None before first completion."""
        data = self._load_json(self.config_key)
        return Draft.from_dict(data) if data is not None else None

    def is_configured(self) -> bool:
        config = self.load()
        return config is not None and config.is_configured

    def metadata(self) -> Dict[str, str]:
        return self._load_json(self.meta_key) or {}

    def save(self, draft: Draft, saved_by: str = "Dashboard") -> None:
        meta = {"savedAt": datetime.now().isoformat(), "savedBy": saved_by}
        self.backend.set_many({
            self.config_key: json.dumps(draft.to_dict(), ensure_ascii=False),
            self.meta_key: json.dumps(meta),
        })

    def delete(self) -> None:
        self.backend.delete_many([self.config_key, self.meta_key, self.remediation_key])

    def load_remediation(self) -> RemediationRecord:
        data = self._load_json(self.remediation_key)
        return RemediationRecord.from_dict(data) if data else RemediationRecord()

    def save_remediation(self, record: RemediationRecord) -> None:
        if record.is_empty():
            self.backend.delete(self.remediation_key)
            return
        record.updated_at = datetime.now().isoformat()
        self.backend.set(self.remediation_key, json.dumps(record.to_dict(), ensure_ascii=False))
