"""Settings store for answers, customisations, change log and backups."""

import json
import hashlib
import logging
from pathlib import Path
from typing import Optional, Dict, Any, List, Iterable
from datetime import datetime
import aiofiles
from pydantic import ValidationError

from ..coordinator.config import get_config
from ..models.answers import Answer
from ..models.catalog import Framework, Question
from ..models.context import ScoringContext
from ..models.settings import (
    BackupData,
    BackupRecord,
    BackupType,
    ChangeAction,
    ChangeLogEntry,
    EntityType,
)

logger = logging.getLogger(__name__)

BACKUP_VERSION = "1.0"


class StoreError(Exception):
    """Base error for settings store operations."""


class EntityNotFoundError(StoreError):
    """Raised when a custom entity or backup does not exist."""


class BackupValidationError(StoreError):
    """Raised when a backup fails its checksum or shape validation."""


def compute_checksum(data: BackupData) -> str:
    """SHA-256 over the canonical JSON form of a backup snapshot."""
    canonical = json.dumps(data.model_dump(mode="json"), sort_keys=True, separators=(",", ":"))
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()


class SettingsStore:
    """
    Async JSON store kept in one directory, one file per table.

    Tables are cached in memory after the first read; every mutation writes
    the whole table back to disk.
    """

    TABLES = {
        "settings": "settings.json",
        "answers": "answers.json",
        "custom_questions": "custom_questions.json",
        "custom_frameworks": "custom_frameworks.json",
        "change_log": "change_log.json",
        "backups": "backups.json",
    }

    def __init__(
        self,
        store_dir: Optional[str] = None,
        default_enabled_frameworks: Optional[List[str]] = None,
        backup_retention: Optional[int] = None,
    ):
        """Initialize settings store."""
        config = get_config()
        self.store_dir = Path(store_dir or config.store_dir)
        self.default_enabled_frameworks = list(
            default_enabled_frameworks
            if default_enabled_frameworks is not None
            else config.default_enabled_frameworks
        )
        self.backup_retention = (
            backup_retention if backup_retention is not None else config.backup_retention
        )

        self.store_dir.mkdir(parents=True, exist_ok=True)

        # In-memory cache of loaded tables
        self._tables: Dict[str, Any] = {}

    # ---- table I/O -----------------------------------------------------

    def _default_table(self, table: str) -> Any:
        if table == "settings":
            return {
                "enabled_frameworks": list(self.default_enabled_frameworks),
                "selected_frameworks": [],
                "disabled_questions": [],
                "disabled_frameworks": [],
            }
        if table == "answers":
            return {}
        return []

    async def _load(self, table: str) -> Any:
        """Load a table from cache or disk."""
        if table in self._tables:
            return self._tables[table]

        path = self.store_dir / self.TABLES[table]
        data = self._default_table(table)
        if path.exists():
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                content = await f.read()
            try:
                loaded = json.loads(content)
            except json.JSONDecodeError as e:
                raise StoreError(f"Corrupt store file {path}: {e}") from e
            if table == "settings":
                data.update(loaded)
            else:
                data = loaded

        self._tables[table] = data
        return data

    async def _save(self, table: str) -> None:
        """Write a cached table back to disk."""
        path = self.store_dir / self.TABLES[table]
        async with aiofiles.open(path, "w", encoding="utf-8") as f:
            await f.write(json.dumps(self._tables[table], indent=2))

    async def _log(
        self, action: ChangeAction, entity_type: EntityType, entity_id: str, details: str = ""
    ) -> ChangeLogEntry:
        log = await self._load("change_log")
        entry = ChangeLogEntry(
            id=(log[-1]["id"] + 1) if log else 1,
            action=action,
            entity_type=entity_type,
            entity_id=entity_id,
            details=details,
        )
        log.append(entry.model_dump(mode="json"))
        await self._save("change_log")
        return entry

    # ---- answers -------------------------------------------------------

    async def get_answers(self) -> Dict[str, Answer]:
        """Get all answers keyed by question ID."""
        table = await self._load("answers")
        return {qid: Answer(**data) for qid, data in table.items()}

    async def get_answer(self, question_id: str) -> Optional[Answer]:
        table = await self._load("answers")
        data = table.get(question_id)
        return Answer(**data) if data else None

    async def save_answer(self, answer: Answer) -> Answer:
        """Insert or replace the answer for a question."""
        table = await self._load("answers")
        answer = answer.model_copy(update={"updated_at": datetime.utcnow()})
        table[answer.question_id] = answer.model_dump(mode="json")
        await self._save("answers")
        return answer

    async def bulk_save_answers(self, answers: Iterable[Answer]) -> int:
        """Import answers in one write, replacing existing ones per question."""
        table = await self._load("answers")
        count = 0
        for answer in answers:
            table[answer.question_id] = answer.model_dump(mode="json")
            count += 1
        await self._save("answers")
        await self._log(ChangeAction.IMPORT, EntityType.ANSWER, "bulk", f"Imported {count} answers")
        logger.info("Imported %d answers", count)
        return count

    async def delete_answer(self, question_id: str) -> bool:
        table = await self._load("answers")
        if question_id not in table:
            return False
        del table[question_id]
        await self._save("answers")
        return True

    async def clear_answers(self) -> None:
        """Reset every answer."""
        self._tables["answers"] = {}
        await self._save("answers")
        await self._log(ChangeAction.RESET, EntityType.ANSWER, "all", "Reset all answers")
        logger.info("Cleared all answers")

    # ---- framework selection -------------------------------------------

    async def get_enabled_frameworks(self) -> List[str]:
        settings = await self._load("settings")
        return list(settings["enabled_frameworks"])

    async def set_enabled_frameworks(self, framework_ids: Iterable[str]) -> List[str]:
        """Replace the enabled framework list; the selection is trimmed to match."""
        settings = await self._load("settings")
        enabled = list(dict.fromkeys(framework_ids))
        settings["enabled_frameworks"] = enabled
        settings["selected_frameworks"] = [
            fw_id for fw_id in settings["selected_frameworks"] if fw_id in enabled
        ]
        await self._save("settings")
        await self._log(
            ChangeAction.UPDATE, EntityType.SETTINGS, "enabled_frameworks", ", ".join(enabled)
        )
        return enabled

    async def get_selected_frameworks(self) -> List[str]:
        settings = await self._load("settings")
        return list(settings["selected_frameworks"])

    async def set_selected_frameworks(self, framework_ids: Iterable[str]) -> List[str]:
        """
        Replace the framework selection.

        Raises:
            StoreError: If a framework is not enabled
        """
        settings = await self._load("settings")
        selected = list(dict.fromkeys(framework_ids))
        not_enabled = [fw_id for fw_id in selected if fw_id not in settings["enabled_frameworks"]]
        if not_enabled:
            raise StoreError(f"Frameworks not enabled: {', '.join(not_enabled)}")
        settings["selected_frameworks"] = selected
        await self._save("settings")
        return selected

    # ---- default questions ---------------------------------------------

    async def get_disabled_questions(self) -> List[str]:
        settings = await self._load("settings")
        return list(settings["disabled_questions"])

    async def disable_question(self, question_id: str) -> None:
        """Disable a default question; its answer is kept."""
        settings = await self._load("settings")
        if question_id not in settings["disabled_questions"]:
            settings["disabled_questions"].append(question_id)
            await self._save("settings")
        await self._log(ChangeAction.DISABLE, EntityType.QUESTION, question_id)
        logger.info("Disabled default question %s", question_id)

    async def enable_question(self, question_id: str) -> None:
        settings = await self._load("settings")
        if question_id in settings["disabled_questions"]:
            settings["disabled_questions"].remove(question_id)
            await self._save("settings")
        await self._log(ChangeAction.ENABLE, EntityType.QUESTION, question_id)
        logger.info("Enabled default question %s", question_id)

    # ---- custom questions ----------------------------------------------

    async def get_custom_questions(self) -> List[Question]:
        table = await self._load("custom_questions")
        return [Question(**data) for data in table]

    async def save_custom_question(self, question: Question) -> Question:
        """Create or update a custom question."""
        table = await self._load("custom_questions")
        question = question.model_copy(update={"is_custom": True})
        data = question.model_dump(mode="json")

        for index, existing in enumerate(table):
            if existing["question_id"] == question.question_id:
                table[index] = data
                action = ChangeAction.UPDATE
                break
        else:
            table.append(data)
            action = ChangeAction.CREATE

        await self._save("custom_questions")
        await self._log(action, EntityType.QUESTION, question.question_id, question.question_text)
        logger.info("Saved custom question %s (%s)", question.question_id, action.value)
        return question

    async def delete_custom_question(self, question_id: str) -> None:
        """Delete a custom question together with its answer."""
        table = await self._load("custom_questions")
        remaining = [q for q in table if q["question_id"] != question_id]
        if len(remaining) == len(table):
            raise EntityNotFoundError(f"Custom question {question_id} not found")

        self._tables["custom_questions"] = remaining
        await self._save("custom_questions")
        await self.delete_answer(question_id)
        await self._log(ChangeAction.DELETE, EntityType.QUESTION, question_id)
        logger.info("Deleted custom question %s", question_id)

    async def set_custom_question_disabled(self, question_id: str, disabled: bool) -> Question:
        table = await self._load("custom_questions")
        for data in table:
            if data["question_id"] == question_id:
                data["disabled"] = disabled
                await self._save("custom_questions")
                await self._log(
                    ChangeAction.DISABLE if disabled else ChangeAction.ENABLE,
                    EntityType.QUESTION,
                    question_id,
                )
                return Question(**data)
        raise EntityNotFoundError(f"Custom question {question_id} not found")

    # ---- frameworks ----------------------------------------------------

    async def get_disabled_frameworks(self) -> List[str]:
        settings = await self._load("settings")
        return list(settings["disabled_frameworks"])

    async def disable_framework(self, framework_id: str) -> None:
        """Disable a default framework and drop it from the enabled and selected lists."""
        settings = await self._load("settings")
        if framework_id not in settings["disabled_frameworks"]:
            settings["disabled_frameworks"].append(framework_id)
        settings["enabled_frameworks"] = [
            fw_id for fw_id in settings["enabled_frameworks"] if fw_id != framework_id
        ]
        settings["selected_frameworks"] = [
            fw_id for fw_id in settings["selected_frameworks"] if fw_id != framework_id
        ]
        await self._save("settings")
        await self._log(ChangeAction.DISABLE, EntityType.FRAMEWORK, framework_id)
        logger.info("Disabled framework %s", framework_id)

    async def enable_framework(self, framework_id: str) -> None:
        """Restore a disabled default framework and enable it again."""
        settings = await self._load("settings")
        if framework_id in settings["disabled_frameworks"]:
            settings["disabled_frameworks"].remove(framework_id)
        if framework_id not in settings["enabled_frameworks"]:
            settings["enabled_frameworks"].append(framework_id)
        await self._save("settings")
        await self._log(ChangeAction.ENABLE, EntityType.FRAMEWORK, framework_id)
        logger.info("Enabled framework %s", framework_id)

    async def get_custom_frameworks(self) -> List[Framework]:
        table = await self._load("custom_frameworks")
        return [Framework(**data) for data in table]

    async def save_custom_framework(self, framework: Framework) -> Framework:
        """
        Create or update a custom framework.

        A custom framework with the ID of a default one overrides it; the
        lifecycle is resolved when frameworks are listed.
        """
        table = await self._load("custom_frameworks")
        data = framework.model_dump(mode="json")

        for index, existing in enumerate(table):
            if existing["framework_id"] == framework.framework_id:
                table[index] = data
                action = ChangeAction.UPDATE
                break
        else:
            table.append(data)
            action = ChangeAction.CREATE

        await self._save("custom_frameworks")
        await self._log(action, EntityType.FRAMEWORK, framework.framework_id, framework.framework_name)
        logger.info("Saved custom framework %s (%s)", framework.framework_id, action.value)
        return framework

    async def delete_custom_framework(self, framework_id: str) -> None:
        table = await self._load("custom_frameworks")
        remaining = [f for f in table if f["framework_id"] != framework_id]
        if len(remaining) == len(table):
            raise EntityNotFoundError(f"Custom framework {framework_id} not found")

        self._tables["custom_frameworks"] = remaining
        await self._save("custom_frameworks")
        await self._log(ChangeAction.DELETE, EntityType.FRAMEWORK, framework_id)
        logger.info("Deleted custom framework %s", framework_id)

    async def load_scoring_context(self, missing_evidence_multiplier: float = 1.0) -> ScoringContext:
        """Build the scoring context from the stored framework selection."""
        context = ScoringContext.from_ids(
            enabled=await self.get_enabled_frameworks(),
            selected=await self.get_selected_frameworks(),
            missing_evidence_multiplier=missing_evidence_multiplier,
        )
        return context.sanitized()

    # ---- change log ----------------------------------------------------

    async def get_change_log(self, limit: int = 100) -> List[ChangeLogEntry]:
        """Get change log entries, newest first."""
        log = await self._load("change_log")
        entries = [ChangeLogEntry(**data) for data in reversed(log)]
        return entries[:limit]

    async def clear_change_log(self) -> None:
        self._tables["change_log"] = []
        await self._save("change_log")

    # ---- backups -------------------------------------------------------

    async def snapshot(self) -> BackupData:
        """Capture the full store contents."""
        settings = await self._load("settings")
        answers = await self.get_answers()
        return BackupData(
            version=BACKUP_VERSION,
            enabled_frameworks=settings["enabled_frameworks"],
            selected_frameworks=settings["selected_frameworks"],
            disabled_questions=settings["disabled_questions"],
            disabled_frameworks=settings["disabled_frameworks"],
            custom_frameworks=await self.get_custom_frameworks(),
            custom_questions=await self.get_custom_questions(),
            answers=list(answers.values()),
        )

    async def create_backup(
        self,
        name: str,
        description: str = "",
        backup_type: BackupType = BackupType.MANUAL,
    ) -> BackupRecord:
        """Create a checksummed backup and enforce the retention limit."""
        backups = await self._load("backups")
        data = await self.snapshot()

        record = BackupRecord(
            id=max((b["id"] for b in backups), default=0) + 1,
            name=name,
            description=description,
            type=backup_type,
            answers_count=len(data.answers),
            frameworks_count=len(data.custom_frameworks),
            questions_count=len(data.custom_questions),
            checksum=compute_checksum(data),
            data=data,
        )
        backups.append(record.model_dump(mode="json"))

        # Oldest backups beyond the retention limit are dropped
        if self.backup_retention > 0 and len(backups) > self.backup_retention:
            self._tables["backups"] = backups[-self.backup_retention:]

        await self._save("backups")
        await self._log(
            ChangeAction.BACKUP,
            EntityType.BACKUP,
            str(record.id),
            f"Created {backup_type.value} backup with {record.answers_count} answers",
        )
        logger.info("Created backup %d (%s)", record.id, name)
        return record

    async def list_backups(self) -> List[BackupRecord]:
        """List backups, newest first."""
        backups = await self._load("backups")
        return [BackupRecord(**data) for data in reversed(backups)]

    async def get_backup(self, backup_id: int) -> BackupRecord:
        backups = await self._load("backups")
        for data in backups:
            if data["id"] == backup_id:
                return BackupRecord(**data)
        raise EntityNotFoundError(f"Backup {backup_id} not found")

    async def delete_backup(self, backup_id: int) -> None:
        backups = await self._load("backups")
        remaining = [b for b in backups if b["id"] != backup_id]
        if len(remaining) == len(backups):
            raise EntityNotFoundError(f"Backup {backup_id} not found")
        self._tables["backups"] = remaining
        await self._save("backups")
        await self._log(ChangeAction.DELETE, EntityType.BACKUP, str(backup_id))

    @staticmethod
    def validate_backup(payload: Dict[str, Any]) -> BackupRecord:
        """
        Validate a serialized backup record.

        Raises:
            BackupValidationError: If the shape is invalid or the checksum
                does not match the data.
        """
        try:
            record = BackupRecord(**payload)
        except (TypeError, ValidationError) as e:
            raise BackupValidationError(f"Invalid backup format: {e}") from e

        expected = compute_checksum(record.data)
        if record.checksum != expected:
            raise BackupValidationError(
                f"Backup checksum mismatch (expected {expected[:16]}, got {record.checksum[:16]})"
            )
        return record

    async def restore_backup(self, backup_id: int) -> BackupRecord:
        """Restore a stored backup after validating its checksum."""
        backups = await self._load("backups")
        for data in backups:
            if data["id"] == backup_id:
                record = self.validate_backup(data)
                await self._apply(record.data)
                data["restored_at"] = datetime.utcnow().isoformat()
                await self._save("backups")
                await self._log(
                    ChangeAction.RESTORE,
                    EntityType.BACKUP,
                    str(backup_id),
                    f"Restored from backup dated {record.data.exported_at.isoformat()}",
                )
                logger.info("Restored backup %d", backup_id)
                return record
        raise EntityNotFoundError(f"Backup {backup_id} not found")

    async def import_backup(self, payload: Dict[str, Any]) -> BackupRecord:
        """Restore from an exported backup record (e.g. a downloaded JSON file)."""
        record = self.validate_backup(payload)
        await self._apply(record.data)
        await self._log(
            ChangeAction.IMPORT,
            EntityType.BACKUP,
            record.name,
            f"Imported backup with {len(record.data.answers)} answers",
        )
        logger.info("Imported backup %s", record.name)
        return record

    async def _apply(self, data: BackupData) -> None:
        """Replace the store contents with a snapshot."""
        self._tables["settings"] = {
            "enabled_frameworks": list(data.enabled_frameworks),
            "selected_frameworks": list(data.selected_frameworks),
            "disabled_questions": list(data.disabled_questions),
            "disabled_frameworks": list(data.disabled_frameworks),
        }
        self._tables["custom_frameworks"] = [f.model_dump(mode="json") for f in data.custom_frameworks]
        self._tables["custom_questions"] = [q.model_dump(mode="json") for q in data.custom_questions]
        self._tables["answers"] = {a.question_id: a.model_dump(mode="json") for a in data.answers}

        for table in ("settings", "custom_frameworks", "custom_questions", "answers"):
            await self._save(table)

    async def factory_reset(self) -> None:
        """Drop every customisation, answer and backup."""
        for table in self.TABLES:
            self._tables[table] = self._default_table(table)
            await self._save(table)
        await self._log(ChangeAction.RESET, EntityType.SETTINGS, "all", "Performed factory reset")
        logger.info("Factory reset of settings store %s", self.store_dir)
