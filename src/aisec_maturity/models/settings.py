"""Data models for the settings store: change log and backups."""

from enum import Enum
from typing import Optional, List, Dict, Any
from datetime import datetime
from pydantic import BaseModel, Field

from .answers import Answer
from .catalog import Framework, Question


class ChangeAction(str, Enum):
    """Change log actions."""

    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    ENABLE = "enable"
    DISABLE = "disable"
    RESTORE = "restore"
    RESET = "reset"
    BACKUP = "backup"
    IMPORT = "import"


class EntityType(str, Enum):
    """Entities tracked by the change log."""

    FRAMEWORK = "framework"
    QUESTION = "question"
    ANSWER = "answer"
    SETTINGS = "settings"
    BACKUP = "backup"


class ChangeLogEntry(BaseModel):
    """Single change log entry."""

    id: int = Field(..., description="Sequential entry ID")
    timestamp: datetime = Field(default_factory=datetime.utcnow)
    action: ChangeAction
    entity_type: EntityType
    entity_id: str
    details: str = ""


class BackupType(str, Enum):
    """How a backup was produced."""

    MANUAL = "manual"
    SCHEDULED = "scheduled"
    AUTO = "auto"


class BackupData(BaseModel):
    """Full snapshot of the settings store."""

    version: str = "1.0"
    exported_at: datetime = Field(default_factory=datetime.utcnow)
    enabled_frameworks: List[str] = Field(default_factory=list)
    selected_frameworks: List[str] = Field(default_factory=list)
    disabled_questions: List[str] = Field(default_factory=list)
    disabled_frameworks: List[str] = Field(default_factory=list)
    custom_frameworks: List[Framework] = Field(default_factory=list)
    custom_questions: List[Question] = Field(default_factory=list)
    answers: List[Answer] = Field(default_factory=list)


class BackupRecord(BaseModel):
    """Stored backup with integrity checksum."""

    id: int
    name: str
    description: str = ""
    created_at: datetime = Field(default_factory=datetime.utcnow)
    type: BackupType = BackupType.MANUAL
    answers_count: int = 0
    frameworks_count: int = 0
    questions_count: int = 0
    checksum: str = Field(..., description="SHA-256 of the serialized data")
    data: BackupData
    metadata: Dict[str, Any] = Field(default_factory=dict)
    restored_at: Optional[datetime] = None
