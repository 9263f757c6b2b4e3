"""
Data model for prompts and their version history.

Records are persisted with camelCase keys so that stores written by earlier
releases of the tool stay readable.
"""

import copy
from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from typing import Any, Optional


Metadata = dict[str, Any]

INITIAL_CHANGE_DESCRIPTION = "Initial version"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def format_timestamp(value: datetime) -> str:
    return value.isoformat()


def parse_timestamp(value: Any) -> datetime:
    """Parse a stored timestamp (ISO-8601 string, or a datetime from YAML)."""
    if isinstance(value, datetime):
        parsed = value
    else:
        text = str(value)
        # JavaScript-style "Z" suffix is only accepted by fromisoformat on 3.11+
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class PromptVersion:
    """An immutable content snapshot of a prompt."""

    id: str
    prompt_id: str
    version: int
    content: str
    created_at: datetime
    created_by: Optional[str] = None
    change_description: Optional[str] = None
    metadata: Optional[Metadata] = None

    @property
    def label(self) -> str:
        return f"v{self.version}"

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": self.id,
            "promptId": self.prompt_id,
            "version": self.version,
            "content": self.content,
            "createdAt": format_timestamp(self.created_at),
        }
        if self.created_by is not None:
            record["createdBy"] = self.created_by
        if self.change_description is not None:
            record["changeDescription"] = self.change_description
        if self.metadata is not None:
            record["metadata"] = copy.deepcopy(self.metadata)
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "PromptVersion":
        return cls(
            id=record["id"],
            prompt_id=record["promptId"],
            version=int(record["version"]),
            content=record["content"],
            created_at=parse_timestamp(record["createdAt"]),
            created_by=record.get("createdBy"),
            change_description=record.get("changeDescription"),
            metadata=copy.deepcopy(record.get("metadata")),
        )


@dataclass
class Prompt:
    """A named prompt. Its content lives in the version it points at."""

    id: str
    name: str
    current_version_id: str
    created_at: datetime
    updated_at: datetime
    description: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    metadata: Optional[Metadata] = None

    def to_record(self) -> dict[str, Any]:
        record: dict[str, Any] = {
            "id": self.id,
            "name": self.name,
        }
        if self.description is not None:
            record["description"] = self.description
        record["tags"] = list(self.tags)
        record["currentVersionId"] = self.current_version_id
        record["createdAt"] = format_timestamp(self.created_at)
        record["updatedAt"] = format_timestamp(self.updated_at)
        if self.metadata is not None:
            record["metadata"] = copy.deepcopy(self.metadata)
        return record

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Prompt":
        return cls(
            id=record["id"],
            name=record["name"],
            description=record.get("description"),
            tags=list(record.get("tags") or []),
            current_version_id=record["currentVersionId"],
            created_at=parse_timestamp(record["createdAt"]),
            updated_at=parse_timestamp(record["updatedAt"]),
            metadata=copy.deepcopy(record.get("metadata")),
        )

    def clone(self, **changes: Any) -> "Prompt":
        """Return a detached copy, optionally with some fields changed."""
        changes.setdefault("tags", list(self.tags))
        changes.setdefault("metadata", copy.deepcopy(self.metadata))
        return replace(self, **changes)


@dataclass(frozen=True)
class PromptWithVersion:
    """
    Read-only view of a prompt together with its current version.

    Built by the storage layer and the manager when answering queries; it is
    never persisted. ``versions`` is only filled when history was requested.
    """

    prompt: Prompt
    current_version: PromptVersion
    versions: Optional[list[PromptVersion]] = None

    @property
    def id(self) -> str:
        return self.prompt.id

    @property
    def name(self) -> str:
        return self.prompt.name

    @property
    def description(self) -> Optional[str]:
        return self.prompt.description

    @property
    def tags(self) -> list[str]:
        return list(self.prompt.tags)

    @property
    def current_version_id(self) -> str:
        return self.prompt.current_version_id

    @property
    def created_at(self) -> datetime:
        return self.prompt.created_at

    @property
    def updated_at(self) -> datetime:
        return self.prompt.updated_at

    @property
    def metadata(self) -> Optional[Metadata]:
        return self.prompt.metadata

    @property
    def content(self) -> str:
        return self.current_version.content


@dataclass
class PromptCreateInput:
    name: str
    content: str
    description: Optional[str] = None
    tags: Optional[list[str]] = None
    change_description: Optional[str] = None
    created_by: Optional[str] = None
    metadata: Optional[Metadata] = None


@dataclass
class PromptUpdateInput:
    """Fields left as None are not touched by an update."""

    name: Optional[str] = None
    description: Optional[str] = None
    content: Optional[str] = None
    tags: Optional[list[str]] = None
    change_description: Optional[str] = None
    created_by: Optional[str] = None
    metadata: Optional[Metadata] = None


@dataclass(frozen=True)
class VersionChanges:
    added: list[str] = field(default_factory=list)
    removed: list[str] = field(default_factory=list)
    modified: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not (self.added or self.removed or self.modified)


@dataclass(frozen=True)
class VersionComparison:
    prompt_id: str
    from_version: PromptVersion
    to_version: PromptVersion
    changes: VersionChanges
