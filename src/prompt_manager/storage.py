"""
Persistence for prompts and versions.

``PromptStorage`` is the port the manager talks to. ``FileStorage`` keeps one
record file per prompt and per version under a data directory:

    <data_dir>/prompts/<prompt-id>.json
    <data_dir>/versions/<prompt-id>/v<N>.json

Records can be written as JSON (default) or YAML. ``MemoryStorage`` keeps
everything in process and is handy for tests and embedding.
"""

import copy
import json
import logging
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Optional

import yaml

from prompt_manager.exceptions import ConfigurationError, StorageError
from prompt_manager.models import Prompt, PromptVersion, PromptWithVersion


logger = logging.getLogger(__name__)

PROMPTS_DIR = "prompts"
VERSIONS_DIR = "versions"


def is_safe_id(value: str) -> bool:
    """True if ``value`` can be used as a single file or directory name."""
    return bool(value) and value not in (".", "..") and "/" not in value and "\\" not in value


class PromptStorage(ABC):
    """Storage contract required by :class:`~prompt_manager.manager.PromptManager`."""

    @abstractmethod
    def init(self) -> None:
        """Prepare the store. Must be safe to call any number of times."""

    @abstractmethod
    def save_prompt(self, prompt: Prompt) -> None:
        """Insert or overwrite a prompt record by id."""

    @abstractmethod
    def save_version(self, version: PromptVersion) -> None:
        """Append a version record. Existing versions are never rewritten."""

    @abstractmethod
    def get_prompt(self, prompt_id: str) -> Optional[PromptWithVersion]:
        """Load a prompt with its current version, or None."""

    @abstractmethod
    def get_version(self, prompt_id: str, version_id: str) -> Optional[PromptVersion]:
        ...

    @abstractmethod
    def get_all_versions(self, prompt_id: str) -> list[PromptVersion]:
        """All versions of a prompt, ascending by version number."""

    @abstractmethod
    def list_prompts(self) -> list[Prompt]:
        ...

    def get_next_version_number(self, prompt_id: str) -> int:
        versions = self.get_all_versions(prompt_id)
        if not versions:
            return 1
        return max(v.version for v in versions) + 1


# =============================================================================
# Record codecs
# =============================================================================

class RecordCodec(ABC):
    """Turns record dicts into file text and back."""

    extension: str = ""

    @abstractmethod
    def dumps(self, record: dict[str, Any]) -> str:
        ...

    @abstractmethod
    def loads(self, text: str) -> Any:
        ...


class JsonCodec(RecordCodec):
    extension = ".json"

    def dumps(self, record: dict[str, Any]) -> str:
        return json.dumps(record, indent=2, ensure_ascii=False)

    def loads(self, text: str) -> Any:
        return json.loads(text)


class YamlCodec(RecordCodec):
    extension = ".yaml"

    def dumps(self, record: dict[str, Any]) -> str:
        return yaml.safe_dump(
            record,
            allow_unicode=True,
            sort_keys=False,
            default_flow_style=False,
        )

    def loads(self, text: str) -> Any:
        return yaml.safe_load(text)


CODECS: dict[str, type[RecordCodec]] = {
    "json": JsonCodec,
    "yaml": YamlCodec,
}


def get_codec(name: str) -> RecordCodec:
    """Return a codec instance for a record format name ("json" or "yaml")."""
    try:
        return CODECS[name.lower()]()
    except KeyError:
        raise ConfigurationError(
            f"Unknown record format '{name}'. Expected one of: {', '.join(sorted(CODECS))}"
        )


# =============================================================================
# File storage
# =============================================================================

class FileStorage(PromptStorage):
    """Directory-of-files store."""

    def __init__(self, data_dir: Path, codec: Optional[RecordCodec] = None):
        self.data_dir = Path(data_dir)
        self.codec = codec or JsonCodec()

    @property
    def prompts_dir(self) -> Path:
        return self.data_dir / PROMPTS_DIR

    @property
    def versions_dir(self) -> Path:
        return self.data_dir / VERSIONS_DIR

    def _check_id(self, record_id: str) -> None:
        if not is_safe_id(record_id):
            raise StorageError(f"Invalid record id {record_id!r}")

    def _prompt_path(self, prompt_id: str) -> Path:
        return self.prompts_dir / f"{prompt_id}{self.codec.extension}"

    def _version_dir(self, prompt_id: str) -> Path:
        return self.versions_dir / prompt_id

    def _version_path(self, version: PromptVersion) -> Path:
        return self._version_dir(version.prompt_id) / f"v{version.version}{self.codec.extension}"

    def _record_files(self, directory: Path) -> list[Path]:
        if not directory.is_dir():
            return []
        return sorted(
            p for p in directory.glob(f"*{self.codec.extension}") if p.is_file()
        )

    def _ensure_dir(self, directory: Path) -> None:
        try:
            directory.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(f"Could not create directory {directory}: {e}") from e

    def _write_record(self, path: Path, record: dict[str, Any]) -> None:
        try:
            path.write_text(self.codec.dumps(record), encoding="utf-8")
        except OSError as e:
            raise StorageError(f"Could not write {path}: {e}") from e
        logger.debug("Wrote %s", path)

    def _read_record(self, path: Path) -> Optional[dict[str, Any]]:
        """
        Read a record file, returning None if it is missing or unreadable.

        Corrupted records are reported through the log but otherwise look the
        same as missing ones to callers.
        """
        try:
            record = self.codec.loads(path.read_text(encoding="utf-8"))
        except FileNotFoundError:
            return None
        except (OSError, ValueError, yaml.YAMLError) as e:
            logger.warning("Ignoring unreadable record %s: %s", path, e)
            return None

        if not isinstance(record, dict):
            logger.warning("Ignoring malformed record %s: expected a mapping", path)
            return None
        return record

    def _load_version(self, path: Path) -> Optional[PromptVersion]:
        record = self._read_record(path)
        if record is None:
            return None
        try:
            return PromptVersion.from_record(record)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring malformed version record %s: %s", path, e)
            return None

    def _load_prompt(self, path: Path) -> Optional[Prompt]:
        record = self._read_record(path)
        if record is None:
            return None
        try:
            return Prompt.from_record(record)
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Ignoring malformed prompt record %s: %s", path, e)
            return None

    def init(self) -> None:
        self._ensure_dir(self.prompts_dir)
        self._ensure_dir(self.versions_dir)

    def save_prompt(self, prompt: Prompt) -> None:
        self._check_id(prompt.id)
        self._ensure_dir(self.prompts_dir)
        self._write_record(self._prompt_path(prompt.id), prompt.to_record())

    def save_version(self, version: PromptVersion) -> None:
        self._check_id(version.prompt_id)
        self._ensure_dir(self._version_dir(version.prompt_id))
        self._write_record(self._version_path(version), version.to_record())

    def get_prompt(self, prompt_id: str) -> Optional[PromptWithVersion]:
        if not is_safe_id(prompt_id):
            return None
        prompt = self._load_prompt(self._prompt_path(prompt_id))
        if prompt is None:
            return None

        current = self.get_version(prompt.id, prompt.current_version_id)
        if current is None:
            logger.warning(
                "Prompt %s points at missing version %s", prompt.id, prompt.current_version_id
            )
            return None
        return PromptWithVersion(prompt=prompt, current_version=current)

    def get_version(self, prompt_id: str, version_id: str) -> Optional[PromptVersion]:
        if not is_safe_id(prompt_id):
            return None
        # Version files are keyed by number, so an id lookup scans the prompt's set
        for path in self._record_files(self._version_dir(prompt_id)):
            version = self._load_version(path)
            if version is not None and version.id == version_id:
                return version
        return None

    def get_all_versions(self, prompt_id: str) -> list[PromptVersion]:
        if not is_safe_id(prompt_id):
            return []
        versions = []
        for path in self._record_files(self._version_dir(prompt_id)):
            version = self._load_version(path)
            if version is not None:
                versions.append(version)
        versions.sort(key=lambda v: v.version)
        return versions

    def list_prompts(self) -> list[Prompt]:
        prompts = []
        for path in self._record_files(self.prompts_dir):
            prompt = self._load_prompt(path)
            if prompt is not None:
                prompts.append(prompt)
        return prompts


# =============================================================================
# In-memory storage
# =============================================================================

class MemoryStorage(PromptStorage):
    """Dict-backed store. Records are copied in and out."""

    def __init__(self):
        self._prompts: dict[str, dict[str, Any]] = {}
        self._versions: dict[str, dict[int, dict[str, Any]]] = {}

    def init(self) -> None:
        pass

    def save_prompt(self, prompt: Prompt) -> None:
        self._prompts[prompt.id] = prompt.to_record()

    def save_version(self, version: PromptVersion) -> None:
        self._versions.setdefault(version.prompt_id, {})[version.version] = version.to_record()

    def get_prompt(self, prompt_id: str) -> Optional[PromptWithVersion]:
        record = self._prompts.get(prompt_id)
        if record is None:
            return None
        prompt = Prompt.from_record(copy.deepcopy(record))
        current = self.get_version(prompt.id, prompt.current_version_id)
        if current is None:
            return None
        return PromptWithVersion(prompt=prompt, current_version=current)

    def get_version(self, prompt_id: str, version_id: str) -> Optional[PromptVersion]:
        for record in self._versions.get(prompt_id, {}).values():
            if record["id"] == version_id:
                return PromptVersion.from_record(record)
        return None

    def get_all_versions(self, prompt_id: str) -> list[PromptVersion]:
        records = self._versions.get(prompt_id, {})
        return [PromptVersion.from_record(records[n]) for n in sorted(records)]

    def list_prompts(self) -> list[Prompt]:
        return [Prompt.from_record(record) for record in self._prompts.values()]
