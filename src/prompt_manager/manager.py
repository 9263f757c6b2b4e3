"""
Prompt manager - owns the lifecycle of prompts and their versions.

Every content change is recorded as a new, numbered version. Versions are
never rewritten or removed: reverting copies an old version forward as the
newest one.
"""

import copy
import logging
import uuid
from typing import Optional

from prompt_manager.config import Settings, load_settings
from prompt_manager.diff import diff_lines
from prompt_manager.models import (
    INITIAL_CHANGE_DESCRIPTION,
    Prompt,
    PromptCreateInput,
    PromptUpdateInput,
    PromptVersion,
    PromptWithVersion,
    VersionComparison,
    utcnow,
)
from prompt_manager.references import resolve_version_reference
from prompt_manager.storage import FileStorage, PromptStorage, get_codec


logger = logging.getLogger(__name__)


def new_id() -> str:
    return str(uuid.uuid4())


class PromptManager:
    """
    Versioning engine on top of a :class:`PromptStorage`.

    Lookups that miss return None (or an empty list); storage write failures
    propagate unchanged. Storage calls are issued one after another, and a
    version is always written before the prompt record that points at it.

    There is no locking: two writers updating the same prompt at once may
    compute the same next version number. Serialise access per prompt if
    you share a store between threads or processes.
    """

    def __init__(self, storage: PromptStorage):
        self.storage = storage

    @classmethod
    def from_settings(cls, settings: Settings) -> "PromptManager":
        storage = FileStorage(settings.data_dir, get_codec(settings.record_format))
        return cls(storage)

    def create_prompt(self, data: PromptCreateInput) -> PromptWithVersion:
        self.storage.init()

        now = utcnow()
        prompt_id = new_id()
        version = PromptVersion(
            id=new_id(),
            prompt_id=prompt_id,
            version=1,
            content=data.content,
            created_at=now,
            created_by=data.created_by,
            change_description=data.change_description or INITIAL_CHANGE_DESCRIPTION,
            metadata=copy.deepcopy(data.metadata),
        )
        prompt = Prompt(
            id=prompt_id,
            name=data.name,
            description=data.description,
            tags=list(data.tags or []),
            current_version_id=version.id,
            created_at=now,
            updated_at=now,
            metadata=copy.deepcopy(data.metadata),
        )

        self.storage.save_version(version)
        self.storage.save_prompt(prompt)
        logger.info("Created prompt %s (%s) at v1", prompt.id, prompt.name)

        return PromptWithVersion(prompt=prompt, current_version=version)

    def update_prompt(
        self,
        prompt_id: str,
        data: PromptUpdateInput,
    ) -> Optional[PromptWithVersion]:
        """
        Apply an update to a prompt.

        A new version is recorded only when ``data.content`` is given and
        differs from the current content. Name, description and tags are
        applied either way, and ``updated_at`` is always refreshed.
        """
        existing = self.storage.get_prompt(prompt_id)
        if existing is None:
            return None

        now = utcnow()
        prompt = existing.prompt.clone()
        current = existing.current_version

        if data.content is not None and data.content != existing.current_version.content:
            current = PromptVersion(
                id=new_id(),
                prompt_id=prompt.id,
                version=self.storage.get_next_version_number(prompt.id),
                content=data.content,
                created_at=now,
                created_by=data.created_by,
                change_description=data.change_description,
                metadata=copy.deepcopy(data.metadata),
            )
            self.storage.save_version(current)
            prompt.current_version_id = current.id
            logger.info("Prompt %s: recorded %s", prompt.id, current.label)
        else:
            logger.debug("Prompt %s: content unchanged, no new version", prompt.id)

        if data.name is not None:
            prompt.name = data.name
        if data.description is not None:
            prompt.description = data.description
        if data.tags is not None:
            prompt.tags = list(data.tags)
        prompt.updated_at = now

        self.storage.save_prompt(prompt)

        return PromptWithVersion(prompt=prompt, current_version=current)

    def get_prompt(
        self,
        prompt_id: str,
        include_history: bool = False,
    ) -> Optional[PromptWithVersion]:
        found = self.storage.get_prompt(prompt_id)
        if found is None or not include_history:
            return found

        return PromptWithVersion(
            prompt=found.prompt,
            current_version=found.current_version,
            versions=self.storage.get_all_versions(prompt_id),
        )

    def list_prompts(self) -> list[Prompt]:
        return self.storage.list_prompts()

    def get_prompt_versions(self, prompt_id: str) -> list[PromptVersion]:
        return self.storage.get_all_versions(prompt_id)

    def get_version(self, prompt_id: str, ref: str) -> Optional[PromptVersion]:
        """Load a version by reference (``v2``, ``V2`` or a version id)."""
        version_id = resolve_version_reference(self.storage, prompt_id, ref)
        if version_id is None:
            logger.debug("Prompt %s: reference %r did not resolve", prompt_id, ref)
            return None
        return self.storage.get_version(prompt_id, version_id)

    def compare_versions(
        self,
        prompt_id: str,
        from_ref: str,
        to_ref: str,
    ) -> Optional[VersionComparison]:
        from_version = self.get_version(prompt_id, from_ref)
        if from_version is None:
            return None
        to_version = self.get_version(prompt_id, to_ref)
        if to_version is None:
            return None

        return VersionComparison(
            prompt_id=prompt_id,
            from_version=from_version,
            to_version=to_version,
            changes=diff_lines(from_version.content, to_version.content),
        )

    def revert_to_version(
        self,
        prompt_id: str,
        version_ref: str,
    ) -> Optional[PromptWithVersion]:
        """
        Make an old version current again by copying it forward.

        The copy gets a fresh id and the next version number; the original
        stays where it is in the history.
        """
        version_id = resolve_version_reference(self.storage, prompt_id, version_ref)
        if version_id is None:
            return None

        existing = self.storage.get_prompt(prompt_id)
        if existing is None:
            return None
        target = self.storage.get_version(prompt_id, version_id)
        if target is None:
            return None

        now = utcnow()
        reverted = PromptVersion(
            id=new_id(),
            prompt_id=prompt_id,
            version=self.storage.get_next_version_number(prompt_id),
            content=target.content,
            created_at=now,
            change_description=f"Reverted to version {target.version}",
            metadata=target.metadata,
        )
        self.storage.save_version(reverted)

        prompt = existing.prompt.clone(current_version_id=reverted.id, updated_at=now)
        self.storage.save_prompt(prompt)
        logger.info("Prompt %s: reverted to %s as %s", prompt_id, target.label, reverted.label)

        return PromptWithVersion(prompt=prompt, current_version=reverted)


# Global manager instance
_manager: Optional[PromptManager] = None


def get_manager() -> PromptManager:
    """Return the process-wide manager, building it from settings on first use."""
    global _manager
    if _manager is None:
        _manager = PromptManager.from_settings(load_settings())
    return _manager


def configure_manager(settings: Settings) -> PromptManager:
    """Replace the process-wide manager with one built from ``settings``."""
    global _manager
    _manager = PromptManager.from_settings(settings)
    return _manager


def reset_manager() -> None:
    """Drop the process-wide manager (used by tests)."""
    global _manager
    _manager = None
