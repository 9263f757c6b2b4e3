"""
prompt-manager: local version control for named text prompts.
"""

from prompt_manager.manager import PromptManager, get_manager, reset_manager
from prompt_manager.models import (
    Prompt,
    PromptCreateInput,
    PromptUpdateInput,
    PromptVersion,
    PromptWithVersion,
    VersionComparison,
)
from prompt_manager.storage import FileStorage, MemoryStorage, PromptStorage
from prompt_manager.references import resolve_version_reference

__version__ = "0.1.0"
__all__ = [
    "PromptManager",
    "get_manager",
    "reset_manager",
    "Prompt",
    "PromptCreateInput",
    "PromptUpdateInput",
    "PromptVersion",
    "PromptWithVersion",
    "VersionComparison",
    "FileStorage",
    "MemoryStorage",
    "PromptStorage",
    "resolve_version_reference",
]
