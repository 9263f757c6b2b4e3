"""
Exceptions raised by prompt-manager.

Lookups that miss (unknown prompt, unknown version, unresolvable reference)
are not errors: they return None. These exceptions cover infrastructure
and configuration failures only.
"""


class PromptManagerError(Exception):
    """Base class for prompt-manager errors."""


class StorageError(PromptManagerError):
    """Raised when a record cannot be written to the backing store."""


class ConfigurationError(PromptManagerError):
    """Raised when settings cannot be resolved (e.g. unknown record format)."""
