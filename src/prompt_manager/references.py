"""
Version references.

Commands that take a version accept either an ordinal such as ``v3`` (any
case, leading zeros allowed) or a raw version id.
"""

import re
from typing import Optional

from prompt_manager.storage import PromptStorage


VERSION_REF_PATTERN = re.compile(r"^v(\d+)$", re.IGNORECASE)


def parse_version_number(ref: str) -> Optional[int]:
    """Return the version number of an ordinal reference, or None."""
    match = VERSION_REF_PATTERN.match(ref)
    if match is None:
        return None
    return int(match.group(1))


def resolve_version_reference(
    storage: PromptStorage,
    prompt_id: str,
    ref: str,
) -> Optional[str]:
    """
    Translate a version reference into a version id.

    Ordinals are looked up among the prompt's versions and give None when no
    version carries that number. Anything else is taken to be a version id
    and returned unchanged; whether it exists is for the caller to find out.
    """
    number = parse_version_number(ref)
    if number is None:
        return ref

    for version in storage.get_all_versions(prompt_id):
        if version.version == number:
            return version.id
    return None
