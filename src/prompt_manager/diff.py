"""
Line diff between two versions.

The comparison is positional: line ``i`` of one version is compared with
line ``i`` of the other. An insertion near the top therefore shows up as a
run of modified lines rather than a single added one. Stored comparisons and
scripts depend on this output, so keep it as is.
"""

from prompt_manager.models import VersionChanges


def diff_lines(from_text: str, to_text: str) -> VersionChanges:
    from_lines = from_text.split("\n")
    to_lines = to_text.split("\n")

    added: list[str] = []
    removed: list[str] = []
    modified: list[str] = []

    for i in range(max(len(from_lines), len(to_lines))):
        if i >= len(from_lines):
            added.append(f"Line {i + 1}: {to_lines[i]}")
        elif i >= len(to_lines):
            removed.append(f"Line {i + 1}: {from_lines[i]}")
        elif from_lines[i] != to_lines[i]:
            modified.append(f'Line {i + 1}: "{from_lines[i]}" → "{to_lines[i]}"')

    return VersionChanges(added=added, removed=removed, modified=modified)
