"""
Find repositories of a source organization that are missing from a target organization.

Repositories are matched by name only, case-insensitively. Numeric IDs differ
between organizations after a migration and are never compared.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable


def index_by_lowercase_name(names: Iterable[str]) -> dict[str, str]:
    """Map lowercase repository names to their original spelling.

    Keys keep the order in which they were first seen. When the same name
    appears twice with different casing, the later spelling wins.
    """
    index: dict[str, str] = {}
    for name in names:
        index[name.lower()] = name
    return index


def find_missing_repos(source: Iterable[str], target: Iterable[str]) -> list[str]:
    """Return the source repository names that have no case-insensitive match in target.

    Args:
        source: Repository names of the source organization
        target: Repository names of the target organization

    Returns:
        Missing names with their source casing, in source order.
    """
    source_index = index_by_lowercase_name(source)
    target_keys = {name.lower() for name in target}
    return [name for key, name in source_index.items() if key not in target_keys]
