"""
Optimistic concurrency helpers for rows carrying an integer `version` column.

A conditional update only matches the row when its version is still the one the
caller read; PostgREST applies the filter and the write in a single statement,
so two writers that read the same version cannot both succeed.
"""

from supabase import Client
from typing import Any, Dict, Optional


def row_version(row: Dict[str, Any]) -> int:
    return int(row.get("version") or 0)


def update_if_version(
    supabase: Client,
    table: str,
    row_id: str,
    expected_version: int,
    changes: Dict[str, Any],
) -> Optional[Dict[str, Any]]:
    """Apply changes and bump the version if the row is still at expected_version.

    Returns the updated row, or None when another writer got there first.
    """
    payload = dict(changes)
    payload["version"] = expected_version + 1
    result = supabase.table(table)\
        .update(payload)\
        .eq("id", row_id)\
        .eq("version", expected_version)\
        .execute()
    if not result.data:
        return None
    return result.data[0]
