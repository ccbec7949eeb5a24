"""Shared request parameter parsing."""

from typing import Optional

from fastapi import Path, Query

from admin_api.services.sources import SourceTable, parse_source_table
from admin_api.utils.logging import set_source_table


async def source_table_path(source_table: str = Path(..., description="Source table name")) -> SourceTable:
    """Parse the ``source_table`` path parameter against the allow-list."""
    table = parse_source_table(source_table)
    set_source_table(table.value)
    return table


async def source_table_filter(
    source_table: Optional[str] = Query(None, description="Restrict to one source table"),
) -> Optional[SourceTable]:
    """Parse the optional ``source_table`` query filter against the allow-list."""
    if not source_table or not source_table.strip():
        return None
    return parse_source_table(source_table.strip())


def flag(value: Optional[str]) -> bool:
    """Query-string boolean: '1' or 'true'."""
    return (value or "").strip().lower() in ("1", "true")
