"""
SQL fragments shared by the SQLite and Postgres stores.
"""

from typing import List, Tuple

from grantnavi.core.domain_models import (
    GRANT_WRITE_COLUMNS,
    GrantFilters,
    LEVEL_CITY,
    LEVEL_PREFECTURE,
)

GRANT_SELECT_COLUMNS = ["id"] + list(GRANT_WRITE_COLUMNS) + ["created_at", "updated_at"]

# Columns update_grant may touch
UPDATABLE_COLUMNS = frozenset(GRANT_WRITE_COLUMNS) | {"updated_at"}

HAS_CITY = "COALESCE(area_city, '') <> ''"
NO_CITY = "COALESCE(area_city, '') = ''"


def build_filter_clause(filters: GrantFilters, placeholder: str) -> Tuple[str, List]:
    """
    Translate filters into a WHERE clause.

    Args:
        filters: Listing filters
        placeholder: Parameter marker for the driver ("?" or "%s")

    Returns:
        (where_sql, params); where_sql is "" when nothing is filtered
    """
    clauses: List[str] = []
    params: List = []

    if filters.level:
        if filters.level == LEVEL_CITY:
            clauses.append(f"level = {placeholder}")
            params.append(LEVEL_PREFECTURE)
            clauses.append(HAS_CITY)
        else:
            clauses.append(f"level = {placeholder}")
            params.append(filters.level)
            if filters.level == LEVEL_PREFECTURE:
                clauses.append(NO_CITY)

    for column in ("type", "area_prefecture", "area_city"):
        value = getattr(filters, column)
        if value:
            clauses.append(f"{column} = {placeholder}")
            params.append(value)

    if not clauses:
        return "", params
    return " WHERE " + " AND ".join(clauses), params
