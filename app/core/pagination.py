"""
Keyset pagination over (timestamp column, id), newest first.

Cursors are "<timestamp>|<id>" of the last row on the previous page. A bare
timestamp is still accepted and pages with a plain lt on the column.
"""
from typing import Any, Dict, List, Optional

CURSOR_SEPARATOR = "|"


def encode_cursor(rows: List[Dict[str, Any]], limit: int, column: str = "created_at") -> Optional[str]:
    """Cursor for the page after rows, or None when rows is the last page."""
    if len(rows) < limit or not rows:
        return None
    last = rows[-1]
    if not last.get(column):
        return None
    return f"{last[column]}{CURSOR_SEPARATOR}{last['id']}"


def apply_keyset(query, cursor: Optional[str], column: str = "created_at"):
    """Order newest first and skip everything up to and including the cursor row."""
    query = query.order(column, desc=True).order("id", desc=True)
    if not cursor:
        return query
    timestamp, _, row_id = cursor.partition(CURSOR_SEPARATOR)
    if not row_id:
        return query.lt(column, timestamp)
    # Quoted values keep ':' '+' and '.' in timestamps out of the filter grammar
    return query.or_(
        f'{column}.lt."{timestamp}",and({column}.eq."{timestamp}",id.lt."{row_id}")'
    )
