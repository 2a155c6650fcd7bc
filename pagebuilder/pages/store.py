"""Persistence for placed section instances.

Properties travel as JSON text and come back deep-equal. Nothing here
knows about section types or schemas; that belongs to the page service.
"""

import logging
import uuid
from datetime import datetime
from typing import Any, Optional

from pagebuilder.pages.db import (
    SECTION_COLUMNS,
    decode_properties,
    encode_properties,
    execute,
    query,
    query_one,
)
from pagebuilder.sections.schemas import SectionInstance

logger = logging.getLogger(__name__)

_INSERT_SQL = (
    f"INSERT INTO page_sections ({', '.join(SECTION_COLUMNS)}) "
    f"VALUES ({', '.join(['%s'] * len(SECTION_COLUMNS))})"
)


def _normalize_timestamps(row: dict) -> dict:
    """Convert datetime objects to ISO strings (Postgres returns datetimes for TIMESTAMP columns)."""
    for key in ("created_at", "updated_at"):
        val = row.get(key)
        if val is not None and isinstance(val, datetime):
            row[key] = val.isoformat()
    return row


def _row_to_instance(row: dict) -> SectionInstance:
    _normalize_timestamps(row)
    return SectionInstance(
        id=row["id"],
        page_id=row["page_id"],
        order=row["section_order"],
        type_id=row["type_id"],
        properties=decode_properties(row.get("properties")),
        created_at=row.get("created_at"),
        updated_at=row.get("updated_at"),
    )


def fetch_sections_for_page(page_id: str) -> list[SectionInstance]:
    """All instances on a page, in render order (ties by creation)."""
    rows = query(
        """SELECT * FROM page_sections WHERE page_id = %s
           ORDER BY section_order, created_at, id""",
        (page_id,),
    )
    return [_row_to_instance(row) for row in rows]


def get_section_instance(section_id: str) -> Optional[SectionInstance]:
    row = query_one("SELECT * FROM page_sections WHERE id = %s", (section_id,))
    if row is None:
        return None
    return _row_to_instance(row)


def create_section_instance(
    page_id: str,
    type_id: str,
    properties: Optional[dict[str, Any]] = None,
    order: Optional[int] = None,
) -> SectionInstance:
    """Insert an instance. Without an explicit order it goes last."""
    if order is None:
        row = query_one(
            "SELECT MAX(section_order) AS max_order FROM page_sections WHERE page_id = %s",
            (page_id,),
        )
        current = row.get("max_order") if row else None
        order = 0 if current is None else current + 1

    section_id = str(uuid.uuid4())
    now = datetime.utcnow().isoformat()
    execute(
        _INSERT_SQL,
        (section_id, page_id, type_id, order, encode_properties(properties or {}), now, now),
    )
    logger.info(f"Created {type_id} section {section_id} on page {page_id} at order {order}")

    return SectionInstance(
        id=section_id,
        page_id=page_id,
        order=order,
        type_id=type_id,
        properties=properties or {},
        created_at=now,
        updated_at=now,
    )


def save_section_properties(section_id: str, properties: dict[str, Any]) -> bool:
    """Replace an instance's properties. Returns False if it doesn't exist."""
    updated = execute(
        "UPDATE page_sections SET properties = %s, updated_at = %s WHERE id = %s",
        (encode_properties(properties), datetime.utcnow().isoformat(), section_id),
    )
    if not updated:
        return False
    logger.info(f"Saved properties for section {section_id}")
    return True


def update_section_type(section_id: str, type_id: str, properties: dict[str, Any]) -> bool:
    """Swap an instance to another type, e.g. after a legacy migration."""
    updated = execute(
        "UPDATE page_sections SET type_id = %s, properties = %s, updated_at = %s WHERE id = %s",
        (type_id, encode_properties(properties), datetime.utcnow().isoformat(), section_id),
    )
    if not updated:
        return False
    logger.info(f"Section {section_id} is now {type_id}")
    return True


def list_sections_by_type(type_id: str) -> list[SectionInstance]:
    rows = query(
        "SELECT * FROM page_sections WHERE type_id = %s ORDER BY page_id, section_order, created_at",
        (type_id,),
    )
    return [_row_to_instance(row) for row in rows]


def delete_section_instance(section_id: str) -> bool:
    if not execute("DELETE FROM page_sections WHERE id = %s", (section_id,)):
        return False
    logger.info(f"Deleted section {section_id}")
    return True
