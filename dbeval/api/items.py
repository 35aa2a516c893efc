"""
Items API

Paginated listing, creation and keyword search over the `items` table.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query, status

from dbeval.api.error_handling import http_exception
from dbeval.config import get_settings
from dbeval.connectors import postgres_pool
from dbeval.connectors.postgres_pool import PostgresConnectionPool
from dbeval.models import Item, ItemCreate

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/items", tags=["items"])

SEARCH_LIMIT = 10

LIST_ITEMS_SQL = """
    SELECT id, name, description, created_at
    FROM items
    ORDER BY created_at DESC
    LIMIT $1
    OFFSET $2
"""

CREATE_ITEM_SQL = """
    INSERT INTO items (name, description, created_at)
    VALUES ($1, $2, NOW())
    RETURNING id, name, description, created_at
"""

SEARCH_ITEMS_SQL = """
    SELECT id, name, description, created_at
    FROM items
    WHERE name ILIKE $1
       OR description ILIKE $1
    ORDER BY created_at DESC
    LIMIT $2
"""


def get_pool() -> PostgresConnectionPool:
    try:
        return postgres_pool.get_default_pool(get_settings())
    except Exception as e:
        raise http_exception("connect", e) from e


def like_pattern(term: str) -> str:
    """`%term%` with LIKE wildcards in `term` matched literally."""
    escaped = term.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
    return f"%{escaped}%"


@router.get("", response_model=List[Item])
async def list_items(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1, le=100),
    pool: PostgresConnectionPool = Depends(get_pool),
):
    """List items, newest first."""
    page_size = limit or get_settings().API_DEFAULT_PAGE_SIZE
    offset = (page - 1) * page_size
    try:
        rows = await pool.fetch_all(LIST_ITEMS_SQL, page_size, offset)
    except Exception as e:
        raise http_exception("list items", e) from e
    return [Item.model_validate(dict(row)) for row in rows]


@router.post("", response_model=Item, status_code=status.HTTP_201_CREATED)
async def create_item(
    item: ItemCreate,
    pool: PostgresConnectionPool = Depends(get_pool),
):
    try:
        row = await pool.fetch_one(CREATE_ITEM_SQL, item.name, item.description)
    except Exception as e:
        raise http_exception("create item", e) from e
    logger.debug("Created item %s", row["id"] if row else None)
    return Item.model_validate(dict(row))


@router.get("/search", response_model=List[Item])
async def search_items(
    q: str = Query(""),
    pool: PostgresConnectionPool = Depends(get_pool),
):
    """Case-insensitive substring match on name or description."""
    try:
        rows = await pool.fetch_all(SEARCH_ITEMS_SQL, like_pattern(q), SEARCH_LIMIT)
    except Exception as e:
        raise http_exception("search items", e) from e
    return [Item.model_validate(dict(row)) for row in rows]
