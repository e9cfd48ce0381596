"""
Thin wrapper over the Supabase table API.

Callers describe reads with Filter/Order values instead of chaining
builder calls, so every collection is queried the same way and every
SDK failure surfaces as a RecordStoreError.
"""

from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
import logging

from supabase import Client

logger = logging.getLogger(__name__)

FILTER_OPS = ("eq", "in", "gte", "lte", "text_search", "ilike_any")


class RecordStoreError(Exception):
    """Remote record store call failed."""

    def __init__(self, collection: str, message: str):
        super().__init__(message)
        self.collection = collection
        self.message = message


@dataclass(frozen=True)
class Filter:
    column: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in FILTER_OPS:
            raise ValueError(f"Unsupported filter operator: {self.op}")


@dataclass(frozen=True)
class Order:
    column: str
    desc: bool = False


def eq(column: str, value: Any) -> Filter:
    return Filter(column, "eq", value)


def in_(column: str, values: Sequence[Any]) -> Filter:
    return Filter(column, "in", list(values))


def gte(column: str, value: Any) -> Filter:
    return Filter(column, "gte", value)


def lte(column: str, value: Any) -> Filter:
    return Filter(column, "lte", value)


def text_search(column: str, query: str) -> Filter:
    return Filter(column, "text_search", query)


def ilike_any(column: str, patterns: Sequence[str]) -> Filter:
    """OR of ilike patterns; '*' is the wildcard."""
    return Filter(column, "ilike_any", list(patterns))


def _apply_filters(builder, filters: Optional[Sequence[Filter]]):
    for f in filters or []:
        if f.op == "eq":
            builder = builder.eq(f.column, f.value)
        elif f.op == "in":
            builder = builder.in_(f.column, f.value)
        elif f.op == "gte":
            builder = builder.gte(f.column, f.value)
        elif f.op == "lte":
            builder = builder.lte(f.column, f.value)
        elif f.op == "text_search":
            builder = builder.text_search(f.column, f.value, options={"type": "websearch"})
        elif f.op == "ilike_any":
            conditions = ",".join(f"{f.column}.ilike.{pattern}" for pattern in f.value)
            builder = builder.or_(conditions)
    return builder


class RecordStore:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def query(
        self,
        collection: str,
        filters: Optional[Sequence[Filter]] = None,
        order: Optional[Sequence[Order]] = None,
        columns: str = "*",
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Select rows from a collection"""
        try:
            builder = _apply_filters(self.supabase.table(collection).select(columns), filters)
            for o in order or []:
                builder = builder.order(o.column, desc=o.desc)
            if limit is not None:
                builder = builder.limit(limit)
            result = builder.execute()
            return result.data or []
        except Exception as e:
            logger.error(f"Query on {collection} failed: {e}")
            raise RecordStoreError(collection, str(e))

    def get(self, collection: str, record_id: str, columns: str = "*") -> Optional[Dict[str, Any]]:
        """Fetch a single row by id, None when it does not exist"""
        rows = self.query(collection, [eq("id", record_id)], columns=columns, limit=1)
        return rows[0] if rows else None

    def count(self, collection: str, filters: Optional[Sequence[Filter]] = None) -> int:
        """Exact row count"""
        try:
            builder = _apply_filters(self.supabase.table(collection).select("id", count="exact"), filters)
            result = builder.execute()
            return result.count or 0
        except Exception as e:
            logger.error(f"Count on {collection} failed: {e}")
            raise RecordStoreError(collection, str(e))

    def insert(self, collection: str, payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            result = self.supabase.table(collection).insert(payload).execute()
            return result.data or []
        except Exception as e:
            logger.error(f"Insert into {collection} failed: {e}")
            raise RecordStoreError(collection, str(e))

    def upsert(self, collection: str, payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            result = self.supabase.table(collection).upsert(payload).execute()
            return result.data or []
        except Exception as e:
            logger.error(f"Upsert into {collection} failed: {e}")
            raise RecordStoreError(collection, str(e))

    def update(self, collection: str, record_id: str, payload: Dict[str, Any]) -> List[Dict[str, Any]]:
        try:
            result = self.supabase.table(collection)\
                .update(payload)\
                .eq("id", record_id)\
                .execute()
            return result.data or []
        except Exception as e:
            logger.error(f"Update of {collection}/{record_id} failed: {e}")
            raise RecordStoreError(collection, str(e))

    def delete(self, collection: str, record_id: str) -> List[Dict[str, Any]]:
        return self.delete_where(collection, [eq("id", record_id)])

    def delete_where(self, collection: str, filters: Sequence[Filter]) -> List[Dict[str, Any]]:
        if not filters:
            raise ValueError("delete_where requires at least one filter")
        try:
            builder = _apply_filters(self.supabase.table(collection).delete(), filters)
            result = builder.execute()
            return result.data or []
        except Exception as e:
            logger.error(f"Delete from {collection} failed: {e}")
            raise RecordStoreError(collection, str(e))
