"""
Key-value table contract shared by every store, plus the MongoDB backend.

Items are flat dicts carrying their own ``PK``/``SK`` and optional
``GSI1*``/``GSI2*`` index fields (see ``app.db.key_mapper``). Queries address
one partition and an optional sort-key prefix, the same access patterns a
partitioned key-value store offers.
"""
import base64
import json
import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from pymongo import ASCENDING, DESCENDING, DeleteOne, ReplaceOne, ReturnDocument
from pymongo.errors import DuplicateKeyError

from app.core.config import settings
from app.core.errors import ConflictError, PartialBatchFailure, ValidationFailedError
from app.db.key_mapper import INDEX_FIELDS, Key

logger = logging.getLogger(__name__)

Item = Dict[str, Any]


@dataclass
class Page:
    items: List[Item]
    # Position of the last returned item when more may follow; pass back as start_after
    last_key: Optional[Dict[str, Any]] = None


def encode_cursor(last_key: Optional[Dict[str, Any]]) -> Optional[str]:
    """Opaque ``lastKey`` token handed to API clients."""
    if not last_key:
        return None
    return base64.urlsafe_b64encode(json.dumps(last_key).encode()).decode()


def decode_cursor(token: Optional[str]) -> Optional[Dict[str, Any]]:
    if not token:
        return None
    try:
        cursor = json.loads(base64.urlsafe_b64decode(token.encode()))
    except (ValueError, TypeError) as exc:
        raise ValidationFailedError(["lastKey: invalid pagination cursor"]) from exc
    if not isinstance(cursor, dict) or not {"sort", "PK", "SK"} <= cursor.keys():
        raise ValidationFailedError(["lastKey: invalid pagination cursor"])
    return cursor


def chunked(seq: Sequence[Any], size: int) -> Iterable[Sequence[Any]]:
    for i in range(0, len(seq), size):
        yield seq[i:i + size]


class Table(ABC):
    def __init__(
        self,
        name: str,
        batch_write_limit: int = settings.BATCH_WRITE_LIMIT,
        batch_get_limit: int = settings.BATCH_GET_LIMIT,
    ):
        self.name = name
        self.batch_write_limit = batch_write_limit
        self.batch_get_limit = batch_get_limit

    @abstractmethod
    async def get_item(self, key: Key) -> Optional[Item]:
        ...

    @abstractmethod
    async def put_item(self, item: Item, if_not_exists: bool = False) -> None:
        """Write ``item``; with ``if_not_exists`` an existing key raises ConflictError."""

    @abstractmethod
    async def update_item(self, key: Key, updates: Dict[str, Any]) -> Optional[Item]:
        """Set ``updates`` on an existing item and return it, or None if the key is absent."""

    @abstractmethod
    async def delete_item(self, key: Key) -> None:
        ...

    @abstractmethod
    async def query(
        self,
        partition: str,
        prefix: str = "",
        index: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
        start_after: Optional[Dict[str, Any]] = None,
    ) -> Page:
        ...

    @abstractmethod
    async def scan(self, limit: Optional[int] = None, start_after: Optional[Dict[str, Any]] = None) -> Page:
        ...

    @abstractmethod
    async def _batch_get_chunk(self, keys: Sequence[Key]) -> List[Item]:
        ...

    @abstractmethod
    async def _batch_write_chunk(self, puts: Sequence[Item], deletes: Sequence[Key]) -> None:
        ...

    @abstractmethod
    async def _transact_update_chunk(self, updates: Sequence[Tuple[Key, Dict[str, Any]]]) -> None:
        ...

    async def batch_get(self, keys: Sequence[Key]) -> List[Item]:
        """Fetch many keys; keys that do not resolve are silently omitted."""
        items: List[Item] = []
        for chunk in chunked(list(keys), self.batch_get_limit):
            items.extend(await self._batch_get_chunk(chunk))
        return items

    async def batch_write(self, puts: Sequence[Item] = (), deletes: Sequence[Key] = ()) -> None:
        """Chunked puts/deletes. Chunks run one after another with no cross-item atomicity.

        A failing chunk aborts the call with PartialBatchFailure; chunks written
        before it stay written.
        """
        requests: List[Tuple[str, Any]] = [("put", item) for item in puts] + [("delete", key) for key in deletes]
        for n, chunk in enumerate(chunked(requests, self.batch_write_limit)):
            chunk_puts = [payload for kind, payload in chunk if kind == "put"]
            chunk_deletes = [payload for kind, payload in chunk if kind == "delete"]
            try:
                await self._batch_write_chunk(chunk_puts, chunk_deletes)
            except Exception as exc:
                logger.exception("Batch write chunk %d on table %s failed", n, self.name)
                raise PartialBatchFailure() from exc

    async def transact_update(self, updates: Sequence[Tuple[Key, Dict[str, Any]]]) -> None:
        """Grouped updates; each chunk is applied atomically (all or nothing)."""
        for n, chunk in enumerate(chunked(list(updates), self.batch_write_limit)):
            try:
                await self._transact_update_chunk(chunk)
            except Exception as exc:
                logger.exception("Transactional update chunk %d on table %s failed", n, self.name)
                raise PartialBatchFailure() from exc

    async def ensure_indexes(self) -> None:
        """Create backing indexes where the backend needs them."""


def doc_id(key: Key) -> str:
    return f"{key.PK}|{key.SK}"


class MongoTable(Table):
    """One MongoDB collection per table; ``_id`` is derived from PK and SK."""

    def __init__(self, collection, client, **limits):
        super().__init__(collection.name, **limits)
        self.collection = collection
        self.client = client

    @staticmethod
    def _to_item(doc: Optional[Dict[str, Any]]) -> Optional[Item]:
        if doc is None:
            return None
        doc.pop("_id", None)
        return doc

    @staticmethod
    def _to_doc(item: Item) -> Dict[str, Any]:
        return {**item, "_id": doc_id(Key(PK=item["PK"], SK=item["SK"]))}

    async def ensure_indexes(self) -> None:
        await self.collection.create_index([("PK", ASCENDING), ("SK", ASCENDING)])
        for index, (pk_field, sk_field) in INDEX_FIELDS.items():
            if index is not None:
                await self.collection.create_index(
                    [(pk_field, ASCENDING), (sk_field, ASCENDING)], sparse=True
                )

    async def get_item(self, key: Key) -> Optional[Item]:
        return self._to_item(await self.collection.find_one({"_id": doc_id(key)}))

    async def put_item(self, item: Item, if_not_exists: bool = False) -> None:
        doc = self._to_doc(item)
        if if_not_exists:
            try:
                await self.collection.insert_one(doc)
            except DuplicateKeyError as exc:
                raise ConflictError(f"Item {doc['_id']} already exists in {self.name}") from exc
            return
        await self.collection.replace_one({"_id": doc["_id"]}, doc, upsert=True)

    async def update_item(self, key: Key, updates: Dict[str, Any]) -> Optional[Item]:
        doc = await self.collection.find_one_and_update(
            {"_id": doc_id(key)},
            {"$set": updates},
            return_document=ReturnDocument.AFTER,
        )
        return self._to_item(doc)

    async def delete_item(self, key: Key) -> None:
        await self.collection.delete_one({"_id": doc_id(key)})

    async def _find(self, flt: Dict[str, Any], sort_field: str, descending: bool,
                    limit: Optional[int], start_after: Optional[Dict[str, Any]]) -> Page:
        direction = DESCENDING if descending else ASCENDING
        if start_after:
            op = "$lt" if descending else "$gt"
            last_sort, last_id = start_after["sort"], doc_id(Key(PK=start_after["PK"], SK=start_after["SK"]))
            flt = {
                "$and": [
                    flt,
                    {"$or": [{sort_field: {op: last_sort}}, {sort_field: last_sort, "_id": {op: last_id}}]},
                ]
            }
        cursor = self.collection.find(flt).sort([(sort_field, direction), ("_id", direction)])
        if limit:
            cursor = cursor.limit(limit)
        items = [self._to_item(doc) async for doc in cursor]
        last_key = None
        if limit and len(items) == limit:
            last = items[-1]
            last_key = {"sort": last[sort_field], "PK": last["PK"], "SK": last["SK"]}
        return Page(items=items, last_key=last_key)

    async def query(self, partition, prefix="", index=None, descending=False, limit=None, start_after=None) -> Page:
        pk_field, sk_field = INDEX_FIELDS[index]
        flt = {pk_field: partition, sk_field: {"$regex": "^" + re.escape(prefix)}}
        return await self._find(flt, sk_field, descending, limit, start_after)

    async def scan(self, limit=None, start_after=None) -> Page:
        return await self._find({}, "PK", False, limit, start_after)

    async def _batch_get_chunk(self, keys: Sequence[Key]) -> List[Item]:
        cursor = self.collection.find({"_id": {"$in": [doc_id(k) for k in keys]}})
        return [self._to_item(doc) async for doc in cursor]

    async def _batch_write_chunk(self, puts: Sequence[Item], deletes: Sequence[Key]) -> None:
        ops = [ReplaceOne({"_id": d["_id"]}, d, upsert=True) for d in map(self._to_doc, puts)]
        ops += [DeleteOne({"_id": doc_id(k)}) for k in deletes]
        if ops:
            await self.collection.bulk_write(ops, ordered=False)

    async def _transact_update_chunk(self, updates: Sequence[Tuple[Key, Dict[str, Any]]]) -> None:
        async with self.client.start_session() as session:
            async with await session.start_transaction():
                for key, fields in updates:
                    result = await self.collection.update_one(
                        {"_id": doc_id(key)}, {"$set": fields}, session=session
                    )
                    if result.matched_count == 0:
                        raise KeyError(f"{doc_id(key)} does not exist in {self.name}")
