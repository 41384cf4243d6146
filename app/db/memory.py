"""In-process table used for local development (STORAGE_BACKEND=memory) and the test suite."""
import copy
from typing import Any, Dict, List, Optional, Sequence, Tuple

from app.core.errors import ConflictError
from app.db.key_mapper import INDEX_FIELDS, Key
from app.db.tables import Item, Page, Table


class InMemoryTable(Table):
    def __init__(self, name: str, **limits):
        super().__init__(name, **limits)
        self._items: Dict[Tuple[str, str], Item] = {}

    def __len__(self) -> int:
        return len(self._items)

    async def get_item(self, key: Key) -> Optional[Item]:
        item = self._items.get((key.PK, key.SK))
        return copy.deepcopy(item) if item is not None else None

    async def put_item(self, item: Item, if_not_exists: bool = False) -> None:
        k = (item["PK"], item["SK"])
        if if_not_exists and k in self._items:
            raise ConflictError(f"Item {k[0]}|{k[1]} already exists in {self.name}")
        self._items[k] = copy.deepcopy(item)

    async def update_item(self, key: Key, updates: Dict[str, Any]) -> Optional[Item]:
        item = self._items.get((key.PK, key.SK))
        if item is None:
            return None
        item.update(copy.deepcopy(updates))
        return copy.deepcopy(item)

    async def delete_item(self, key: Key) -> None:
        self._items.pop((key.PK, key.SK), None)

    @staticmethod
    def _page(ordered: List[Tuple[Tuple[Any, str, str], Item]], descending: bool,
              limit: Optional[int], start_after: Optional[Dict[str, Any]]) -> Page:
        if start_after:
            mark = (start_after["sort"], start_after["PK"], start_after["SK"])
            ordered = [(pos, item) for pos, item in ordered if (pos < mark if descending else pos > mark)]
        if limit:
            ordered = ordered[:limit]
        items = [copy.deepcopy(item) for _, item in ordered]
        last_key = None
        if limit and len(items) == limit:
            pos = ordered[-1][0]
            last_key = {"sort": pos[0], "PK": pos[1], "SK": pos[2]}
        return Page(items=items, last_key=last_key)

    async def query(self, partition, prefix="", index=None, descending=False, limit=None, start_after=None) -> Page:
        pk_field, sk_field = INDEX_FIELDS[index]
        matches = [
            ((item[sk_field], item["PK"], item["SK"]), item)
            for item in self._items.values()
            # items without the index fields are not in the index
            if item.get(pk_field) == partition and sk_field in item and item[sk_field].startswith(prefix)
        ]
        matches.sort(key=lambda m: m[0], reverse=descending)
        return self._page(matches, descending, limit, start_after)

    async def scan(self, limit=None, start_after=None) -> Page:
        matches = sorted(
            (((item["PK"], item["PK"], item["SK"]), item) for item in self._items.values()),
            key=lambda m: m[0],
        )
        return self._page(matches, False, limit, start_after)

    async def _batch_get_chunk(self, keys: Sequence[Key]) -> List[Item]:
        return [copy.deepcopy(self._items[(k.PK, k.SK)]) for k in keys if (k.PK, k.SK) in self._items]

    async def _batch_write_chunk(self, puts: Sequence[Item], deletes: Sequence[Key]) -> None:
        for item in puts:
            self._items[(item["PK"], item["SK"])] = copy.deepcopy(item)
        for key in deletes:
            self._items.pop((key.PK, key.SK), None)

    async def _transact_update_chunk(self, updates: Sequence[Tuple[Key, Dict[str, Any]]]) -> None:
        missing = [k for k, _ in updates if (k.PK, k.SK) not in self._items]
        if missing:
            raise KeyError(f"{missing[0].PK}|{missing[0].SK} does not exist in {self.name}")
        for key, fields in updates:
            self._items[(key.PK, key.SK)].update(copy.deepcopy(fields))
