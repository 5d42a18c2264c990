from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Dict, List, Optional, Protocol

from qscost.config import runtime_config
from qscost.cost_catalog.models import (
    CatalogSnapshot,
    CatalogSource,
    CostCatalogItem,
    CostCategory,
    CostSubElement,
)
from qscost.cost_catalog.seed import create_default_catalog

logger = logging.getLogger(__name__)


class CostCatalogRepository(Protocol):
    def snapshot(self) -> CatalogSnapshot: ...
    def get_item(self, item_id: int) -> Optional[CostCatalogItem]: ...
    def list_items(
        self,
        category_id: Optional[int] = None,
        sub_element_id: Optional[int] = None,
        source: Optional[CatalogSource] = None,
        search: Optional[str] = None,
        limit: int = 200,
        offset: int = 0,
    ) -> List[CostCatalogItem]: ...
    def upsert_item(self, item: CostCatalogItem) -> CostCatalogItem: ...
    def remove_item(self, item_id: int) -> bool: ...
    def upsert_category(self, category: CostCategory) -> CostCategory: ...
    def upsert_sub_element(self, sub_element: CostSubElement) -> CostSubElement: ...
    def list_categories(self) -> List[CostCategory]: ...


def _filter_items(
    snapshot_items: List[CostCatalogItem],
    sub_elements: Dict[int, CostSubElement],
    category_id: Optional[int],
    sub_element_id: Optional[int],
    source: Optional[CatalogSource],
    search: Optional[str],
) -> List[CostCatalogItem]:
    needle = search.lower() if search else None
    matched = []
    for item in snapshot_items:
        if sub_element_id is not None and item.sub_element_id != sub_element_id:
            continue
        if category_id is not None:
            sub = sub_elements.get(item.sub_element_id)
            if not sub or sub.category_id != category_id:
                continue
        if source and item.source != source:
            continue
        if needle and needle not in item.description.lower() and needle not in item.code.lower():
            continue
        matched.append(item)
    return sorted(matched, key=lambda i: i.code)


class InMemoryCostCatalogRepository:
    def __init__(self, seed: bool = False) -> None:
        self._lock = threading.Lock()
        self._items: Dict[int, CostCatalogItem] = {}
        self._sub_elements: Dict[int, CostSubElement] = {}
        self._categories: Dict[int, CostCategory] = {}
        if seed:
            categories, sub_elements, items = create_default_catalog()
            for category in categories:
                self._categories[category.id] = category
            for sub in sub_elements:
                self._sub_elements[sub.id] = sub
            for item in items:
                self._items[item.id] = item

    def snapshot(self) -> CatalogSnapshot:
        with self._lock:
            return CatalogSnapshot(
                list(self._items.values()),
                list(self._sub_elements.values()),
                list(self._categories.values()),
            )

    def get_item(self, item_id: int) -> Optional[CostCatalogItem]:
        return self._items.get(item_id)

    def list_items(
        self,
        category_id: Optional[int] = None,
        sub_element_id: Optional[int] = None,
        source: Optional[CatalogSource] = None,
        search: Optional[str] = None,
        limit: int = 200,
        offset: int = 0,
    ) -> List[CostCatalogItem]:
        with self._lock:
            items = list(self._items.values())
            subs = dict(self._sub_elements)
        matched = _filter_items(items, subs, category_id, sub_element_id, source, search)
        return matched[offset : offset + limit]

    def upsert_item(self, item: CostCatalogItem) -> CostCatalogItem:
        with self._lock:
            if item.sub_element_id not in self._sub_elements:
                raise ValueError(f"sub_element {item.sub_element_id} does not exist")
            self._items[item.id] = item
        return item

    def remove_item(self, item_id: int) -> bool:
        with self._lock:
            return self._items.pop(item_id, None) is not None

    def upsert_category(self, category: CostCategory) -> CostCategory:
        with self._lock:
            self._categories[category.id] = category
        return category

    def upsert_sub_element(self, sub_element: CostSubElement) -> CostSubElement:
        with self._lock:
            if sub_element.category_id not in self._categories:
                raise ValueError(f"category {sub_element.category_id} does not exist")
            self._sub_elements[sub_element.id] = sub_element
        return sub_element

    def list_categories(self) -> List[CostCategory]:
        with self._lock:
            categories = list(self._categories.values())
        return sorted(categories, key=lambda c: (c.sort_order, c.code))


class FilesystemCostCatalogRepository:
    """Single-document JSON catalog; each snapshot is one whole-file read."""

    def __init__(self, root: Optional[str] = None, seed: bool = False) -> None:
        dir_path = root or runtime_config.get_estimation_fs_dir()
        self._root = Path(dir_path or Path(tempfile.gettempdir()) / "qscost")
        self._root.mkdir(parents=True, exist_ok=True)
        self._path = self._root / "cost_catalog.json"
        self._lock = threading.Lock()
        if seed and not self._path.exists():
            categories, sub_elements, items = create_default_catalog()
            self._write({"categories": categories, "sub_elements": sub_elements, "items": items})

    def _read(self) -> Dict[str, list]:
        if not self._path.exists():
            return {"categories": [], "sub_elements": [], "items": []}
        with self._path.open("r", encoding="utf-8") as fh:
            raw = json.load(fh)
        return {
            "categories": [CostCategory(**c) for c in raw.get("categories", [])],
            "sub_elements": [CostSubElement(**s) for s in raw.get("sub_elements", [])],
            "items": [CostCatalogItem(**i) for i in raw.get("items", [])],
        }

    def _write(self, doc: Dict[str, list]) -> None:
        payload = {key: [m.model_dump(mode="json") for m in values] for key, values in doc.items()}
        tmp = self._path.with_suffix(".json.tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            json.dump(payload, fh, indent=2, sort_keys=True)
        os.replace(tmp, self._path)

    def snapshot(self) -> CatalogSnapshot:
        doc = self._read()
        return CatalogSnapshot(doc["items"], doc["sub_elements"], doc["categories"])

    def get_item(self, item_id: int) -> Optional[CostCatalogItem]:
        return self.snapshot().get_cost_item(item_id)

    def list_items(
        self,
        category_id: Optional[int] = None,
        sub_element_id: Optional[int] = None,
        source: Optional[CatalogSource] = None,
        search: Optional[str] = None,
        limit: int = 200,
        offset: int = 0,
    ) -> List[CostCatalogItem]:
        doc = self._read()
        subs = {s.id: s for s in doc["sub_elements"]}
        matched = _filter_items(doc["items"], subs, category_id, sub_element_id, source, search)
        return matched[offset : offset + limit]

    def upsert_item(self, item: CostCatalogItem) -> CostCatalogItem:
        with self._lock:
            doc = self._read()
            if item.sub_element_id not in {s.id for s in doc["sub_elements"]}:
                raise ValueError(f"sub_element {item.sub_element_id} does not exist")
            doc["items"] = [i for i in doc["items"] if i.id != item.id] + [item]
            self._write(doc)
        return item

    def remove_item(self, item_id: int) -> bool:
        with self._lock:
            doc = self._read()
            remaining = [i for i in doc["items"] if i.id != item_id]
            if len(remaining) == len(doc["items"]):
                return False
            doc["items"] = remaining
            self._write(doc)
        return True

    def upsert_category(self, category: CostCategory) -> CostCategory:
        with self._lock:
            doc = self._read()
            doc["categories"] = [c for c in doc["categories"] if c.id != category.id] + [category]
            self._write(doc)
        return category

    def upsert_sub_element(self, sub_element: CostSubElement) -> CostSubElement:
        with self._lock:
            doc = self._read()
            if sub_element.category_id not in {c.id for c in doc["categories"]}:
                raise ValueError(f"category {sub_element.category_id} does not exist")
            doc["sub_elements"] = [s for s in doc["sub_elements"] if s.id != sub_element.id] + [sub_element]
            self._write(doc)
        return sub_element

    def list_categories(self) -> List[CostCategory]:
        return sorted(self._read()["categories"], key=lambda c: (c.sort_order, c.code))


def catalog_repo_from_env() -> CostCatalogRepository:
    backend = runtime_config.get_estimation_backend()
    seed = runtime_config.get_catalog_seed() == "default"
    if backend == "filesystem":
        return FilesystemCostCatalogRepository(seed=seed)
    if backend == "memory":
        return InMemoryCostCatalogRepository(seed=seed)
    raise RuntimeError("ESTIMATION_BACKEND must be one of memory|filesystem")


_default_repo: Optional[CostCatalogRepository] = None


def get_catalog_repo() -> CostCatalogRepository:
    global _default_repo
    if _default_repo is None:
        _default_repo = catalog_repo_from_env()
        logger.info("cost catalog backend initialised: %s", type(_default_repo).__name__)
    return _default_repo


def set_catalog_repo(repo: Optional[CostCatalogRepository]) -> None:
    """Override default repository (for testing)."""
    global _default_repo
    _default_repo = repo
