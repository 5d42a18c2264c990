from __future__ import annotations

import json
import logging
import os
import tempfile
import threading
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional, Protocol, Tuple

from qscost.config import runtime_config
from qscost.estimation.models import CostComponent, HistoricCostRecord, LineItem, Project

logger = logging.getLogger(__name__)


class EstimationRepository(Protocol):
    def save_project(self, project: Project) -> Project: ...
    def get_project(self, tenant_id: str, project_id: str) -> Optional[Project]: ...
    def list_projects(self, tenant_id: str) -> List[Project]: ...
    def save_line_item(self, item: LineItem) -> LineItem: ...
    def get_line_item(self, tenant_id: str, line_item_id: str) -> Optional[LineItem]: ...
    def list_line_items(self, tenant_id: str, project_id: str, include_inactive: bool = False) -> List[LineItem]: ...
    def save_cost_component(self, component: CostComponent) -> CostComponent: ...
    def get_cost_component(self, tenant_id: str, component_id: str) -> Optional[CostComponent]: ...
    def list_cost_components(
        self, tenant_id: str, line_item_id: str, include_inactive: bool = False
    ) -> List[CostComponent]: ...


class HistoricCostRepository(Protocol):
    def add_record(self, record: HistoricCostRecord) -> HistoricCostRecord: ...
    def query_historic(
        self,
        category_id: int,
        region: Optional[str] = None,
        age_band: Optional[str] = None,
        condition_band: Optional[str] = None,
    ) -> List[HistoricCostRecord]: ...


def _line_sort_key(item: LineItem) -> datetime:
    # stable sort: ties keep storage order
    return item.created_at


class InMemoryEstimationRepository:
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._projects: Dict[Tuple[str, str], Project] = {}
        self._line_items: Dict[Tuple[str, str], LineItem] = {}
        self._components: Dict[Tuple[str, str], CostComponent] = {}

    def save_project(self, project: Project) -> Project:
        with self._lock:
            self._projects[(project.tenant_id, project.id)] = project
        return project

    def get_project(self, tenant_id: str, project_id: str) -> Optional[Project]:
        return self._projects.get((tenant_id, project_id))

    def list_projects(self, tenant_id: str) -> List[Project]:
        with self._lock:
            return [p for (tenant, _), p in self._projects.items() if tenant == tenant_id]

    def save_line_item(self, item: LineItem) -> LineItem:
        with self._lock:
            self._line_items[(item.tenant_id, item.id)] = item
        return item

    def get_line_item(self, tenant_id: str, line_item_id: str) -> Optional[LineItem]:
        return self._line_items.get((tenant_id, line_item_id))

    def list_line_items(self, tenant_id: str, project_id: str, include_inactive: bool = False) -> List[LineItem]:
        with self._lock:
            items = [
                li
                for (tenant, _), li in self._line_items.items()
                if tenant == tenant_id and li.project_id == project_id and (include_inactive or li.is_active)
            ]
        return sorted(items, key=_line_sort_key)

    def save_cost_component(self, component: CostComponent) -> CostComponent:
        with self._lock:
            self._components[(component.tenant_id, component.id)] = component
        return component

    def get_cost_component(self, tenant_id: str, component_id: str) -> Optional[CostComponent]:
        return self._components.get((tenant_id, component_id))

    def list_cost_components(
        self, tenant_id: str, line_item_id: str, include_inactive: bool = False
    ) -> List[CostComponent]:
        with self._lock:
            comps = [
                c
                for (tenant, _), c in self._components.items()
                if tenant == tenant_id and c.line_item_id == line_item_id and (include_inactive or c.is_active)
            ]
        return sorted(comps, key=lambda c: (c.created_at, c.id))


class FilesystemEstimationRepository:
    """Filesystem-backed estimating store (one JSON document per tenant)."""

    def __init__(self, root: Optional[str] = None) -> None:
        dir_path = root or runtime_config.get_estimation_fs_dir()
        self._root = Path(dir_path or Path(tempfile.gettempdir()) / "qscost")
        self._root.mkdir(parents=True, exist_ok=True)
        self._lock = threading.Lock()

    def _file_path(self, tenant_id: str) -> Path:
        return self._root / f"{tenant_id}_estimates.json"

    def _load(self, tenant_id: str) -> Dict[str, Dict[str, dict]]:
        path = self._file_path(tenant_id)
        if not path.exists():
            return {"projects": {}, "line_items": {}, "cost_components": {}}
        with path.open("r", encoding="utf-8") as fh:
            doc = json.load(fh)
        doc.setdefault("projects", {})
        doc.setdefault("line_items", {})
        doc.setdefault("cost_components", {})
        return doc

    def _store(self, tenant_id: str, doc: Dict[str, Dict[str, dict]]) -> None:
        path = self._file_path(tenant_id)
        tmp = path.with_suffix(".json.tmp")
        with tmp.open("w", encoding="utf-8") as fh:
            json.dump(doc, fh, indent=2, sort_keys=True)
        os.replace(tmp, path)

    def _put(self, tenant_id: str, collection: str, record_id: str, payload: dict) -> None:
        with self._lock:
            doc = self._load(tenant_id)
            doc[collection][record_id] = payload
            self._store(tenant_id, doc)

    def save_project(self, project: Project) -> Project:
        self._put(project.tenant_id, "projects", project.id, project.model_dump(mode="json"))
        return project

    def get_project(self, tenant_id: str, project_id: str) -> Optional[Project]:
        raw = self._load(tenant_id)["projects"].get(project_id)
        return Project(**raw) if raw else None

    def list_projects(self, tenant_id: str) -> List[Project]:
        return [Project(**raw) for raw in self._load(tenant_id)["projects"].values()]

    def save_line_item(self, item: LineItem) -> LineItem:
        self._put(item.tenant_id, "line_items", item.id, item.model_dump(mode="json"))
        return item

    def get_line_item(self, tenant_id: str, line_item_id: str) -> Optional[LineItem]:
        raw = self._load(tenant_id)["line_items"].get(line_item_id)
        return LineItem(**raw) if raw else None

    def list_line_items(self, tenant_id: str, project_id: str, include_inactive: bool = False) -> List[LineItem]:
        items = [LineItem(**raw) for raw in self._load(tenant_id)["line_items"].values()]
        items = [li for li in items if li.project_id == project_id and (include_inactive or li.is_active)]
        return sorted(items, key=_line_sort_key)

    def save_cost_component(self, component: CostComponent) -> CostComponent:
        self._put(component.tenant_id, "cost_components", component.id, component.model_dump(mode="json"))
        return component

    def get_cost_component(self, tenant_id: str, component_id: str) -> Optional[CostComponent]:
        raw = self._load(tenant_id)["cost_components"].get(component_id)
        return CostComponent(**raw) if raw else None

    def list_cost_components(
        self, tenant_id: str, line_item_id: str, include_inactive: bool = False
    ) -> List[CostComponent]:
        comps = [CostComponent(**raw) for raw in self._load(tenant_id)["cost_components"].values()]
        comps = [c for c in comps if c.line_item_id == line_item_id and (include_inactive or c.is_active)]
        return sorted(comps, key=lambda c: (c.created_at, c.id))


def _matches(
    record: HistoricCostRecord,
    category_id: int,
    region: Optional[str],
    age_band: Optional[str],
    condition_band: Optional[str],
) -> bool:
    if record.category_id != category_id:
        return False
    if region and record.region != region:
        return False
    if age_band and record.building_age_range != age_band:
        return False
    if condition_band and record.condition_rating_range != condition_band:
        return False
    return True


class InMemoryHistoricCostRepository:
    def __init__(self, records: Optional[List[HistoricCostRecord]] = None) -> None:
        self._records: List[HistoricCostRecord] = list(records or [])

    def add_record(self, record: HistoricCostRecord) -> HistoricCostRecord:
        self._records.append(record)
        return record

    def query_historic(
        self,
        category_id: int,
        region: Optional[str] = None,
        age_band: Optional[str] = None,
        condition_band: Optional[str] = None,
    ) -> List[HistoricCostRecord]:
        return [r for r in self._records if _matches(r, category_id, region, age_band, condition_band)]


class FilesystemHistoricCostRepository:
    """Append-only JSONL file of historic cost analysis rows."""

    def __init__(self, root: Optional[str] = None) -> None:
        dir_path = root or runtime_config.get_estimation_fs_dir()
        self._root = Path(dir_path or Path(tempfile.gettempdir()) / "qscost")
        self._root.mkdir(parents=True, exist_ok=True)
        self._path = self._root / "historic_cost_analysis.jsonl"

    def add_record(self, record: HistoricCostRecord) -> HistoricCostRecord:
        with self._path.open("a", encoding="utf-8") as fh:
            fh.write(record.model_dump_json() + "\n")
        return record

    def query_historic(
        self,
        category_id: int,
        region: Optional[str] = None,
        age_band: Optional[str] = None,
        condition_band: Optional[str] = None,
    ) -> List[HistoricCostRecord]:
        if not self._path.exists():
            return []
        records: List[HistoricCostRecord] = []
        with self._path.open("r", encoding="utf-8") as fh:
            for raw in fh:
                raw = raw.strip()
                if not raw:
                    continue
                record = HistoricCostRecord(**json.loads(raw))
                if _matches(record, category_id, region, age_band, condition_band):
                    records.append(record)
        return records


def estimation_repo_from_env() -> EstimationRepository:
    backend = runtime_config.get_estimation_backend()
    if backend == "filesystem":
        return FilesystemEstimationRepository()
    if backend == "memory":
        return InMemoryEstimationRepository()
    raise RuntimeError("ESTIMATION_BACKEND must be one of memory|filesystem")


def historic_repo_from_env() -> HistoricCostRepository:
    backend = runtime_config.get_estimation_backend()
    if backend == "filesystem":
        return FilesystemHistoricCostRepository()
    if backend == "memory":
        return InMemoryHistoricCostRepository()
    raise RuntimeError("ESTIMATION_BACKEND must be one of memory|filesystem")


_default_repo: Optional[EstimationRepository] = None
_default_historic_repo: Optional[HistoricCostRepository] = None


def get_estimation_repo() -> EstimationRepository:
    global _default_repo
    if _default_repo is None:
        _default_repo = estimation_repo_from_env()
        logger.info("estimation backend initialised: %s", type(_default_repo).__name__)
    return _default_repo


def set_estimation_repo(repo: Optional[EstimationRepository]) -> None:
    """Override default repository (for testing)."""
    global _default_repo
    _default_repo = repo


def get_historic_repo() -> HistoricCostRepository:
    global _default_historic_repo
    if _default_historic_repo is None:
        _default_historic_repo = historic_repo_from_env()
    return _default_historic_repo


def set_historic_repo(repo: Optional[HistoricCostRepository]) -> None:
    global _default_historic_repo
    _default_historic_repo = repo
