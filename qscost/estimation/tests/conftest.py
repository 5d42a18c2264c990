import pytest

from qscost.common.identity import RequestContext
from qscost.cost_catalog.models import CostCatalogItem, CostCategory, CostSubElement
from qscost.cost_catalog.repository import InMemoryCostCatalogRepository
from qscost.estimation.ledger import EstimateLedger
from qscost.estimation.repository import InMemoryEstimationRepository, InMemoryHistoricCostRepository
from qscost.estimation.service import EstimationService

TENANT = "t_estimating"


def build_catalog() -> InMemoryCostCatalogRepository:
    repo = InMemoryCostCatalogRepository()
    repo.upsert_category(CostCategory(id=1, code="BCIS-A", name="Substructure", sort_order=1))
    repo.upsert_category(CostCategory(id=2, code="BCIS-B", name="Superstructure", sort_order=2))
    repo.upsert_sub_element(CostSubElement(id=11, category_id=1, code="BCIS-A1", name="Foundations"))
    repo.upsert_sub_element(CostSubElement(id=21, category_id=2, code="BCIS-B1", name="Frame"))
    # 100/10/50 with 5% waste, contractor required
    repo.upsert_item(CostCatalogItem(
        id=1, code="A1-001", description="Strip foundation", unit_code="m3",
        material_cost=100.0, management_cost=10.0, contractor_cost=50.0,
        waste_factor=1.05, is_contractor_required=True, sub_element_id=11,
    ))
    repo.upsert_item(CostCatalogItem(
        id=2, code="B1-001", description="Timber frame", unit_code="m2",
        material_cost=100.0, management_cost=10.0, contractor_cost=50.0,
        waste_factor=1.05, is_contractor_required=False, sub_element_id=21,
    ))
    # flat-rate items for round totals
    repo.upsert_item(CostCatalogItem(
        id=3, code="A1-002", description="Raft foundation", unit_code="m2",
        material_cost=100.0, waste_factor=1.0, sub_element_id=11,
    ))
    repo.upsert_item(CostCatalogItem(
        id=4, code="B1-002", description="Steel frame", unit_code="t",
        material_cost=50.0, waste_factor=1.0, sub_element_id=21,
    ))
    return repo


@pytest.fixture
def ctx() -> RequestContext:
    return RequestContext(tenant_id=TENANT, user_id="u_estimator")


@pytest.fixture
def catalog_repo() -> InMemoryCostCatalogRepository:
    return build_catalog()


@pytest.fixture
def estimation_repo() -> InMemoryEstimationRepository:
    return InMemoryEstimationRepository()


@pytest.fixture
def historic_repo() -> InMemoryHistoricCostRepository:
    return InMemoryHistoricCostRepository()


@pytest.fixture
def ledger(estimation_repo, catalog_repo) -> EstimateLedger:
    return EstimateLedger(repo=estimation_repo, catalog_repo=catalog_repo)


@pytest.fixture
def service(estimation_repo, catalog_repo, historic_repo) -> EstimationService:
    return EstimationService(
        repo=estimation_repo,
        catalog_repo=catalog_repo,
        historic_repo=historic_repo,
        min_sample_size=3,
    )
