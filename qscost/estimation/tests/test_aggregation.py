"""
Tests for category roll-up and project totals.
"""

import pytest

from qscost.estimation.aggregator import UNCLASSIFIED_CODE, aggregate_project_total
from qscost.estimation.models import (
    CatalogLine,
    CategoryTotal,
    CustomLine,
    EstimateConsistencyError,
    LineItemCalculation,
    LineItemCreateRequest,
    ProjectCreateRequest,
    ProjectNotFound,
)


def _project(ledger, ctx, **kwargs):
    return ledger.create_project(ctx, ProjectCreateRequest(name="Community hall", **kwargs))


def _add(ledger, ctx, project, source, quantity):
    return ledger.add_line_item(ctx, project.id, LineItemCreateRequest(source=source, quantity=quantity))


class TestCategoryTotals:

    def test_groups_by_category_sorted_by_code(self, ledger, service, ctx):
        project = _project(ledger, ctx)
        _add(ledger, ctx, project, CatalogLine(cost_item_id=4), 10)
        _add(ledger, ctx, project, CatalogLine(cost_item_id=3), 10)
        _add(ledger, ctx, project, CustomLine(description="Hoarding", unit_rate=75.0, category_id=1), 3)

        categories = service.calculate_category_totals(ctx, project.id)

        assert [c.code for c in categories] == ["BCIS-A", "BCIS-B"]
        substructure, superstructure = categories
        assert substructure.line_count == 2
        assert substructure.subtotal == pytest.approx(1225.0)
        assert superstructure.line_count == 1
        assert superstructure.subtotal == pytest.approx(500.0)

    def test_accepts_precomputed_calculations(self, ledger, service, ctx):
        project = _project(ledger, ctx)
        _add(ledger, ctx, project, CatalogLine(cost_item_id=1), 2)
        calcs = service.calculate_line_items(ctx, project.id)

        categories = service.calculate_category_totals(ctx, project.id, calcs)

        assert len(categories) == 1
        assert categories[0].contractor_items_subtotal == pytest.approx(100.0)

    def test_unknown_category_lands_in_unclassified_bucket_last(self, ledger, service, ctx):
        project = _project(ledger, ctx)
        _add(ledger, ctx, project, CustomLine(description="Mystery works", unit_rate=40.0, category_id=77), 1)
        _add(ledger, ctx, project, CatalogLine(cost_item_id=3), 1)

        categories = service.calculate_category_totals(ctx, project.id)

        assert [c.code for c in categories] == ["BCIS-A", UNCLASSIFIED_CODE]
        assert categories[-1].category_id is None
        assert categories[-1].subtotal == pytest.approx(40.0)

    def test_reconciles_with_project_subtotal(self, ledger, service, ctx):
        project = _project(ledger, ctx)
        for item_id, qty in [(1, 2.5), (2, 1.2), (3, 7), (4, 3.3)]:
            _add(ledger, ctx, project, CatalogLine(cost_item_id=item_id), qty)
        _add(ledger, ctx, project, CustomLine(description="Scaffold", unit_rate=12.5, category_id=2), 40)
        _add(ledger, ctx, project, CustomLine(description="Orphan", unit_rate=3.0, category_id=404), 2)

        calcs = service.calculate_line_items(ctx, project.id)
        total = service.calculate_project_total(ctx, project.id)

        assert sum(c.line_count for c in total.categories) == len(calcs) == 6
        assert sum(c.subtotal for c in total.categories) == pytest.approx(total.subtotal)
        assert sum(c.line_total for c in calcs) == pytest.approx(total.subtotal)


class TestProjectTotal:

    def test_contingency_and_cost_per_area(self, ledger, service, ctx):
        project = _project(ledger, ctx, floor_area_m2=100.0, contingency_percentage=10.0)
        _add(ledger, ctx, project, CatalogLine(cost_item_id=3), 10)
        _add(ledger, ctx, project, CatalogLine(cost_item_id=4), 10)

        total = service.calculate_project_total(ctx, project.id)

        assert total.subtotal == pytest.approx(1500.0)
        assert total.contingency_amount == pytest.approx(150.0)
        assert total.grand_total == pytest.approx(1650.0)
        assert total.cost_per_area == pytest.approx(16.5)

    @pytest.mark.parametrize("floor_area", [None, 0.0, -5.0])
    def test_cost_per_area_null_without_usable_floor_area(self, ledger, service, ctx, floor_area):
        project = _project(ledger, ctx, floor_area_m2=floor_area)
        _add(ledger, ctx, project, CatalogLine(cost_item_id=3), 1)

        assert service.calculate_project_total(ctx, project.id).cost_per_area is None

    def test_default_contingency_is_ten_percent(self, ledger, service, ctx):
        project = _project(ledger, ctx)
        _add(ledger, ctx, project, CatalogLine(cost_item_id=3), 2)

        total = service.calculate_project_total(ctx, project.id)

        assert total.contingency_percentage == 10.0
        assert total.contingency_amount == pytest.approx(20.0)

    def test_zero_contingency_is_kept(self, ledger, service, ctx):
        project = _project(ledger, ctx, contingency_percentage=0.0)
        _add(ledger, ctx, project, CatalogLine(cost_item_id=3), 2)

        total = service.calculate_project_total(ctx, project.id)

        assert total.contingency_amount == 0
        assert total.grand_total == pytest.approx(200.0)

    def test_contractor_split_sums_to_subtotal(self, ledger, service, ctx):
        project = _project(ledger, ctx)
        _add(ledger, ctx, project, CatalogLine(cost_item_id=1), 2)
        _add(ledger, ctx, project, CatalogLine(cost_item_id=2), 2)
        _add(ledger, ctx, project, CustomLine(description="Signage", unit_rate=75.0, category_id=2), 3)

        total = service.calculate_project_total(ctx, project.id)

        assert total.contractor_cost_total == pytest.approx(100.0)
        assert total.non_contractor_cost_total == pytest.approx(230.0 + 230.0 + 225.0)
        assert total.contractor_cost_total + total.non_contractor_cost_total == pytest.approx(total.subtotal, rel=1e-6)

    def test_inactive_lines_are_excluded(self, ledger, service, ctx):
        project = _project(ledger, ctx)
        keep = _add(ledger, ctx, project, CatalogLine(cost_item_id=3), 1)
        drop = _add(ledger, ctx, project, CatalogLine(cost_item_id=4), 1)
        ledger.remove_line_item(ctx, project.id, drop.id)

        total = service.calculate_project_total(ctx, project.id)

        assert total.subtotal == pytest.approx(100.0)
        assert [li.line_item_id for li in total.categories[0].line_items] == [keep.id]

    def test_missing_catalog_item_is_a_warning_not_a_failure(self, ledger, service, catalog_repo, ctx):
        project = _project(ledger, ctx)
        doomed = _add(ledger, ctx, project, CatalogLine(cost_item_id=1), 2)
        _add(ledger, ctx, project, CatalogLine(cost_item_id=3), 2)
        catalog_repo.remove_item(1)

        total = service.calculate_project_total(ctx, project.id)

        assert total.subtotal == pytest.approx(200.0)
        assert len(total.warnings) == 1
        assert total.warnings[0].line_item_id == doomed.id

    def test_unknown_project_raises_not_found(self, service, ctx):
        with pytest.raises(ProjectNotFound):
            service.calculate_project_total(ctx, "nope")

    def test_repeated_calls_are_identical(self, ledger, service, ctx):
        project = _project(ledger, ctx, floor_area_m2=87.5, contingency_percentage=7.5)
        _add(ledger, ctx, project, CatalogLine(cost_item_id=1), 3.3)
        _add(ledger, ctx, project, CatalogLine(cost_item_id=2, unit_cost_override=91.1), 1.7)
        _add(ledger, ctx, project, CustomLine(description="Fencing", unit_rate=33.3, category_id=1), 12)

        first = service.calculate_project_total(ctx, project.id)
        second = service.calculate_project_total(ctx, project.id)

        assert first.model_dump() == second.model_dump()

    def test_tenants_are_isolated(self, ledger, service, ctx):
        from qscost.common.identity import RequestContext

        project = _project(ledger, ctx)
        other = RequestContext(tenant_id="t_other")
        with pytest.raises(ProjectNotFound):
            service.calculate_project_total(other, project.id)


def test_inconsistent_split_raises():
    calc = LineItemCalculation(
        line_item_id="li", kind="catalog", cost_item_id=1, category_id=1, description="tampered",
        quantity=1, unit_code="nr", material_cost=10, management_cost=0, contractor_cost=0,
        waste_factor=1.0, is_contractor_required=False, material_total=10, management_total=0,
        contractor_total=0, line_total=10,
    )
    # subtotal claims more than the lines account for
    category = CategoryTotal(category_id=1, code="A", name="A", line_count=1, line_items=[calc], subtotal=50.0)

    with pytest.raises(EstimateConsistencyError):
        aggregate_project_total("p1", [category], contingency_percentage=10.0)
