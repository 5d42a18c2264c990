"""
Tests for the estimate summary and element breakdown views.
"""

import pytest

from qscost.estimation.models import (
    CatalogLine,
    ComponentType,
    CostComponentCreateRequest,
    CustomLine,
    LineItemCreateRequest,
    LineItemUpdateRequest,
    ProjectCreateRequest,
    ProjectNotFound,
)


@pytest.fixture
def project(ledger, ctx):
    project = ledger.create_project(ctx, ProjectCreateRequest(name="Clinic", floor_area_m2=50.0))
    ledger.add_line_item(ctx, project.id, LineItemCreateRequest(source=CatalogLine(cost_item_id=1), quantity=2))
    ledger.add_line_item(
        ctx,
        project.id,
        LineItemCreateRequest(
            source=CustomLine(description="Signage", unit_rate=75.0, category_id=2), quantity=3, notes="client supplied"
        ),
    )
    return project


def test_estimate_summary(service, project, ctx):
    summary = service.get_estimate_summary(ctx, project.id)

    assert summary.total_line_items == 2
    assert summary.total_cost == pytest.approx((330.0 + 225.0) * 1.1)
    assert summary.contractor_cost == pytest.approx(100.0)
    assert summary.non_contractor_cost == pytest.approx(455.0)
    assert summary.contingency_amount == pytest.approx(55.5)
    assert summary.cost_per_area == pytest.approx(610.5 / 50.0)
    assert summary.estimate_status == "calculated"
    assert summary.warning_count == 0


def test_summary_counts_only_priced_lines(ledger, service, catalog_repo, ctx):
    project = ledger.create_project(ctx, ProjectCreateRequest(name="Depot", floor_area_m2=10.0))
    ledger.add_line_item(ctx, project.id, LineItemCreateRequest(source=CatalogLine(cost_item_id=1), quantity=1))
    ledger.add_line_item(ctx, project.id, LineItemCreateRequest(source=CatalogLine(cost_item_id=3), quantity=1))
    catalog_repo.remove_item(1)

    summary = service.get_estimate_summary(ctx, project.id)

    assert summary.total_line_items == 1
    assert summary.warning_count == 1
    assert summary.total_cost == pytest.approx(110.0)


def test_estimate_summary_unknown_project(service, ctx):
    with pytest.raises(ProjectNotFound):
        service.get_estimate_summary(ctx, "missing")


def test_element_breakdown_groups_lines(service, project, ctx):
    breakdown = service.calculate_element_breakdown(ctx, project.id)

    assert [e.code for e in breakdown.elements] == ["BCIS-A", "BCIS-B"]
    assert breakdown.total_items == 2
    assert breakdown.grand_total == pytest.approx(555.0)
    signage = breakdown.elements[1].items[0]
    assert signage.notes == "client supplied"
    assert signage.rate == pytest.approx(75.0)
    assert signage.components == {}
    assert signage.component_total is None


def test_components_do_not_change_subtotals(ledger, service, project, ctx):
    line = next(li for li in ledger.list_line_items(ctx, project.id) if li.source.kind == "catalog")
    ledger.add_cost_component(
        ctx, project.id, line.id, CostComponentCreateRequest(component_type=ComponentType.LABOR, unit_rate=40)
    )
    ledger.add_cost_component(
        ctx,
        project.id,
        line.id,
        CostComponentCreateRequest(component_type=ComponentType.MATERIAL, unit_rate=100, waste_factor=1.1),
    )

    breakdown = service.calculate_element_breakdown(ctx, project.id)
    foundation = breakdown.elements[0].items[0]

    assert set(foundation.components) == {ComponentType.LABOR, ComponentType.MATERIAL}
    assert foundation.component_total == pytest.approx(2 * 40 + 2 * 100 * 1.1)
    assert foundation.line_total == pytest.approx(330.0)
    assert breakdown.elements[0].subtotal == pytest.approx(330.0)


def test_override_flows_into_totals(ledger, service, project, ctx):
    line = next(li for li in ledger.list_line_items(ctx, project.id) if li.source.kind == "catalog")
    ledger.update_line_item(ctx, project.id, line.id, LineItemUpdateRequest(unit_cost_override=0.0))

    calcs = {c.line_item_id: c for c in service.calculate_line_items(ctx, project.id)}

    assert calcs[line.id].material_total == 0
    assert calcs[line.id].line_total == pytest.approx(20.0 + 100.0)
