"""
Cost Catalog Seed - Default BCIS element library.

Implements:
- Default category / sub-element hierarchy (BCIS elements A..H)
- Default priced items for the common sub-elements
"""

from __future__ import annotations

from typing import List, Tuple

from qscost.cost_catalog.models import CatalogSource, CostCatalogItem, CostCategory, CostSubElement

CatalogSeed = Tuple[List[CostCategory], List[CostSubElement], List[CostCatalogItem]]


def create_default_catalog() -> CatalogSeed:
    """
    Build the default reference catalog.

    Rates are illustrative GBP figures per unit; a live deployment loads its
    own BCIS / NRM2 / Spons extracts through the catalog repository.
    """
    categories = [
        CostCategory(id=1, code="BCIS-A", name="Substructure", sort_order=1),
        CostCategory(id=2, code="BCIS-B", name="Superstructure", sort_order=2),
        CostCategory(id=3, code="BCIS-C", name="Internal Finishes", sort_order=3),
        CostCategory(id=4, code="BCIS-D", name="Fittings and Furnishings", sort_order=4),
        CostCategory(id=5, code="BCIS-E", name="Services", sort_order=5),
        CostCategory(id=8, code="BCIS-H", name="External Works", sort_order=8),
    ]

    sub_elements = [
        CostSubElement(id=11, category_id=1, code="BCIS-A1", name="Foundations"),
        CostSubElement(id=13, category_id=1, code="BCIS-A3", name="Ground Floor Construction"),
        CostSubElement(id=21, category_id=2, code="BCIS-B1", name="Frame"),
        CostSubElement(id=22, category_id=2, code="BCIS-B2", name="Upper Floors"),
        CostSubElement(id=24, category_id=2, code="BCIS-B4", name="External Walls"),
        CostSubElement(id=26, category_id=2, code="BCIS-B6", name="Roof Covering"),
        CostSubElement(id=31, category_id=3, code="BCIS-C1", name="Wall Finishes"),
        CostSubElement(id=33, category_id=3, code="BCIS-C3", name="Ceiling Finishes"),
        CostSubElement(id=41, category_id=4, code="BCIS-D1", name="Kitchen Fittings"),
        CostSubElement(id=51, category_id=5, code="BCIS-E1", name="Sanitary Installations"),
        CostSubElement(id=53, category_id=5, code="BCIS-E3", name="Electrical Installations"),
        CostSubElement(id=81, category_id=8, code="BCIS-H1", name="Site Preparation"),
    ]

    items = [
        # Substructure (per m3 / m2 / pile)
        CostCatalogItem(id=101, code="BCIS-A1-001", description="Strip foundations (per m3 concrete)", unit_code="m3",
                        material_cost=850.0, management_cost=120.0, contractor_cost=450.0,
                        is_contractor_required=True, sub_element_id=11),
        CostCatalogItem(id=102, code="BCIS-A1-002", description="Raft foundation", unit_code="m2",
                        material_cost=180.0, management_cost=35.0, contractor_cost=140.0,
                        is_contractor_required=True, sub_element_id=11),
        CostCatalogItem(id=103, code="BCIS-A1-003", description="Pile foundation (per pile)", unit_code="nr",
                        material_cost=2500.0, management_cost=300.0, contractor_cost=1500.0,
                        is_contractor_required=True, sub_element_id=11),
        CostCatalogItem(id=131, code="BCIS-A3-001", description="Ground bearing slab 150mm", unit_code="m2",
                        material_cost=65.0, management_cost=10.0, contractor_cost=40.0,
                        is_contractor_required=True, sub_element_id=13),

        # Superstructure
        CostCatalogItem(id=211, code="BCIS-B1-001", description="Structural steel frame (per tonne)", unit_code="t",
                        material_cost=1200.0, management_cost=150.0, contractor_cost=800.0,
                        is_contractor_required=True, sub_element_id=21),
        CostCatalogItem(id=213, code="BCIS-B1-003", description="Timber frame construction", unit_code="m2",
                        material_cost=95.0, management_cost=15.0, contractor_cost=65.0,
                        waste_factor=1.1, is_contractor_required=False, sub_element_id=21),
        CostCatalogItem(id=221, code="BCIS-B2-001", description="Reinforced concrete floor slab", unit_code="m2",
                        material_cost=75.0, management_cost=15.0, contractor_cost=50.0,
                        is_contractor_required=True, sub_element_id=22),
        CostCatalogItem(id=241, code="BCIS-B4-001", description="Facing brickwork half brick skin", unit_code="m2",
                        material_cost=85.0, management_cost=12.0, contractor_cost=55.0,
                        is_contractor_required=False, sub_element_id=24),
        CostCatalogItem(id=261, code="BCIS-B6-001", description="Concrete interlocking roof tiles", unit_code="m2",
                        material_cost=45.0, management_cost=8.0, contractor_cost=30.0,
                        is_contractor_required=True, sub_element_id=26),

        # Internal finishes
        CostCatalogItem(id=311, code="BCIS-C1-001", description="Plasterboard and skim to walls", unit_code="m2",
                        material_cost=18.0, management_cost=3.0, contractor_cost=12.0,
                        waste_factor=1.1, is_contractor_required=False, sub_element_id=31),
        CostCatalogItem(id=331, code="BCIS-C3-001", description="Suspended ceiling grid and tiles", unit_code="m2",
                        material_cost=28.0, management_cost=4.0, contractor_cost=16.0,
                        is_contractor_required=False, sub_element_id=33),

        # Fittings / services
        CostCatalogItem(id=411, code="BCIS-D1-001", description="Kitchen base unit 600mm", unit_code="nr",
                        material_cost=220.0, management_cost=20.0, contractor_cost=90.0,
                        waste_factor=1.0, is_contractor_required=False, sub_element_id=41),
        CostCatalogItem(id=511, code="BCIS-E1-001", description="WC suite complete", unit_code="nr",
                        material_cost=320.0, management_cost=25.0, contractor_cost=180.0,
                        waste_factor=1.0, is_contractor_required=True, sub_element_id=51),
        CostCatalogItem(id=531, code="BCIS-E3-001", description="Double switched socket outlet", unit_code="nr",
                        material_cost=14.0, management_cost=2.0, contractor_cost=35.0,
                        waste_factor=1.0, is_contractor_required=True, sub_element_id=53),

        # External works
        CostCatalogItem(id=811, code="BCIS-H1-001", description="Site clearance", unit_code="m2",
                        material_cost=4.5, management_cost=1.0, contractor_cost=6.0,
                        waste_factor=1.0, is_contractor_required=True, sub_element_id=81,
                        source=CatalogSource.SPONS),
    ]

    return categories, sub_elements, items
