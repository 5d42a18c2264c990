"""Estimation module - BoQ line pricing, category roll-up and project totals."""

from qscost.estimation.ledger import (
    EstimateLedger,
    get_estimate_ledger,
    set_estimate_ledger,
)
from qscost.estimation.models import (
    CatalogLine,
    CategoryTotal,
    CustomLine,
    DataIntegrityWarning,
    LineItem,
    LineItemCalculation,
    Project,
    ProjectEstimateTotal,
    ProjectNotFound,
)
from qscost.estimation.service import (
    EstimationService,
    get_estimation_service,
    set_estimation_service,
)

__all__ = [
    "CatalogLine",
    "CategoryTotal",
    "CustomLine",
    "DataIntegrityWarning",
    "LineItem",
    "LineItemCalculation",
    "Project",
    "ProjectEstimateTotal",
    "ProjectNotFound",
    "EstimateLedger",
    "get_estimate_ledger",
    "set_estimate_ledger",
    "EstimationService",
    "get_estimation_service",
    "set_estimation_service",
]
