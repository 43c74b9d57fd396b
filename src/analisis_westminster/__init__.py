"""Herramientas para comparar los resultados de Westminster con un reparto D'Hondt."""

from .aggregation import Aggregate, aggregate_by_region, aggregate_constituencies, fold_constituency
from .data_loader import ConstituencyResult, PartyInfo, load_constituencies, parse_ballot
from .dhondt import dhondt_allocation
from .regions import Region, classify_region
from .report import misrepresentation_report
from .tally import additive_merge

__all__ = [
    "Aggregate",
    "ConstituencyResult",
    "PartyInfo",
    "Region",
    "additive_merge",
    "aggregate_by_region",
    "aggregate_constituencies",
    "classify_region",
    "dhondt_allocation",
    "fold_constituency",
    "load_constituencies",
    "misrepresentation_report",
    "parse_ballot",
]
