"""Informe de sobre y subrepresentación por partido."""
from __future__ import annotations

from dataclasses import dataclass
from typing import Dict

import pandas as pd

from .aggregation import Aggregate
from .config import CSV_HEADER


class NoSeatsError(ZeroDivisionError):
    """El agregado no contiene circunscripciones, así que no hay escaños que comparar."""


@dataclass(frozen=True)
class MisrepresentationEntry:
    votes: float
    dhondt_seats: int
    actual_seats: int
    misrepresentation_error: float


def misrepresentation_report(aggregate: Aggregate) -> Dict[str, MisrepresentationEntry]:
    """Compara los escaños reales con los de la simulación D'Hondt.

    El error es ``(reales - simulados) / total de escaños``: positivo para los partidos
    sobrerrepresentados. Las claves son los nombres visibles; si dos partidos comparten
    nombre queda el último.
    """

    if aggregate.seats <= 0:
        raise NoSeatsError("No se puede calcular el error de representación sin escaños")

    report: Dict[str, MisrepresentationEntry] = {}
    for key, party in aggregate.parties.items():
        dhondt = aggregate.dhondt_seats.get(key, 0)
        actual = aggregate.actual_seats.get(key, 0)
        report[party.name] = MisrepresentationEntry(
            votes=aggregate.votes.get(key, 0),
            dhondt_seats=dhondt,
            actual_seats=actual,
            misrepresentation_error=(actual - dhondt) / aggregate.seats,
        )
    return report


def report_to_frame(report: Dict[str, MisrepresentationEntry]) -> pd.DataFrame:
    rows = [
        (name, entry.votes, entry.dhondt_seats, entry.actual_seats, entry.misrepresentation_error)
        for name, entry in report.items()
    ]
    return pd.DataFrame(rows, columns=list(CSV_HEADER))


def report_to_csv(report: Dict[str, MisrepresentationEntry]) -> str:
    """CSV con cabecera ``party,votes,dHondt,actual,misrepError``."""

    return report_to_frame(report).to_csv(index=False, lineterminator="\n")


__all__ = [
    "MisrepresentationEntry",
    "NoSeatsError",
    "misrepresentation_report",
    "report_to_csv",
    "report_to_frame",
]
