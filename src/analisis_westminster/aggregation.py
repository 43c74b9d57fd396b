"""Acumulación de resultados por circunscripción en totales nacionales."""
from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import AsyncIterable, AsyncIterator, Dict, Iterable, Iterator, Optional, Sequence

from .data_loader import ConstituencyResult, PartyInfo
from .dhondt import dhondt_allocation
from .regions import Region
from .tally import additive_merge

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Aggregate:
    """Estado acumulado después de sumar ``seats`` circunscripciones.

    Cada instancia es una foto: ``fold_constituency`` siempre crea diccionarios nuevos
    y nunca modifica los de un ``Aggregate`` ya entregado.
    """

    votes: Dict[str, float] = field(default_factory=dict)
    parties: Dict[str, PartyInfo] = field(default_factory=dict)
    dhondt_seats: Dict[str, int] = field(default_factory=dict)
    actual_seats: Dict[str, int] = field(default_factory=dict)
    seats: int = 0


def fold_constituency(aggregate: Aggregate, record: ConstituencyResult) -> Aggregate:
    """Suma una circunscripción al agregado y recalcula la simulación D'Hondt."""

    votes = additive_merge(aggregate.votes, record.votes)
    parties = {**aggregate.parties, **record.parties}
    elected = additive_merge(aggregate.actual_seats, record.elected)
    seats = aggregate.seats + 1

    return Aggregate(
        votes=votes,
        parties=parties,
        dhondt_seats=dhondt_allocation(votes, seats),
        actual_seats={party: elected.get(party, 0) for party in parties},
        seats=seats,
    )


def _matches(record: ConstituencyResult, region: Optional[Region]) -> bool:
    return region is None or record.region == region


def scan_constituencies(
    records: Iterable[ConstituencyResult], region: Optional[Region] = None
) -> Iterator[Aggregate]:
    """Entrega un ``Aggregate`` después de cada circunscripción de ``region``.

    Las circunscripciones de otras regiones se ignoran sin emitir nada.
    """

    aggregate = Aggregate()
    for record in records:
        if not _matches(record, region):
            continue
        aggregate = fold_constituency(aggregate, record)
        logger.debug("%s: %d circunscripciones acumuladas", region or "Total", aggregate.seats)
        yield aggregate


async def ascan_constituencies(
    records: AsyncIterable[ConstituencyResult], region: Optional[Region] = None
) -> AsyncIterator[Aggregate]:
    """Versión asíncrona de ``scan_constituencies`` para flujos que llegan por la red."""

    aggregate = Aggregate()
    async for record in records:
        if not _matches(record, region):
            continue
        aggregate = fold_constituency(aggregate, record)
        logger.debug("%s: %d circunscripciones acumuladas", region or "Total", aggregate.seats)
        yield aggregate


def aggregate_constituencies(
    records: Iterable[ConstituencyResult], region: Optional[Region] = None
) -> Aggregate:
    """Devuelve el último ``Aggregate``; uno vacío si no hubo circunscripciones."""

    final = Aggregate()
    for final in scan_constituencies(records, region):
        pass
    return final


async def aggregate_constituencies_async(
    records: AsyncIterable[ConstituencyResult], region: Optional[Region] = None
) -> Aggregate:
    final = Aggregate()
    async for final in ascan_constituencies(records, region):
        pass
    return final


def aggregate_by_region(
    records: Iterable[ConstituencyResult], regions: Sequence[Optional[Region]]
) -> Dict[Optional[Region], Aggregate]:
    """Acumula varias regiones (``None`` = todas) en una sola pasada.

    Cada región mantiene su propio estado, igual que si se hubiera llamado a
    ``aggregate_constituencies`` una vez por región.
    """

    aggregates: Dict[Optional[Region], Aggregate] = {region: Aggregate() for region in regions}
    for record in records:
        _fold_regions(aggregates, record)
    return aggregates


async def aggregate_by_region_async(
    records: AsyncIterable[ConstituencyResult], regions: Sequence[Optional[Region]]
) -> Dict[Optional[Region], Aggregate]:
    """Como ``aggregate_by_region``, sumando cada circunscripción apenas llega."""

    aggregates: Dict[Optional[Region], Aggregate] = {region: Aggregate() for region in regions}
    async for record in records:
        _fold_regions(aggregates, record)
    return aggregates


def _fold_regions(
    aggregates: Dict[Optional[Region], Aggregate], record: ConstituencyResult
) -> None:
    for region in list(aggregates):
        if _matches(record, region):
            aggregates[region] = fold_constituency(aggregates[region], record)


__all__ = [
    "Aggregate",
    "aggregate_by_region",
    "aggregate_by_region_async",
    "aggregate_constituencies",
    "aggregate_constituencies_async",
    "ascan_constituencies",
    "fold_constituency",
    "scan_constituencies",
]
