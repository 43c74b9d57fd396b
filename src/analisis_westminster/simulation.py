"""CLI para comparar los escaños reales con un reparto D'Hondt por región."""
from __future__ import annotations

import argparse
import asyncio
import logging
from pathlib import Path
import sys
from typing import AsyncIterator, Dict, Iterable, List, Optional, Sequence, Tuple

from analisis_westminster.aggregation import (
    Aggregate,
    aggregate_by_region,
    aggregate_by_region_async,
)
from analisis_westminster.client import DemocracyClubClient, FetchError
from analisis_westminster.config import DEFAULT_ELECTION, MAX_ATTEMPTS, MAX_CONCURRENCY
from analisis_westminster.data_loader import (
    ConstituencyResult,
    SchemaMismatchError,
    dump_constituencies,
    load_constituencies,
)
from analisis_westminster.dhondt import EmptyPartySetError
from analisis_westminster.regions import Region, parse_region
from analisis_westminster.report import (
    MisrepresentationEntry,
    NoSeatsError,
    misrepresentation_report,
    report_to_csv,
)

logger = logging.getLogger(__name__)

ALL_REGIONS = "Total"


def _region_label(region: Optional[Region]) -> str:
    return region.value if region is not None else ALL_REGIONS


def run_pipeline(
    records: Iterable[ConstituencyResult], regions: Sequence[Optional[Region]]
) -> Dict[str, Dict[str, MisrepresentationEntry]]:
    """Calcula el informe de cada región (``None`` = todas) en una sola pasada.

    Falla con ``NoSeatsError`` si alguna región pedida no recibió circunscripciones, de
    modo que nunca se devuelve un conjunto de informes incompleto.
    """

    return build_reports(aggregate_by_region(records, regions))


def build_reports(
    aggregates: Dict[Optional[Region], Aggregate]
) -> Dict[str, Dict[str, MisrepresentationEntry]]:
    reports: Dict[str, Dict[str, MisrepresentationEntry]] = {}
    for region, aggregate in aggregates.items():
        label = _region_label(region)
        try:
            reports[label] = misrepresentation_report(aggregate)
        except NoSeatsError as exc:
            raise NoSeatsError(f"{label}: no se recibieron circunscripciones") from exc
        logger.info(
            "%s: %d circunscripciones, %d partidos", label, aggregate.seats, len(aggregate.parties)
        )
    return reports


def main(argv: Sequence[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description=(
            "Descarga los resultados por circunscripción y compara los escaños obtenidos "
            "con un reparto proporcional D'Hondt."
        )
    )
    parser.add_argument(
        "--election",
        default=DEFAULT_ELECTION,
        help=f"Slug de la elección en Democracy Club (por defecto {DEFAULT_ELECTION})",
    )
    parser.add_argument(
        "--region",
        action="append",
        choices=[region.value for region in Region],
        default=None,
        help="Región a analizar; se puede repetir. Si no se indica se usan todas juntas.",
    )
    parser.add_argument("--concurrency", type=int, default=MAX_CONCURRENCY)
    parser.add_argument("--retries", type=int, default=MAX_ATTEMPTS, help="Intentos por petición")
    cache_group = parser.add_mutually_exclusive_group()
    cache_group.add_argument(
        "--cache",
        type=Path,
        default=None,
        help="Guarda las circunscripciones descargadas en este JSON",
    )
    cache_group.add_argument(
        "--from-cache",
        type=Path,
        default=None,
        help="Usa un JSON guardado con --cache en lugar de descargar",
    )
    parser.add_argument(
        "--output-dir",
        type=Path,
        default=None,
        help="Carpeta donde escribir un CSV por región",
    )
    parser.add_argument("--verbose", action="store_true")
    args = parser.parse_args(argv)
    if args.concurrency < 1 or args.retries < 1:
        parser.error("--concurrency y --retries deben ser al menos 1")

    logging.basicConfig(
        level=logging.INFO if args.verbose else logging.WARNING,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    regions: List[Optional[Region]] = (
        [parse_region(value) for value in args.region] if args.region else [None]
    )

    try:
        if args.from_cache:
            reports = run_pipeline(load_constituencies(args.from_cache), regions)
        else:
            records, aggregates = asyncio.run(
                _download(args.election, args.concurrency, args.retries, regions)
            )
            if args.cache:
                dump_constituencies(records, args.cache)
            reports = build_reports(aggregates)
    except (
        FetchError,
        SchemaMismatchError,
        EmptyPartySetError,
        NoSeatsError,
        FileNotFoundError,
    ) as exc:
        logger.error("No se pudo generar el informe: %s", exc)
        return 1

    for label, report in reports.items():
        csv_text = report_to_csv(report)
        print(f"=== {label} ===")
        print(csv_text, end="")
        if args.output_dir:
            _write_csv(args.output_dir, label, csv_text)
    return 0


async def _download(
    election: str, concurrency: int, retries: int, regions: Sequence[Optional[Region]]
) -> Tuple[List[ConstituencyResult], Dict[Optional[Region], Aggregate]]:
    """Acumula las regiones mientras llegan las circunscripciones y las guarda para la caché."""
    records: List[ConstituencyResult] = []

    async def keep(stream: AsyncIterator[ConstituencyResult]) -> AsyncIterator[ConstituencyResult]:
        async for record in stream:
            records.append(record)
            yield record

    async with DemocracyClubClient(max_concurrency=concurrency, max_attempts=retries) as client:
        aggregates = await aggregate_by_region_async(
            keep(client.stream_constituencies(election)), regions
        )
    return records, aggregates


def _write_csv(output_dir: Path, label: str, csv_text: str) -> Path:
    output_dir.mkdir(parents=True, exist_ok=True)
    slug = label.lower().replace(" ", "_")
    path = output_dir / f"misrepresentation_{slug}.csv"
    path.write_text(csv_text, encoding="utf-8")
    logger.info("Escrito %s", path)
    return path


if __name__ == "__main__":
    sys.exit(main())
