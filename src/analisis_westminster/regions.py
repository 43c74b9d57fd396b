"""Clasificación de circunscripciones por nación del Reino Unido."""
from __future__ import annotations

from enum import Enum
import re


class Region(str, Enum):
    ENGLAND = "England"
    WALES = "Wales"
    SCOTLAND = "Scotland"
    NORTHERN_IRELAND = "Northern Ireland"

    def __str__(self) -> str:
        return self.value


_GSS_PATTERNS = (
    (re.compile(r"E14"), Region.ENGLAND),
    (re.compile(r"W07"), Region.WALES),
    (re.compile(r"S14"), Region.SCOTLAND),
)


def classify_region(gss_id: str) -> Region:
    """Devuelve la región a partir del código GSS de la circunscripción.

    Cualquier código que no sea inglés, galés ni escocés se considera de Irlanda del
    Norte.
    """

    for pattern, region in _GSS_PATTERNS:
        if pattern.search(gss_id):
            return region
    return Region.NORTHERN_IRELAND


def parse_region(value: str | Region) -> Region:
    if isinstance(value, Region):
        return value
    normalized = value.strip().replace("-", " ").replace("_", " ").lower()
    for region in Region:
        if region.value.lower() == normalized:
            return region
    raise ValueError(f"Región desconocida: {value!r}")


__all__ = ["Region", "classify_region", "parse_region"]
