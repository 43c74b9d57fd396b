"""Suma de conteos de votos o escaños."""
from __future__ import annotations

from collections import Counter
from typing import Dict, Hashable, Mapping, TypeVar

K = TypeVar("K", bound=Hashable)


def additive_merge(a: Mapping[K, float], b: Mapping[K, float]) -> Dict[K, float]:
    """Une dos conteos sumando los valores de las claves repetidas.

    No modifica las entradas. Las claves de ``a`` conservan su orden y las nuevas de
    ``b`` se agregan al final.
    """

    merged: Counter[K] = Counter(a)
    merged.update(b)
    return dict(merged)


__all__ = ["additive_merge"]
