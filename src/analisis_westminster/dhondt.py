"""Implementación del método D'Hondt por promedios mayores."""
from __future__ import annotations

from collections import Counter
from dataclasses import dataclass
from typing import Dict, List, Mapping


class EmptyPartySetError(ValueError):
    """Se pidieron escaños sin ningún partido entre el que repartirlos."""


@dataclass(frozen=True)
class DhondtSeat:
    """Representa un escaño asignado y la cuota con la que se ganó."""

    party: str
    quotient: float
    divisor: int
    raw_votes: float


def dhondt_sequence(votes: Mapping[str, float], seats: int) -> List[DhondtSeat]:
    """Entrega los escaños en el orden en que se asignan.

    En cada ronda gana la cuota ``votos / (1 + escaños ya ganados)`` más alta. Los
    empates se resuelven por más votos brutos, luego por menos escaños ya ganados y
    finalmente por el orden de ``votes``; así, si todos tienen cero votos, los escaños
    rotan en ese orden.
    """

    if seats < 0:
        raise ValueError(f"El número de escaños no puede ser negativo: {seats}")
    for party, party_votes in votes.items():
        if party_votes < 0:
            raise ValueError(f"Votos negativos para {party}: {party_votes}")
    if seats == 0:
        return []
    if not votes:
        raise EmptyPartySetError(f"No hay partidos entre los que repartir {seats} escaños")

    parties = list(votes)
    won: Dict[str, int] = {party: 0 for party in parties}
    quotients: Dict[str, float] = {party: float(votes[party]) for party in parties}

    sequence: List[DhondtSeat] = []
    for _ in range(seats):
        winner = min(
            parties,
            key=lambda party: (-quotients[party], -votes[party], won[party]),
        )
        won[winner] += 1
        sequence.append(
            DhondtSeat(
                party=winner,
                quotient=quotients[winner],
                divisor=won[winner],
                raw_votes=votes[winner],
            )
        )
        quotients[winner] = votes[winner] / (1 + won[winner])
    return sequence


def dhondt_allocation(votes: Mapping[str, float], seats: int) -> Dict[str, int]:
    """Entrega el número de escaños que obtiene cada partido (cero incluidos)."""

    counter: Counter[str] = Counter(seat.party for seat in dhondt_sequence(votes, seats))
    return {party: counter.get(party, 0) for party in votes}


__all__ = ["dhondt_allocation", "dhondt_sequence", "DhondtSeat", "EmptyPartySetError"]
