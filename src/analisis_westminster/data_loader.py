"""Lectura y normalización de los resultados por circunscripción."""
from __future__ import annotations

from dataclasses import asdict, dataclass, field
import json
import logging
from pathlib import Path
from typing import Any, Dict, Iterable, List, Mapping

from .config import INDEPENDENT_PARTY_ID
from .regions import Region, classify_region, parse_region

logger = logging.getLogger(__name__)


class SchemaMismatchError(ValueError):
    """Un registro no trae los campos que el análisis necesita."""


@dataclass(frozen=True)
class PartyInfo:
    """Partido (o candidato independiente) tal como se muestra en el informe."""

    id: str
    name: str


@dataclass(frozen=True)
class ConstituencyResult:
    """Resultado de una circunscripción, con las claves de partido ya resueltas."""

    region: Region
    parties: Dict[str, PartyInfo]
    votes: Dict[str, int]
    elected: Dict[str, int] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not isinstance(self.region, Region):
            raise SchemaMismatchError(f"Región inválida: {self.region!r}")
        for label, counts in (("votes", self.votes), ("elected", self.elected)):
            for key, value in counts.items():
                if key not in self.parties:
                    raise SchemaMismatchError(
                        f"{label} contiene la clave {key!r} sin datos de partido"
                    )
                _check_count(value, f"{label}[{key!r}]")


def party_key(candidacy: Mapping[str, Any], independent_id: str = INDEPENDENT_PARTY_ID) -> str:
    """Clave bajo la que se acumulan los votos de una candidatura.

    Los independientes (``independent_id``) se agrupan por el id de la persona.
    """

    party = _require(candidacy, "party", "candidacy")
    ec_id = _require(party, "ec_id", "party")
    if ec_id != independent_id:
        return str(ec_id)
    person = _require(candidacy, "person", "candidacy")
    return str(_require(person, "id", "person"))


def parse_ballot(
    payload: Mapping[str, Any], independent_id: str = INDEPENDENT_PARTY_ID
) -> ConstituencyResult:
    """Convierte la respuesta de ``/ballots/<id>/`` en un ``ConstituencyResult``."""

    post = _require(payload, "post", "ballot")
    gss_id = _require(post, "id", "post")
    candidacies = _require(payload, "candidacies", "ballot")

    parties: Dict[str, PartyInfo] = {}
    votes: Dict[str, int] = {}
    elected: Dict[str, int] = {}
    for candidacy in candidacies:
        key = party_key(candidacy, independent_id)
        if candidacy["party"]["ec_id"] == independent_id:
            source, context = candidacy["person"], "person"
        else:
            source, context = candidacy["party"], "party"
        parties[key] = PartyInfo(id=key, name=str(_require(source, "name", context)))

        result = candidacy.get("result")
        if not isinstance(result, Mapping):
            raise SchemaMismatchError(
                f"La candidatura {key!r} en {gss_id} no tiene resultado"
            )
        num_ballots = _check_count(
            _require(result, "num_ballots", "result"), f"num_ballots de {key!r} en {gss_id}"
        )
        votes[key] = votes.get(key, 0) + num_ballots
        if result.get("elected"):
            elected[key] = elected.get(key, 0) + 1

    return ConstituencyResult(
        region=classify_region(str(gss_id)),
        parties=parties,
        votes=votes,
        elected=elected,
    )


def constituency_to_dict(record: ConstituencyResult) -> Dict[str, Any]:
    data = asdict(record)
    data["region"] = record.region.value
    return data


def constituency_from_dict(data: Mapping[str, Any]) -> ConstituencyResult:
    try:
        region = parse_region(_require(data, "region", "constituency"))
    except ValueError as exc:
        raise SchemaMismatchError(str(exc)) from exc
    raw_parties = _require(data, "parties", "constituency")
    parties = {
        key: PartyInfo(
            id=str(_require(info, "id", "party")),
            name=str(_require(info, "name", "party")),
        )
        for key, info in raw_parties.items()
    }
    return ConstituencyResult(
        region=region,
        parties=parties,
        votes=dict(_require(data, "votes", "constituency")),
        elected=dict(_require(data, "elected", "constituency")),
    )


def dump_constituencies(records: Iterable[ConstituencyResult], path: Path | str) -> Path:
    """Guarda los registros descargados como JSON para reutilizarlos."""

    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    payload = [constituency_to_dict(record) for record in records]
    target.write_text(json.dumps(payload, indent=4, ensure_ascii=False), encoding="utf-8")
    logger.info("Guardadas %d circunscripciones en %s", len(payload), target)
    return target


def load_constituencies(path: Path | str) -> List[ConstituencyResult]:
    """Carga los registros guardados por ``dump_constituencies``."""

    source = Path(path)
    if not source.exists():
        raise FileNotFoundError(f"No se encontró el archivo {source}")
    payload = json.loads(source.read_text(encoding="utf-8"))
    if not isinstance(payload, list):
        raise SchemaMismatchError(f"{source} debe contener una lista de circunscripciones")
    return [constituency_from_dict(item) for item in payload]


def _check_count(value: Any, context: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise SchemaMismatchError(f"{context} debe ser un entero no negativo, no {value!r}")
    return value


def _require(data: Any, key: str, context: str) -> Any:
    if not isinstance(data, Mapping) or data.get(key) is None:
        raise SchemaMismatchError(f"Falta el campo {key!r} en {context}")
    return data[key]


__all__ = [
    "ConstituencyResult",
    "PartyInfo",
    "SchemaMismatchError",
    "constituency_from_dict",
    "constituency_to_dict",
    "dump_constituencies",
    "load_constituencies",
    "parse_ballot",
    "party_key",
]
