"""Valores por defecto del análisis."""
from __future__ import annotations

API_BASE_URL = "https://candidates.democracyclub.org.uk/api/next"
DEFAULT_ELECTION = "parl.2019-12-12"

# Identificador de "sin descripción": se reemplaza por el id del candidato.
INDEPENDENT_PARTY_ID = "ynmp-party:2"

MAX_CONCURRENCY = 5
MAX_ATTEMPTS = 3
REQUEST_TIMEOUT = 30.0

CSV_HEADER = ("party", "votes", "dHondt", "actual", "misrepError")
