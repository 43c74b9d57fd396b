"""Cliente de la API de candidaturas de Democracy Club.

httpx async con reintentos por petición y un máximo de peticiones simultáneas. Las
circunscripciones se entregan a medida que llegan, no en el orden en que se pidieron.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Any, AsyncIterator, List

import httpx

from .config import (
    API_BASE_URL,
    DEFAULT_ELECTION,
    INDEPENDENT_PARTY_ID,
    MAX_ATTEMPTS,
    MAX_CONCURRENCY,
    REQUEST_TIMEOUT,
)
from .data_loader import ConstituencyResult, SchemaMismatchError, parse_ballot

logger = logging.getLogger(__name__)


class FetchError(RuntimeError):
    """Una petición falló después de agotar los reintentos."""

    def __init__(self, message: str, url: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.url = url
        self.status_code = status_code


class DemocracyClubClient:
    """Cliente de ``candidates.democracyclub.org.uk`` (httpx async)."""

    def __init__(
        self,
        client: httpx.AsyncClient | None = None,
        *,
        base_url: str = API_BASE_URL,
        max_attempts: int = MAX_ATTEMPTS,
        max_concurrency: int = MAX_CONCURRENCY,
        timeout: float = REQUEST_TIMEOUT,
        independent_id: str = INDEPENDENT_PARTY_ID,
    ) -> None:
        if max_attempts < 1:
            raise ValueError("max_attempts debe ser al menos 1")
        if max_concurrency < 1:
            raise ValueError("max_concurrency debe ser al menos 1")
        self._client = client
        self._owns_client = client is None
        self.base_url = base_url.rstrip("/")
        self.max_attempts = max_attempts
        self.max_concurrency = max_concurrency
        self.timeout = timeout
        self.independent_id = independent_id

    async def __aenter__(self) -> "DemocracyClubClient":
        return self

    async def __aexit__(self, *exc_info: object) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def get_election(self, election: str = DEFAULT_ELECTION) -> dict[str, Any]:
        return await self._request(f"/elections/{election}/")

    async def get_ballot_ids(self, election: str = DEFAULT_ELECTION) -> List[str]:
        """IDs de papeleta (una por circunscripción) de la elección."""
        data = await self.get_election(election)
        if not isinstance(data, dict):
            raise SchemaMismatchError(f"La elección {election} no devolvió un objeto JSON")
        ballots = data.get("ballots")
        if not isinstance(ballots, list):
            raise SchemaMismatchError(f"La elección {election} no trae 'ballots'")
        ids: List[str] = []
        for ballot in ballots:
            ballot_id = ballot.get("ballot_paper_id") if isinstance(ballot, dict) else None
            if not ballot_id:
                raise SchemaMismatchError(f"Papeleta sin 'ballot_paper_id' en {election}")
            ids.append(ballot_id)
        return ids

    async def get_ballot(self, ballot_paper_id: str) -> dict[str, Any]:
        return await self._request(f"/ballots/{ballot_paper_id}/")

    async def stream_constituencies(
        self, election: str = DEFAULT_ELECTION
    ) -> AsyncIterator[ConstituencyResult]:
        """Entrega cada circunscripción apenas se descarga.

        Si una petición falla definitivamente se cancelan las pendientes y se propaga
        el ``FetchError``.
        """
        ballot_ids = await self.get_ballot_ids(election)
        logger.info("Elección %s: %d papeletas", election, len(ballot_ids))
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def fetch(ballot_id: str) -> dict[str, Any]:
            async with semaphore:
                return await self.get_ballot(ballot_id)

        tasks = [asyncio.ensure_future(fetch(ballot_id)) for ballot_id in ballot_ids]
        try:
            for done, future in enumerate(asyncio.as_completed(tasks), start=1):
                payload = await future
                yield parse_ballot(payload, self.independent_id)
                if done % 50 == 0 or done == len(tasks):
                    logger.info("Descargadas %d/%d circunscripciones", done, len(tasks))
        finally:
            for task in tasks:
                task.cancel()
            await asyncio.gather(*tasks, return_exceptions=True)

    async def fetch_constituencies(
        self, election: str = DEFAULT_ELECTION
    ) -> List[ConstituencyResult]:
        return [record async for record in self.stream_constituencies(election)]

    async def _request(self, path: str) -> dict[str, Any]:
        """GET con reintentos; devuelve el JSON de la respuesta."""
        url = f"{self.base_url}{path}"
        client = self._get_client()

        for attempt in range(1, self.max_attempts + 1):
            try:
                response = await client.get(url)
                response.raise_for_status()
            except httpx.HTTPStatusError as e:
                status_code: int | None = e.response.status_code
                message = f"Error HTTP {status_code} en {url}"
                cause: Exception = e
            except httpx.TimeoutException as e:
                status_code, message, cause = None, f"Tiempo de espera agotado en {url}", e
            except httpx.HTTPError as e:
                status_code, message, cause = None, f"Error HTTP en {url}: {e}", e
            else:
                try:
                    data: dict[str, Any] = response.json()
                except ValueError as e:
                    raise SchemaMismatchError(f"Respuesta no JSON en {url}") from e
                return data

            if attempt < self.max_attempts:
                logger.warning(
                    "%s (intento %d/%d), reintentando", message, attempt, self.max_attempts
                )
        raise FetchError(message, url=url, status_code=status_code) from cause


__all__ = ["DemocracyClubClient", "FetchError"]
