"""Async client for the partner airline ticketing REST API."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Any, Callable, Dict, List, Mapping, Optional

import httpx

from services.airline.errors import BackendRejected, BackendUnavailable
from utils.settings import Settings


def _passenger_names(params: Mapping[str, Any]) -> List[str]:
    """Accept a list, a single name, or a `passengerName` fallback."""
    names = params.get("passengerNames")
    if isinstance(names, (list, tuple)):
        return [str(name) for name in names if name]
    single = names or params.get("passengerName")
    return [str(single)] if single else []


def _error_body(response: httpx.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text


class AirlineApiClient:
    """Call the search, purchase, and check-in endpoints with a bearer token.

    The token comes from a username/password login and is refreshed once it
    expires or after the backend answers 401. Requests are never retried here.
    """

    def __init__(
        self,
        settings: Settings,
        http_client: Optional[httpx.AsyncClient] = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.settings = settings
        self._client = http_client or httpx.AsyncClient(
            timeout=settings.api_timeout,
            headers={"Content-Type": "application/json", "Accept": "application/json"},
        )
        self._clock = clock
        self._token: Optional[str] = None
        self._token_expiry = 0.0
        self._login_lock = asyncio.Lock()

    async def aclose(self) -> None:
        await self._client.aclose()

    def invalidate_token(self) -> None:
        self._token = None
        self._token_expiry = 0.0

    async def ensure_token(self) -> str:
        """Return a valid bearer token, logging in when none is cached or it expired."""
        async with self._login_lock:
            if self._token and self._clock() < self._token_expiry:
                return self._token
            if not self.settings.api_username or not self.settings.api_password:
                raise BackendUnavailable("API credentials are not configured")

            logging.info("Requesting new auth token from %s", self.settings.login_url)
            try:
                response = await self._client.post(
                    self.settings.login_url,
                    json={"username": self.settings.api_username, "password": self.settings.api_password},
                    timeout=self.settings.api_timeout,
                )
            except httpx.HTTPError as exc:
                raise BackendUnavailable(f"Authentication failed: {exc}") from exc
            if response.status_code >= 400:
                raise BackendUnavailable(f"Authentication failed with status {response.status_code}")
            try:
                token = (response.json() or {}).get("token")
            except (ValueError, AttributeError) as exc:
                raise BackendUnavailable("Authentication response was not valid JSON") from exc
            if not token:
                raise BackendUnavailable("Auth response missing token")

            self._token = token
            self._token_expiry = self._clock() + self.settings.token_ttl_seconds
            logging.info("Authentication successful")
            return token

    async def _request(
        self,
        method: str,
        url: str,
        *,
        timeout: float,
        params: Optional[Dict[str, Any]] = None,
        json: Optional[Dict[str, Any]] = None,
    ) -> Any:
        token = await self.ensure_token()
        try:
            response = await self._client.request(
                method,
                url,
                params=params,
                json=json,
                headers={"Authorization": f"Bearer {token}"},
                timeout=timeout,
            )
        except httpx.TimeoutException as exc:
            raise BackendUnavailable(f"Request to {url} timed out") from exc
        except httpx.HTTPError as exc:
            raise BackendUnavailable(f"Request to {url} failed: {exc}") from exc

        logging.info("%s %s -> %s", method, url, response.status_code)
        if response.status_code == 401:
            self.invalidate_token()
        if response.status_code >= 400:
            raise BackendRejected(response.status_code, _error_body(response))
        try:
            return response.json()
        except ValueError as exc:
            raise BackendUnavailable(f"Malformed response from {url}") from exc

    async def search_flights(self, params: Mapping[str, Any]) -> Any:
        """Search flights for origin, destination, date window, and passenger count."""
        try:
            passengers = int(params.get("passengers"))
        except (TypeError, ValueError):
            raise BackendRejected(400, {"errors": {"passengers": ["Number of passengers must be a whole number."]}})
        query = {
            "dateFrom": params.get("dateFrom"),
            "dateTo": params.get("dateTo"),
            "airportFrom": params.get("origin"),
            "airportTo": params.get("destination"),
            "numberOfPeople": passengers,
        }
        return await self._request(
            "GET", self.settings.query_flight_api, params=query, timeout=self.settings.search_timeout
        )

    async def book_ticket(self, params: Mapping[str, Any]) -> Any:
        """Purchase tickets on a flight for one or more passengers."""
        body = {
            "flightNumber": params.get("flightNumber"),
            "flightDate": params.get("flightDate"),
            "passengerNames": _passenger_names(params),
        }
        return await self._request(
            "POST", self.settings.buy_ticket_api, json=body, timeout=self.settings.api_timeout
        )

    async def check_in(self, params: Mapping[str, Any]) -> Any:
        """Check a single passenger in for a flight."""
        body = {
            "flightNumber": params.get("flightNumber"),
            "date": params.get("date"),
            "passengerName": params.get("passengerName"),
        }
        return await self._request(
            "POST", self.settings.check_in_api, json=body, timeout=self.settings.api_timeout
        )
