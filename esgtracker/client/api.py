"""
api.py — async HTTP client for the ESG Tracker API.

Transport-only apart from one presentation rule: delete_year() refuses to
remove the last stored year, so an account always keeps at least one.

Error mapping:
  401 from any authenticated call  → session.sign_out(), AuthenticationRequired
  any other status >= 400          → APIError(status, code, message, details)
  network failure                  → APIError(status=None, code="NETWORK_ERROR")
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Union

import httpx

from esgtracker.auth.schemas import UserOut
from esgtracker.client.session import AuthSession
from esgtracker.questionnaire.schemas import ESGRawData, YearRecord

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:8000"
DEFAULT_TIMEOUT_S = 30.0


@dataclass
class APIError(Exception):
    """Non-2xx response, unpacked from the {error: {code, message, details}} envelope."""

    status: Optional[int]
    code: Optional[str]
    message: str
    details: list = field(default_factory=list)

    def __str__(self) -> str:
        return f"{self.status} {self.code}: {self.message}"


class AuthenticationRequired(Exception):
    """No token, or the server rejected it. The session has been signed out."""


class LastYearError(Exception):
    """delete_year() was asked to remove the only stored year."""


RawInput = Union[ESGRawData, Mapping[str, Any]]


class ESGClient:
    def __init__(
        self,
        session: AuthSession,
        base_url: str = DEFAULT_BASE_URL,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        timeout_s: float = DEFAULT_TIMEOUT_S,
    ) -> None:
        self.session = session
        self._http = httpx.AsyncClient(base_url=base_url, transport=transport, timeout=timeout_s)

    async def __aenter__(self) -> "ESGClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self._http.aclose()

    # -----------------------------------------------------------------------
    # Request plumbing
    # -----------------------------------------------------------------------

    async def _request(self, method: str, path: str, auth: bool = True, **kwargs) -> httpx.Response:
        headers = {}
        if auth:
            if self.session.token is None:
                raise AuthenticationRequired("Not signed in.")
            headers["Authorization"] = f"Bearer {self.session.token}"

        try:
            resp = await self._http.request(method, path, headers=headers, **kwargs)
        except httpx.RequestError as exc:
            raise APIError(
                status=None,
                code="NETWORK_ERROR",
                message=f"Network error calling ESG Tracker API: {exc}",
            ) from exc

        if resp.status_code == 401 and auth:
            logger.info("Server rejected session token; signing out")
            self.session.sign_out()
            raise AuthenticationRequired(_error_message(resp))

        if resp.status_code >= 400:
            raise _api_error(resp)
        return resp

    # -----------------------------------------------------------------------
    # Auth
    # -----------------------------------------------------------------------

    async def signup(self, name: str, email: str, password: str) -> dict:
        resp = await self._request(
            "POST", "/api/auth/signup", auth=False,
            json={"name": name, "email": email, "password": password},
        )
        return resp.json()

    async def login(self, email: str, password: str) -> UserOut:
        """Exchange credentials for a token and sign the session in."""
        resp = await self._request(
            "POST", "/api/auth/login", auth=False,
            json={"email": email, "password": password},
        )
        body = resp.json()
        user = UserOut.model_validate(body["user"])
        self.session.sign_in(body["token"], user)
        return user

    def logout(self) -> None:
        self.session.sign_out()

    async def me(self) -> UserOut:
        resp = await self._request("GET", "/api/auth/me")
        return UserOut.model_validate(resp.json())

    # -----------------------------------------------------------------------
    # Questionnaire
    # -----------------------------------------------------------------------

    async def fetch_responses(self) -> dict[int, YearRecord]:
        resp = await self._request("GET", "/api/responses")
        responses = resp.json()["responses"]
        return {
            int(year): YearRecord.model_validate({**data, "year": int(year)})
            for year, data in sorted(responses.items(), key=lambda item: int(item[0]))
        }

    async def save_responses(self, responses: Mapping[int, RawInput]) -> dict:
        """Upsert several years in one call. Returns {message, count}."""
        payload = {}
        for year, data in responses.items():
            raw = data if isinstance(data, ESGRawData) else ESGRawData.model_validate(data)
            payload[str(year)] = raw.model_dump(by_alias=True)
        resp = await self._request("POST", "/api/responses", json={"responses": payload})
        return resp.json()

    async def delete_year(self, year: int) -> dict:
        """
        Delete one stored year.

        Raises:
            LastYearError: year is the only one stored; nothing is sent.
        """
        stored = await self.fetch_responses()
        if year in stored and len(stored) <= 1:
            raise LastYearError("At least one financial year must be retained.")
        resp = await self._request("DELETE", f"/api/responses/{year}")
        return resp.json()

    # -----------------------------------------------------------------------
    # Reports
    # -----------------------------------------------------------------------

    async def fetch_summary(self) -> dict:
        resp = await self._request("GET", "/api/reports/summary")
        return resp.json()

    async def download_report(self, include_charts: bool = False) -> bytes:
        resp = await self._request(
            "GET", "/api/reports/export.pdf",
            params={"charts": "true" if include_charts else "false"},
        )
        return resp.content


def _error_body(resp: httpx.Response) -> dict:
    try:
        body = resp.json()
    except ValueError:
        return {}
    error = body.get("error") if isinstance(body, dict) else None
    return error if isinstance(error, dict) else {}


def _error_message(resp: httpx.Response) -> str:
    return _error_body(resp).get("message") or f"HTTP {resp.status_code}"


def _api_error(resp: httpx.Response) -> APIError:
    error = _error_body(resp)
    return APIError(
        status=resp.status_code,
        code=error.get("code"),
        message=error.get("message") or f"HTTP {resp.status_code}",
        details=error.get("details") or [],
    )
