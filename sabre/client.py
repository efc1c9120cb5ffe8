# HTTP client for the MythX analysis API: authentication, job submission,
# status polling, and issue report retrieval.

from __future__ import annotations

import logging
import threading
from typing import Any, Mapping, Optional

import requests

from sabre.config import Config
from sabre.errors import ServiceError
from sabre.findings.models import RawFinding
from sabre.findings.vendor import parse_issue_reports
from sabre.polling import DEFAULT_MAX_ATTEMPTS, PollState, PollStatus, await_completion

logger = logging.getLogger(__name__)

DEFAULT_REQUEST_TIMEOUT = 30

DASHBOARD_URL = "https://dashboard.mythx.io/#/console/analyses/{uuid}"

# Service job status -> polling status. Queued / In progress are pending.
VENDOR_STATUS = {
    "finished": PollStatus.FINISHED,
    "error": PollStatus.ERROR,
}


def poll_status_for(vendor_status: Optional[str]) -> PollStatus:
    if not vendor_status:
        return PollStatus.PENDING
    return VENDOR_STATUS.get(vendor_status.strip().lower(), PollStatus.PENDING)


def dashboard_url(uuid: str) -> str:
    return DASHBOARD_URL.format(uuid=uuid)


class MythXClient:
    """
    Thin wrapper over the MythX REST API.

    Authenticates lazily: an API key is used as the bearer token directly,
    otherwise the first request logs in with username/password.
    """

    def __init__(
        self,
        api_url: str,
        api_key: Optional[str] = None,
        username: Optional[str] = None,
        password: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = DEFAULT_REQUEST_TIMEOUT,
    ) -> None:
        self.api_url = api_url.rstrip("/")
        self.username = username
        self.password = password
        self.session = session or requests.Session()
        self.timeout = timeout
        self.access_token: Optional[str] = api_key

    @classmethod
    def from_config(cls, config: Config, session: Optional[requests.Session] = None) -> "MythXClient":
        return cls(
            config.api_url,
            api_key=config.api_key,
            username=config.username,
            password=config.password,
            session=session,
        )

    def _url(self, path: str) -> str:
        return f"{self.api_url}/{path.lstrip('/')}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        auth: bool = True,
        json: Any = None,
    ) -> Any:
        headers = {"Accept": "application/json"}
        if auth:
            if self.access_token is None:
                self.login()
            headers["Authorization"] = f"Bearer {self.access_token}"

        url = self._url(path)
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method, url, headers=headers, json=json, timeout=self.timeout
            )
        except requests.RequestException as e:
            raise ServiceError(f"{method} {url} failed: {e}") from e

        if response.status_code >= 400:
            raise ServiceError(
                f"{method} {url} returned HTTP {response.status_code}",
                status_code=response.status_code,
                body=response.text,
            )
        try:
            return response.json()
        except ValueError as e:
            raise ServiceError(
                f"{method} {url} returned a non-JSON body",
                status_code=response.status_code,
                body=response.text,
            ) from e

    def login(self) -> str:
        """Exchange username/password for a bearer token and return it."""
        if not (self.username and self.password):
            raise ServiceError("No API key or username/password configured")
        body = self._request(
            "POST",
            "auth/login",
            auth=False,
            json={"username": self.username, "password": self.password},
        )
        tokens = (body.get("jwtTokens") if isinstance(body, Mapping) else None) or {}
        access = tokens.get("access")
        if not access:
            raise ServiceError("Login response did not contain an access token")
        self.access_token = access
        logger.info("Authenticated as %s", self.username)
        return access

    def api_version(self) -> dict[str, Any]:
        return self._request("GET", "version", auth=False)

    def submit(self, payload: Mapping[str, Any]) -> str:
        """Submit an analysis request body and return the job uuid."""
        body = self._request("POST", "analyses", json=dict(payload))
        uuid = body.get("uuid") if isinstance(body, Mapping) else None
        if not uuid:
            raise ServiceError("Submission response did not contain a job uuid")
        logger.info("Submitted analysis %s", uuid)
        return uuid

    def get_status(self, uuid: str) -> dict[str, Any]:
        """Raw status record (uuid, status, apiVersion, submittedBy, submittedAt, ...)."""
        return self._request("GET", f"analyses/{uuid}")

    def query_status(self, uuid: str) -> PollState:
        status = self.get_status(uuid)
        vendor_status = status.get("status") if isinstance(status, Mapping) else None
        return PollState(status=poll_status_for(vendor_status), vendor_status=vendor_status)

    def await_analysis(
        self,
        uuid: str,
        initial_delay: float,
        timeout: float,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        cancel: Optional[threading.Event] = None,
    ) -> PollState:
        """Poll the job's status until it is terminal; see polling.await_completion."""
        return await_completion(
            lambda: self.query_status(uuid),
            initial_delay,
            timeout,
            max_attempts,
            cancel=cancel,
        )

    def get_issues(self, uuid: str) -> Any:
        """Raw issue reports for a finished job."""
        return self._request("GET", f"analyses/{uuid}/issues")

    def fetch_findings(self, uuid: str) -> list[RawFinding]:
        return parse_issue_reports(self.get_issues(uuid))

    def list_analyses(self) -> dict[str, Any]:
        return self._request("GET", "analyses")
