"""
Sonar Web API Client
Read-only access to the two SonarQube/SonarCloud endpoints the quality-gate
check needs.
"""

from typing import Optional

import requests

from client.polling import TransientError


class SonarApiError(TransientError):
    """Transport failure, non-2xx response or unreadable body."""


class SonarAuthError(Exception):
    """The server rejected the token (HTTP 401/403)."""

    def __init__(self, status_code: int, reason: str):
        super().__init__(f"HTTP {status_code} {reason}".strip())
        self.status_code = status_code


class SonarClient:
    """Client for the Sonar project analysis and quality gate APIs."""

    def __init__(
        self,
        host_url: str,
        token: str,
        session: Optional[requests.Session] = None,
        timeout: Optional[float] = None,
    ):
        """
        Initialize Sonar client.

        Args:
            host_url: Base URL of the Sonar server (e.g. https://sonarcloud.io)
            token: User token, sent as the basic auth user name with an empty password
            session: HTTP session to use (a fake one in tests)
            timeout: Per-request timeout in seconds, None for the transport default
        """
        self.host_url = host_url.rstrip("/")
        self.session = session if session is not None else requests.Session()
        self.auth = (token, "")
        self.timeout = timeout

    def _get_json(self, path: str, params: dict, what: str) -> dict:
        url = f"{self.host_url}{path}"
        try:
            response = self.session.get(url, params=params, auth=self.auth, timeout=self.timeout)
        except requests.exceptions.RequestException as e:
            raise SonarApiError(f"Failed to fetch {what}: {e}") from e

        if response.status_code in (401, 403):
            raise SonarAuthError(response.status_code, response.reason or "")

        if not 200 <= response.status_code < 300:
            raise SonarApiError(f"Failed to fetch {what}: HTTP {response.status_code} {response.reason}")

        try:
            data = response.json()
        except ValueError as e:
            raise SonarApiError(f"Invalid JSON in {what} response: {e}") from e

        if not isinstance(data, dict):
            raise SonarApiError(f"Unexpected {what} response: {data!r}")
        return data

    def latest_analysis_key(self, project_key: str) -> Optional[str]:
        """
        Look up the most recent analysis of a project.

        Returns:
            The analysis key, or None if the project has no analysis yet
        """
        data = self._get_json(
            "/api/project_analyses/search",
            {"project": project_key, "pageSize": 1},
            "analysis",
        )
        analyses = data.get("analyses") or []
        if not isinstance(analyses, list):
            raise SonarApiError(f"Unexpected analysis response: {data!r}")
        if not analyses:
            return None

        latest = analyses[0]
        if not isinstance(latest, dict) or not isinstance(latest.get("key"), str) or not latest["key"]:
            raise SonarApiError(f"Latest analysis has no key: {latest!r}")
        return latest["key"]

    def project_status(self, analysis_id: str) -> Optional[str]:
        """
        Fetch the quality gate status computed for an analysis.

        Returns:
            The status token ("OK", "ERROR", ...), or None while it is not available
        """
        data = self._get_json(
            "/api/qualitygates/project_status",
            {"analysisId": analysis_id},
            "Quality Gate status",
        )
        project_status = data.get("projectStatus") or {}
        if not isinstance(project_status, dict):
            raise SonarApiError(f"Unexpected Quality Gate status response: {data!r}")

        status = project_status.get("status")
        if status is None or status == "":
            return None
        if not isinstance(status, str):
            raise SonarApiError(f"Unexpected Quality Gate status: {status!r}")
        return status
