from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any
from urllib.parse import quote, urlencode

import requests

from .errors import NetworkError, RemoteAPIError
from .pagination import DEFAULT_AUTH_HEADER, DEFAULT_TIMEOUT, fetch_all

DEFAULT_API_URL = "https://gitlab.com/api/v4"
USER_AGENT = "milesync-rest/0.2.0"
HTTP_ERROR_STATUS = 400


@dataclass
class GitLabRestClient:
    """Minimal GitLab REST wrapper: paginated reads plus milestone mutations."""

    token: str
    base_url: str = DEFAULT_API_URL
    auth_header: str = DEFAULT_AUTH_HEADER
    timeout: float | None = DEFAULT_TIMEOUT
    session: requests.Session | None = None
    _session: requests.Session = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._session = self.session or requests.Session()
        self._session.headers.setdefault("User-Agent", USER_AGENT)

    # ---- URL helpers --------------------------------------------------
    def url(self, path: str, params: dict[str, Any] | None = None) -> str:
        url = (
            path
            if path.startswith("http")
            else f"{self.base_url.rstrip('/')}/{path.lstrip('/')}"
        )
        if params:
            url = f"{url}?{urlencode(params)}"
        return url

    @staticmethod
    def project_path(project_id: str) -> str:
        return f"/projects/{quote(str(project_id), safe='')}"

    # ---- REST helpers -------------------------------------------------
    def paginate(self, path: str, *, params: dict[str, Any] | None = None) -> list[bytes]:
        return fetch_all(
            self._session,
            self.url(path, params),
            token=self.token,
            auth_header=self.auth_header,
            timeout=self.timeout,
        )

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
    ) -> None:
        url = self.url(path, params)
        try:
            response = self._session.request(
                method,
                url,
                data=data,
                headers={self.auth_header: self.token},
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            raise NetworkError(f"{method} {url} failed: {exc}") from exc
        with response:
            if response.status_code >= HTTP_ERROR_STATUS:
                raise RemoteAPIError(
                    f"GitLab API {method} {url} failed with {response.status_code}",
                    status=response.status_code,
                    response_text=response.text,
                )

    # ---- Milestone operations ----------------------------------------
    def create_milestone(self, project_id: str, *, title: str, due_date: str) -> None:
        # GitLab reads due_date; dueDate is the legacy field name.
        form = {"title": title, "due_date": due_date, "dueDate": due_date}
        self._request("POST", f"{self.project_path(project_id)}/milestones", data=form)

    def activate_milestone(self, project_id: str, milestone_id: str) -> None:
        self._request(
            "PUT",
            f"{self.project_path(project_id)}/milestones/{quote(str(milestone_id), safe='')}",
            params={"state_event": "activate"},
        )


__all__ = ["DEFAULT_API_URL", "GitLabRestClient"]
