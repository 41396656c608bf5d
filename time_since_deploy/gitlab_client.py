"""Thin read-only client for the three GitLab v4 endpoints the report needs.

One instance (and its ``requests.Session``) is shared by every drift task;
nothing on it is mutated after construction.
"""
from typing import Any, Dict, List, Optional, Tuple

import requests

from .errors import GitLabAPIError


DEFAULT_GITLAB_URL = "https://gitlab.com"
DEFAULT_TIMEOUT = 30.0


def _normalize_url(url: str) -> str:
    u = (url or "").strip().rstrip("/")
    if not u:
        u = DEFAULT_GITLAB_URL
    if not u.startswith(("http://", "https://")):
        u = f"https://{u}"
    if u.endswith("/api/v4"):
        u = u[: -len("/api/v4")]
    return u


def _headers(token: str) -> Dict[str, str]:
    h = {"Accept": "application/json"}
    if token:
        h["PRIVATE-TOKEN"] = token
    return h


def _next_page(resp: requests.Response) -> Optional[int]:
    """Page number from ``X-Next-Page``; None when GitLab reports no further page."""
    raw = (resp.headers.get("X-Next-Page") or "").strip()
    if not raw:
        return None
    try:
        page = int(raw)
    except ValueError:
        return None
    return page if page > 0 else None


def safe_json(resp: requests.Response) -> Any:
    try:
        return resp.json() if resp.content else {}
    except ValueError:
        return {"_raw": resp.text}


class GitLabClient:
    """GitLab REST API v4 client bound to one base URL and token."""

    def __init__(
        self,
        token: str,
        base_url: str = DEFAULT_GITLAB_URL,
        *,
        timeout: float = DEFAULT_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        self.base_url = _normalize_url(base_url)
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update(_headers(token))

    @property
    def api_base(self) -> str:
        return f"{self.base_url}/api/v4"

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "GitLabClient":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _get(self, path: str, params: Optional[Dict[str, Any]] = None) -> requests.Response:
        url = f"{self.api_base}{path}"
        try:
            r = self.session.get(url, params=params, timeout=self.timeout)
        except requests.RequestException as e:
            raise GitLabAPIError(f"GET {path}: {e.__class__.__name__}: {e}") from e

        if r.status_code != 200:
            body = safe_json(r)
            detail = ""
            if isinstance(body, dict):
                detail = str(body.get("message") or body.get("error") or "")
            msg = f"GET {path}: HTTP {r.status_code}"
            if detail:
                msg = f"{msg} ({detail})"
            raise GitLabAPIError(msg, status_code=r.status_code)
        return r

    def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Tuple[Any, requests.Response]:
        r = self._get(path, params=params)
        try:
            return r.json(), r
        except ValueError as e:
            raise GitLabAPIError(f"GET {path}: invalid JSON body") from e

    def list_projects(self, search: str, *, search_namespaces: bool = True,
                      visibility: str = "private") -> List[dict]:
        body, _ = self._get_json("/projects", params={
            "search": search,
            "search_namespaces": "true" if search_namespaces else "false",
            "visibility": visibility,
        })
        if not isinstance(body, list):
            raise GitLabAPIError("GET /projects: expected a JSON array")
        return body

    def list_environments(self, project_id: int, *, page: int = 1, per_page: int = 20,
                          states: str = "available", search: Optional[str] = None) -> Tuple[List[dict], Optional[int]]:
        """Fetch one page of environments.

        Returns:
            (environments, next_page) where next_page is None on the last page
        """
        params: Dict[str, Any] = {"page": page, "per_page": per_page, "states": states}
        if search:
            params["search"] = search
        path = f"/projects/{project_id}/environments"
        body, r = self._get_json(path, params=params)
        if not isinstance(body, list):
            raise GitLabAPIError(f"GET {path}: expected a JSON array")
        return body, _next_page(r)

    def get_environment(self, project_id: int, environment_id: int) -> dict:
        path = f"/projects/{project_id}/environments/{environment_id}"
        body, _ = self._get_json(path)
        if not isinstance(body, dict):
            raise GitLabAPIError(f"GET {path}: expected a JSON object")
        return body
