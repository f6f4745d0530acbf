"""
HTTP client for the Workflow Atlas API.
"""
import logging
from typing import Any, Dict, Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30


class ApiError(Exception):
    """Non-2xx response from the API, or status 0 when it could not be reached."""

    def __init__(self, status_code: int, detail: str):
        self.status_code = status_code
        self.detail = detail
        super().__init__(f"{status_code}: {detail}")


class ApiClient:
    """
    Thin wrapper over a ``requests.Session`` (or any object with the same
    ``request`` signature) that attaches the bearer token and unwraps errors.
    """

    def __init__(self, base_url: str = "", http: Optional[Any] = None, token: Optional[str] = None,
                 timeout: float = DEFAULT_TIMEOUT):
        self.base_url = base_url.rstrip("/")
        self.http = http or requests.Session()
        self.token = token
        self.timeout = timeout

    def _headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.token}"} if self.token else {}

    def request(self, method: str, path: str, **kwargs) -> Any:
        """Send one request; transport failures surface as ``ApiError`` with status 0."""
        if isinstance(self.http, requests.Session):
            kwargs.setdefault("timeout", self.timeout)
        try:
            response = self.http.request(method, f"{self.base_url}{path}", headers=self._headers(), **kwargs)
        except requests.RequestException as e:
            logger.warning("%s %s could not reach the API: %s", method, path, e)
            raise ApiError(0, str(e)) from e
        if response.status_code >= 400:
            try:
                detail = response.json().get("detail", response.text)
            except ValueError:
                detail = response.text
            logger.debug("%s %s failed with %s: %s", method, path, response.status_code, detail)
            raise ApiError(response.status_code, str(detail))
        return response.json()

    def login(self, email: str, password: str) -> Dict[str, Any]:
        payload = self.request("POST", "/auth/login", json={"email": email, "password": password})
        self.token = payload["token"]["access_token"]
        return payload["user"]

    def logout(self) -> None:
        try:
            self.request("POST", "/auth/logout")
        finally:
            self.token = None

    def session(self) -> Dict[str, Any]:
        return self.request("GET", "/auth/session")

    def list_workflows(self, page: int, page_size: int, search: str) -> Dict[str, Any]:
        return self.request(
            "GET", "/workflows", params={"page": page, "page_size": page_size, "search": search}
        )

    def get_workflow(self, workflow_id: str) -> Dict[str, Any]:
        return self.request("GET", f"/workflows/{workflow_id}")

    def create_workflow(self) -> Dict[str, Any]:
        return self.request("POST", "/workflows")

    def rename_workflow(self, workflow_id: str, name: str) -> Dict[str, Any]:
        return self.request("PATCH", f"/workflows/{workflow_id}", json={"name": name})

    def remove_workflow(self, workflow_id: str) -> Dict[str, Any]:
        return self.request("DELETE", f"/workflows/{workflow_id}")

    def execute_workflow(self, workflow_id: str) -> Dict[str, Any]:
        return self.request("POST", f"/workflows/{workflow_id}/execute")

    def get_job_run(self, run_id: str) -> Dict[str, Any]:
        return self.request("GET", f"/jobs/{run_id}")
