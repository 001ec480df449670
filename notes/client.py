import logging
from typing import Optional

import requests

from core import errors

from .grid import Rect, Size
from .sync import Ack, SyncFailure

logger = logging.getLogger(__name__)


class NotesApiClient:
    """HTTP transport for BoardSync against the /api/notes/ endpoints."""

    def __init__(self, base_url, access_token=None, session: Optional[requests.Session] = None, timeout=10):
        self.base_url = base_url.rstrip("/")
        self.access_token = access_token
        self.session = session or requests.Session()
        self.timeout = timeout

    def _headers(self):
        if not self.access_token:
            return {}
        return {"Authorization": f"Bearer {self.access_token}"}

    def _request(self, method, path, payload=None):
        url = f"{self.base_url}{path}"
        try:
            response = self.session.request(
                method,
                url,
                json=payload,
                headers=self._headers(),
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.warning("%s %s failed: %s", method, path, exc)
            return SyncFailure(errors.TRANSIENT, "Network error, please retry.")

        if response.status_code == 401:
            return SyncFailure(errors.UNAUTHENTICATED, "Please sign in again.", 401)

        try:
            body = response.json()
        except ValueError:
            body = None

        if 200 <= response.status_code < 300:
            return Ack(body)

        body = body if isinstance(body, dict) else {}
        code = body.get("code") or errors.PERSISTENCE_FAILURE
        message = body.get("detail") or f"Request failed with status {response.status_code}."
        logger.info("%s %s returned %s (%s)", method, path, response.status_code, code)
        return SyncFailure(code, str(message), response.status_code)

    def login(self, username, password):
        result = self._request("POST", "/api/auth/login/", {"username": username, "password": password})
        if isinstance(result, Ack):
            self.access_token = (result.data or {}).get("access")
        return result

    def list_notes(self):
        return self._request("GET", "/api/notes/")

    def create_note(self, content, tags, size: Optional[Size] = None):
        payload = {"content": content, "tags": list(tags)}
        if size is not None:
            payload["grid"] = {"w": size.w, "h": size.h}
        return self._request("POST", "/api/notes/", payload)

    def patch_note(self, note_id, content=None, tags=None, locked=None, grid: Optional[Rect] = None):
        payload = {}
        if content is not None:
            payload["content"] = content
        if tags is not None:
            payload["tags"] = list(tags)
        if locked is not None:
            payload["locked"] = bool(locked)
        if grid is not None:
            payload["grid"] = grid.as_dict()
        return self._request("PATCH", f"/api/notes/{note_id}/", payload)

    def delete_note(self, note_id):
        return self._request("DELETE", f"/api/notes/{note_id}/")
