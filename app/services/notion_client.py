"""
Client Notion - appels HTTP à l'API (lecture seule)
"""

import requests
import threading
from typing import Optional
import logging

from app.core.config import settings
from app.core.errors import NotFoundError

logger = logging.getLogger(__name__)

PAGE_SIZE = 100


class NotionClient:
    """Source des documents: base de posts, pages et blocks.

    Pas de retry ici: les erreurs réseau / rate limit remontent telles quelles
    (requests.RequestException), seul le 404 devient NotFoundError.
    """

    def __init__(self, token: str = None, base_url: str = None, timeout: int = None,
                 session: Optional[requests.Session] = None):
        self.base_url = (base_url or settings.NOTION_API_URL).rstrip("/")
        self.timeout = timeout or settings.NOTION_TIMEOUT
        self.headers = {
            "Authorization": f"Bearer {token if token is not None else settings.NOTION_TOKEN}",
            "Notion-Version": settings.NOTION_VERSION,
            "Content-Type": "application/json",
        }
        self._session = session
        if session is not None:
            session.headers.update(self.headers)
        # load() appelle le client depuis un pool de threads: une Session par thread
        self._local = threading.local()

    @property
    def session(self) -> requests.Session:
        if self._session is not None:
            return self._session
        session = getattr(self._local, "session", None)
        if session is None:
            session = requests.Session()
            session.headers.update(self.headers)
            self._local.session = session
        return session

    def _request(self, method: str, path: str, **kwargs) -> dict:
        response = self.session.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        if response.status_code == 404:
            raise NotFoundError("Page not found")
        if response.status_code == 429:
            logger.warning(f"Notion rate limit on {path}")
        response.raise_for_status()
        return response.json()

    def _paginate(self, method: str, path: str, body: dict = None) -> list[dict]:
        results = []
        cursor = None
        while True:
            if method == "GET":
                params = {"page_size": PAGE_SIZE}
                if cursor:
                    params["start_cursor"] = cursor
                data = self._request("GET", path, params=params)
            else:
                payload = dict(body or {}, page_size=PAGE_SIZE)
                if cursor:
                    payload["start_cursor"] = cursor
                data = self._request(method, path, json=payload)

            results.extend(data.get("results", []))
            if not data.get("has_more"):
                return results
            cursor = data.get("next_cursor")

    def query_database(self, database_id: str) -> list[dict]:
        return self._paginate("POST", f"/databases/{database_id}/query")

    def retrieve_page(self, page_id: str) -> dict:
        return self._request("GET", f"/pages/{page_id}")

    def retrieve_block(self, block_id: str) -> dict:
        return self._request("GET", f"/blocks/{block_id}")

    def list_block_children(self, block_id: str) -> list[dict]:
        return self._paginate("GET", f"/blocks/{block_id}/children")


def get_notion_client() -> NotionClient:
    """Dépendance FastAPI (remplacée dans les tests)"""
    return NotionClient()
