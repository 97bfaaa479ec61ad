"""Minimal async REST client for Google APIs."""
import asyncio
import logging
from typing import Any, Dict, List, Optional

import aiohttp
import google.auth
from google.auth.transport.requests import Request

from ..errors import NotFoundError
from .config_loader import get_config

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/cloud-platform"]
PAGE_SIZE = 100


class GoogleApiClient:
    """Authenticated JSON GETs against a single API origin."""

    def __init__(self, origin: str, timeout: float = 30, credentials=None):
        self.origin = origin.rstrip("/")
        self.timeout = timeout
        self._credentials = credentials

    @classmethod
    def from_config(cls, origin_key: str) -> "GoogleApiClient":
        """Build a client for one of the origins in the 'api' config section."""
        api = get_config()["api"]
        return cls(api[origin_key], timeout=api["timeout_seconds"])

    async def _access_token(self) -> str:
        if self._credentials is None:
            self._credentials, _ = google.auth.default(scopes=SCOPES)
        if not self._credentials.valid:
            # google-auth refreshes synchronously
            await asyncio.to_thread(self._credentials.refresh, Request())
        return self._credentials.token

    async def get(self, path: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        """
        GET `{origin}/{path}` and decode the JSON body.

        Raises:
            NotFoundError: On HTTP 404
            aiohttp.ClientResponseError: On any other error status
        """
        url = f"{self.origin}/{path}"
        headers = {"Authorization": f"Bearer {await self._access_token()}"}
        logger.debug(f"GET {url} params={params}")

        async with aiohttp.ClientSession(timeout=aiohttp.ClientTimeout(total=self.timeout)) as session:
            async with session.get(url, params=params, headers=headers) as response:
                if response.status == 404:
                    raise NotFoundError(f"{path} not found")
                response.raise_for_status()
                return await response.json()

    async def list_all(self, path: str, field: str, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Follow nextPageToken until exhausted and concatenate `field` from every page."""
        query = dict(params or {})
        query.setdefault("pageSize", PAGE_SIZE)
        items: List[Dict[str, Any]] = []
        while True:
            body = await self.get(path, params=query)
            items.extend(body.get(field, []))
            token = body.get("nextPageToken")
            if not token:
                return items
            query["pageToken"] = token
