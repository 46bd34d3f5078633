"""Client utilities for the Explorium REST API."""

import logging
from typing import Any, Dict, Optional

import requests

from explorium_node.core.config import Settings, get_settings
from explorium_node.core.errors import UpstreamError
from explorium_node.core.models import RequestDescriptor

logger = logging.getLogger(__name__)


class ExploriumClient:
    """Authenticated JSON client; one instance is shared by every call of an execution."""

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.explorium.ai",
        timeout: int = 30,
        session: Optional[requests.Session] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self._headers = {"Content-Type": "application/json", "api_key": api_key}

    def request(
        self,
        method: str,
        path: str,
        body: Optional[Dict[str, Any]] = None,
        query: Optional[Dict[str, Any]] = None,
    ) -> Any:
        url = f"{self.base_url}{path}"
        logger.info("Explorium %s %s", method, path)
        try:
            response = self.session.request(
                method,
                url,
                json=body,
                params=query,
                headers=self._headers,
                timeout=self.timeout,
            )
        except requests.RequestException as exc:
            logger.error("Explorium %s %s failed: %s", method, path, exc)
            raise UpstreamError(None, message=f"Request to {path} failed: {exc}") from exc

        if response.status_code >= 400:
            data = _response_data(response)
            logger.error("Explorium %s %s returned status=%s", method, path, response.status_code)
            raise UpstreamError(response.status_code, data)
        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            logger.error("Explorium %s %s returned a non-JSON body", method, path)
            raise UpstreamError(
                response.status_code,
                response.text,
                message=f"Request to {path} returned a non-JSON body (status: {response.status_code}).",
            ) from exc

    def send(self, descriptor: RequestDescriptor) -> Any:
        return self.request(descriptor.method, descriptor.path, body=descriptor.body, query=descriptor.query)

    def close(self) -> None:
        self.session.close()

    def __enter__(self) -> "ExploriumClient":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def _response_data(response: requests.Response) -> Any:
    try:
        return response.json()
    except ValueError:
        return response.text or None


def client_from_settings(settings: Optional[Settings] = None) -> ExploriumClient:
    settings = settings or get_settings()
    return ExploriumClient(
        api_key=settings.explorium_api_key,
        base_url=settings.explorium_base_url,
        timeout=settings.request_timeout,
    )
