import logging
from typing import Any, Dict, Optional

import httpx

from app.config import settings
from app.core.exceptions import GladiaError

logger = logging.getLogger(__name__)


class GladiaClient:
    """Thin wrapper over the Gladia v2 pre-recorded transcription API."""

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.BaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.gladia_api_key
        self.base_url = (base_url or settings.gladia_base_url).rstrip("/")
        self.timeout = timeout or settings.gladia_request_timeout
        self._transport = transport

    def _client(self) -> httpx.Client:
        if not self.api_key:
            raise GladiaError("Gladia API key not configured")
        return httpx.Client(
            base_url=self.base_url,
            timeout=self.timeout,
            headers={"x-gladia-key": self.api_key, "Content-Type": "application/json"},
            transport=self._transport,
        )

    def _request(self, method: str, path: str, json: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
        with self._client() as client:
            try:
                response = client.request(method, path, json=json)
            except httpx.TimeoutException:
                logger.error(f"Gladia {method} {path} timed out")
                raise GladiaError("Gladia request timed out")
            except httpx.HTTPError as e:
                logger.error(f"Gladia {method} {path} failed: {e}")
                raise GladiaError(f"Gladia request failed: {e}")
        if response.status_code >= 400:
            logger.error(f"Gladia {method} {path} returned {response.status_code}: {response.text[:500]}")
            raise GladiaError(
                f"Gladia API error: {response.status_code}",
                upstream_status=response.status_code,
            )
        try:
            return response.json()
        except ValueError:
            raise GladiaError("Gladia returned a non-JSON response", upstream_status=response.status_code)

    def start_transcription(self, audio_url: str, options: Optional[Dict[str, Any]] = None) -> str:
        """Submit a job for audio_url and return the Gladia job id."""
        payload = {"audio_url": audio_url}
        if options:
            payload.update(options)
        data = self._request("POST", "/transcription", json=payload)
        job_id = data.get("id") if isinstance(data, dict) else None
        if not job_id:
            raise GladiaError("Gladia did not return a job id")
        logger.info(f"Started Gladia job {job_id}")
        return job_id

    def get_status(self, job_id: str) -> Dict[str, Any]:
        data = self._request("GET", f"/transcription/{job_id}")
        if not isinstance(data, dict):
            raise GladiaError("Unexpected Gladia status payload")
        return data


def get_gladia_client() -> GladiaClient:
    return GladiaClient()
