"""HTTP client for the research update API."""
from __future__ import annotations

import json
import logging
from typing import Any, Dict, List, Optional, Tuple

import requests

from community.utils.exceptions import ExternalAPIError

logger = logging.getLogger(__name__)


class ResearchClient:
    """Talks to ``/api/v1/research`` on behalf of an authenticated user."""

    def __init__(
        self,
        base_url: str,
        access_token: str,
        session: Optional[requests.Session] = None,
        timeout: int = 30
    ) -> None:
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.session.headers.update({
            'Authorization': f'Bearer {access_token}',
            'Accept': 'application/json'
        })
        self.timeout = timeout

    def _url(self, research_id: int, update_id: Optional[int] = None) -> str:
        url = f"{self.base_url}/api/v1/research/{research_id}/updates"
        if update_id is not None:
            url = f"{url}/{update_id}"
        return url

    def _request(self, method: str, url: str, **kwargs) -> Dict[str, Any]:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.exceptions.RequestException as exc:
            logger.error(f"Research API request failed: {exc}")
            raise ExternalAPIError('Unable to reach the research service. Please try again.') from exc

        try:
            payload = response.json()
        except ValueError:
            payload = {}

        if response.status_code >= 400:
            error = payload.get('error') if isinstance(payload, dict) else None
            raise ExternalAPIError(error or f"Research service responded with {response.status_code}")

        return payload if isinstance(payload, dict) else {}

    @staticmethod
    def encode_form(form_data, is_draft: bool) -> Tuple[Dict[str, str], List[Tuple[str, Tuple[str, Any]]]]:
        """Split form data into multipart fields and file parts."""
        fields = {
            'title': form_data.title or '',
            'description': form_data.description or '',
            'video_url': form_data.video_url or '',
            'file_link': form_data.file_link or '',
            'is_draft': 'true' if is_draft else 'false',
            'existing_images': json.dumps(form_data.existing_images or []),
            'existing_files': json.dumps(form_data.existing_files or []),
        }
        files = [('images', upload) for upload in form_data.images if upload]
        files += [('files', upload) for upload in form_data.files if upload]
        return fields, files

    def upsert_update(self, research_id: int, update_id: Optional[int], form_data, is_draft: bool) -> Dict[str, Any]:
        """
        Create or edit an update.

        Returns:
            Response body, ``{"research_update": {...}}``
        """
        fields, files = self.encode_form(form_data, is_draft)
        method = 'POST' if update_id is None else 'PUT'
        return self._request(method, self._url(research_id, update_id), data=fields, files=files or None)

    def delete_update(self, research_id: int, update_id: int) -> None:
        self._request('DELETE', self._url(research_id, update_id))
