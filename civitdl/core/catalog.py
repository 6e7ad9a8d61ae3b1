# civitdl/core/catalog.py
from __future__ import annotations
import logging
from typing import Any, Optional, Union

import requests

from .errors import FetchFailed, ParseFailed
from .models import Model, ModelVersion

logger = logging.getLogger(__name__)

API_BASE = "https://civitai.com/api/v1"


class CatalogClient:
    """Thin wrapper over the two catalog endpoints the downloader needs."""

    def __init__(self, session: requests.Session, base_url: str = API_BASE,
                 api_key: Optional[str] = None, timeout: int = 30):
        self.session = session
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.timeout = timeout

    def get_model(self, model_id: Union[int, str]) -> Model:
        url = f"{self.base_url}/models/{model_id}"
        data = self._get_json(url)
        try:
            model = Model.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ParseFailed(url, f"bad model payload ({e!r})") from e
        logger.debug("Fetched %s with %d version(s)", model, len(model.versions))
        return model

    def get_model_version(self, version_id: Union[int, str]) -> ModelVersion:
        url = f"{self.base_url}/model-versions/{version_id}"
        data = self._get_json(url)
        try:
            return ModelVersion.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            raise ParseFailed(url, f"bad model version payload ({e!r})") from e

    def _get_json(self, url: str) -> Any:
        headers = {"Authorization": f"Bearer {self.api_key}"} if self.api_key else {}
        logger.debug("GET %s", url)
        try:
            r = self.session.get(url, headers=headers, timeout=self.timeout)
            r.raise_for_status()
        except requests.RequestException as e:
            raise FetchFailed(url, str(e)) from e
        try:
            return r.json()
        except ValueError as e:
            logger.debug("Failed to parse JSON from %s: %s", url, e)
            raise ParseFailed(url, "body is not JSON") from e
