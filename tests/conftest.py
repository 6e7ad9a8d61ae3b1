import threading
from typing import Any, Callable, Dict, Iterator, List, Optional, Union

import pytest
import requests
from requests.structures import CaseInsensitiveDict

from civitdl.core.catalog import API_BASE


class FakeResponse:
    def __init__(self, status_code: int = 200, body: bytes = b"", json_data: Any = None,
                 headers: Optional[Dict[str, str]] = None, chunk_error: Optional[Exception] = None):
        self.status_code = status_code
        self.body = body
        self.json_data = json_data
        self.headers = CaseInsensitiveDict(headers or {})
        self.chunk_error = chunk_error
        self.consumed = False
        self.closed = False

    def raise_for_status(self) -> None:
        if self.status_code >= 400:
            raise requests.HTTPError(f"{self.status_code} error", response=self)

    def json(self) -> Any:
        if self.json_data is None:
            raise ValueError("no json")
        return self.json_data

    def iter_content(self, chunk_size: int = 1) -> Iterator[bytes]:
        self.consumed = True
        for i in range(0, len(self.body), chunk_size):
            yield self.body[i:i + chunk_size]
        if self.chunk_error:
            raise self.chunk_error

    def close(self) -> None:
        self.closed = True

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


Route = Union[FakeResponse, Exception, Callable[[], FakeResponse]]


class FakeSession:
    """Routes GETs by exact URL. Unknown URLs fail like a dead host."""

    def __init__(self, routes: Optional[Dict[str, Route]] = None):
        self.routes: Dict[str, Route] = dict(routes or {})
        self.calls: List[Dict[str, Any]] = []
        self._lock = threading.Lock()

    def get(self, url, **kwargs):
        with self._lock:
            self.calls.append({"url": url, **kwargs})
        route = self.routes.get(url)
        if route is None:
            raise requests.ConnectionError(f"no route to {url}")
        if isinstance(route, Exception):
            raise route
        if callable(route):
            return route()
        return route

    def urls(self) -> List[str]:
        return [c["url"] for c in self.calls]

    def close(self) -> None:
        pass


def file_payload(fid=1, name="model.safetensors", fmt="SafeTensor", rtype="Model",
                 size_kb=1.0, url=None):
    d = {"id": fid, "name": name, "type": rtype, "sizeKB": size_kb,
         "downloadUrl": url or f"https://civitai.com/api/download/models/{fid}"}
    if fmt is not None:
        d["format"] = fmt
    return d


def version_payload(vid, model_id=1, files=(), model_type="Checkpoint", name=None):
    return {
        "id": vid, "modelId": model_id, "name": name or f"v{vid}",
        "files": list(files),
        "downloadUrl": f"https://civitai.com/api/download/models/{vid}",
        "model": {"name": f"model {model_id}", "type": model_type},
    }


def model_payload(mid, versions=(), model_type="Checkpoint", name=None):
    embedded = []
    for v in versions:
        v = dict(v)
        v.pop("model", None)
        v.pop("modelId", None)
        embedded.append(v)
    return {"id": mid, "name": name or f"model {mid}", "type": model_type, "modelVersions": embedded}


def download_response(body: bytes, filename: Optional[str] = "model.safetensors",
                      length: Optional[int] = -1, status: int = 200, **kw) -> FakeResponse:
    headers = {}
    if filename is not None:
        headers["Content-Disposition"] = f'attachment; filename="{filename}"'
    if length is not None:
        headers["Content-Length"] = str(len(body) if length == -1 else length)
    return FakeResponse(status, body=body, headers=headers, **kw)


class Catalog:
    """Builds a FakeSession that serves a small catalog plus its file downloads."""

    def __init__(self):
        self.session = FakeSession()

    def add_model(self, mid, versions, model_type="Checkpoint"):
        vps = [version_payload(v["id"], mid, v.get("files", ()), model_type) for v in versions]
        self.session.routes[f"{API_BASE}/models/{mid}"] = FakeResponse(json_data=model_payload(mid, vps, model_type))
        for vp in vps:
            self.session.routes[f"{API_BASE}/model-versions/{vp['id']}"] = FakeResponse(json_data=vp)
        return self

    def add_file(self, url, body, filename, **kw):
        # fresh response per call so repeated downloads still stream
        self.session.routes[url] = lambda: download_response(body, filename, **kw)
        return self


@pytest.fixture
def catalog():
    return Catalog()
