# civitdl/core/http.py
from __future__ import annotations
from typing import Optional

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

UA = "civitdl/0.3"
CATALOG_DOMAIN = "civitai.com"
TOKEN_COOKIE = "__Secure-civitai-token"

def make_session(token: Optional[str] = None, pool_size: int = 10) -> requests.Session:
    """
    One session per run, handed to every worker. Redirects are followed
    (download links bounce to a CDN) but failed requests are never retried.
    """
    retries = Retry(
        total=None, connect=0, read=0, status=0, other=0,
        redirect=10, raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retries, pool_connections=pool_size, pool_maxsize=pool_size)
    s = requests.Session()
    s.mount("http://", adapter); s.mount("https://", adapter)
    s.headers.update({"User-Agent": UA})
    if token:
        s.cookies.set(
            TOKEN_COOKIE, token,
            domain=CATALOG_DOMAIN, path="/", secure=True,
            rest={"HttpOnly": None, "SameSite": "Lax"},
        )
    return s
