"""Fetch rule rows from a spreadsheet web-app endpoint.

Endpoints answer either with a bare JSON array or with the array wrapped in a
callback invocation (``cb_1234([...])``). Each request owns a unique callback
name that is registered only while the request is in flight.
"""
from __future__ import annotations

import json
import logging
import re
import threading
import time
import uuid
from concurrent.futures import ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeout
from typing import Any, Dict, List, Optional

import requests
from django.conf import settings

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 15.0
_CHUNK_SIZE = 8192

_PENDING: Dict[str, str] = {}
_PENDING_LOCK = threading.Lock()


class RemoteFetchError(Exception):
    """Timeout, transport failure or a payload that is not a JSON array."""


def pending_callbacks() -> Dict[str, str]:
    with _PENDING_LOCK:
        return dict(_PENDING)


def default_timeout() -> float:
    try:
        return float(getattr(settings, "RULES_REMOTE_IMPORT_TIMEOUT", DEFAULT_TIMEOUT) or DEFAULT_TIMEOUT)
    except (TypeError, ValueError):
        return DEFAULT_TIMEOUT


class JsonpRequest:
    """One remote fetch with its own callback name.

    Usage::

        with JsonpRequest(url) as req:
            rows = req.fetch()
    """

    def __init__(self, url: str, *, timeout: Optional[float] = None, session: Optional[requests.Session] = None):
        self.url = (url or "").strip()
        self.timeout = timeout if timeout is not None else default_timeout()
        self.callback = f"rules_import_{uuid.uuid4().hex}"
        self._session = session
        self._abandoned = threading.Event()

    def __enter__(self) -> "JsonpRequest":
        with _PENDING_LOCK:
            _PENDING[self.callback] = self.url
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        with _PENDING_LOCK:
            _PENDING.pop(self.callback, None)

    def fetch(self) -> List[Any]:
        """Download and decode the payload, giving up once ``timeout`` seconds have passed in total."""
        if not self.url.lower().startswith(("http://", "https://")):
            raise RemoteFetchError("Sheet URL must start with http:// or https://")
        executor = ThreadPoolExecutor(max_workers=1, thread_name_prefix="sheet-fetch")
        future = executor.submit(self._download, time.monotonic() + self.timeout)
        try:
            body = future.result(timeout=self.timeout)
        except FutureTimeout as e:
            self._abandoned.set()
            raise RemoteFetchError(self._timeout_message()) from e
        finally:
            executor.shutdown(wait=False)
        return parse_payload(body, self.callback)

    def _timeout_message(self) -> str:
        return f"Request timed out after {self.timeout:g} seconds"

    def _download(self, deadline: float) -> str:
        getter = self._session.get if self._session is not None else requests.get
        try:
            resp = getter(self.url, params={"callback": self.callback}, timeout=self.timeout, stream=True)
        except requests.Timeout as e:
            raise RemoteFetchError(self._timeout_message()) from e
        except requests.RequestException as e:
            raise RemoteFetchError(f"Failed to load sheet data: {e.__class__.__name__}") from e

        try:
            if resp.status_code >= 400:
                raise RemoteFetchError(f"Failed to load sheet data: HTTP {resp.status_code}")
            chunks = []
            for chunk in resp.iter_content(chunk_size=_CHUNK_SIZE):
                if self._abandoned.is_set() or time.monotonic() > deadline:
                    raise RemoteFetchError(self._timeout_message())
                chunks.append(chunk)
            encoding = resp.encoding or "utf-8"
        except requests.Timeout as e:
            raise RemoteFetchError(self._timeout_message()) from e
        except requests.RequestException as e:
            raise RemoteFetchError(f"Failed to load sheet data: {e.__class__.__name__}") from e
        finally:
            resp.close()
        return b"".join(chunks).decode(encoding, errors="replace")


def _unwrap(body: str, callback: str) -> Optional[str]:
    for name in (re.escape(callback), r"[A-Za-z_$][\w$.]*"):
        m = re.match(r"^\s*(?:/\*\*/\s*)?" + name + r"\s*\((.*)\)\s*;?\s*$", body, re.DOTALL)
        if m:
            return m.group(1)
    return None


def parse_payload(body: str, callback: str = "callback") -> List[Any]:
    """Decode a bare JSON array or a callback-wrapped one."""
    text = (body or "").strip()
    if not text:
        raise RemoteFetchError("Empty response from sheet endpoint")
    try:
        data = json.loads(text)
    except ValueError:
        inner = _unwrap(text, callback)
        if inner is None:
            raise RemoteFetchError("Sheet endpoint did not return JSON")
        try:
            data = json.loads(inner)
        except ValueError as e:
            raise RemoteFetchError("Sheet endpoint returned malformed JSON") from e

    if isinstance(data, dict):
        for key in ("data", "rows", "rules"):
            if isinstance(data.get(key), list):
                data = data[key]
                break
    if not isinstance(data, list):
        raise RemoteFetchError("Sheet endpoint did not return a JSON array")
    return data


def fetch_json_rows(url: str, *, timeout: Optional[float] = None) -> List[Any]:
    with JsonpRequest(url, timeout=timeout) as req:
        logger.info("fetching sheet rows from %s (callback=%s)", req.url, req.callback)
        return req.fetch()
