from __future__ import annotations
import logging
from typing import Any, Dict, List, Optional

import requests

from core.collections import COLLECTIONS
from core.exceptions import RemoteError
from core.result import Err, Ok, Result

logger = logging.getLogger(__name__)


class RemoteStore:
    """Thin client for the hosted table API (``/rest/v1/<collection>``).

    One HTTP call per operation, no retries and no pagination. Failures come
    back as ``Err`` rather than being raised, so callers pick the policy.
    """
    def __init__(self, base_url: str, api_key: str, access_token: Optional[str] = None,
                 session: Optional[requests.Session] = None, timeout: float = 10.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"apikey": api_key, "Content-Type": "application/json"})
        self.set_access_token(access_token or api_key)

    # ---------- auth ----------
    def set_access_token(self, token: str) -> None:
        self.session.headers.update({"Authorization": f"Bearer {token}"})

    # ---------- plumbing ----------
    def _url(self, collection: str) -> str:
        if collection not in COLLECTIONS:
            raise ValueError(f"Unknown collection: {collection}")
        return f"{self.base_url}/rest/v1/{collection}"

    def _call(self, method: str, collection: str, **kwargs) -> Result:
        try:
            r = self.session.request(method, self._url(collection), timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            return Err(RemoteError(f"{method} {collection} failed: {e}"))
        if not r.ok:
            return Err(RemoteError(f"{method} {collection} failed: {r.status_code} {r.text}", r.status_code))
        if not r.content:
            return Ok(None)
        try:
            return Ok(r.json())
        except ValueError as e:
            return Err(RemoteError(f"{method} {collection} returned invalid JSON: {e}", r.status_code))

    # ---------- collections ----------
    def fetch(self, collection: str, filters: Optional[Dict[str, Any]] = None) -> Result:
        coll = COLLECTIONS.get(collection)
        params: Dict[str, Any] = {"select": "*"}
        if coll and coll.order:
            params["order"] = coll.order
        if coll and coll.limit:
            params["limit"] = coll.limit
        for field, value in (filters or {}).items():
            params[field] = f"eq.{value}"
        result = self._call("GET", collection, params=params)
        if result.ok and not isinstance(result.value, list):
            return Err(RemoteError(f"GET {collection} did not return a list"))
        return result

    def insert(self, collection: str, record: Dict[str, Any]) -> Result:
        result = self._call("POST", collection, json=record, headers={"Prefer": "return=representation"})
        if result.ok:
            rows: List[Dict[str, Any]] = result.value or []
            if not rows:
                return Err(RemoteError(f"POST {collection} returned no rows"))
            return Ok(rows)
        return result

    def update(self, collection: str, record_id: str, patch: Dict[str, Any]) -> Result:
        result = self._call("PATCH", collection, params={"id": f"eq.{record_id}"}, json=patch)
        return Ok(None) if result.ok else result

    def delete(self, collection: str, record_id: str) -> Result:
        result = self._call("DELETE", collection, params={"id": f"eq.{record_id}"})
        return Ok(None) if result.ok else result
