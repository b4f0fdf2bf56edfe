"""
odata_builder.core.session - HTTP transport
============================================

Transport collaborator consumed by the query builder:

- BaseTransport: the verb interface the builder sends requests through
- ODataSession: requests-backed implementation with basic or bearer auth
- Optional conversion of error statuses into ODataUpstreamError

The transport never retries. Status codes are returned as-is unless
``raise_for_status`` is enabled.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Tuple, Union
import logging
import time

import requests
from requests import Response, Session
from requests.adapters import HTTPAdapter

from odata_builder.core.errors import ODataUpstreamError


@dataclass
class ODataAuth:
    """
    Authentication configuration.

    Parameters
    ----------
    kind : str
        Either "basic" or "bearer"
    value : tuple or str
        For basic: (username, password) tuple
        For bearer: access token string

    Examples
    --------
    >>> auth = ODataAuth("basic", ("USER", "PASSWORD"))
    >>> auth = ODataAuth("bearer", "eyJ...")
    """
    kind: str  # "basic" | "bearer"
    value: Union[Tuple[str, str], str]  # (user, pass) or access_token


@dataclass
class SessionConfig:
    """
    Connection configuration for the HTTP transport.

    Parameters
    ----------
    auth : ODataAuth, optional
        Authentication; None sends anonymous requests
    timeout : float
        Request timeout in seconds (default: 60.0)
    verify : bool or str
        SSL verification (True, False, or path to CA bundle)
    user_agent : str
        User-Agent header value
    raise_for_status : bool
        If True, error statuses raise ODataUpstreamError instead of
        being returned
    """
    auth: Optional[ODataAuth] = None
    timeout: float = 60.0
    verify: Union[bool, str] = True
    user_agent: str = "odata-builder/0.1"
    raise_for_status: bool = False


@dataclass
class TransportResponse:
    """Result of one transport call."""
    status_code: int
    body: str = ""
    headers: Dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return 200 <= self.status_code < 300


class BaseTransport:
    """
    Verb interface consumed by ``ODataQuery``.

    Subclasses implement ``request``; the verb methods delegate to it.
    """

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        **options: Any,
    ) -> Any:
        raise NotImplementedError

    def get(self, url: str, *, headers: Optional[Dict[str, str]] = None, **options: Any) -> Any:
        return self.request("GET", url, headers=headers, **options)

    def post(self, url: str, *, headers: Optional[Dict[str, str]] = None, **options: Any) -> Any:
        return self.request("POST", url, headers=headers, **options)

    def put(self, url: str, *, headers: Optional[Dict[str, str]] = None, **options: Any) -> Any:
        return self.request("PUT", url, headers=headers, **options)

    def patch(self, url: str, *, headers: Optional[Dict[str, str]] = None, **options: Any) -> Any:
        return self.request("PATCH", url, headers=headers, **options)

    def merge(self, url: str, *, headers: Optional[Dict[str, str]] = None, **options: Any) -> Any:
        return self.request("MERGE", url, headers=headers, **options)

    def delete(self, url: str, *, headers: Optional[Dict[str, str]] = None, **options: Any) -> Any:
        return self.request("DELETE", url, headers=headers, **options)


class ODataSession(BaseTransport):
    """
    HTTP transport backed by a ``requests.Session``.

    Use as a context manager for automatic cleanup.

    Parameters
    ----------
    cfg : SessionConfig, optional
        Connection configuration

    Examples
    --------
    >>> with ODataSession(SessionConfig(auth=ODataAuth("basic", ("u", "p")))) as sess:
    ...     res = odata(cfg, transport=sess).resource("Products").get()
    """

    def __init__(self, cfg: Optional[SessionConfig] = None) -> None:
        self.cfg = cfg or SessionConfig()
        self.timeout = float(self.cfg.timeout)
        self.verify = self.cfg.verify
        self.logger = logging.getLogger("odata_builder.transport")

        self.session = self._build_session()

    def close(self) -> None:
        """Close the underlying HTTP session."""
        self.session.close()

    def __enter__(self) -> "ODataSession":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------------- auth/session ----------------

    def _build_session(self) -> Session:
        sess = requests.Session()

        auth = self.cfg.auth
        if auth is not None:
            if auth.kind == "basic":
                sess.auth = auth.value  # type: ignore[assignment]
            elif auth.kind == "bearer":
                sess.headers.update({"Authorization": f"Bearer {auth.value}"})
            else:
                raise ValueError("auth.kind must be 'basic' or 'bearer'")

        sess.headers.update({
            "Accept": "application/json",
            "User-Agent": self.cfg.user_agent,
        })

        adapter = HTTPAdapter(pool_connections=20, pool_maxsize=50)
        sess.mount("https://", adapter)
        sess.mount("http://", adapter)
        return sess

    # ---------------- helpers ----------------

    def _extract_error(self, r: Response) -> str:
        try:
            data = r.json()
        except ValueError:
            return r.text
        if not isinstance(data, dict):
            return r.text
        err = data.get("error")
        if not isinstance(err, dict):
            return r.text

        code = err.get("code")
        message = None
        if isinstance(err.get("message"), dict):
            message = err["message"].get("value")
        elif isinstance(err.get("message"), str):
            message = err.get("message")

        parts = []
        if code:
            parts.append(f"code={code}")
        if message:
            parts.append(f"message={message}")
        return " | ".join(parts) or r.text

    def _raise_for_error(self, r: Response, url: str) -> None:
        if r.status_code >= 400:
            body = self._extract_error(r)
            raise ODataUpstreamError(r.status_code, body, url, dict(r.headers))

    # ---------------- public ops ----------------

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        **options: Any,
    ) -> TransportResponse:
        """
        Send one request and wrap the response.

        Parameters
        ----------
        method : str
            HTTP method, e.g. "GET" or "MERGE"
        url : str
            Fully serialized URL
        headers : dict, optional
            Request headers, merged over the session defaults
        **options
            Passed to ``requests.Session.request`` (json, data, ...)

        Returns
        -------
        TransportResponse
            Status code, body text and headers
        """
        options.setdefault("timeout", self.timeout)
        options.setdefault("verify", self.verify)
        t0 = time.perf_counter()
        r = self.session.request(method=method.upper(), url=url, headers=headers, **options)
        dt = (time.perf_counter() - t0) * 1000.0
        self.logger.debug("%s %s %sms", method.upper(), url, round(dt, 1))
        if self.cfg.raise_for_status:
            self._raise_for_error(r, url)
        return TransportResponse(
            status_code=r.status_code,
            body=r.text,
            headers=dict(r.headers),
        )
