"""
odata_builder.core.connection - High-level connection management
=================================================================

Resolves service configuration and credentials from arguments or
environment variables, and hands out builders bound to one transport.
"""

from __future__ import annotations

import os
from dataclasses import replace
from typing import Any, Dict, Optional, TYPE_CHECKING

from odata_builder.core.batch import ODataBatch
from odata_builder.core.config import ODataConfig
from odata_builder.core.session import ODataAuth, ODataSession, SessionConfig

if TYPE_CHECKING:
    from odata_builder.query.builder import ODataQuery


class ConnectionContext:
    """
    Connection manager for one OData service.

    Supports environment variable configuration and context manager usage.
    Explicit arguments take precedence over the environment.

    Parameters
    ----------
    service : str, optional
        Service root URL. Falls back to ODATA_SERVICE env var.
    resources : str, optional
        Initial resource path. Falls back to ODATA_RESOURCES env var.
    user : str, optional
        Username for basic auth. Falls back to ODATA_USER env var.
    password : str, optional
        Password for basic auth. Falls back to ODATA_PASS env var.
    bearer_token : str, optional
        Bearer token. Falls back to ODATA_BEARER_TOKEN env var.
    version : str, optional
        OData-Version header. Falls back to ODATA_VERSION env var.
    max_version : str, optional
        OData-MaxVersion header. Falls back to ODATA_MAX_VERSION env var.
    format : str, optional
        $format override. Falls back to ODATA_FORMAT env var.
    headers : dict, optional
        Default headers for every request
    verify : bool, optional
        SSL verification. Falls back to ODATA_VERIFY_TLS env var.
    timeout : float, optional
        Request timeout in seconds. Falls back to ODATA_TIMEOUT env var.

    Examples
    --------
    >>> with ConnectionContext(service="https://services.odata.org/V4/OData/OData.svc") as conn:
    ...     res = conn.query().resource("Products").top(5).get()
    """

    def __init__(
        self,
        service: Optional[str] = None,
        resources: Optional[str] = None,
        user: Optional[str] = None,
        password: Optional[str] = None,
        bearer_token: Optional[str] = None,
        version: Optional[str] = None,
        max_version: Optional[str] = None,
        format: Optional[str] = None,
        headers: Optional[Dict[str, str]] = None,
        verify: Optional[bool] = None,
        timeout: Optional[float] = None,
    ) -> None:
        env = os.environ
        self._service = (service or env.get("ODATA_SERVICE", "")).rstrip("/")
        self._resources = resources or env.get("ODATA_RESOURCES", "")
        self._user = user or env.get("ODATA_USER", "")
        self._password = password or env.get("ODATA_PASS", "")
        self._bearer_token = bearer_token or env.get("ODATA_BEARER_TOKEN", "")
        self._version = version or env.get("ODATA_VERSION") or None
        self._max_version = max_version or env.get("ODATA_MAX_VERSION") or None
        self._format = format or env.get("ODATA_FORMAT") or None
        self._headers = dict(headers or {})

        if verify is not None:
            self._verify = verify
        else:
            self._verify = env.get("ODATA_VERIFY_TLS", "true").lower() != "false"

        self._timeout = float(timeout if timeout is not None else env.get("ODATA_TIMEOUT", "60"))

        if not self._service:
            raise ValueError(
                "Missing service. Set ODATA_SERVICE environment variable "
                "or pass service parameter."
            )
        if self._user and not self._password:
            raise ValueError("Missing credentials. ODATA_USER is set but ODATA_PASS is empty.")

        self._session: Optional[ODataSession] = None

    @property
    def config(self) -> ODataConfig:
        return ODataConfig(
            service=self._service,
            resources=self._resources,
            headers=dict(self._headers),
            version=self._version,
            max_version=self._max_version,
            format=self._format,
        )

    @property
    def session(self) -> ODataSession:
        """Get or create the underlying transport."""
        if self._session is None:
            self._session = self._build_session()
        return self._session

    def _build_session(self) -> ODataSession:
        auth = None
        if self._bearer_token:
            auth = ODataAuth("bearer", self._bearer_token)
        elif self._user:
            auth = ODataAuth("basic", (self._user, self._password))

        cfg = SessionConfig(
            auth=auth,
            verify=self._verify,
            timeout=self._timeout,
        )
        return ODataSession(cfg)

    def close(self) -> None:
        """Close the connection."""
        if self._session is not None:
            self._session.close()
            self._session = None

    def __enter__(self) -> "ConnectionContext":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def query(self, **overrides: Any) -> "ODataQuery":
        """
        Start a new query against this service.

        Parameters
        ----------
        **overrides
            ODataConfig fields to override for this query only

        Returns
        -------
        ODataQuery
            Builder bound to this connection's transport
        """
        # Import here to avoid circular imports
        from odata_builder.query.builder import ODataQuery
        return ODataQuery(replace(self.config, **overrides), transport=self.session)

    def batch(self) -> ODataBatch:
        return ODataBatch(self.config, self.session)

    @property
    def service(self) -> str:
        """The configured service root."""
        return self._service
