"""
odata_builder.core.config - Query configuration
================================================
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass
class ODataConfig:
    """
    Configuration shared by the queries built against one service.

    Parameters
    ----------
    service : str
        Service root URL, e.g. "https://host/V4/OData/OData.svc"
    resources : str
        Initial resource path prefix, e.g. "Categories(1)"
    headers : dict
        Default headers sent with every request
    custom : dict
        Custom query parameters added to every query
    version : str, optional
        Sent as the ``OData-Version`` header
    max_version : str, optional
        Sent as the ``OData-MaxVersion`` header
    format : str, optional
        Response format override, emitted as ``$format``

    Examples
    --------
    >>> cfg = ODataConfig(
    ...     service="https://services.odata.org/V4/OData/OData.svc",
    ...     version="4.0",
    ...     format="json",
    ... )
    """
    service: str = ""
    resources: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    custom: Dict[str, Any] = field(default_factory=dict)
    version: Optional[str] = None
    max_version: Optional[str] = None
    format: Optional[str] = None

    def protocol_headers(self) -> Dict[str, str]:
        """Default headers plus the OData version headers, if configured."""
        headers = dict(self.headers)
        if self.version:
            headers["OData-Version"] = str(self.version)
        if self.max_version:
            headers["OData-MaxVersion"] = str(self.max_version)
        return headers
