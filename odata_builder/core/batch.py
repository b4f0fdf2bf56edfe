"""
odata_builder.core.batch - OData $batch requests
=================================================

Collects fully-serialized requests from builders and sends them as one
``multipart/mixed`` request to ``<service>/$batch``, in recorded order. Reads
become standalone parts; each run of consecutive writes becomes a changeset.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, TYPE_CHECKING
import json
import logging
import uuid

from odata_builder.core.config import ODataConfig
from odata_builder.core.errors import ODataBuilderError
from odata_builder.core.session import BaseTransport

if TYPE_CHECKING:
    from odata_builder.query.builder import ODataQuery

logger = logging.getLogger("odata_builder.batch")

CRLF = "\r\n"


@dataclass
class BatchPart:
    """One request recorded by a batch."""
    method: str
    url: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Optional[str] = None

    @property
    def is_read(self) -> bool:
        return self.method == "GET"


class ODataBatch(BaseTransport):
    """
    Batch collaborator.

    Builders created with ``resource()`` send their requests here instead
    of over the network; ``send()`` posts all of them at once.

    Parameters
    ----------
    config : ODataConfig
        Configuration shared with the builders
    transport : BaseTransport
        Transport used to post the batch

    Examples
    --------
    >>> batch = odata(cfg, transport=sess).batch()
    >>> batch.resource("Products", 1).merge({"Name": "Bread"})
    >>> batch.resource("Products", 2).merge({"Name": "Milk"})
    >>> res = batch.send()
    """

    def __init__(self, config: ODataConfig, transport: Optional[BaseTransport] = None) -> None:
        self.config = config
        self.transport = transport
        self.parts: List[BatchPart] = []
        self.boundary = f"batch_{uuid.uuid4()}"

    def resource(self, resource: str, key: Any = None) -> "ODataQuery":
        # Import here to avoid circular imports
        from odata_builder.query.builder import ODataQuery
        return ODataQuery(self.config, transport=self).resource(resource, key)

    def _relative(self, url: str) -> str:
        root = self.config.service.rstrip("/") + "/"
        if self.config.service and url.startswith(root):
            return url[len(root):].lstrip("/")
        return url

    def request(
        self,
        method: str,
        url: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        **options: Any,
    ) -> BatchPart:
        """Record a request; nothing is sent until ``send()``."""
        body = options.get("data")
        if options.get("json") is not None:
            body = json.dumps(options["json"], separators=(",", ":"))
        part = BatchPart(method.upper(), self._relative(url), dict(headers or {}), body)
        if body is not None:
            part.headers.setdefault("Content-Type", "application/json")
        self.parts.append(part)
        return part

    # ---------------- serialization ----------------

    def _render_request(self, part: BatchPart, content_id: Optional[int] = None) -> List[str]:
        lines = [
            "Content-Type: application/http",
            "Content-Transfer-Encoding: binary",
        ]
        if content_id is not None:
            lines.append(f"Content-ID: {content_id}")
        lines.append("")
        lines.append(f"{part.method} {part.url} HTTP/1.1")
        lines.extend(f"{k}: {v}" for k, v in part.headers.items())
        lines.append("")
        lines.append(part.body or "")
        return lines

    def body(self) -> str:
        """
        Render the multipart/mixed payload.

        Parts keep their recorded order. Each run of consecutive writes
        becomes one changeset; a read closes the current run.
        """
        lines: List[str] = []
        changeset: Optional[str] = None
        content_id = 0

        def close_changeset() -> None:
            lines.append(f"--{changeset}--")
            lines.append("")

        for part in self.parts:
            if part.is_read:
                if changeset is not None:
                    close_changeset()
                    changeset = None
                lines.append(f"--{self.boundary}")
                lines.extend(self._render_request(part))
                continue
            if changeset is None:
                changeset = f"changeset_{uuid.uuid4()}"
                lines.append(f"--{self.boundary}")
                lines.append(f"Content-Type: multipart/mixed; boundary={changeset}")
                lines.append("")
            # Content-ID is unique across the whole batch
            content_id += 1
            lines.append(f"--{changeset}")
            lines.extend(self._render_request(part, content_id))
        if changeset is not None:
            close_changeset()
        lines.append(f"--{self.boundary}--")
        return CRLF.join(lines) + CRLF

    def send(self, *, headers: Optional[Dict[str, str]] = None, **options: Any) -> Any:
        """
        Post all recorded requests as one $batch call.

        Returns
        -------
        Any
            Whatever the underlying transport returns (``TransportResponse``
            for ``ODataSession``)

        Raises
        ------
        ODataBuilderError
            If the batch is empty or no transport is configured
        """
        if not self.parts:
            raise ODataBuilderError("batch has no requests")
        if self.transport is None:
            raise ODataBuilderError("No transport configured for batch")
        merged = self.config.protocol_headers()
        merged["Content-Type"] = f"multipart/mixed; boundary={self.boundary}"
        if headers:
            merged.update(headers)
        url = f"{self.config.service.rstrip('/')}/$batch"
        logger.info(f"batch: sending parts={len(self.parts)} to {url}")
        return self.transport.post(url, headers=merged, data=self.body(), **options)
