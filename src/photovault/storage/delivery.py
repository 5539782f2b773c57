"""Stream stored bytes back to authorized callers."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterator

import structlog
from fastapi.responses import StreamingResponse

from ..config import DEFAULT_CHUNK_SIZE
from .errors import ObjectDeliveryError

OCTET_STREAM = "application/octet-stream"

logger = structlog.get_logger(__name__)


@dataclass(slots=True)
class ObjectDelivery:
    """Frame a stored file as a chunked HTTP response.

    The content type is always generic: whatever MIME type the media record
    carries was decided at registration and is not re-derived here. Failures
    before the response starts surface as :class:`ObjectDeliveryError`;
    failures after the headers went out abort the connection.
    """

    chunk_size: int = DEFAULT_CHUNK_SIZE

    def deliver(self, location: Path, cache_ttl_seconds: int) -> StreamingResponse:
        try:
            size = location.stat().st_size
            handle = location.open("rb")
        except OSError as exc:
            logger.error(
                "objects.delivery.open_failed",
                object=location.name,
                error=str(exc),
                exc_info=True,
            )
            raise ObjectDeliveryError("Error downloading file") from exc

        headers = {
            "Content-Length": str(size),
            "Cache-Control": f"private, max-age={cache_ttl_seconds}",
        }
        return StreamingResponse(
            self.iter_chunks(handle, name=location.name, limit=size),
            media_type=OCTET_STREAM,
            headers=headers,
        )

    def iter_chunks(
        self, handle: BinaryIO, *, name: str, limit: int | None = None
    ) -> Iterator[bytes]:
        """Yield ``handle`` in fixed-size chunks and always close it.

        With ``limit`` set, no more than ``limit`` bytes are yielded so the body
        never outgrows the advertised Content-Length.
        """
        sent = 0
        try:
            while limit is None or sent < limit:
                size = self.chunk_size if limit is None else min(self.chunk_size, limit - sent)
                chunk = handle.read(size)
                if not chunk:
                    break
                sent += len(chunk)
                yield chunk
        except OSError as exc:
            logger.error(
                "objects.delivery.stream_failed",
                object=name,
                bytes_sent=sent,
                error=str(exc),
                exc_info=True,
            )
            raise
        finally:
            handle.close()


__all__ = ["OCTET_STREAM", "ObjectDelivery"]
