from __future__ import annotations

import io
from pathlib import Path

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

from photovault.storage.delivery import ObjectDelivery
from photovault.storage.errors import ObjectDeliveryError


def serve(path: Path, *, chunk_size: int = 4, ttl: int = 60) -> TestClient:
    delivery = ObjectDelivery(chunk_size=chunk_size)
    app = FastAPI()

    @app.get("/file")
    def get_file():
        return delivery.deliver(path, ttl)

    return TestClient(app)


def test_headers_and_body(tmp_path: Path) -> None:
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"0123456789")

    response = serve(path, ttl=120).get("/file")

    assert response.status_code == 200
    assert response.content == b"0123456789"
    assert response.headers["content-length"] == "10"
    assert response.headers["content-type"] == "application/octet-stream"
    assert response.headers["cache-control"] == "private, max-age=120"


def test_empty_file(tmp_path: Path) -> None:
    path = tmp_path / "empty.bin"
    path.write_bytes(b"")

    response = serve(path).get("/file")

    assert response.status_code == 200
    assert response.headers["content-length"] == "0"
    assert response.content == b""


def test_iter_chunks_splits_payload() -> None:
    handle = io.BytesIO(b"abcdefghij")

    chunks = list(ObjectDelivery(chunk_size=4).iter_chunks(handle, name="x"))

    assert chunks == [b"abcd", b"efgh", b"ij"]
    assert handle.closed


def test_missing_file_fails_before_headers(tmp_path: Path) -> None:
    with pytest.raises(ObjectDeliveryError):
        ObjectDelivery().deliver(tmp_path / "gone.bin", 60)


class FlakyHandle(io.BytesIO):
    def __init__(self) -> None:
        super().__init__(b"abcdefgh")
        self.reads = 0

    def read(self, size: int = -1) -> bytes:
        self.reads += 1
        if self.reads > 1:
            raise OSError("disk went away")
        return super().read(size)


def test_mid_stream_failure_propagates_and_closes() -> None:
    handle = FlakyHandle()
    stream = ObjectDelivery(chunk_size=4).iter_chunks(handle, name="flaky")

    assert next(stream) == b"abcd"
    with pytest.raises(OSError):
        next(stream)
    assert handle.closed


def test_abandoned_stream_closes_handle() -> None:
    handle = io.BytesIO(b"abcdefgh")
    stream = ObjectDelivery(chunk_size=4).iter_chunks(handle, name="x")

    next(stream)
    stream.close()

    assert handle.closed


def test_iter_chunks_stops_at_limit() -> None:
    handle = io.BytesIO(b"abcdefghij")

    chunks = list(ObjectDelivery(chunk_size=4).iter_chunks(handle, name="x", limit=6))

    assert chunks == [b"abcd", b"ef"]
    assert handle.closed


def test_body_matches_length_when_file_grows(tmp_path: Path) -> None:
    path = tmp_path / "growing.bin"
    path.write_bytes(b"0123456789")

    delivery = ObjectDelivery(chunk_size=4)
    app = FastAPI()

    @app.get("/file")
    def get_file():
        response = delivery.deliver(path, 60)
        with path.open("ab") as extra:
            extra.write(b"appended")
        return response

    response = TestClient(app).get("/file")

    assert response.headers["content-length"] == "10"
    assert response.content == b"0123456789"
