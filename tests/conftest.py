"""Shared pytest fixtures for codec and log tests."""

from pathlib import Path

import pytest

from http_codec import (
    ChunkedBody,
    FixedContent,
    HeaderList,
    Request,
    Response,
    Transaction,
)

GET_REQUEST = (
    b"GET /index.html?q=1 HTTP/1.1\r\n"
    b"Host: example.com\r\n"
    b"Accept: */*\r\n"
    b"\r\n"
)

OK_RESPONSE = (
    b"HTTP/1.1 200 OK\r\n"
    b"Content-Type: text/plain\r\n"
    b"Content-Length: 5\r\n"
    b"\r\n"
    b"hello"
)

POST_REQUEST = (
    b"POST /api/items HTTP/1.1\r\n"
    b"Host: api.example.com\r\n"
    b"Content-Type: application/json\r\n"
    b"Content-Length: 11\r\n"
    b"\r\n"
    b'{"id": 42}\n'
)

CHUNKED_RESPONSE = (
    b"HTTP/1.1 201 Created\r\n"
    b"Transfer-Encoding: chunked\r\n"
    b"\r\n"
    b"3\r\nabc\r\n"
    b"0\r\n\r\n"
)


@pytest.fixture()
def transaction_bytes() -> bytes:
    """A canonical GET transaction with a fixed-length response body."""

    return GET_REQUEST + OK_RESPONSE


@pytest.fixture()
def post_bytes() -> bytes:
    """A canonical POST transaction with a chunked response."""

    return POST_REQUEST + CHUNKED_RESPONSE


@pytest.fixture()
def sample_transaction() -> Transaction:
    """A transaction built directly from values, covering both body kinds."""

    payload = b'{"note": "line\r\nbreak"}'
    request = Request(
        method="POST",
        target="/upload?id=7",
        version="HTTP/1.1",
        host="api.example.com",
        headers=HeaderList.of(
            ("Content-Type", "application/json"),
            ("Content-Length", str(len(payload))),
        ),
        body=FixedContent(payload),
    )
    response = Response(
        version="HTTP/1.1",
        status="200",
        reason="OK",
        headers=HeaderList.of(
            ("Transfer-Encoding", "chunked"),
            ("Set-Cookie", "a=1"),
            ("Set-Cookie", "b=2"),
        ),
        body=ChunkedBody(
            (b"hello", b"\x00\x01\r\n"),
            HeaderList.of(("X-Trailer", "done")),
        ),
    )
    return Transaction(request, response)


@pytest.fixture()
def log_file(tmp_path: Path, transaction_bytes: bytes, post_bytes: bytes) -> Path:
    """A log holding two transactions separated by a blank line."""

    path = tmp_path / "connection.log"
    path.write_bytes(transaction_bytes + b"\r\n" + post_bytes)
    return path
