"""Unit tests for loading tshark follow-stream YAML dumps."""

import base64

import pytest

from httplog import FollowStream, TransactionLog


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _new_format(request: bytes, response: bytes) -> str:
    return (
        "peers:\n"
        "  - peer: 0\n"
        "    host: 192.168.1.144\n"
        "    port: 60634\n"
        "  - peer: 1\n"
        "    host: 142.250.124.95\n"
        "    port: 443\n"
        "packets:\n"
        "  - packet: 4\n"
        "    peer: 0\n"
        "    index: 0\n"
        "    timestamp: 1700000000.125\n"
        "    data: !!binary |\n"
        f"      {_b64(request)}\n"
        "  - packet: 6\n"
        "    peer: 1\n"
        "    index: 0\n"
        "    timestamp: 1700000000.250\n"
        "    data: !!binary |\n"
        f"      {_b64(response)}\n"
    )


def test_new_format_payload_and_peers(transaction_bytes):
    """Peers and binary packet data are read from the dict format."""

    split = transaction_bytes.index(b"HTTP/1.1 200")
    request, response = transaction_bytes[:split], transaction_bytes[split:]
    stream = FollowStream.from_yaml(_new_format(request, response))

    assert stream.server_peer == 1
    assert stream.client_peer == 0
    assert stream.server_host == "142.250.124.95"
    assert stream.server_port == 443
    assert [p.index for p in stream.packets] == [4, 6]
    assert [p.peer for p in stream.packets] == [0, 1]
    assert stream.packets[0].timestamp == pytest.approx(1700000000.125)

    assert stream.payload == transaction_bytes


def test_old_format_with_comment_peers(post_bytes):
    """The bare packet list format takes peers from comments."""

    content = (
        "# Peer 0: 10.0.0.1:8443\n"
        "# Peer 1: 10.0.0.2:51000\n"
        "- packet: 1\n"
        "  peer: 1\n"
        f"  data: \"{_b64(post_bytes[:20])}\"\n"
        "- packet: 2\n"
        "  peer: 1\n"
        f"  data: \"{_b64(post_bytes[20:])}\"\n"
    )
    stream = FollowStream.from_yaml(content)

    assert stream.server_peer == 0
    assert stream.client_peer == 1
    assert stream.server_port == 8443
    assert stream.payload == post_bytes


def test_empty_document_yields_empty_stream():
    """An empty dump has no packets."""

    stream = FollowStream.from_yaml("")
    assert stream.packets == []
    assert stream.payload == b""


def test_unexpected_document_is_rejected():
    """Scalars are not follow-stream output."""

    with pytest.raises(ValueError):
        FollowStream.from_yaml("just a string")


def test_payload_decodes_as_transaction_log(tmp_path, transaction_bytes):
    """Followed streams feed straight into the transaction log."""

    split = transaction_bytes.index(b"HTTP/1.1 200")
    path = tmp_path / "stream.yaml"
    path.write_text(_new_format(transaction_bytes[:split], transaction_bytes[split:]))

    stream = FollowStream.from_file(str(path))
    log = TransactionLog(stream.payload)

    transactions = list(log)
    assert len(transactions) == 1
    assert transactions[0].url == "https://example.com/index.html?q=1"
