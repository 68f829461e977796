"""Unit tests for reading many transactions out of one log."""

import logging

import pytest

from http_codec import MalformedStartLine, UndeterminedBodyFraming
from httplog import TransactionLog

BROKEN = b"FETCH /bad HTTP/1.1\r\nHost: example.com\r\n\r\n"


def test_log_iterates_transactions_in_order(transaction_bytes, post_bytes):
    """Back-to-back transactions, with blank-line padding, all decode."""

    log = TransactionLog(b"\r\n" + transaction_bytes + b"\r\n\r\n" + post_bytes + b"\n")

    transactions = list(log)
    assert [tx.method for tx in transactions] == ["GET", "POST"]
    assert len(log) == 2
    assert log.errors == []

    offsets = [offset for offset, _ in log.entries()]
    assert offsets == [2, 2 + len(transaction_bytes) + 4]


def test_log_skips_undecodable_transaction(transaction_bytes, post_bytes, caplog):
    """A broken record is recorded and decoding resumes at the next request."""

    data = transaction_bytes + BROKEN + post_bytes
    log = TransactionLog(data, source="test.log")

    with caplog.at_level(logging.WARNING, logger="httplog.capture"):
        transactions = list(log)

    assert [tx.method for tx in transactions] == ["GET", "POST"]
    assert len(log.errors) == 1
    error = log.errors[0]
    assert error.offset == len(transaction_bytes)
    assert error.error_type == "MalformedStartLine"
    assert "Skipping undecodable transaction in test.log" in caplog.text


def test_log_raises_when_not_skipping(transaction_bytes):
    """Without skipping, the first decode error propagates."""

    log = TransactionLog(transaction_bytes + BROKEN, skip_errors=False)
    with pytest.raises(MalformedStartLine):
        list(log)


def test_log_strict_framing_is_passed_to_codec():
    """The strict option reaches the body dispatch."""

    data = b"GET / HTTP/1.1\r\nHost: a\r\n\r\nHTTP/1.1 200 OK\r\n\r\n"

    assert len(TransactionLog(data)) == 1
    with pytest.raises(UndeterminedBodyFraming):
        list(TransactionLog(data, strict=True, skip_errors=False))


def test_log_with_only_garbage_ends_cleanly():
    """Trailing garbage with no further request produces one error."""

    log = TransactionLog(b"not http at all\r\nstill not\r\n")
    assert list(log) == []
    assert len(log.errors) == 1


def test_log_caches_and_force_redecodes(transaction_bytes):
    """Entries are decoded once unless forced."""

    log = TransactionLog(transaction_bytes)
    first = log.entries()
    assert log.entries() is first
    assert log.entries(force=True) is not first


def test_log_from_file(log_file):
    """Logs can be read from disk and report their source."""

    log = TransactionLog.from_file(str(log_file))
    assert log.source == str(log_file)
    assert len(log) == 2


def test_log_filters(transaction_bytes, post_bytes):
    """Filters combine method, status, host, path and content type."""

    log = TransactionLog(transaction_bytes + post_bytes)

    assert [tx.method for tx in log.filter(method="post")] == ["POST"]
    assert [tx.status_code for tx in log.filter(status=200)] == [200]
    assert [tx.status_code for tx in log.filter(status_range=(201, 299))] == [201]
    assert [tx.request.host for tx in log.filter(host="API.")] == ["api.example.com"]
    assert [tx.request.path for tx in log.filter(path_contains="index")] == ["/index.html"]
    assert [tx.method for tx in log.filter(content_type="text/plain")] == ["GET"]
    assert list(log.filter(method="DELETE")) == []


def test_log_get_by_url(transaction_bytes, post_bytes):
    """URL lookup uses a regular expression against full URLs."""

    log = TransactionLog(transaction_bytes + post_bytes)
    matches = log.get_by_url(r"^https://api\.example\.com/api/")
    assert [tx.method for tx in matches] == ["POST"]


def test_log_summary(transaction_bytes):
    """The summary lists each transaction and each skipped record."""

    log = TransactionLog(transaction_bytes + BROKEN, source="conn.log")
    summary = log.summary()

    assert "HTTP Log: conn.log" in summary
    assert "Transactions: 1" in summary
    assert "Skipped: 1" in summary
    assert "@0: GET https://example.com/index.html?q=1 [200]" in summary
    assert "MalformedStartLine" in summary
