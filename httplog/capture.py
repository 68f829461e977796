# Copyright 2025 Jesse Bate (https://github.com/jbatesy)
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

"""
High-level interface for reading every transaction out of an HTTP content log.
"""

import logging
import re
from dataclasses import dataclass
from typing import Iterator, List, Optional, Tuple

from http_codec import DecodeError, Transaction, TransactionCodec
from http_codec.grammar import LINE_BREAKS, REQUEST_START, Cursor

logger = logging.getLogger(__name__)


@dataclass
class LogError:
    """A transaction that could not be decoded and was skipped."""
    offset: int
    message: str
    error_type: str = "DecodeError"

    def __str__(self) -> str:
        return f"byte {self.offset}: {self.error_type}: {self.message}"


class TransactionLog:
    """
    High-level interface for the transactions stored back to back in a log.

    Example:
        log = TransactionLog.from_file('/path/to/connection.log')

        # Iterate over all transactions
        for tx in log:
            print(f"{tx.method} {tx.url} -> {tx.status_code}")

        # Filter transactions
        for tx in log.filter(method='POST'):
            print(tx.request.body.content)
    """

    def __init__(
        self,
        data: bytes,
        strict: bool = False,
        skip_errors: bool = True,
        source: str = "<bytes>",
    ):
        """
        Initialize the transaction log.

        Args:
            data: Raw log bytes, starting at the first request line
            strict: Fail on messages without body framing headers instead
                of assuming an empty body
            skip_errors: Record undecodable transactions and resume at the
                next request line instead of raising
            source: Name used in summaries and log messages
        """
        self.data = bytes(data)
        self.strict = strict
        self.skip_errors = skip_errors
        self.source = source

        self.errors: List[LogError] = []
        self._transactions: Optional[List[Tuple[int, Transaction]]] = None

    @classmethod
    def from_file(cls, path: str, **kwargs) -> 'TransactionLog':
        """Create a log reader from a file on disk."""
        with open(path, 'rb') as f:
            data = f.read()
        kwargs.setdefault('source', path)
        return cls(data, **kwargs)

    def _resync(self, cursor: Cursor) -> bool:
        """Move the cursor to the next line starting with a request method."""
        found = REQUEST_START.search(cursor.data, cursor.offset + 1)
        if found is None:
            cursor.offset = len(cursor.data)
            return False
        cursor.offset = found.end()
        return True

    def _decode_all(self) -> List[Tuple[int, Transaction]]:
        codec = TransactionCodec(self.strict)
        cursor = Cursor(self.data)
        decoded = []
        self.errors = []

        while True:
            cursor.match(LINE_BREAKS)
            if cursor.at_end:
                break

            start = cursor.offset
            try:
                transaction = codec.decode(cursor)
            except DecodeError as e:
                if not self.skip_errors:
                    raise
                error = LogError(start, str(e), type(e).__name__)
                self.errors.append(error)
                logger.warning("Skipping undecodable transaction in %s at %s", self.source, error)
                cursor.offset = start
                if not self._resync(cursor):
                    break
                continue

            decoded.append((start, transaction))

        logger.debug(
            "Decoded %d transactions from %s (%d skipped)",
            len(decoded), self.source, len(self.errors),
        )
        return decoded

    def entries(self, force: bool = False) -> List[Tuple[int, Transaction]]:
        """
        Decode the log, caching the result.

        Args:
            force: Force re-decoding even if already cached

        Returns:
            List of (byte offset, transaction) pairs in log order
        """
        if self._transactions is None or force:
            self._transactions = self._decode_all()
        return self._transactions

    def __iter__(self) -> Iterator[Transaction]:
        """Iterate over all transactions in the log."""
        for _, transaction in self.entries():
            yield transaction

    def __len__(self) -> int:
        """Get the number of decoded transactions."""
        return len(self.entries())

    def filter(
        self,
        method: Optional[str] = None,
        status: Optional[int] = None,
        status_range: Optional[tuple] = None,
        host: Optional[str] = None,
        path_contains: Optional[str] = None,
        content_type: Optional[str] = None
    ) -> Iterator[Transaction]:
        """
        Filter transactions by various criteria.

        Args:
            method: Filter by HTTP method (GET, POST, etc.)
            status: Filter by exact status code
            status_range: Filter by status range, e.g., (200, 299)
            host: Filter by host (substring match)
            path_contains: Filter by path containing string
            content_type: Filter by response content type (substring match)

        Yields:
            Transaction objects matching the criteria
        """
        for tx in self:
            if method and tx.request.method != method.upper():
                continue

            if status and tx.response.status_code != status:
                continue

            if status_range:
                if not (status_range[0] <= tx.response.status_code <= status_range[1]):
                    continue

            if host and host.lower() not in tx.request.host.lower():
                continue

            if path_contains and path_contains not in tx.request.path:
                continue

            if content_type:
                if content_type.lower() not in tx.response.content_type.lower():
                    continue

            yield tx

    def get_by_url(self, url_pattern: str) -> List[Transaction]:
        """
        Find transactions matching a URL pattern.

        Args:
            url_pattern: Regex pattern to match against URLs

        Returns:
            List of matching transactions
        """
        pattern = re.compile(url_pattern)
        return [tx for tx in self if pattern.search(tx.url)]

    def summary(self) -> str:
        """Get a summary of all transactions in the log."""
        entries = self.entries()
        lines = []
        lines.append(f"HTTP Log: {self.source}")
        lines.append(f"Transactions: {len(entries)}")
        if self.errors:
            lines.append(f"Skipped: {len(self.errors)}")
        lines.append("")

        for offset, tx in entries:
            url = tx.url

            # Truncate long URLs
            if len(url) > 80:
                url = url[:77] + "..."

            lines.append(f"  @{offset}: {tx.method} {url} [{tx.response.status}]")

        for error in self.errors:
            lines.append(f"  skipped {error}")

        return '\n'.join(lines)
