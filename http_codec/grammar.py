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
Primitive matchers for the logged HTTP/1.x grammar.

Decoding walks a Cursor over an immutable byte buffer. Every pattern here is
anchored at the cursor position. Decoding is tolerant (any horizontal
whitespace run, CR, LF or CRLF) while encoding always produces the canonical
single space and CRLF.
"""

import re
from typing import Optional, Type

from .errors import DecodeError, TruncatedBody

# Header text is ASCII on the wire; latin-1 keeps stray high bytes intact.
CHARSET = "latin-1"

SP = b" "
CRLF = b"\r\n"

METHODS = ("POST", "PUT", "GET", "HEAD", "DELETE", "OPTIONS", "TRACE", "CONNECT")

WHITESPACE = re.compile(rb"[^\S\r\n]+")
OPTIONAL_WHITESPACE = re.compile(rb"[^\S\r\n]*")
LINE_BREAK = re.compile(rb"\r\n|\r|\n")
LINE_BREAKS = re.compile(rb"(?:\r\n|\r|\n)+")

METHOD = re.compile(
    rb"(?:" + b"|".join(m.encode("ascii") for m in METHODS) + rb")(?=[^\S\r\n])"
)
TARGET = re.compile(rb"\S+")
VERSION = re.compile(rb"HTTP/[0-9.]+")
STATUS = re.compile(rb"[0-9]+")
REASON = re.compile(rb"[^\r\n]*")
HOST_LABEL = re.compile(rb"Host:[^\S\r\n]*", re.IGNORECASE)
HOST = re.compile(rb"\S+")

HEADER_NAME = re.compile(rb"[^:\r\n]+")
HEADER_SEPARATOR = re.compile(rb":[^\S\r\n]*")
HEADER_VALUE = re.compile(rb"[^\r\n]*")

CHUNK_SIZE = re.compile(rb"[0-9A-Fa-f]+")
CHUNK_EXTENSION = re.compile(rb";[^\r\n]*")

# Request lines the log iterator can resynchronize on.
REQUEST_START = re.compile(
    rb"(?:\r\n|\r|\n)(?=(?:" + b"|".join(m.encode("ascii") for m in METHODS) + rb")[^\S\r\n])"
)


def decode_text(raw: bytes) -> str:
    return raw.decode(CHARSET)


def encode_text(text: str) -> bytes:
    return text.encode(CHARSET)


class Cursor:
    """
    Read position into an immutable byte buffer.

    Forks share the buffer; a fork is committed back by copying its offset,
    which is how speculative repetition (header lists, chunks) backs out of a
    partial match.
    """

    __slots__ = ("data", "offset")

    def __init__(self, data: bytes, offset: int = 0):
        self.data = bytes(data)
        self.offset = offset

    @property
    def remaining(self) -> int:
        return len(self.data) - self.offset

    @property
    def at_end(self) -> bool:
        return self.offset >= len(self.data)

    def match(self, pattern: "re.Pattern[bytes]") -> Optional["re.Match[bytes]"]:
        """Match pattern at the cursor, advancing past it on success."""
        found = pattern.match(self.data, self.offset)
        if found is not None:
            self.offset = found.end()
        return found

    def expect(
        self,
        pattern: "re.Pattern[bytes]",
        error: Type[DecodeError],
        expected: str,
    ) -> "re.Match[bytes]":
        """Match pattern at the cursor or raise error describing what was expected."""
        found = self.match(pattern)
        if found is None:
            raise error(f"Expected {expected}, found {self.peek_line()!r}", self.offset)
        return found

    def expect_text(
        self,
        pattern: "re.Pattern[bytes]",
        error: Type[DecodeError],
        expected: str,
    ) -> str:
        return decode_text(self.expect(pattern, error, expected).group(0))

    def take(self, length: int) -> bytes:
        """Consume exactly length raw bytes."""
        if length > self.remaining:
            raise TruncatedBody(
                f"Expected {length} bytes of body, only {self.remaining} available",
                self.offset,
            )
        start = self.offset
        self.offset += length
        return self.data[start:self.offset]

    def peek_line(self, limit: int = 40) -> bytes:
        """Return the bytes up to the next line break, for error messages."""
        end = self.offset
        stop = min(len(self.data), self.offset + limit)
        while end < stop and self.data[end] not in (0x0D, 0x0A):
            end += 1
        return self.data[self.offset:end]

    def fork(self) -> "Cursor":
        return Cursor(self.data, self.offset)

    def commit(self, fork: "Cursor") -> None:
        self.offset = fork.offset

    def __repr__(self) -> str:
        return f"Cursor(offset={self.offset}, remaining={self.remaining})"
