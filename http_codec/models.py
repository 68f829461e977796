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
Data models for logged HTTP/1.x requests, responses, and transactions.

Every model is an immutable value. Structural invariants (no line breaks in
header text, no whitespace in start-line tokens, no empty chunks) are checked
when a value is built, so the encoder never has to reject anything.
"""

import re
from dataclasses import dataclass, field
from typing import Dict, Iterable, Iterator, List, Optional, Tuple, Union
from urllib.parse import parse_qs

_LINE_BREAK = re.compile(r"[\r\n]")
_WHITESPACE = re.compile(r"\s", re.ASCII)
_DECIMAL = re.compile(r"[0-9]+")
_LEADING_WHITESPACE = re.compile(r"^[^\S\r\n]", re.ASCII)


def _check_latin1(label: str, text: str) -> None:
    try:
        text.encode("latin-1")
    except UnicodeEncodeError:
        raise ValueError(f"{label} must be representable as latin-1: {text!r}")


def _check_token(label: str, text: str) -> None:
    if not text or _WHITESPACE.search(text):
        raise ValueError(f"{label} must be a non-empty token without whitespace: {text!r}")
    _check_latin1(label, text)


@dataclass(frozen=True)
class Header:
    """A single "name: value" header line."""

    name: str
    value: str = ""

    def __post_init__(self):
        if not self.name or ":" in self.name or _LINE_BREAK.search(self.name):
            raise ValueError(f"Invalid header name: {self.name!r}")
        if _LINE_BREAK.search(self.value):
            raise ValueError(f"Header value must not contain a line break: {self.value!r}")
        if _LEADING_WHITESPACE.match(self.value):
            raise ValueError(f"Header value must not start with whitespace: {self.value!r}")
        _check_latin1("Header name", self.name)
        _check_latin1("Header value", self.value)

    def __repr__(self) -> str:
        return f"Header({self.name}: {self.value})"


@dataclass(frozen=True)
class LengthKnown:
    """Body length given by Content-Length."""

    length: int

    def __post_init__(self):
        if self.length < 0:
            raise ValueError(f"Content length must be non-negative: {self.length}")


@dataclass(frozen=True)
class Chunked:
    """Body framed with the chunked transfer coding."""


@dataclass(frozen=True)
class Unknown:
    """No framing header present."""


@dataclass(frozen=True)
class Malformed:
    """A length header is present but unusable."""

    message: str


ContentInfo = Union[LengthKnown, Chunked, Unknown, Malformed]


@dataclass(frozen=True)
class HeaderList:
    """
    Ordered header lines as they appeared on the wire.

    Duplicates are kept and order is preserved. Lookups by name are
    case-insensitive.
    """

    headers: Tuple[Header, ...] = ()

    def __post_init__(self):
        headers = tuple(self.headers)
        for header in headers:
            if not isinstance(header, Header):
                raise TypeError(f"HeaderList entries must be Header, not {type(header).__name__}")
        object.__setattr__(self, "headers", headers)

    @classmethod
    def of(cls, *pairs: Tuple[str, str]) -> "HeaderList":
        """Build a header list from (name, value) pairs."""
        return cls(tuple(Header(name, value) for name, value in pairs))

    def __iter__(self) -> Iterator[Header]:
        return iter(self.headers)

    def __len__(self) -> int:
        return len(self.headers)

    def __getitem__(self, index: int) -> Header:
        return self.headers[index]

    def __contains__(self, name: object) -> bool:
        if not isinstance(name, str):
            return False
        return any(h.name.lower() == name.lower() for h in self.headers)

    def get(self, name: str, default: Optional[str] = None) -> Optional[str]:
        """Get the first value for a header name (case-insensitive)."""
        lname = name.lower()
        for header in self.headers:
            if header.name.lower() == lname:
                return header.value
        return default

    def get_all(self, name: str) -> List[str]:
        """Get every value for a header name, in order."""
        lname = name.lower()
        return [h.value for h in self.headers if h.name.lower() == lname]

    @property
    def content_type(self) -> str:
        return self.get("content-type", "") or ""

    @property
    def content_length(self) -> Optional[int]:
        info = self.content_info
        if isinstance(info, LengthKnown):
            return info.length
        return None

    @property
    def content_info(self) -> ContentInfo:
        """
        Classify how the body following these headers is framed.

        A chunked Transfer-Encoding takes precedence over Content-Length.
        Repeated Content-Length values must agree.
        """
        codings = _split_list(self.get_all("transfer-encoding"))
        if codings and codings[-1].lower() == "chunked":
            return Chunked()

        lengths = _split_list(self.get_all("content-length"))
        if not lengths:
            if "content-length" in self:
                return Malformed("Empty Content-Length header")
            return Unknown()

        values = set()
        for raw in lengths:
            if not _DECIMAL.fullmatch(raw):
                return Malformed(f"Invalid Content-Length: {raw!r}")
            values.add(int(raw))
        if len(values) > 1:
            return Malformed(f"Conflicting Content-Length values: {sorted(values)}")
        return LengthKnown(values.pop())


def _split_list(values: Iterable[str]) -> List[str]:
    items = []
    for value in values:
        items.extend(part.strip() for part in value.split(",") if part.strip())
    return items


@dataclass(frozen=True)
class FixedContent:
    """A body whose bytes are delimited by a known length."""

    data: bytes = b""

    def __post_init__(self):
        object.__setattr__(self, "data", bytes(self.data))

    @property
    def content(self) -> bytes:
        return self.data

    def __len__(self) -> int:
        return len(self.data)

    def __repr__(self) -> str:
        return f"FixedContent({len(self.data)} bytes)"


@dataclass(frozen=True)
class ChunkedBody:
    """
    A body sent with the chunked transfer coding.

    Chunk sizes are not stored; they are recomputed from each chunk on
    encode. The zero-length terminal chunk is framing, never content.
    """

    chunks: Tuple[bytes, ...] = ()
    trailers: HeaderList = field(default_factory=HeaderList)

    def __post_init__(self):
        chunks = tuple(bytes(chunk) for chunk in self.chunks)
        if any(len(chunk) == 0 for chunk in chunks):
            raise ValueError("Chunks must be non-empty; the empty chunk terminates the body")
        object.__setattr__(self, "chunks", chunks)
        if not isinstance(self.trailers, HeaderList):
            object.__setattr__(self, "trailers", HeaderList(self.trailers))

    @property
    def content(self) -> bytes:
        return b"".join(self.chunks)

    def __len__(self) -> int:
        return sum(len(chunk) for chunk in self.chunks)

    def __repr__(self) -> str:
        return f"ChunkedBody({len(self.chunks)} chunks, {len(self)} bytes)"


Body = Union[FixedContent, ChunkedBody]


@dataclass(frozen=True)
class Request:
    """Represents a logged HTTP/1.x request."""

    method: str
    target: str
    version: str
    host: str
    headers: HeaderList = field(default_factory=HeaderList)
    body: Body = field(default_factory=FixedContent)

    def __post_init__(self):
        _check_token("Method", self.method)
        _check_token("Request target", self.target)
        _check_token("Version", self.version)
        _check_token("Host", self.host)

    @property
    def path(self) -> str:
        """Get the target without its query string."""
        return self.target.split('?', 1)[0]

    @property
    def query_string(self) -> str:
        if '?' in self.target:
            return self.target.split('?', 1)[1]
        return ""

    @property
    def query_params(self) -> Dict[str, List[str]]:
        return parse_qs(self.query_string, keep_blank_values=True)

    @property
    def url(self) -> str:
        """Get the full URL; the logger only sees TLS traffic, so the scheme is https."""
        if self.target.startswith('/'):
            return f"https://{self.host}{self.target}"
        return self.target

    @property
    def content_type(self) -> str:
        return self.headers.content_type

    def __repr__(self) -> str:
        return f"Request({self.method} {self.url})"


@dataclass(frozen=True)
class Response:
    """Represents a logged HTTP/1.x response."""

    version: str
    status: str
    reason: str = ""
    headers: HeaderList = field(default_factory=HeaderList)
    body: Body = field(default_factory=FixedContent)

    def __post_init__(self):
        _check_token("Version", self.version)
        if not _DECIMAL.fullmatch(self.status):
            raise ValueError(f"Status must be digits: {self.status!r}")
        if _LINE_BREAK.search(self.reason):
            raise ValueError(f"Reason must not contain a line break: {self.reason!r}")
        if _LEADING_WHITESPACE.match(self.reason):
            raise ValueError(f"Reason must not start with whitespace: {self.reason!r}")
        _check_latin1("Reason", self.reason)

    @property
    def status_code(self) -> int:
        return int(self.status)

    @property
    def ok(self) -> bool:
        """Check if status is successful (2xx)."""
        return 200 <= self.status_code < 300

    @property
    def content_type(self) -> str:
        return self.headers.content_type

    def __repr__(self) -> str:
        return f"Response({self.status} {self.reason})"


@dataclass(frozen=True)
class Transaction:
    """One logged request followed by its response."""

    request: Request
    response: Response

    @property
    def method(self) -> str:
        return self.request.method

    @property
    def url(self) -> str:
        return self.request.url

    @property
    def status_code(self) -> int:
        return self.response.status_code

    def __repr__(self) -> str:
        return f"Transaction({self.method} {self.url} -> {self.response.status})"
