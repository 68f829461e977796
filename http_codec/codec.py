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
Bidirectional codecs for HTTP/1.x transactions as written by an SSL/TLS
interception logger.

Grammar (decode accepts any whitespace run for SP and CR, LF or CRLF for
CRLF; encode always writes the canonical form):

    request      := method SP target SP version CRLF
                    "Host:" SP? host CRLF
                    header-list body
    response     := version SP status SP reason CRLF
                    header-list body
    header-list  := (name ":" SP? value CRLF)*
    body         := CRLF (fixed-bytes | chunked-bytes)
    chunked-bytes:= (hex-size CRLF chunk CRLF)* ["0" CRLF header-list CRLF]
    transaction  := request response

Header lists and chunk sequences have no explicit terminator in this
grammar: repetition stops at the first line that does not match.
"""

import logging
from typing import Any, List, Tuple

from .errors import (
    MalformedChunkLength,
    MalformedHeaderLine,
    MalformedStartLine,
    MissingHostHeader,
    TruncatedBody,
    UndeterminedBodyFraming,
)
from .grammar import (
    CHUNK_EXTENSION,
    CHUNK_SIZE,
    CRLF,
    HEADER_NAME,
    HEADER_SEPARATOR,
    HEADER_VALUE,
    HOST,
    HOST_LABEL,
    LINE_BREAK,
    METHOD,
    OPTIONAL_WHITESPACE,
    REASON,
    SP,
    STATUS,
    TARGET,
    VERSION,
    WHITESPACE,
    Cursor,
    decode_text,
    encode_text,
)
from .models import (
    Body,
    Chunked,
    ChunkedBody,
    FixedContent,
    Header,
    HeaderList,
    LengthKnown,
    Malformed,
    Request,
    Response,
    Transaction,
    Unknown,
)

logger = logging.getLogger(__name__)

UNDETERMINED_FRAMING = "Could not determine content info for HTTP body"


class Codec:
    """
    Base class for a decoder/encoder pair.

    decode() advances the cursor and returns a value, or raises a DecodeError
    and returns nothing. encode() never fails for a value that could be
    constructed.
    """

    def decode(self, cursor: Cursor) -> Any:
        raise NotImplementedError

    def encode(self, value: Any) -> bytes:
        raise NotImplementedError

    def decode_bytes(self, data: bytes) -> Tuple[Any, int]:
        """Decode from the start of data, returning (value, bytes consumed)."""
        cursor = Cursor(data)
        value = self.decode(cursor)
        return value, cursor.offset


def _expect_line_break(cursor: Cursor, error, expected: str) -> None:
    # Running out of input is a truncation, anything else is a framing error.
    if cursor.match(LINE_BREAK) is None:
        if cursor.at_end:
            raise TruncatedBody(f"Input ended, expected {expected}", cursor.offset)
        raise error(f"Expected {expected}, found {cursor.peek_line()!r}", cursor.offset)


class HeaderCodec(Codec):
    """One "name: value" line, without its line terminator."""

    def decode(self, cursor: Cursor) -> Header:
        start = cursor.offset
        name = cursor.match(HEADER_NAME)
        if name is None or cursor.match(HEADER_SEPARATOR) is None:
            cursor.offset = start
            raise MalformedHeaderLine(
                f"Expected 'name: value' header line, found {cursor.peek_line()!r}", start
            )
        value = cursor.match(HEADER_VALUE)
        return Header(decode_text(name.group(0)), decode_text(value.group(0)))

    def encode(self, header: Header) -> bytes:
        return encode_text(header.name) + b": " + encode_text(header.value)


class HeaderListCodec(Codec):
    """Zero or more header lines, each followed by one line terminator."""

    def __init__(self):
        self.header = HeaderCodec()

    def decode(self, cursor: Cursor) -> HeaderList:
        headers: List[Header] = []
        while True:
            attempt = cursor.fork()
            try:
                header = self.header.decode(attempt)
            except MalformedHeaderLine:
                break
            if attempt.match(LINE_BREAK) is None:
                break
            cursor.commit(attempt)
            headers.append(header)
        return HeaderList(tuple(headers))

    def encode(self, headers: HeaderList) -> bytes:
        return b"".join(self.header.encode(header) + CRLF for header in headers)


def encode_body(body: Body) -> bytes:
    """Render body bytes with framing derived from the body value alone."""
    if isinstance(body, FixedContent):
        return body.data
    if isinstance(body, ChunkedBody):
        return _encode_chunks(body)
    raise TypeError(f"Unsupported body type: {type(body).__name__}")


def _encode_chunks(body: ChunkedBody) -> bytes:
    parts = []
    for chunk in body.chunks:
        parts.extend((f"{len(chunk):X}".encode("ascii"), CRLF, chunk, CRLF))
    parts.extend((b"0", CRLF, HeaderListCodec().encode(body.trailers), CRLF))
    return b"".join(parts)


class FixedContentCodec(Codec):
    """Exactly length raw bytes."""

    def __init__(self, length: int):
        self.length = length

    def decode(self, cursor: Cursor) -> FixedContent:
        return FixedContent(cursor.take(self.length))

    def encode(self, body: Body) -> bytes:
        return encode_body(body)


class ChunkedCodec(Codec):
    """
    Chunked transfer coding.

    A line that does not start with a hex size ends the chunk sequence
    without error, so streams missing their terminal chunk still decode.
    Once a hex size matches, it must be followed by a line break. The
    zero-length chunk is consumed along with any trailer lines and the final
    blank line.
    Sizes are plain hexadecimal; a "0x" prefix is not chunk syntax.
    """

    def __init__(self):
        self.trailers = HeaderListCodec()

    def _size_line(self, cursor: Cursor):
        size = cursor.match(CHUNK_SIZE)
        if size is None:
            return None
        cursor.match(CHUNK_EXTENSION)
        _expect_line_break(cursor, MalformedChunkLength, "line break after chunk size")
        return int(size.group(0), 16)

    def decode(self, cursor: Cursor) -> ChunkedBody:
        chunks: List[bytes] = []
        while True:
            size = self._size_line(cursor)
            if size is None:
                logger.debug("Chunk sequence ended without terminal chunk at byte %d", cursor.offset)
                return ChunkedBody(tuple(chunks))
            if size == 0:
                trailers = self.trailers.decode(cursor)
                _expect_line_break(cursor, MalformedChunkLength, "blank line after last chunk")
                return ChunkedBody(tuple(chunks), trailers)
            chunks.append(cursor.take(size))
            _expect_line_break(
                cursor, MalformedChunkLength, f"line break after {size} byte chunk"
            )

    def encode(self, body: Body) -> bytes:
        return encode_body(body)


class UndeterminedBodyCodec(Codec):
    """Fails every decode; selected when the body length cannot be known."""

    def __init__(self, message: str):
        self.message = message

    def decode(self, cursor: Cursor) -> Body:
        raise UndeterminedBodyFraming(self.message, cursor.offset)

    def encode(self, body: Body) -> bytes:
        return encode_body(body)


def select_body_codec(headers: HeaderList, strict: bool = False) -> Codec:
    """
    Pick the body codec for an already-decoded header list.

    Args:
        headers: Headers of the message the body belongs to
        strict: Fail instead of assuming an empty body when no framing
            header is present

    Returns:
        Codec producing a Body
    """
    info = headers.content_info
    if isinstance(info, LengthKnown):
        return FixedContentCodec(info.length)
    if isinstance(info, Chunked):
        return ChunkedCodec()
    if isinstance(info, Unknown):
        if strict:
            return UndeterminedBodyCodec(UNDETERMINED_FRAMING)
        return FixedContentCodec(0)
    if isinstance(info, Malformed):
        return UndeterminedBodyCodec(info.message)
    raise TypeError(f"Unsupported content info: {info!r}")


class BodyCodec(Codec):
    """The blank line after the headers, then the body framed per headers."""

    def __init__(self, headers: HeaderList, strict: bool = False):
        self.headers = headers
        self.strict = strict

    def decode(self, cursor: Cursor) -> Body:
        _expect_line_break(cursor, MalformedHeaderLine, "header line or blank line")
        codec = select_body_codec(self.headers, self.strict)
        logger.debug("Decoding body with %s at byte %d", type(codec).__name__, cursor.offset)
        return codec.decode(cursor)

    def encode(self, body: Body) -> bytes:
        return CRLF + encode_body(body)


class RequestCodec(Codec):
    """Request line, mandatory Host line, headers and body."""

    def __init__(self, strict: bool = False):
        self.strict = strict
        self.headers = HeaderListCodec()

    def decode(self, cursor: Cursor) -> Request:
        method = cursor.expect_text(METHOD, MalformedStartLine, "request method")
        cursor.expect(WHITESPACE, MalformedStartLine, "whitespace after method")
        target = cursor.expect_text(TARGET, MalformedStartLine, "request target")
        cursor.expect(WHITESPACE, MalformedStartLine, "whitespace after request target")
        version = cursor.expect_text(VERSION, MalformedStartLine, "HTTP version")
        cursor.match(OPTIONAL_WHITESPACE)
        cursor.expect(LINE_BREAK, MalformedStartLine, "end of request line")

        cursor.expect(HOST_LABEL, MissingHostHeader, "Host header")
        host = cursor.expect_text(HOST, MissingHostHeader, "host name")
        cursor.match(OPTIONAL_WHITESPACE)
        cursor.expect(LINE_BREAK, MissingHostHeader, "end of Host line")

        headers = self.headers.decode(cursor)
        body = BodyCodec(headers, self.strict).decode(cursor)
        return Request(method, target, version, host, headers, body)

    def encode(self, request: Request) -> bytes:
        return b"".join((
            encode_text(request.method), SP,
            encode_text(request.target), SP,
            encode_text(request.version), CRLF,
            b"Host: ", encode_text(request.host), CRLF,
            self.headers.encode(request.headers),
            BodyCodec(request.headers).encode(request.body),
        ))


class ResponseCodec(Codec):
    """Status line, headers and body."""

    def __init__(self, strict: bool = False):
        self.strict = strict
        self.headers = HeaderListCodec()

    def decode(self, cursor: Cursor) -> Response:
        version = cursor.expect_text(VERSION, MalformedStartLine, "HTTP version")
        cursor.expect(WHITESPACE, MalformedStartLine, "whitespace after HTTP version")
        status = cursor.expect_text(STATUS, MalformedStartLine, "status code")
        reason = ""
        if cursor.match(WHITESPACE) is not None:
            reason = decode_text(cursor.match(REASON).group(0))
        cursor.expect(LINE_BREAK, MalformedStartLine, "end of status line")

        headers = self.headers.decode(cursor)
        body = BodyCodec(headers, self.strict).decode(cursor)
        return Response(version, status, reason, headers, body)

    def encode(self, response: Response) -> bytes:
        return b"".join((
            encode_text(response.version), SP,
            encode_text(response.status), SP,
            encode_text(response.reason), CRLF,
            self.headers.encode(response.headers),
            BodyCodec(response.headers).encode(response.body),
        ))


class TransactionCodec(Codec):
    """A request immediately followed by its response."""

    def __init__(self, strict: bool = False):
        self.request = RequestCodec(strict)
        self.response = ResponseCodec(strict)

    def decode(self, cursor: Cursor) -> Transaction:
        start = cursor.offset
        request = self.request.decode(cursor)
        response = self.response.decode(cursor)
        transaction = Transaction(request, response)
        logger.debug("Decoded %r from bytes %d-%d", transaction, start, cursor.offset)
        return transaction

    def encode(self, transaction: Transaction) -> bytes:
        return self.request.encode(transaction.request) + self.response.encode(transaction.response)


def decode_transaction(data: bytes, strict: bool = False) -> Tuple[Transaction, int]:
    """
    Decode one transaction from the start of data.

    Args:
        data: Log bytes positioned at a request line
        strict: Fail on messages without Content-Length or chunked framing
            instead of assuming an empty body

    Returns:
        (transaction, number of bytes consumed)

    Raises:
        DecodeError: On the first part of the input that does not match
    """
    return TransactionCodec(strict).decode_bytes(data)


def encode_transaction(transaction: Transaction) -> bytes:
    """Encode a transaction in canonical form (single spaces, CRLF)."""
    return TransactionCodec().encode(transaction)


def decode_request(data: bytes, strict: bool = False) -> Tuple[Request, int]:
    return RequestCodec(strict).decode_bytes(data)


def encode_request(request: Request) -> bytes:
    return RequestCodec().encode(request)


def decode_response(data: bytes, strict: bool = False) -> Tuple[Response, int]:
    return ResponseCodec(strict).decode_bytes(data)


def encode_response(response: Response) -> bytes:
    return ResponseCodec().encode(response)
