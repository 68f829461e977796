"""
HTTP/1.x Transaction Codec

Decode and re-encode HTTP/1.x request/response pairs captured by an
SSL/TLS interception logger.

Example usage:
    from http_codec import decode_transaction, encode_transaction

    transaction, consumed = decode_transaction(log_bytes)
    print(f"{transaction.request.method} {transaction.request.url}")
    print(f"Response: {transaction.response.status}")

    canonical = encode_transaction(transaction)
"""

from .codec import (
    BodyCodec,
    ChunkedCodec,
    Codec,
    FixedContentCodec,
    HeaderCodec,
    HeaderListCodec,
    RequestCodec,
    ResponseCodec,
    TransactionCodec,
    decode_request,
    decode_response,
    decode_transaction,
    encode_body,
    encode_request,
    encode_response,
    encode_transaction,
    select_body_codec,
)
from .errors import (
    DecodeError,
    MalformedChunkLength,
    MalformedHeaderLine,
    MalformedStartLine,
    MissingHostHeader,
    TruncatedBody,
    UndeterminedBodyFraming,
)
from .grammar import Cursor
from .models import (
    Body,
    Chunked,
    ChunkedBody,
    ContentInfo,
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

__all__ = [
    # Codecs
    'Codec',
    'BodyCodec',
    'ChunkedCodec',
    'FixedContentCodec',
    'HeaderCodec',
    'HeaderListCodec',
    'RequestCodec',
    'ResponseCodec',
    'TransactionCodec',
    'Cursor',
    'select_body_codec',
    'encode_body',
    'decode_transaction',
    'encode_transaction',
    'decode_request',
    'encode_request',
    'decode_response',
    'encode_response',
    # Models
    'Body',
    'Chunked',
    'ChunkedBody',
    'ContentInfo',
    'FixedContent',
    'Header',
    'HeaderList',
    'LengthKnown',
    'Malformed',
    'Request',
    'Response',
    'Transaction',
    'Unknown',
    # Errors
    'DecodeError',
    'MalformedChunkLength',
    'MalformedHeaderLine',
    'MalformedStartLine',
    'MissingHostHeader',
    'TruncatedBody',
    'UndeterminedBodyFraming',
]

__version__ = '0.1.0'
