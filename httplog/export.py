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
Render decoded transactions as plain YAML/JSON documents.
"""

import base64
import json
from typing import Any, Dict, Iterable, List, Optional, Tuple

import yaml

from http_codec import Body, ChunkedBody, HeaderList, Request, Response, Transaction

TEXT_TYPES = [
    'text/', 'application/json', 'application/xml',
    'application/javascript', 'application/x-javascript',
    'application/xhtml', 'application/x-www-form-urlencoded',
]


def is_text_content(mime_type: str) -> bool:
    """Check if content type is text-based."""
    if not mime_type:
        return False
    mime_lower = mime_type.lower()
    return any(t in mime_lower for t in TEXT_TYPES)


def encode_body_text(data: bytes, mime_type: str) -> Tuple[Optional[str], Optional[str]]:
    """
    Encode body bytes for a text document.

    Returns:
        (text, encoding) - encoding is 'base64' if binary, None if text
    """
    if not data:
        return None, None

    if is_text_content(mime_type):
        try:
            return data.decode('utf-8'), None
        except UnicodeDecodeError:
            pass

    return base64.b64encode(data).decode('ascii'), "base64"


def headers_to_list(headers: HeaderList) -> List[Dict[str, str]]:
    return [{"name": h.name, "value": h.value} for h in headers]


def body_to_dict(body: Body, mime_type: str, include_body: bool = True) -> Dict[str, Any]:
    content = body.content
    result: Dict[str, Any] = {"size": len(content)}

    if isinstance(body, ChunkedBody):
        result["chunked"] = True
        result["chunks"] = [len(chunk) for chunk in body.chunks]
        if len(body.trailers) > 0:
            result["trailers"] = headers_to_list(body.trailers)

    if include_body:
        text, encoding = encode_body_text(content, mime_type)
        if text is not None:
            result["text"] = text
        if encoding is not None:
            result["encoding"] = encoding
    return result


def request_to_dict(request: Request, include_body: bool = True) -> Dict[str, Any]:
    return {
        "method": request.method,
        "target": request.target,
        "httpVersion": request.version,
        "host": request.host,
        "url": request.url,
        "headers": headers_to_list(request.headers),
        "body": body_to_dict(request.body, request.content_type, include_body),
    }


def response_to_dict(response: Response, include_body: bool = True) -> Dict[str, Any]:
    return {
        "httpVersion": response.version,
        "status": response.status_code,
        "statusText": response.reason,
        "headers": headers_to_list(response.headers),
        "body": body_to_dict(response.body, response.content_type, include_body),
    }


def transaction_to_dict(
    transaction: Transaction,
    include_body: bool = True,
    offset: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Convert a transaction to a plain dictionary.

    Args:
        transaction: The decoded transaction
        include_body: Whether to include body text
        offset: Optional byte offset of the transaction in its log

    Returns:
        Dictionary of built-in types, safe for YAML and JSON
    """
    result: Dict[str, Any] = {}
    if offset is not None:
        result["offset"] = offset
    result["request"] = request_to_dict(transaction.request, include_body)
    result["response"] = response_to_dict(transaction.response, include_body)
    return result


def to_yaml(documents: Iterable[Dict[str, Any]]) -> str:
    """One YAML document per transaction dictionary."""
    return yaml.safe_dump_all(
        list(documents), sort_keys=False, allow_unicode=True, explicit_start=True
    )


def to_json(documents: Iterable[Dict[str, Any]], indent: int = 2) -> str:
    return json.dumps(list(documents), indent=indent or None, ensure_ascii=False)
