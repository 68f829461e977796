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
Exceptions raised while decoding logged HTTP transactions.
"""


class DecodeError(Exception):
    """
    Base class for every decode failure.

    Attributes:
        message: Human-readable description of what did not match
        offset: Byte offset into the input where decoding stopped
    """

    def __init__(self, message: str, offset: int = 0):
        super().__init__(message)
        self.message = message
        self.offset = offset

    def __str__(self) -> str:
        return f"{self.message} (at byte {self.offset})"


class MalformedStartLine(DecodeError):
    """Raised when a request line or status line does not match."""
    pass


class MissingHostHeader(DecodeError):
    """Raised when the mandatory Host line after the request line is absent."""
    pass


class MalformedHeaderLine(DecodeError):
    """Raised when a header line has no colon before the line break."""
    pass


class UndeterminedBodyFraming(DecodeError):
    """Raised when the body length cannot be derived from the headers."""
    pass


class MalformedChunkLength(DecodeError):
    """Raised when a chunk size line or chunk delimiter is invalid."""
    pass


class TruncatedBody(DecodeError):
    """Raised when fewer bytes remain than the declared length."""
    pass
