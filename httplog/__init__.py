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
httplog - Decode HTTP/1.x content logs from SSL/TLS interception.

This module provides tools to read every request/response transaction out of
a content log (or a tshark follow-stream dump) and export them as YAML/JSON
documents or as canonical HTTP bytes.

Usage:
    # As a CLI tool
    httplog connection.log -o transactions.yaml

    # As a library
    from httplog import TransactionLog

    log = TransactionLog.from_file("connection.log")
    for tx in log.filter(method="POST"):
        print(tx.url, tx.status_code)
"""

from .capture import LogError, TransactionLog
from .export import (
    request_to_dict,
    response_to_dict,
    to_json,
    to_yaml,
    transaction_to_dict,
)
from .follow import FollowPacket, FollowStream
from .cli import main

__version__ = "0.1.0"
__all__ = [
    # Log reader
    "TransactionLog",
    "LogError",
    # tshark follow streams
    "FollowStream",
    "FollowPacket",
    # Export
    "transaction_to_dict",
    "request_to_dict",
    "response_to_dict",
    "to_yaml",
    "to_json",
    # CLI
    "main",
]
