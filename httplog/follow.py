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
Loader for tshark 'follow' YAML output.

`tshark -r capture.pcap -o tls.keylog_file:keys.txt -z follow,tls,yaml,N`
writes a decrypted conversation as YAML. Joining the packet payloads in
capture order gives the same request/response byte stream an interception
logger writes, so it can be decoded with TransactionLog.
"""

import base64
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List

import yaml

SERVER_PORTS = (80, 443, 8080, 8443)


@dataclass
class FollowPacket:
    """One payload segment from a followed stream."""
    peer: int
    data: bytes
    timestamp: float = 0.0
    index: int = 0


@dataclass
class FollowStream:
    """A followed TCP/TLS conversation."""
    packets: List[FollowPacket] = field(default_factory=list)
    client_peer: int = 0
    server_peer: int = 1
    server_host: str = ""
    server_port: int = 443

    @classmethod
    def from_file(cls, filepath: str) -> 'FollowStream':
        """Load a tshark YAML file."""
        with open(filepath, 'r') as f:
            return cls.from_yaml(f.read())

    @classmethod
    def from_yaml(cls, yaml_content: str) -> 'FollowStream':
        """Parse tshark YAML content."""
        data = yaml.safe_load(yaml_content)
        stream = cls()

        if not data:
            return stream

        # Handle both old format (list of packets) and new format (peers + packets)
        if isinstance(data, dict):
            packets = data.get('packets') or []
            stream._parse_peers_from_dict(data.get('peers') or [])
        elif isinstance(data, list):
            packets = data
            stream._parse_peers(yaml_content)
        else:
            raise ValueError(f"Unexpected tshark YAML document: {type(data).__name__}")

        for i, packet in enumerate(packets):
            stream.packets.append(FollowPacket(
                peer=packet.get('peer', 0),
                data=_packet_bytes(packet.get('data', b'')),
                timestamp=packet.get('timestamp', 0.0),
                index=packet.get('packet', packet.get('index', i)),
            ))

        return stream

    def _parse_peers_from_dict(self, peers: List[Dict[str, Any]]) -> None:
        """Extract peer information from peers list in YAML."""
        for peer_info in peers:
            port = peer_info.get('port', 0)

            # Heuristic: server usually has a well-known HTTP port
            if port in SERVER_PORTS:
                self.server_peer = peer_info.get('peer', 0)
                self.client_peer = 1 - self.server_peer
                self.server_host = peer_info.get('host', '')
                self.server_port = port

    def _parse_peers(self, yaml_content: str) -> None:
        """Extract peer information from YAML comments."""
        # Example: # Peer 0: 192.168.1.144:60634
        #          # Peer 1: 142.250.124.95:443
        peer_pattern = re.compile(r'# Peer (\d+): ([\d.]+):(\d+)')

        for match in peer_pattern.finditer(yaml_content):
            port = int(match.group(3))
            if port in SERVER_PORTS:
                self.server_peer = int(match.group(1))
                self.client_peer = 1 - self.server_peer
                self.server_host = match.group(2)
                self.server_port = port

    @property
    def payload(self) -> bytes:
        """All packet data joined in capture order."""
        return b"".join(packet.data for packet in self.packets)


def _packet_bytes(raw: Any) -> bytes:
    # PyYAML decodes !!binary automatically; plain strings are base64 text
    if raw is None:
        return b""
    if isinstance(raw, str):
        return base64.b64decode(raw)
    return bytes(raw)
