"""
UDP Broadcast Discovery

Design Decision: Discovery Handshake
=====================================

Options:
1. mDNS/DNS-SD (Zeroconf)
   - Standard, rich service metadata
   - Extra dependency, multicast may be filtered

2. UDP Broadcast with JSON announcements
   - Simple, but needs parsing and a schema

3. UDP Broadcast with fixed magic tokens
   - Nothing to parse, exact-match comparison
   - Carries no payload (the sender address is the answer)

Decision: fixed 4-byte tokens over UDP broadcast
- The client only needs the server's IP address
- The server only needs to know that someone asked
- Doesn't cross routers, which is fine for a LAN tool

Protocol:
- REQUEST ("SNAK"): client broadcast, sent once per discovery
- REPLY ("SNEK"): unicast answer from the server to the asker
- Any other datagram (wrong length or bytes) is ignored by both sides
"""

import asyncio
import socket
import logging
from enum import Enum
from typing import Optional, Tuple

from ..config import (
    DISCOVERY_PORT, BROADCAST_ADDRESS, DISCOVERY_TIMEOUT, DISCOVERY_ATTEMPTS,
)
from ..errors import PeerNotFoundError

logger = logging.getLogger(__name__)

REQUEST_TOKEN = b'SNAK'
REPLY_TOKEN = b'SNEK'

# Larger than any token so oversized datagrams are not truncated into a match
RECV_BUFFER = 1024


class DiscoveryMessage(Enum):
    """Discovery datagram kinds."""
    REQUEST = REQUEST_TOKEN
    REPLY = REPLY_TOKEN
    UNKNOWN = b''

    @classmethod
    def decode(cls, data: bytes) -> 'DiscoveryMessage':
        """Classify a datagram. Only an exact token match is recognised."""
        if data == REQUEST_TOKEN:
            return cls.REQUEST
        if data == REPLY_TOKEN:
            return cls.REPLY
        return cls.UNKNOWN

    def to_bytes(self) -> bytes:
        if self is DiscoveryMessage.UNKNOWN:
            raise ValueError("UNKNOWN has no wire representation")
        return self.value


class DiscoveryResponder:
    """
    Server side of discovery.

    Answers exactly one REQUEST and then stops. Receives block with no
    timeout, so an idle responder waits until someone asks.
    """

    def __init__(self, host: str = '', port: int = DISCOVERY_PORT):
        self.host = host
        self.port = port
        self._socket: Optional[socket.socket] = None

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (ip, port); the port is resolved if 0 was requested."""
        if not self._socket:
            return (self.host, self.port)
        return self._socket.getsockname()

    def start(self):
        """Bind the discovery socket. Bind errors propagate."""
        if self._socket:
            return

        sock = socket.socket(socket.AF_INET, socket.SOCK_DGRAM)
        try:
            sock.bind((self.host, self.port))
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise

        self._socket = sock
        logger.info(f"Discovery responder listening on {self.address}")

    def stop(self):
        if self._socket:
            self._socket.close()
            self._socket = None

    async def serve_once(self) -> Tuple[str, int]:
        """
        Wait for one valid REQUEST and answer it.

        Returns:
            Address of the peer that was answered
        """
        self.start()
        loop = asyncio.get_running_loop()

        while True:
            data, addr = await loop.sock_recvfrom(self._socket, RECV_BUFFER)

            if DiscoveryMessage.decode(data) is not DiscoveryMessage.REQUEST:
                logger.debug(f"Ignoring {len(data)}-byte datagram from {addr}")
                continue

            await loop.sock_sendto(
                self._socket, DiscoveryMessage.REPLY.to_bytes(), addr
            )
            logger.info(f"Answered discovery request from {addr[0]}:{addr[1]}")
            return addr

    async def __aenter__(self) -> 'DiscoveryResponder':
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.stop()


class BroadcastDiscovery:
    """
    Client side of discovery.

    Broadcasts one REQUEST and waits for a REPLY. Every receive is bounded
    by `timeout`; a timeout or a non-matching datagram uses up one of
    `attempts` tries.
    """

    def __init__(self, port: int = DISCOVERY_PORT,
                 broadcast_address: str = BROADCAST_ADDRESS,
                 timeout: Optional[float] = DISCOVERY_TIMEOUT,
                 attempts: int = DISCOVERY_ATTEMPTS,
                 host: str = ''):
        """
        Initialize broadcast discovery.

        Args:
            port: Discovery port the server listens on
            broadcast_address: Where to send the REQUEST
            timeout: Seconds to wait for the send and for each receive
                     (None waits forever)
            attempts: Receive attempts before giving up
            host: Local interface to bind the ephemeral socket on
        """
        self.port = port
        self.broadcast_address = broadcast_address
        self.timeout = timeout
        self.attempts = attempts
        self.host = host

    async def discover(self) -> str:
        """
        Locate a server.

        Returns:
            The replying server's IP address (its port is discarded)

        Raises:
            PeerNotFoundError: no valid REPLY within the attempt budget
            TimeoutError: the REQUEST could not be sent in time
        """
        loop = asyncio.get_running_loop()

        with socket.socket(socket.AF_INET, socket.SOCK_DGRAM) as sock:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_BROADCAST, 1)
            sock.bind((self.host, 0))
            sock.setblocking(False)

            await asyncio.wait_for(
                loop.sock_sendto(
                    sock, DiscoveryMessage.REQUEST.to_bytes(),
                    (self.broadcast_address, self.port)
                ),
                timeout=self.timeout
            )
            logger.debug(f"Sent discovery request to {self.broadcast_address}:{self.port}")

            for attempt in range(1, self.attempts + 1):
                try:
                    data, addr = await asyncio.wait_for(
                        loop.sock_recvfrom(sock, RECV_BUFFER),
                        timeout=self.timeout
                    )
                except asyncio.TimeoutError:
                    logger.debug(f"Discovery attempt {attempt}/{self.attempts} timed out")
                    continue

                if DiscoveryMessage.decode(data) is DiscoveryMessage.REPLY:
                    logger.info(f"Found server at {addr[0]}")
                    return addr[0]

                logger.debug(
                    f"Discovery attempt {attempt}/{self.attempts}: "
                    f"ignoring {len(data)}-byte datagram from {addr}"
                )

        raise PeerNotFoundError("Server not found")


async def answer_discovery(host: str = '', port: int = DISCOVERY_PORT) -> Tuple[str, int]:
    """Run a responder until it has answered one peer."""
    async with DiscoveryResponder(host, port) as responder:
        return await responder.serve_once()
