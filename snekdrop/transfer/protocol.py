"""
File Transfer Protocol

Design Decision: Transfer Framing
==================================

Options Considered:
1. HTTP upload
   - Standard, but needs a web server on the receiving side

2. Length prefix + JSON header + data (one message per chunk)
   - Flexible, but every chunk carries a parsed header

3. Single length prefix + raw stream
   - One header per connection, then the bytes verbatim
   - Nothing to parse after the first 8 bytes

Decision: one 8-byte little-endian length, then the raw file
- Exactly one file per connection, so no further framing is needed
- The receiver validates the length against a ceiling before it
  creates the destination file
- The receiver consumes exactly `length` bytes; anything after that is
  never interpreted

Message Format:
```
+-------------------------+-----------------------------+
| Length (8B, u64 LE)     | File bytes (Length bytes)   |
+-------------------------+-----------------------------+
```
No response frame; closing the connection ends the exchange.
"""

import asyncio
import contextlib
import socket
import struct
import logging
from pathlib import Path
from typing import Optional, Tuple, Callable
from dataclasses import dataclass

import aiofiles

from ..config import (
    TRANSFER_PORT, MAX_FILE_SIZE, ACCEPT_ATTEMPTS, CHUNK_SIZE, OUTPUT_PATH,
)
from ..errors import (
    SnekdropError, PeerNotFoundError, FileTooLargeError,
    IncompleteTransferError,
)

logger = logging.getLogger(__name__)

HEADER_FORMAT = '<Q'
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)
MAX_HEADER_VALUE = 2 ** 64 - 1

# Progress callback: (bytes_done, bytes_total)
ProgressCallback = Callable[[int, int], None]


@dataclass
class TransferHeader:
    """Declared payload length sent ahead of the file bytes."""
    length: int

    def to_bytes(self) -> bytes:
        """Serialize header to bytes."""
        if not 0 <= self.length <= MAX_HEADER_VALUE:
            raise ValueError(f"Length out of range: {self.length}")
        return struct.pack(HEADER_FORMAT, self.length)

    @classmethod
    def from_bytes(cls, data: bytes) -> 'TransferHeader':
        if len(data) != HEADER_SIZE:
            raise ValueError(f"Header must be {HEADER_SIZE} bytes, got {len(data)}")
        return cls(length=struct.unpack(HEADER_FORMAT, data)[0])

    @classmethod
    async def from_reader(cls, reader: asyncio.StreamReader) -> 'TransferHeader':
        """Read a header from a stream."""
        try:
            data = await reader.readexactly(HEADER_SIZE)
        except asyncio.IncompleteReadError as e:
            raise IncompleteTransferError(HEADER_SIZE, len(e.partial)) from e
        return cls.from_bytes(data)

    def check_limit(self, limit: int):
        """Reject lengths above the ceiling."""
        if self.length > limit:
            raise FileTooLargeError(self.length, limit)


class TransferServer:
    """
    TCP server that receives exactly one file.

    Accepts at most `max_attempts` connections. Accept failures and failed
    connections (short read, oversize header, I/O error) each use up one
    attempt; the first complete transfer ends the server.
    """

    def __init__(self, host: str = '', port: int = TRANSFER_PORT,
                 output_path: Path = OUTPUT_PATH,
                 max_file_size: int = MAX_FILE_SIZE,
                 max_attempts: int = ACCEPT_ATTEMPTS,
                 chunk_size: int = CHUNK_SIZE):
        self.host = host
        self.port = port
        self.output_path = Path(output_path)
        self.max_file_size = max_file_size
        self.max_attempts = max_attempts
        self.chunk_size = chunk_size
        self._socket: Optional[socket.socket] = None

        # Statistics
        self.attempts_used = 0
        self.bytes_received = 0

    @property
    def address(self) -> Tuple[str, int]:
        """Bound (ip, port); the port is resolved if 0 was requested."""
        if not self._socket:
            return (self.host, self.port)
        return self._socket.getsockname()

    def start(self):
        """Bind and listen. Bind errors propagate."""
        if self._socket:
            return

        sock = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
            sock.bind((self.host, self.port))
            sock.listen()
            sock.setblocking(False)
        except OSError:
            sock.close()
            raise

        self._socket = sock
        logger.info(f"Transfer server listening on {self.address}")

    def stop(self):
        """Stop the transfer server."""
        if self._socket:
            self._socket.close()
            self._socket = None
            logger.info("Transfer server stopped")

    async def receive_file(self, on_progress: Optional[ProgressCallback] = None) -> int:
        """
        Accept connections until one delivers a complete file.

        Returns:
            Number of bytes written to `output_path`

        Raises:
            PeerNotFoundError: every attempt failed
        """
        self.start()
        loop = asyncio.get_running_loop()

        while self.attempts_used < self.max_attempts:
            self.attempts_used += 1

            try:
                conn, addr = await loop.sock_accept(self._socket)
            except OSError as e:
                logger.warning(f"Accept error: {e}")
                continue

            logger.debug(f"New transfer connection from {addr}")
            try:
                received = await self._handle_connection(conn, on_progress)
            except (SnekdropError, OSError) as e:
                logger.warning(f"Connection error from {addr[0]}: {e}")
                continue

            self.bytes_received = received
            logger.info(f"Received {received:,} bytes from {addr[0]} into {self.output_path}")
            return received

        raise PeerNotFoundError("Client not found")

    async def _handle_connection(self, conn: socket.socket,
                                 on_progress: Optional[ProgressCallback]) -> int:
        """Read one header and its payload from an accepted socket."""
        reader, writer = await asyncio.open_connection(sock=conn)

        try:
            header = await TransferHeader.from_reader(reader)
            header.check_limit(self.max_file_size)
            logger.debug(f"Header declares {header.length:,} bytes")

            return await self._copy_to_file(reader, header.length, on_progress)
        finally:
            writer.close()
            with contextlib.suppress(ConnectionError):
                await writer.wait_closed()

    async def _copy_to_file(self, reader: asyncio.StreamReader, length: int,
                            on_progress: Optional[ProgressCallback]) -> int:
        """Copy exactly `length` bytes from the stream to the destination."""
        remaining = length

        async with aiofiles.open(self.output_path, 'wb') as f:
            if on_progress:
                on_progress(0, length)

            while remaining > 0:
                chunk = await reader.read(min(self.chunk_size, remaining))
                if not chunk:
                    raise IncompleteTransferError(length, length - remaining)

                await f.write(chunk)
                remaining -= len(chunk)

                if on_progress:
                    on_progress(length - remaining, length)

        return length

    def get_stats(self) -> dict:
        """Get server statistics."""
        return {
            'attempts_used': self.attempts_used,
            'bytes_received': self.bytes_received,
            'max_attempts': self.max_attempts,
            'port': self.address[1],
        }

    async def __aenter__(self) -> 'TransferServer':
        self.start()
        return self

    async def __aexit__(self, exc_type, exc, tb):
        self.stop()


async def connect_to_peer(ip: str, port: int = TRANSFER_PORT) -> Tuple[
        asyncio.StreamReader, asyncio.StreamWriter]:
    """
    Connect to a peer's transfer server.

    No timeout and no retry; connection errors propagate.
    """
    reader, writer = await asyncio.open_connection(ip, port)
    logger.debug(f"Connected to {ip}:{port}")
    return reader, writer
