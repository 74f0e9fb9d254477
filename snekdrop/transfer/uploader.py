"""
File Uploader

Pushes one file to a discovered server.
"""

import contextlib
import logging
from typing import Optional, Protocol

from .protocol import (
    TransferHeader, ProgressCallback, connect_to_peer,
)
from ..config import TRANSFER_PORT, CHUNK_SIZE
from ..errors import IncompleteTransferError

logger = logging.getLogger(__name__)


class AsyncByteSource(Protocol):
    """Anything with an awaitable `read(n)`, e.g. an aiofiles binary file."""

    async def read(self, size: int = -1) -> bytes:
        ...


class FileUploader:
    """
    Sends a single file over a single connection.

    The port of the discovered address is always replaced with the
    transfer port. There is no reconnection: any I/O error propagates.
    """

    def __init__(self, ip: str, port: int = TRANSFER_PORT,
                 chunk_size: int = CHUNK_SIZE):
        self.ip = ip
        self.port = port
        self.chunk_size = chunk_size

        # Statistics
        self.bytes_uploaded = 0

    async def send(self, source: AsyncByteSource, size: int,
                   on_progress: Optional[ProgressCallback] = None) -> int:
        """
        Write the header and then exactly `size` bytes of `source`.

        Returns:
            Number of payload bytes written
        """
        header = TransferHeader(size).to_bytes()

        reader, writer = await connect_to_peer(self.ip, self.port)
        try:
            writer.write(header)
            await writer.drain()

            sent = 0
            if on_progress:
                on_progress(0, size)

            while sent < size:
                chunk = await source.read(min(self.chunk_size, size - sent))
                if not chunk:
                    raise IncompleteTransferError(size, sent)

                writer.write(chunk)
                await writer.drain()
                sent += len(chunk)
                self.bytes_uploaded = sent

                if on_progress:
                    on_progress(sent, size)
        finally:
            writer.close()
            # The server may already have reset the connection
            with contextlib.suppress(ConnectionError):
                await writer.wait_closed()

        logger.info(f"Uploaded {sent:,} bytes to {self.ip}:{self.port}")
        return sent

    def get_stats(self) -> dict:
        """Get uploader statistics."""
        return {
            'bytes_uploaded': self.bytes_uploaded,
            'ip': self.ip,
            'port': self.port,
        }


async def send_file(ip: str, source: AsyncByteSource, size: int,
                    port: int = TRANSFER_PORT, chunk_size: int = CHUNK_SIZE,
                    on_progress: Optional[ProgressCallback] = None) -> int:
    """Convenience wrapper around FileUploader.send()."""
    uploader = FileUploader(ip, port=port, chunk_size=chunk_size)
    return await uploader.send(source, size, on_progress)
