import asyncio
import contextlib
import socket


def free_port(kind=socket.SOCK_STREAM) -> int:
    with socket.socket(socket.AF_INET, kind) as s:
        s.bind(('127.0.0.1', 0))
        return s.getsockname()[1]


class BytesSource:
    """Minimal async byte source over an in-memory buffer."""

    def __init__(self, data: bytes):
        self.data = data
        self.offset = 0

    async def read(self, size: int = -1) -> bytes:
        if size < 0:
            size = len(self.data) - self.offset
        chunk = self.data[self.offset:self.offset + size]
        self.offset += len(chunk)
        return chunk


async def push_raw(port: int, payload: bytes):
    """Open a connection, write `payload` verbatim and hang up."""
    reader, writer = await asyncio.open_connection('127.0.0.1', port)
    with contextlib.suppress(ConnectionError):
        writer.write(payload)
        await writer.drain()
        writer.close()
        await writer.wait_closed()
