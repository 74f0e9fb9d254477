"""
Roles - Main Controller

Sequences the two protocols for each side:
- server: answer one discovery request, then receive one file
- client: discover the server, then push one file to it

Discovery always finishes before the transfer starts.
"""

import logging
from typing import Optional

from .config import Config
from .discovery import BroadcastDiscovery, answer_discovery
from .transfer import TransferServer, FileUploader
from .transfer.protocol import ProgressCallback
from .transfer.uploader import AsyncByteSource

logger = logging.getLogger(__name__)


async def run_server(config: Optional[Config] = None,
                     on_progress: Optional[ProgressCallback] = None) -> int:
    """
    Passive role.

    Returns:
        Number of bytes written to `config.output_path`
    """
    config = config or Config()

    logger.info("Starting UDP server")
    peer = await answer_discovery(config.host, config.discovery_port)
    logger.info(f"Discovered by {peer[0]}")

    logger.info("Starting TCP server")
    server = TransferServer(
        host=config.host,
        port=config.transfer_port,
        output_path=config.output_path,
        max_file_size=config.max_file_size,
        max_attempts=config.accept_attempts,
        chunk_size=config.chunk_size,
    )
    async with server:
        received = await server.receive_file(on_progress)

    logger.info("Finished")
    return received


async def run_client(source: AsyncByteSource, size: int,
                     config: Optional[Config] = None,
                     on_progress: Optional[ProgressCallback] = None) -> str:
    """
    Active role.

    Args:
        source: Readable byte source positioned at the start of the file
        size: Exact number of bytes to send

    Returns:
        IP address of the server that received the file
    """
    config = config or Config()

    logger.info("Connecting by UDP")
    discovery = BroadcastDiscovery(
        port=config.discovery_port,
        broadcast_address=config.broadcast_address,
        timeout=config.discovery_timeout,
        attempts=config.discovery_attempts,
        host=config.host,
    )
    server_ip = await discovery.discover()

    logger.info("Connecting by TCP")
    uploader = FileUploader(
        server_ip, port=config.transfer_port, chunk_size=config.chunk_size
    )
    await uploader.send(source, size, on_progress)

    logger.info("Finished")
    return server_ip
