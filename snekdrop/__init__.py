"""
snekdrop - zero-configuration single file transfer on a LAN

A client finds a server with a UDP broadcast handshake and pushes one
file to it over a length-prefixed TCP stream.
"""

from .config import Config, load_config
from .errors import (
    SnekdropError, PeerNotFoundError, FileTooLargeError,
    IncompleteTransferError,
)
from .node import run_server, run_client

__version__ = '0.1.0'

__all__ = [
    'Config',
    'load_config',
    'SnekdropError',
    'PeerNotFoundError',
    'FileTooLargeError',
    'IncompleteTransferError',
    'run_server',
    'run_client',
]
