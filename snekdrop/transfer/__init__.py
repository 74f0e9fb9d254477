"""
Transfer Module - Single file push over TCP

Length-prefixed stream copy from the client to the server.
"""

from .protocol import TransferHeader, TransferServer, connect_to_peer
from .uploader import FileUploader, send_file

__all__ = [
    'TransferHeader',
    'TransferServer',
    'connect_to_peer',
    'FileUploader',
    'send_file',
]
