"""
Configuration Management

Handles loading configuration from environment variables and config files.

Every protocol constant (ports, size ceiling, timeout, attempt budgets,
output path) lives here as a named default so the discovery and transfer
code never hardcodes them.
"""

import os
from pathlib import Path
from dataclasses import dataclass, field
from typing import Optional
import json

from dotenv import load_dotenv


DISCOVERY_PORT = 3402
TRANSFER_PORT = 3403
BROADCAST_ADDRESS = '255.255.255.255'
MAX_FILE_SIZE = 4 * 1024 * 1024  # 4 MiB
DISCOVERY_TIMEOUT = 3.0
DISCOVERY_ATTEMPTS = 10
ACCEPT_ATTEMPTS = 3
CHUNK_SIZE = 64 * 1024
OUTPUT_PATH = Path('./file')

ENV_PREFIX = 'SNEKDROP_'


@dataclass
class Config:
    """
    snekdrop configuration.

    Configuration priority (highest to lowest):
    1. Environment variables (SNEKDROP_*)
    2. Config file (config.json)
    3. Default values
    """
    # Network
    host: str = ''
    discovery_port: int = DISCOVERY_PORT
    transfer_port: int = TRANSFER_PORT
    broadcast_address: str = BROADCAST_ADDRESS

    # Storage
    output_path: Path = field(default_factory=lambda: OUTPUT_PATH)
    max_file_size: int = MAX_FILE_SIZE
    chunk_size: int = CHUNK_SIZE

    # Discovery / retries
    discovery_timeout: float = DISCOVERY_TIMEOUT
    discovery_attempts: int = DISCOVERY_ATTEMPTS
    accept_attempts: int = ACCEPT_ATTEMPTS

    # Logging
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls) -> 'Config':
        """Load configuration from environment variables."""
        load_dotenv()

        config = cls()

        # Network
        config.host = os.getenv(f'{ENV_PREFIX}HOST', config.host)
        config.discovery_port = int(
            os.getenv(f'{ENV_PREFIX}DISCOVERY_PORT', config.discovery_port)
        )
        config.transfer_port = int(
            os.getenv(f'{ENV_PREFIX}TRANSFER_PORT', config.transfer_port)
        )
        config.broadcast_address = os.getenv(
            f'{ENV_PREFIX}BROADCAST_ADDRESS', config.broadcast_address
        )

        # Storage
        output_path = os.getenv(f'{ENV_PREFIX}OUTPUT_PATH')
        if output_path:
            config.output_path = Path(output_path)
        config.max_file_size = int(
            os.getenv(f'{ENV_PREFIX}MAX_FILE_SIZE', config.max_file_size)
        )
        config.chunk_size = int(
            os.getenv(f'{ENV_PREFIX}CHUNK_SIZE', config.chunk_size)
        )

        # Discovery / retries
        config.discovery_timeout = float(
            os.getenv(f'{ENV_PREFIX}DISCOVERY_TIMEOUT', config.discovery_timeout)
        )
        config.discovery_attempts = int(
            os.getenv(f'{ENV_PREFIX}DISCOVERY_ATTEMPTS', config.discovery_attempts)
        )
        config.accept_attempts = int(
            os.getenv(f'{ENV_PREFIX}ACCEPT_ATTEMPTS', config.accept_attempts)
        )

        # Logging
        config.log_level = os.getenv(f'{ENV_PREFIX}LOG_LEVEL', config.log_level)

        return config

    @classmethod
    def from_file(cls, path: Path) -> 'Config':
        """Load configuration from a JSON file."""
        if not path.exists():
            return cls()

        with open(path) as f:
            data = json.load(f)

        config = cls()

        # Network
        config.host = data.get('host', config.host)
        config.discovery_port = data.get('discovery_port', config.discovery_port)
        config.transfer_port = data.get('transfer_port', config.transfer_port)
        config.broadcast_address = data.get('broadcast_address', config.broadcast_address)

        # Storage
        if 'output_path' in data:
            config.output_path = Path(data['output_path'])
        config.max_file_size = data.get('max_file_size', config.max_file_size)
        config.chunk_size = data.get('chunk_size', config.chunk_size)

        # Discovery / retries
        config.discovery_timeout = data.get('discovery_timeout', config.discovery_timeout)
        config.discovery_attempts = data.get('discovery_attempts', config.discovery_attempts)
        config.accept_attempts = data.get('accept_attempts', config.accept_attempts)

        # Logging
        config.log_level = data.get('log_level', config.log_level)

        return config

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        return {
            'host': self.host,
            'discovery_port': self.discovery_port,
            'transfer_port': self.transfer_port,
            'broadcast_address': self.broadcast_address,
            'output_path': str(self.output_path),
            'max_file_size': self.max_file_size,
            'chunk_size': self.chunk_size,
            'discovery_timeout': self.discovery_timeout,
            'discovery_attempts': self.discovery_attempts,
            'accept_attempts': self.accept_attempts,
            'log_level': self.log_level,
        }

    def save(self, path: Path):
        """Save configuration to a JSON file."""
        with open(path, 'w') as f:
            json.dump(self.to_dict(), f, indent=2)


def load_config(config_path: Optional[Path] = None) -> Config:
    """
    Load configuration from file and environment.

    Environment variables override file settings.
    """
    # Start with defaults
    config = Config()

    # Load from file if provided
    if config_path and config_path.exists():
        config = Config.from_file(config_path)

    # Override with environment variables
    env_config = Config.from_env()

    # Merge (env takes precedence for non-default values)
    defaults = Config()
    for key in defaults.to_dict():
        env_val = getattr(env_config, key)
        if env_val != getattr(defaults, key):
            setattr(config, key, env_val)

    return config


# Example config file template
EXAMPLE_CONFIG = """
{
  "host": "",
  "discovery_port": 3402,
  "transfer_port": 3403,
  "broadcast_address": "255.255.255.255",
  "output_path": "./file",
  "max_file_size": 4194304,
  "chunk_size": 65536,
  "discovery_timeout": 3.0,
  "discovery_attempts": 10,
  "accept_attempts": 3,
  "log_level": "INFO"
}
"""


if __name__ == "__main__":
    # Print example config
    print("Example configuration file (config.json):")
    print(EXAMPLE_CONFIG)
