import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from snekdrop.config import Config, load_config


def clean_env(**values):
    """Patch os.environ with only the given SNEKDROP_* variables."""
    env = {k: v for k, v in os.environ.items() if not k.startswith('SNEKDROP_')}
    env.update({f'SNEKDROP_{k}': v for k, v in values.items()})
    return mock.patch.dict(os.environ, env, clear=True)


@mock.patch('snekdrop.config.load_dotenv')
class ConfigTest(unittest.TestCase):

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)
        self.path = Path(self.tmp.name) / 'config.json'

    def test_defaults(self, _):
        config = Config()
        self.assertEqual(config.discovery_port, 3402)
        self.assertEqual(config.transfer_port, 3403)
        self.assertEqual(config.max_file_size, 4 * 1024 * 1024)
        self.assertEqual(config.discovery_timeout, 3.0)
        self.assertEqual(config.discovery_attempts, 10)
        self.assertEqual(config.accept_attempts, 3)
        self.assertEqual(config.broadcast_address, '255.255.255.255')
        self.assertEqual(config.output_path, Path('./file'))

    def test_missing_file_gives_defaults(self, _):
        self.assertEqual(Config.from_file(self.path), Config())

    def test_save_and_load(self, _):
        config = Config(transfer_port=5000, output_path=Path('/tmp/out'),
                        discovery_timeout=0.5)
        config.save(self.path)

        self.assertEqual(Config.from_file(self.path), config)

    def test_from_env(self, _):
        with clean_env(DISCOVERY_PORT='4000', OUTPUT_PATH='/srv/in',
                       DISCOVERY_TIMEOUT='1.5', LOG_LEVEL='DEBUG', CHUNK_SIZE='1024'):
            config = Config.from_env()

        self.assertEqual(config.discovery_port, 4000)
        self.assertEqual(config.output_path, Path('/srv/in'))
        self.assertEqual(config.discovery_timeout, 1.5)
        self.assertEqual(config.log_level, 'DEBUG')
        self.assertEqual(config.chunk_size, 1024)
        self.assertEqual(config.transfer_port, 3403)

    def test_invalid_env_value(self, _):
        with clean_env(TRANSFER_PORT='not-a-port'):
            with self.assertRaises(ValueError):
                Config.from_env()

    def test_env_overrides_file(self, _):
        Config(transfer_port=5000, accept_attempts=5).save(self.path)

        with clean_env(TRANSFER_PORT='6000', DISCOVERY_PORT='4000', CHUNK_SIZE='1024'):
            config = load_config(self.path)

        self.assertEqual(config.transfer_port, 6000)
        self.assertEqual(config.discovery_port, 4000)
        self.assertEqual(config.accept_attempts, 5)
        self.assertEqual(config.chunk_size, 1024)


if __name__ == '__main__':
    unittest.main()
