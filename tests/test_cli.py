import tempfile
import unittest
from pathlib import Path
from unittest import mock

from click.testing import CliRunner

from snekdrop.cli import cli, format_size
from snekdrop.errors import PeerNotFoundError


class CliTest(unittest.TestCase):

    def setUp(self):
        self.runner = CliRunner()
        self.tmp = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp.cleanup)

    @mock.patch('snekdrop.cli.run_client', new_callable=mock.AsyncMock)
    def test_client_sends_file(self, run_client):
        run_client.return_value = '10.0.0.2'
        path = Path(self.tmp.name) / 'notes.txt'
        path.write_bytes(b'hello')

        result = self.runner.invoke(cli, ['client', str(path)])

        self.assertEqual(result.exit_code, 0, result.output)
        self.assertIn('10.0.0.2', result.output)
        _, size, config, _ = run_client.call_args.args
        self.assertEqual(size, 5)
        self.assertEqual(config.transfer_port, 3403)

    def test_client_requires_existing_file(self):
        result = self.runner.invoke(cli, ['client', str(Path(self.tmp.name) / 'missing')])
        self.assertEqual(result.exit_code, 2)

    @mock.patch('snekdrop.cli.run_server', new_callable=mock.AsyncMock)
    def test_server_output_option(self, run_server):
        run_server.return_value = 2048
        output = Path(self.tmp.name) / 'received.bin'

        result = self.runner.invoke(cli, ['server', '--output', str(output)])

        self.assertEqual(result.exit_code, 0, result.output)
        config = run_server.call_args.args[0]
        self.assertEqual(config.output_path, output)
        self.assertIn('2.0 KB', result.output)

    @mock.patch('snekdrop.cli.run_server', new_callable=mock.AsyncMock)
    def test_server_failure_exits_nonzero(self, run_server):
        run_server.side_effect = PeerNotFoundError("Client not found")

        result = self.runner.invoke(cli, ['server'])

        self.assertEqual(result.exit_code, 1)
        self.assertIn('Client not found', result.output)

    def test_format_size(self):
        self.assertEqual(format_size(0), '0.0 B')
        self.assertEqual(format_size(4 * 1024 * 1024), '4.0 MB')


if __name__ == '__main__':
    unittest.main()
