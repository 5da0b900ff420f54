import io
import unittest
from contextlib import redirect_stdout
from unittest.mock import patch

import serial

import serial_mon


class SerialMonitorTests(unittest.TestCase):
    def test_prints_decoded_lines_until_interrupted(self):
        with patch('serial_mon.serial.Serial') as serial_cls:
            port = serial_cls.return_value.__enter__.return_value
            port.readline.side_effect = [b'I (312) boot: ready\r\n', b'', b'\xffbad\n', KeyboardInterrupt]
            buffer = io.StringIO()
            with redirect_stdout(buffer):
                code = serial_mon.main(['--port', '/dev/ttyUSB1', '--baud', '921600'])

        self.assertEqual(code, 0)
        serial_cls.assert_called_once_with('/dev/ttyUSB1', 921600, timeout=0.5)
        self.assertEqual(
            buffer.getvalue(),
            'Monitoring /dev/ttyUSB1...\nI (312) boot: ready\n\ufffdbad\n\nStopped.\n',
        )

    def test_open_failure_returns_error(self):
        with patch('serial_mon.serial.Serial', side_effect=serial.SerialException('could not open port')):
            buffer = io.StringIO()
            with redirect_stdout(buffer):
                code = serial_mon.main([])

        self.assertEqual(code, 1)
        self.assertIn('Error: could not open port', buffer.getvalue())


if __name__ == '__main__':
    unittest.main()
