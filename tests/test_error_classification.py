import errno, unittest, pathlib, sys, socket, ssl

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

import requests
from urllib3.exceptions import MaxRetryError, NewConnectionError

from portalscan.exceptions import HttpStatusError, UnknownFetchError
from portalscan.scan.network import classify_error


def _unreachable(host, inner=None):
    """The wrapper stack requests raises when a host cannot be reached."""
    pool = f"HTTPSConnectionPool(host='{host}', port=443)"
    reason = NewConnectionError(
        "<urllib3.connection.HTTPSConnection object at 0x7f3a2c1d9e50>",
        "Failed to establish a new connection: [Errno 113] No route to host")
    if inner is not None:
        reason.__cause__ = inner
    return requests.exceptions.ConnectionError(MaxRetryError(pool, "/", reason=reason))


def _wrapped(inner, outer_cls=requests.exceptions.ConnectionError):
    try:
        try:
            raise inner
        except Exception as e:
            raise outer_cls(str(e)) from e
    except Exception as outer:
        return outer


class TestErrorClassification(unittest.TestCase):
    def test_timeout(self):
        self.assertEqual(classify_error(requests.exceptions.ReadTimeout('read timed out')).reason, 'Timeout')
        self.assertEqual(classify_error(socket.timeout('timed out')).reason, 'Timeout')

    def test_dns(self):
        err = _wrapped(socket.gaierror(-2, 'Name or service not known'))
        self.assertEqual(classify_error(err).reason, 'DNS error')
        self.assertEqual(classify_error(Exception('NXDOMAIN result')).reason, 'DNS error')

    def test_refused(self):
        err = _wrapped(ConnectionRefusedError(111, 'Connection refused'))
        self.assertEqual(classify_error(err).reason, 'Connection refused')
        self.assertEqual(classify_error(Exception('ECONNREFUSED 10.0.0.1:443')).reason, 'Connection refused')

    def test_ssl(self):
        err = requests.exceptions.SSLError('bad handshake')
        self.assertEqual(classify_error(err).reason, 'SSL error')
        self.assertEqual(classify_error(ssl.SSLError(1, 'wrong version number')).reason, 'SSL error')
        self.assertEqual(classify_error(Exception('certificate verify failed')).reason, 'SSL error')

    def test_reset(self):
        err = _wrapped(ConnectionResetError(104, 'Connection reset by peer'))
        self.assertEqual(classify_error(err).reason, 'Connection reset')
        self.assertEqual(classify_error(Exception('read ECONNRESET')).reason, 'Connection reset')

    def test_host_name_does_not_pick_label(self):
        hosts = ['example.com', 'www.timeout.com', 'atlsports.com', 'sslmate.com']
        reasons = {h: classify_error(_unreachable(h)).reason for h in hosts}
        self.assertEqual(len(set(reasons.values())), 1, reasons)
        self.assertTrue(reasons['example.com'].startswith('Failed to establish a new connection'))
        self.assertNotIn('example.com', reasons['example.com'])

    def test_unreachable_errno_is_unknown(self):
        inner = OSError(errno.EHOSTUNREACH, 'No route to host')
        for host in ('www.timeout.com', 'atlsports.com'):
            res = classify_error(_unreachable(host, inner))
            self.assertIsInstance(res, UnknownFetchError)
            self.assertEqual(res.reason, f'[Errno {errno.EHOSTUNREACH}] No route to host')

    def test_refused_behind_wrappers(self):
        self.assertEqual(classify_error(_unreachable('tls.example', OSError(errno.ECONNREFUSED, 'refused'))).reason,
                         'Connection refused')

    def test_fetch_error_passthrough(self):
        err = HttpStatusError(503, 'https://a.com/')
        self.assertIs(classify_error(err), err)
        self.assertEqual(err.reason, 'HTTP 503')

    def test_other_truncated(self):
        msg = 'weird unknown issue happened ' * 5
        res = classify_error(Exception(msg))
        self.assertIsInstance(res, UnknownFetchError)
        self.assertEqual(res.reason, msg[:50])
        self.assertEqual(len(res.reason), 50)

    def test_empty_message(self):
        self.assertEqual(UnknownFetchError('').reason, 'Unknown error')
        self.assertEqual(classify_error(RuntimeError()).reason, 'RuntimeError')


if __name__ == '__main__':
    unittest.main()
