from unittest.mock import MagicMock

import requests

from storage.probe import check_connection

from conftest import make_response


def _session(response=None, error=None):
    session = MagicMock()
    if error is not None:
        session.get.side_effect = error
    else:
        session.get.return_value = response
    return session


def test_reachable_on_2xx():
    session = _session(make_response(200, {}))
    assert check_connection("https://example.test", "key", session=session) is True

    args, kwargs = session.get.call_args
    assert args == ("https://example.test/rest/v1/",)
    assert kwargs["headers"] == {"apikey": "key"}
    assert kwargs["timeout"] == 2.5


def test_non_2xx_is_offline():
    assert check_connection("https://example.test", "key", session=_session(make_response(401))) is False


def test_network_errors_are_offline():
    for error in (requests.ConnectionError("dns"), requests.Timeout("slow"), requests.exceptions.SSLError("tls")):
        assert check_connection("https://example.test", "key", session=_session(error=error)) is False


def test_malformed_base_url_is_offline():
    session = _session(make_response(200, {}))
    assert check_connection(None, "key", session=session) is False
    assert check_connection(12345, "key", session=session) is False
    session.get.assert_not_called()
