import json
from unittest.mock import MagicMock

import pytest
import requests

from storage.gateway import PersistenceGateway
from storage.local import LocalMirror, LocalStorage
from storage.mode import StaticMode
from storage.remote import RemoteStore


def make_response(status_code=200, payload=None):
    """A real requests.Response carrying ``payload`` as its JSON body."""
    response = requests.Response()
    response.status_code = status_code
    response._content = b"" if payload is None else json.dumps(payload).encode("utf-8")
    return response


@pytest.fixture
def storage(tmp_path):
    store = LocalStorage(str(tmp_path / "local.db"))
    yield store
    store.close()


@pytest.fixture
def mirror(storage):
    return LocalMirror(storage)


@pytest.fixture
def remote():
    return MagicMock(spec=RemoteStore)


@pytest.fixture
def guest_gateway(remote, mirror):
    return PersistenceGateway(remote, mirror, StaticMode(True))


@pytest.fixture
def remote_gateway(remote, mirror):
    return PersistenceGateway(remote, mirror, StaticMode(False))
