from storage.mode import GUEST_MODE_KEY, StaticMode, StoredGuestMode


def test_stored_mode_defaults_to_remote(storage):
    assert StoredGuestMode(storage).is_guest() is False


def test_stored_mode_round_trip(storage):
    mode = StoredGuestMode(storage)
    mode.set_guest_mode(True)
    assert storage.get_item(GUEST_MODE_KEY) == "true"
    assert mode.is_guest() is True

    mode.set_guest_mode(False)
    assert storage.get_item(GUEST_MODE_KEY) == "false"
    assert mode.is_guest() is False


def test_stored_mode_is_read_on_every_call(storage):
    mode = StoredGuestMode(storage)
    assert not mode.is_guest()
    storage.set_item(GUEST_MODE_KEY, "true")
    assert mode.is_guest()


def test_unexpected_value_means_remote(storage):
    storage.set_item(GUEST_MODE_KEY, "yes")
    assert StoredGuestMode(storage).is_guest() is False


def test_static_mode():
    assert StaticMode(True).is_guest()
    assert not StaticMode(False).is_guest()
