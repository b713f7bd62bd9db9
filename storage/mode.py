from abc import ABC, abstractmethod

from storage.local import LocalStorage

GUEST_MODE_KEY = "nexus_guest_mode"


class ModeProvider(ABC):
    """Answers whether persistence should stay local-only.

    The gateway asks on every operation; it never caches the answer.
    """

    @abstractmethod
    def is_guest(self) -> bool:
        pass


class StoredGuestMode(ModeProvider):
    """Guest flag kept in local storage so it survives restarts."""
    def __init__(self, storage: LocalStorage, key: str = GUEST_MODE_KEY):
        self.storage = storage
        self.key = key

    def is_guest(self) -> bool:
        return self.storage.get_item(self.key) == "true"

    def set_guest_mode(self, enabled: bool) -> None:
        self.storage.set_item(self.key, "true" if enabled else "false")


class StaticMode(ModeProvider):
    def __init__(self, guest: bool):
        self.guest = guest

    def is_guest(self) -> bool:
        return self.guest
