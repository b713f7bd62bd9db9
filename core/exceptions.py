from typing import Optional


class NexusError(Exception):
    pass


class RemoteError(NexusError):
    """A call to the remote table API failed (transport error or non-2xx)."""
    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class RemoteWriteError(RemoteError):
    pass


class StorageWriteError(NexusError):
    pass
