from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Union

from core.exceptions import RemoteError


@dataclass(frozen=True)
class Ok:
    value: Any = None
    ok: bool = True


@dataclass(frozen=True)
class Err:
    error: RemoteError
    ok: bool = False


Result = Union[Ok, Err]
