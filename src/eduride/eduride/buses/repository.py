from __future__ import annotations

from typing import Optional, Protocol

from .model import Bus


class BusRepository(Protocol):
    def get_by_code(self, bus_code: str) -> Optional[Bus]:
        raise NotImplementedError
