"""
Who is taking the quiz: a signed-in account or a guest.
"""

from dataclasses import dataclass
from typing import Optional, Union


@dataclass(frozen=True)
class Anonymous:
    guest_id: str

    @property
    def key(self) -> str:
        return f"guest:{self.guest_id}"

    @property
    def account_id(self) -> Optional[int]:
        return None


@dataclass(frozen=True)
class Authenticated:
    account_id: int

    @property
    def key(self) -> str:
        return f"account:{self.account_id}"


Principal = Union[Anonymous, Authenticated]
