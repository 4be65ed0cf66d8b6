"""
Game state model for the account machine
"""

from dataclasses import dataclass, replace
from typing import Optional, Tuple

from .account import utc_now_iso

MAX_LEVEL = 10


def advance_position(index: int, level: int, list_length: int) -> Tuple[int, int]:
    """Move one step forward in a list of ``list_length`` accounts.

    Stepping past the last account wraps to index 0 and raises the level.
    An empty list leaves the position untouched.
    """
    if list_length <= 0:
        return index, level

    next_index = index + 1
    next_level = level
    if next_index >= list_length:
        next_index = 0
        next_level += 1
    return next_index, next_level


@dataclass(frozen=True)
class GameState:
    """Per-user pointer into the account list plus the level counter"""
    user_id: str
    current_index: int = 0
    current_level: int = 1
    updated_at: Optional[str] = None

    def __post_init__(self):
        if self.current_index < 0:
            raise ValueError("current_index must be non-negative")
        if self.current_level < 1:
            raise ValueError("current_level must be at least 1")

    @property
    def is_complete(self) -> bool:
        """True once the player went past the last level"""
        return self.current_level > MAX_LEVEL

    def advanced(self, list_length: int) -> "GameState":
        index, level = advance_position(self.current_index, self.current_level, list_length)
        return replace(self, current_index=index, current_level=level, updated_at=utc_now_iso())

    def reset(self) -> "GameState":
        return GameState(user_id=self.user_id)

    def to_row(self, include_timestamp: bool = True) -> dict:
        row = {
            "user_id": self.user_id,
            "current_index": self.current_index,
            "current_level": self.current_level,
        }
        if include_timestamp and self.updated_at:
            row["updated_at"] = self.updated_at
        return row

    @classmethod
    def from_row(cls, row: dict) -> "GameState":
        return cls(
            user_id=str(row["user_id"]),
            current_index=int(row.get("current_index") or 0),
            current_level=int(row.get("current_level") or 1),
            updated_at=row.get("updated_at"),
        )
