"""
Enumeration Registry

Closed sets of named integer codes, one per subtype dimension.
Codes form the contiguous range [1, MAX]; 0 or an absent value
means "no subtype assigned" (segmentations are incomplete).
"""

from enum import IntEnum
from typing import Any, Optional


class SubtypeEnum(IntEnum):
    """Base for discriminator enumerations."""

    @classmethod
    def max_code(cls) -> int:
        return max(member.value for member in cls)

    @classmethod
    def labels(cls) -> list[str]:
        """Display names, in code order."""
        return [member.name.title() for member in sorted(cls)]

    @classmethod
    def from_code(cls, code: Any) -> Optional["SubtypeEnum"]:
        """Map a stored code to a member; 0, None and "" map to None."""
        if code is None or code == "" or code == 0:
            return None
        return cls(int(code))

    @property
    def label(self) -> str:
        return self.name.title()
