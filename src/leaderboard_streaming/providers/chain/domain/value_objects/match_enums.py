from enum import IntEnum


class MatchStatus(IntEnum):
    """Match lifecycle, numbered the way the PlayGame contract numbers it."""
    CREATED = 0
    STAKED = 1
    SETTLED = 2
    REFUNDED = 3

    @property
    def is_terminal(self) -> bool:
        return self in (MatchStatus.SETTLED, MatchStatus.REFUNDED)
