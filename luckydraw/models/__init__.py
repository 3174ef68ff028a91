from .base import Base

# import models so create_all can discover mappers
from .event import EventState, PrizeRecord, WinnerRecord  # noqa: F401

__all__ = [
    "Base",
    "EventState",
    "PrizeRecord",
    "WinnerRecord",
]
