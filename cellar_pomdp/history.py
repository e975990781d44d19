"""
Values handed to the simulator by an external search driver.

The driver owns the action-observation history of the real episode and a
status record describing where in the search a call is made. The simulator
only reads them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, NamedTuple, Optional


class HistoryEntry(NamedTuple):
    action: int
    observation: int


class SearchPhase(Enum):
    TREE = "tree"
    ROLLOUT = "rollout"


@dataclass
class Status:
    """Where in the search the current call happens."""
    phase: SearchPhase = SearchPhase.TREE


@dataclass
class History:
    """Action-observation sequence of one episode."""
    entries: List[HistoryEntry] = field(default_factory=list)

    def add(self, action: int, observation: int = 0) -> None:
        self.entries.append(HistoryEntry(action, int(observation)))

    def back(self) -> Optional[HistoryEntry]:
        return self.entries[-1] if self.entries else None

    def __len__(self) -> int:
        return len(self.entries)
