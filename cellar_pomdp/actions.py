"""
Action and observation codes.

Actions are plain integers so that a search driver can index child nodes by
them. The layout of the code space depends on how many bottles and objects a
problem has:

    0..3                      move North / South / East / West
    4                         SAMPLE the bottle under the agent
    5 .. 5+B-1                CHECK bottle i
    5+B .. 5+B+O-1            CHECK object j
    5+B+O .. 5+B+O+3          PUSH North / South / East / West

The offsets are computed once per configuration and never change.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum, IntEnum
from typing import List, Tuple

from cellar_pomdp.config import IllegalActionError
from cellar_pomdp.coord import Compass


class Observation(IntEnum):
    """What the agent perceives after an action."""
    NONE = 0
    GOOD = 1
    BAD = 2
    SHELF = 3
    CRATE = 4


class ActionKind(Enum):
    MOVE = "move"
    SAMPLE = "sample"
    CHECK_BOTTLE = "check_bottle"
    CHECK_OBJECT = "check_object"
    PUSH = "push"


SAMPLE = 4


@dataclass(frozen=True)
class ActionSpace:
    """Offsets of each action group for a given bottle and object count."""
    num_bottles: int
    num_objects: int

    @property
    def bottle_check(self) -> int:
        return SAMPLE + 1

    @property
    def object_check(self) -> int:
        return self.bottle_check + self.num_bottles

    @property
    def push(self) -> int:
        return self.object_check + self.num_objects

    @property
    def num_actions(self) -> int:
        return self.push + 4

    def move_action(self, direction: Compass) -> int:
        return int(direction)

    def check_bottle_action(self, bottle: int) -> int:
        if not 0 <= bottle < self.num_bottles:
            raise IllegalActionError(f"no bottle {bottle}")
        return self.bottle_check + bottle

    def check_object_action(self, obj: int) -> int:
        if not 0 <= obj < self.num_objects:
            raise IllegalActionError(f"no object {obj}")
        return self.object_check + obj

    def push_action(self, direction: Compass) -> int:
        return self.push + int(direction)

    def decode(self, action: int) -> Tuple[ActionKind, int]:
        """
        Split an action code into its group and argument.

        The argument is a Compass value for moves and pushes, the entity
        index for checks, and 0 for SAMPLE.
        """
        if action < 0 or action >= self.num_actions:
            raise IllegalActionError(
                f"action {action} outside [0, {self.num_actions})")
        if action < SAMPLE:
            return ActionKind.MOVE, action
        if action == SAMPLE:
            return ActionKind.SAMPLE, 0
        if action < self.object_check:
            return ActionKind.CHECK_BOTTLE, action - self.bottle_check
        if action < self.push:
            return ActionKind.CHECK_OBJECT, action - self.object_check
        return ActionKind.PUSH, action - self.push

    def describe(self, action: int) -> str:
        kind, arg = self.decode(action)
        if kind is ActionKind.MOVE:
            return f"move {Compass(arg).name.lower()}"
        if kind is ActionKind.PUSH:
            return f"push {Compass(arg).name.lower()}"
        if kind is ActionKind.SAMPLE:
            return "sample"
        if kind is ActionKind.CHECK_BOTTLE:
            return f"check bottle {arg}"
        return f"check object {arg}"

    def all(self) -> List[int]:
        return list(range(self.num_actions))
