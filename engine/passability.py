"""
Wayfarer — engine/passability.py
Passability Rule Engine: decides whether a single proposed step is legal.
========================================================================
Version:     0.1
Stack:       Python 3.11+
Status:      Stateless. Safe to call from any input handler.

Evaluation order (first matching rule wins)
-------------------------------------------
  1. pathing unlocked           -> allow (rules are advisory in dev mode)
  2. target is a blocked cell   -> deny
  3. link is a blocked edge     -> deny (reverse too when bidirectional)
  4. link is a locked conditional edge and the source tableau is
     not cleared                -> deny
  5. current cell is on an active forced rail (not its last step) and
     target is not the next rail step -> deny
  6. otherwise                  -> allow

A hard block always wins over a conditional unlock. A denial is a normal
outcome, never an exception.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Protocol

from world.coords import GridCoordinate
from world.ruleset import REQUIREMENT_SOURCE_CLEARED, ConditionalEdge, Ruleset


class TraversalRule(str, Enum):
    UNLOCKED = "unlocked"
    BLOCKED_CELL = "blocked_cell"
    BLOCKED_EDGE = "blocked_edge"
    CONDITIONAL_EDGE = "conditional_edge"
    FORCED_RAIL = "forced_rail"
    OPEN = "open"


@dataclass(frozen=True)
class TraversalVerdict:
    allowed: bool
    rule: TraversalRule
    reason: str = ""

    def __bool__(self) -> bool:
        return self.allowed


class HasPosition(Protocol):
    x: int
    y: int


def _requirement_met(edge: ConditionalEdge, tableau_cleared_at_current: bool) -> bool:
    if not edge.locked:
        return True
    if edge.requirement == REQUIREMENT_SOURCE_CLEARED:
        # Whichever endpoint the move starts from is the source
        return tableau_cleared_at_current
    # Unknown requirements stay locked
    return False


def evaluate_traversal(
    current: HasPosition,
    target: GridCoordinate,
    ruleset: Ruleset,
    tableau_cleared_at_current: bool,
    pathing_locked: bool = True,
) -> TraversalVerdict:
    """Runs the rule chain for current -> target and reports which rule fired."""
    if not pathing_locked:
        return TraversalVerdict(True, TraversalRule.UNLOCKED)

    source = GridCoordinate(current.x, current.y)

    cell = ruleset.blocked_cell_at(target)
    if cell is not None:
        reason = cell.reason or f"{cell.terrain.capitalize()} blocks the way at {target}"
        return TraversalVerdict(False, TraversalRule.BLOCKED_CELL, reason)

    blocked = ruleset.blocked_edge_for(source, target)
    if blocked is not None:
        reason = blocked.reason or f"The way from {source} to {target} is blocked"
        return TraversalVerdict(False, TraversalRule.BLOCKED_EDGE, reason)

    conditional = ruleset.conditional_edge_for(source, target)
    if conditional is not None and not _requirement_met(conditional, tableau_cleared_at_current):
        reason = conditional.reason or f"Clear the tableau at {source.x},{source.y} first"
        return TraversalVerdict(False, TraversalRule.CONDITIONAL_EDGE, reason)

    required = ruleset.forced_rail.required_next(source)
    if required is not None and required != target:
        label = ruleset.forced_rail.label or "The path"
        reason = f"{label} continues to {required.x},{required.y}"
        return TraversalVerdict(False, TraversalRule.FORCED_RAIL, reason)

    return TraversalVerdict(True, TraversalRule.OPEN)


def can_traverse(
    current: HasPosition,
    target: GridCoordinate,
    ruleset: Ruleset,
    tableau_cleared_at_current: bool,
    pathing_locked: bool = True,
) -> bool:
    return evaluate_traversal(
        current, target, ruleset, tableau_cleared_at_current, pathing_locked
    ).allowed
