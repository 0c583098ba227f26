"""
dicelang/result.py

Roll records and the result returned to callers.

This module provides:
- DieRoll: one record per individual die rolled
- GroupRolls: the records of one dice group and its subtotal
- Result: total, grouped rolls and textual breakdown
- ResultBuilder: assemble a Result from an evaluator trace
"""

import re
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Iterable, List, Optional

from .nodes import PRECEDENCE, BinaryOp, DiceGroup, Literal, Node, UnaryOp, iter_dice_groups


class RollStatus(str, Enum):
    KEPT = "kept"
    DROPPED = "dropped"
    REROLLED = "rerolled"


class RollOrigin(str, Enum):
    ROLL = "roll"
    REROLL = "reroll"
    EXPLOSION = "explosion"


@dataclass(frozen=True)
class DieRoll:
    """
    Outcome of a single die.

    Attributes:
        group: Parse-order index of the dice group that rolled it
        value: Face counted toward the total (after min/max clamping)
        status: kept, dropped or rerolled
        origin: Initial roll, a reroll, or an explosion
        exploded: This die triggered an explosion
        natural: Face actually rolled, set only when clamping changed it
        success: Whether the die met the count-successes condition
    """

    group: int
    value: int
    status: RollStatus = RollStatus.KEPT
    origin: RollOrigin = RollOrigin.ROLL
    exploded: bool = False
    natural: Optional[int] = None
    success: Optional[bool] = None

    @property
    def is_kept(self) -> bool:
        return self.status == RollStatus.KEPT

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "value": self.value,
            "status": self.status.value,
            "origin": self.origin.value,
        }
        if self.exploded:
            data["exploded"] = True
        if self.natural is not None:
            data["natural"] = self.natural
        if self.success is not None:
            data["success"] = self.success
        return data

    def annotate(self) -> str:
        """Breakdown form: 6, 6!, 5*, 1r, ~~2~~."""
        text = str(self.value)
        if self.exploded:
            text += "!"
        if self.success:
            text += "*"
        if self.status == RollStatus.REROLLED:
            text += "r"
        elif self.status == RollStatus.DROPPED:
            text = f"~~{text}~~"
        return text


def subtotal(records: Iterable[DieRoll]) -> int:
    """
    Score a group's records.

    Sum of kept faces, or the number of kept successes when the group
    counts successes.
    """
    kept = [r for r in records if r.is_kept]
    if any(r.success is not None for r in kept):
        return sum(1 for r in kept if r.success)
    return sum(r.value for r in kept)


@dataclass
class GroupRolls:
    group: int
    notation: str
    dice: List[DieRoll] = field(default_factory=list)

    @property
    def subtotal(self) -> int:
        return subtotal(self.dice)

    @property
    def kept(self) -> List[int]:
        return [r.value for r in self.dice if r.is_kept]

    @property
    def dropped(self) -> List[int]:
        return [r.value for r in self.dice if r.status == RollStatus.DROPPED]

    def to_dict(self) -> Dict[str, Any]:
        return {
            "group": self.group,
            "notation": self.notation,
            "dice": [r.to_dict() for r in self.dice],
            "subtotal": self.subtotal,
        }


@dataclass
class Result:
    """
    Result of evaluating one expression.

    Attributes:
        expression: Expression text as supplied (whitespace trimmed)
        total: Final value
        rolls: Dice groups in parse order
        breakdown: Expression re-rendered with each group's rolls
    """

    expression: str
    total: int
    rolls: List[GroupRolls] = field(default_factory=list)
    breakdown: Optional[str] = None

    @property
    def trace(self) -> List[DieRoll]:
        """Every record, flattened in group order."""
        return [r for group in self.rolls for r in group.dice]

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "expression": self.expression,
            "total": self.total,
            "rolls": [g.to_dict() for g in self.rolls],
        }
        if self.breakdown is not None:
            data["breakdown"] = self.breakdown
        return data

    def format(self) -> str:
        """
        Format result for chat display.

        Examples:
            "🎲 2d6[4, 3] + 3 = 10"
            "🎲 4d6kh3[~~1~~, 6, 3, 2] = 11"
            "🎲 2 + 3 = 5"
        """
        shown = self.breakdown if self.breakdown is not None else self.expression
        return f"🎲 {shown} = {self.total}"


# =============================================================================
# Rendering
# =============================================================================

ANNOTATION_RE = re.compile(r"\[[^\]]*\]")


def strip_annotations(breakdown: str) -> str:
    """Remove bracketed roll annotations, leaving plain notation."""
    return ANNOTATION_RE.sub("", breakdown)


def render(node: Node, groups: Optional[Dict[int, GroupRolls]] = None) -> str:
    """
    Render a tree back to notation with minimal parentheses.

    Args:
        node: Expression tree
        groups: When given, each dice group is followed by its rolls

    Returns:
        Notation that parses back to an equal tree once annotations are
        stripped
    """
    if isinstance(node, Literal):
        return str(node.value)

    if isinstance(node, DiceGroup):
        text = node.notation()
        if groups is not None and node.index in groups:
            text += "[" + ", ".join(r.annotate() for r in groups[node.index].dice) + "]"
        return text

    if isinstance(node, UnaryOp):
        operand = render(node.operand, groups)
        if isinstance(node.operand, BinaryOp):
            operand = f"({operand})"
        return f"{node.op}{operand}"

    precedence = PRECEDENCE[node.op]
    left = render(node.left, groups)
    if isinstance(node.left, BinaryOp) and PRECEDENCE[node.left.op] < precedence:
        left = f"({left})"
    right = render(node.right, groups)
    # Left associative, so an equal-precedence right child needs parentheses
    if isinstance(node.right, BinaryOp) and PRECEDENCE[node.right.op] <= precedence:
        right = f"({right})"
    return f"{left} {node.op} {right}"


class ResultBuilder:
    """Aggregate an evaluator trace into a Result."""

    def __init__(self, emit_breakdown: bool = True):
        self.emit_breakdown = emit_breakdown

    def build(
        self,
        node: Node,
        value: int,
        trace: List[DieRoll],
        expression: str = "",
    ) -> Result:
        """
        Group the trace by dice group and attach the breakdown.

        Args:
            node: Tree that was evaluated
            value: Evaluated total
            trace: Records in evaluation order
            expression: Source text

        Returns:
            Result with total equal to value
        """
        notations = {g.index: g.notation() for g in iter_dice_groups(node)}

        groups: Dict[int, GroupRolls] = {}
        for record in trace:
            if record.group not in groups:
                groups[record.group] = GroupRolls(
                    record.group, notations.get(record.group, "")
                )
            groups[record.group].dice.append(record)

        breakdown = render(node, groups) if self.emit_breakdown else None
        return Result(
            expression=expression.strip(),
            total=value,
            rolls=list(groups.values()),
            breakdown=breakdown,
        )


def build(node: Node, value: int, trace: List[DieRoll], expression: str = "") -> Result:
    """Build a Result with the default builder."""
    return ResultBuilder().build(node, value, trace, expression)
