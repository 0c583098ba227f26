"""
dicelang/nodes.py

Expression tree and modifier types.

The tree is strictly a tree: every node is owned by its parent and the
root is handed to the evaluator. Source positions are carried for error
reporting but ignored by equality, so trees parsed from differently spaced
text compare equal.
"""

import operator
from dataclasses import dataclass, field
from typing import Callable, Dict, Tuple, Union


# =============================================================================
# Conditions
# =============================================================================

COMPARATOR_FUNCS: Dict[str, Callable[[int, int], bool]] = {
    "=": operator.eq,
    "<": operator.lt,
    "<=": operator.le,
    ">": operator.gt,
    ">=": operator.ge,
}


@dataclass(frozen=True)
class Condition:
    """
    Face comparison used by reroll, explode and count-successes.

    Attributes:
        comparator: One of =, <, <=, >, >=
        target: Face value compared against
    """

    comparator: str
    target: int

    def matches(self, face: int) -> bool:
        return COMPARATOR_FUNCS[self.comparator](face, self.target)

    def notation(self) -> str:
        if self.comparator == "=":
            return str(self.target)
        return f"{self.comparator}{self.target}"


# =============================================================================
# Modifiers
# =============================================================================


@dataclass(frozen=True)
class KeepHighest:
    count: int = 1

    def notation(self) -> str:
        return f"kh{self.count}"


@dataclass(frozen=True)
class KeepLowest:
    count: int = 1

    def notation(self) -> str:
        return f"kl{self.count}"


@dataclass(frozen=True)
class DropHighest:
    count: int = 1

    def notation(self) -> str:
        return f"dh{self.count}"


@dataclass(frozen=True)
class DropLowest:
    count: int = 1

    def notation(self) -> str:
        return f"dl{self.count}"


@dataclass(frozen=True)
class Reroll:
    """Reroll matching dice once, or repeatedly while they match when until is set."""

    condition: Condition
    until: bool = False

    def notation(self) -> str:
        return f"{'rr' if self.until else 'r'}{self.condition.notation()}"


@dataclass(frozen=True)
class Explode:
    condition: Condition

    def notation(self) -> str:
        return f"!{self.condition.notation()}"


@dataclass(frozen=True)
class Minimum:
    value: int

    def notation(self) -> str:
        return f"min{self.value}"


@dataclass(frozen=True)
class Maximum:
    value: int

    def notation(self) -> str:
        return f"max{self.value}"


@dataclass(frozen=True)
class CountSuccesses:
    """Score the group by how many kept dice match instead of their sum."""

    condition: Condition

    def notation(self) -> str:
        return f"cs{self.condition.notation()}"


Modifier = Union[
    KeepHighest,
    KeepLowest,
    DropHighest,
    DropLowest,
    Reroll,
    Explode,
    Minimum,
    Maximum,
    CountSuccesses,
]

RANK_MODIFIERS = (KeepHighest, KeepLowest, DropHighest, DropLowest)


# =============================================================================
# Expression Nodes
# =============================================================================


@dataclass(frozen=True)
class Literal:
    value: int
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class DiceGroup:
    """
    A group of identical dice with its modifiers.

    Attributes:
        count: Number of dice rolled
        sides: Faces per die
        modifiers: Modifiers in parse order
        index: Parse-order index of the group within the expression
        percentile: Written as d% in the source
    """

    count: int
    sides: int
    modifiers: Tuple[Modifier, ...] = ()
    index: int = 0
    position: int = field(default=0, compare=False)
    percentile: bool = field(default=False, compare=False)

    def notation(self) -> str:
        sides = "%" if self.percentile else str(self.sides)
        mods = "".join(m.notation() for m in self.modifiers)
        return f"{self.count}d{sides}{mods}"


@dataclass(frozen=True)
class BinaryOp:
    op: str
    left: "Node"
    right: "Node"
    position: int = field(default=0, compare=False)


@dataclass(frozen=True)
class UnaryOp:
    op: str
    operand: "Node"
    position: int = field(default=0, compare=False)


Node = Union[Literal, DiceGroup, BinaryOp, UnaryOp]


def truncating_div(left: int, right: int) -> int:
    """Integer division rounding toward zero (-7 / 2 == -3)."""
    quotient = abs(left) // abs(right)
    return quotient if (left >= 0) == (right > 0) else -quotient


ARITHMETIC: Dict[str, Callable[[int, int], int]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": truncating_div,
}

PRECEDENCE = {"+": 1, "-": 1, "*": 2, "/": 2}


def iter_dice_groups(node: Node):
    """Yield the dice groups of a tree in parse order."""
    if isinstance(node, DiceGroup):
        yield node
    elif isinstance(node, BinaryOp):
        yield from iter_dice_groups(node.left)
        yield from iter_dice_groups(node.right)
    elif isinstance(node, UnaryOp):
        yield from iter_dice_groups(node.operand)
