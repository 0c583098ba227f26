"""
dicelang/distribution.py

Exact outcome distributions.

Maps every total an expression can produce to the number of equally
likely ways of producing it, e.g. 2d6kh1 -> {1: 1, 2: 3, 3: 5, 4: 7,
5: 9, 6: 11}. Groups with keep/drop or count-successes are enumerated
as multisets of faces; plain groups are convolved die by die.

Rerolls and explosions are not modelled.
"""

import logging
from collections import Counter
from itertools import combinations_with_replacement
from math import comb, factorial
from typing import Dict, List

from .errors import DistributionTooLargeError, DivisionByZeroError, UnsupportedDistributionError
from .nodes import (
    ARITHMETIC,
    RANK_MODIFIERS,
    BinaryOp,
    CountSuccesses,
    DiceGroup,
    DropHighest,
    DropLowest,
    Explode,
    KeepHighest,
    KeepLowest,
    Literal,
    Maximum,
    Minimum,
    Node,
    Reroll,
    UnaryOp,
)

logger = logging.getLogger(__name__)

Distribution = Dict[int, int]


class DistributionCalculator:
    """
    Compute exact distributions of expression trees.

    Attributes:
        max_outcomes: Cap on the work of one distribution() call, counted
            as face multisets enumerated plus pairs of outcomes combined
    """

    DEFAULT_MAX_OUTCOMES = 1_000_000

    def __init__(self, max_outcomes: int = DEFAULT_MAX_OUTCOMES):
        self.max_outcomes = max_outcomes

    def distribution(self, node: Node) -> Distribution:
        """
        Compute the distribution of a tree.

        Args:
            node: Root of the expression tree

        Returns:
            Dict of total -> number of ways, sorted by total

        Raises:
            UnsupportedDistributionError: If a group rerolls or explodes
            DistributionTooLargeError: If the work exceeds max_outcomes
            DivisionByZeroError: If any divisor outcome is zero
        """
        return dict(sorted(_DistributionWalk(self.max_outcomes).evaluate(node).items()))


class _DistributionWalk:
    """Single-use walk over one tree with its own work budget."""

    def __init__(self, max_outcomes: int):
        self.max_outcomes = max_outcomes
        self.work = 0

    def _charge(self, amount: int, what: str, position: int) -> None:
        if self.work + amount > self.max_outcomes:
            raise DistributionTooLargeError(
                f"{what} exceeds the limit of {self.max_outcomes} outcomes",
                position,
            )
        self.work += amount

    def _combine(self, left: Distribution, right: Distribution, op, position: int) -> Distribution:
        self._charge(
            len(left) * len(right),
            f"Combining {len(left)} by {len(right)} outcomes",
            position,
        )
        combined: Counter = Counter()
        for x, ways_x in left.items():
            for y, ways_y in right.items():
                combined[op(x, y)] += ways_x * ways_y
        return dict(combined)

    def evaluate(self, node: Node) -> Distribution:
        if isinstance(node, Literal):
            return {node.value: 1}

        if isinstance(node, DiceGroup):
            return self._group(node)

        if isinstance(node, UnaryOp):
            return {-value: ways for value, ways in self.evaluate(node.operand).items()}

        left = self.evaluate(node.left)
        right = self.evaluate(node.right)
        if node.op == "/" and 0 in right:
            raise DivisionByZeroError(
                f"Divisor can be zero at position {node.position}", node.position
            )
        return self._combine(left, right, ARITHMETIC[node.op], node.position)

    # =========================================================================
    # Dice Groups
    # =========================================================================

    def _group(self, group: DiceGroup) -> Distribution:
        for modifier in group.modifiers:
            if isinstance(modifier, (Reroll, Explode)):
                raise UnsupportedDistributionError(
                    f"{group.notation()}: '{modifier.notation()}' cannot be "
                    "used in a distribution",
                    group.position,
                )

        needs_multisets = any(
            isinstance(m, RANK_MODIFIERS + (CountSuccesses,)) for m in group.modifiers
        )
        if needs_multisets:
            return self._enumerate(group)
        return self._convolve(group)

    def _convolve(self, group: DiceGroup) -> Distribution:
        """Sum of independent dice, each with clamps applied."""
        die: Counter = Counter()
        for face in range(1, group.sides + 1):
            die[_clamp_all(face, group)] += 1

        result: Distribution = {0: 1}
        for _ in range(group.count):
            result = self._combine(result, die, ARITHMETIC["+"], group.position)
        return result

    def _enumerate(self, group: DiceGroup) -> Distribution:
        """Walk every multiset of faces, weighting by its permutations."""
        outcomes = comb(group.count + group.sides - 1, group.count)
        self._charge(outcomes, f"{group.notation()}: {outcomes} outcomes", group.position)
        logger.debug(f"Enumerating {outcomes} outcomes for {group.notation()}")

        count_factorial = factorial(group.count)
        result: Counter = Counter()
        for faces in combinations_with_replacement(range(1, group.sides + 1), group.count):
            ways = count_factorial
            for repeats in Counter(faces).values():
                ways //= factorial(repeats)
            result[_score(list(faces), group)] += ways
        return dict(result)



def _clamp_all(face: int, group: DiceGroup) -> int:
    for modifier in group.modifiers:
        if isinstance(modifier, Minimum):
            face = max(face, modifier.value)
        elif isinstance(modifier, Maximum):
            face = min(face, modifier.value)
    return face


def _score(values: List[int], group: DiceGroup) -> int:
    """Apply modifiers to kept faces, sorted ascending."""
    for modifier in group.modifiers:
        size = len(values)
        if isinstance(modifier, KeepHighest):
            values = values[max(size - modifier.count, 0):]
        elif isinstance(modifier, KeepLowest):
            values = values[:modifier.count]
        elif isinstance(modifier, DropHighest):
            values = values[:max(size - modifier.count, 0)]
        elif isinstance(modifier, DropLowest):
            values = values[modifier.count:]
        elif isinstance(modifier, Minimum):
            values = sorted(max(v, modifier.value) for v in values)
        elif isinstance(modifier, Maximum):
            values = sorted(min(v, modifier.value) for v in values)
        elif isinstance(modifier, CountSuccesses):
            return sum(1 for v in values if modifier.condition.matches(v))
    return sum(values)


def probabilities(dist: Distribution) -> Dict[int, float]:
    """Normalise ways into probabilities."""
    total = sum(dist.values())
    return {value: ways / total for value, ways in dist.items()}


def mean(dist: Distribution) -> float:
    total = sum(dist.values())
    return sum(value * ways for value, ways in dist.items()) / total
