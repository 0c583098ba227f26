"""
dicelang/evaluator.py

Tree-walking evaluator.

Rolls each dice group through the injected random source, applies its
modifiers in parse order and folds arithmetic into a single integer,
recording every die in a roll trace.

Policies:
    - Integer division truncates toward zero (-7 / 2 == -3)
    - "r" rerolls each matching die once; "rr" keeps rerolling while the
      new face matches, up to max_iterations rerolls per die
    - "!" explodes repeatedly while new dice match, up to max_iterations
      extra dice per original die
"""

import logging
from dataclasses import replace
from typing import Callable, Dict, List, Optional, Tuple

from .errors import DivisionByZeroError, ExplodeLoopExceededError, RerollLoopExceededError
from .nodes import (
    ARITHMETIC,
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
    Modifier,
    Node,
    Reroll,
    UnaryOp,
)
from .result import DieRoll, RollOrigin, RollStatus, subtotal
from .rng import RandomSource, default_source

logger = logging.getLogger(__name__)

Trace = List[DieRoll]


class Evaluator:
    """
    Evaluate expression trees against a random source.

    Uses an injectable random source for testability; given the same
    sequence of random values, evaluation is fully reproducible.
    """

    DEFAULT_MAX_ITERATIONS = 100

    def __init__(
        self,
        source: Optional[RandomSource] = None,
        max_iterations: int = DEFAULT_MAX_ITERATIONS,
    ):
        """
        Initialize evaluator.

        Args:
            source: Random source (defaults to the process-wide system source)
            max_iterations: Cap on rerolls or explosions stemming from one die
        """
        self.source = source or default_source()
        self.max_iterations = max_iterations
        self._modifier_handlers: Dict[type, Callable[[DiceGroup, Modifier, Trace], Trace]] = {
            Reroll: self._reroll,
            Explode: self._explode,
            KeepHighest: self._rank,
            KeepLowest: self._rank,
            DropHighest: self._rank,
            DropLowest: self._rank,
            Minimum: self._clamp,
            Maximum: self._clamp,
            CountSuccesses: self._count_successes,
        }

    def evaluate(self, node: Node) -> Tuple[int, Trace]:
        """
        Evaluate a tree.

        Args:
            node: Root of the expression tree

        Returns:
            Tuple of (value, trace) where trace lists every die rolled, in
            left-to-right group order

        Raises:
            DivisionByZeroError: If a divisor evaluates to zero
            RerollLoopExceededError: If a reroll-until chain hits the cap
            ExplodeLoopExceededError: If an explosion chain hits the cap
        """
        if isinstance(node, Literal):
            return node.value, []

        if isinstance(node, DiceGroup):
            return self.roll_group(node)

        if isinstance(node, UnaryOp):
            value, trace = self.evaluate(node.operand)
            return -value, trace

        left, left_trace = self.evaluate(node.left)
        right, right_trace = self.evaluate(node.right)
        if node.op == "/" and right == 0:
            raise DivisionByZeroError(
                f"Division by zero at position {node.position}", node.position
            )
        return ARITHMETIC[node.op](left, right), left_trace + right_trace

    # =========================================================================
    # Dice Groups
    # =========================================================================

    def roll_group(self, group: DiceGroup) -> Tuple[int, Trace]:
        """
        Roll one dice group and apply its modifiers in parse order.

        Returns:
            Tuple of (subtotal, records)
        """
        records: Trace = [self._roll_die(group) for _ in range(group.count)]

        for modifier in group.modifiers:
            records = self._modifier_handlers[type(modifier)](group, modifier, records)

        score = subtotal(records)
        logger.debug(
            f"{group.notation()} rolled "
            f"{[r.annotate() for r in records]} -> {score}"
        )
        return score, records

    def _roll_die(self, group: DiceGroup, origin: RollOrigin = RollOrigin.ROLL) -> DieRoll:
        return DieRoll(group.index, self.source.roll(1, group.sides), origin=origin)

    def _reroll(self, group: DiceGroup, modifier: Reroll, records: Trace) -> Trace:
        result = list(records)
        condition = modifier.condition

        # Only dice present before this modifier are candidates
        for i, record in enumerate(records):
            if not (record.is_kept and condition.matches(record.value)):
                continue
            result[i] = replace(record, status=RollStatus.REROLLED)

            replacement = self._roll_die(group, RollOrigin.REROLL)
            attempts = 1
            while modifier.until and condition.matches(replacement.value):
                if attempts >= self.max_iterations:
                    raise RerollLoopExceededError(
                        f"{group.notation()}: reroll still matching after "
                        f"{self.max_iterations} attempts",
                        group.position,
                    )
                result.append(replace(replacement, status=RollStatus.REROLLED))
                replacement = self._roll_die(group, RollOrigin.REROLL)
                attempts += 1
            result.append(replacement)

        return result

    def _explode(self, group: DiceGroup, modifier: Explode, records: Trace) -> Trace:
        result = list(records)
        condition = modifier.condition

        for i, record in enumerate(records):
            if not (record.is_kept and condition.matches(record.value)):
                continue
            result[i] = replace(record, exploded=True)

            extra = self._roll_die(group, RollOrigin.EXPLOSION)
            chain = 1
            while condition.matches(extra.value):
                if chain >= self.max_iterations:
                    raise ExplodeLoopExceededError(
                        f"{group.notation()}: explosion still matching after "
                        f"{self.max_iterations} extra dice",
                        group.position,
                    )
                result.append(replace(extra, exploded=True))
                extra = self._roll_die(group, RollOrigin.EXPLOSION)
                chain += 1
            result.append(extra)

        return result

    def _rank(self, group: DiceGroup, modifier: Modifier, records: Trace) -> Trace:
        """Keep or drop kept dice by rank; ties rank in roll order."""
        kept = [i for i, r in enumerate(records) if r.is_kept]
        highest_first = isinstance(modifier, (KeepHighest, DropHighest))
        if highest_first:
            ranked = sorted(kept, key=lambda i: (-records[i].value, i))
        else:
            ranked = sorted(kept, key=lambda i: (records[i].value, i))

        if isinstance(modifier, (KeepHighest, KeepLowest)):
            to_drop = ranked[modifier.count:]
        else:
            to_drop = ranked[:modifier.count]

        result = list(records)
        for i in to_drop:
            result[i] = replace(records[i], status=RollStatus.DROPPED)
        return result

    def _clamp(self, group: DiceGroup, modifier: Modifier, records: Trace) -> Trace:
        result = []
        for record in records:
            if record.is_kept:
                if isinstance(modifier, Minimum):
                    value = max(record.value, modifier.value)
                else:
                    value = min(record.value, modifier.value)
                if value != record.value:
                    natural = record.natural if record.natural is not None else record.value
                    record = replace(record, value=value, natural=natural)
            result.append(record)
        return result

    def _count_successes(
        self, group: DiceGroup, modifier: CountSuccesses, records: Trace
    ) -> Trace:
        return [
            replace(r, success=modifier.condition.matches(r.value)) if r.is_kept else r
            for r in records
        ]
