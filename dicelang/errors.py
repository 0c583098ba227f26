"""
dicelang/errors.py

Dice-notation exceptions.

Every stage raises its own error type; nothing inside the core recovers
from one. Hosts should catch DiceError.
"""

from typing import Any, Dict, Optional


class DiceError(Exception):
    """Base exception for dice evaluation errors."""

    def __init__(self, message: str, position: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.position = position

    @property
    def kind(self) -> str:
        """Error class name, used as the failure kind in responses."""
        return type(self).__name__

    def to_dict(self) -> Dict[str, Any]:
        """Structured form for response envelopes."""
        data: Dict[str, Any] = {"kind": self.kind, "message": self.message}
        if self.position is not None:
            data["position"] = self.position
        return data


class ConfigError(DiceError):
    """Configuration file or value invalid."""
    pass


# =============================================================================
# Lexing / Parsing
# =============================================================================


class LexError(DiceError):
    """Character outside the dice-notation alphabet."""

    def __init__(self, position: int, char: str):
        super().__init__(f"Unexpected character '{char}' at position {position}", position)
        self.char = char


class ParseError(DiceError):
    """Token stream does not match the grammar."""

    def __init__(
        self,
        position: int,
        expected: str,
        found: str,
        message: Optional[str] = None,
    ):
        if message is None:
            message = f"Expected {expected} at position {position}, found {found}"
        super().__init__(message, position)
        self.expected = expected
        self.found = found


class InvalidDiceGroupError(ParseError):
    """Dice group with non-positive count or side count."""
    pass


class DiceLimitError(ParseError):
    """Dice group exceeds a configured limit."""
    pass


# =============================================================================
# Evaluation
# =============================================================================


class EvaluationError(DiceError):
    """Expression failed while being evaluated."""
    pass


class DivisionByZeroError(EvaluationError):
    """Divisor evaluated to zero."""
    pass


class LoopExceededError(EvaluationError):
    """Reroll or explode chain hit the iteration cap."""
    pass


class RerollLoopExceededError(LoopExceededError):
    """Reroll-until condition kept matching past the cap."""
    pass


class ExplodeLoopExceededError(LoopExceededError):
    """Explosion chain kept matching past the cap."""
    pass


class UnsupportedDistributionError(EvaluationError):
    """Expression uses modifiers the distribution calculator cannot model."""
    pass


class DistributionTooLargeError(EvaluationError):
    """Exact distribution would need too many outcomes."""
    pass


# =============================================================================
# Random Source
# =============================================================================


class RandomSourceError(DiceError):
    """Random source misuse."""
    pass


class InvalidRangeError(RandomSourceError):
    """roll() called with min > max."""
    pass


class RandomSourceExhausted(RandomSourceError):
    """Replay sequence has no values left."""
    pass
