"""
dicelang

Evaluate dice notation such as 2d6+3, 4d6kh3 or 5d10cs>=8.

Example usage:
    evaluate("2d6").total             -> 7
    evaluate("d20+5").format()        -> "🎲 1d20[17] + 5 = 22"
    evaluate("4d6kh3").format()       -> "🎲 4d6kh3[6, ~~2~~, 4, 3] = 13"
    distribution("2d6kh1")            -> {1: 1, 2: 3, 3: 5, 4: 7, 5: 9, 6: 11}
"""

from .config import DiceConfig, configure_logger, load_config
from .distribution import DistributionCalculator
from .errors import (
    ConfigError,
    DiceError,
    DiceLimitError,
    DistributionTooLargeError,
    DivisionByZeroError,
    EvaluationError,
    ExplodeLoopExceededError,
    InvalidDiceGroupError,
    InvalidRangeError,
    LexError,
    LoopExceededError,
    ParseError,
    RandomSourceError,
    RandomSourceExhausted,
    RerollLoopExceededError,
    UnsupportedDistributionError,
)
from .evaluator import Evaluator
from .lexer import Token, TokenKind, tokenize
from .parser import DiceParser, parse
from .result import DieRoll, GroupRolls, Result, ResultBuilder, RollOrigin, RollStatus, build
from .rng import ConstantRandomSource, RandomSource, SequenceRandomSource, SystemRandomSource
from .roller import DiceRoller, distribution, evaluate

__all__ = [
    "ConfigError",
    "ConstantRandomSource",
    "DiceConfig",
    "DiceError",
    "DiceLimitError",
    "DiceParser",
    "DiceRoller",
    "DieRoll",
    "DistributionCalculator",
    "DistributionTooLargeError",
    "DivisionByZeroError",
    "EvaluationError",
    "Evaluator",
    "ExplodeLoopExceededError",
    "GroupRolls",
    "InvalidDiceGroupError",
    "InvalidRangeError",
    "LexError",
    "LoopExceededError",
    "ParseError",
    "RandomSource",
    "RandomSourceError",
    "RandomSourceExhausted",
    "RerollLoopExceededError",
    "Result",
    "ResultBuilder",
    "RollOrigin",
    "RollStatus",
    "SequenceRandomSource",
    "SystemRandomSource",
    "Token",
    "TokenKind",
    "UnsupportedDistributionError",
    "build",
    "configure_logger",
    "distribution",
    "evaluate",
    "load_config",
    "parse",
    "tokenize",
]
__version__ = "1.0.0"
