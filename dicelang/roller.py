"""
dicelang/roller.py

Entry points for hosts.

    result = evaluate("4d6kh3+2")
    result.total         -> 13
    result.to_dict()     -> {"expression": ..., "total": ..., "rolls": [...], ...}

DiceRoller wires config, parser, random source, evaluator and result
builder together, and converts results and errors into the response
envelope hosts pass back to their callers:

    {"success": true, "result": {..., "formatted": "🎲 2d6[4, 3] = 7"}}
    {"success": false, "error": {"kind": "ParseError", "message": ..., "position": 3}}
"""

import json
import logging
import random
from typing import Any, Dict, Optional, Union

from .config import DiceConfig
from .distribution import Distribution, DistributionCalculator
from .errors import DiceError
from .evaluator import Evaluator
from .parser import DiceParser
from .result import Result, ResultBuilder
from .rng import RandomSource, SystemRandomSource, default_source

logger = logging.getLogger(__name__)

PACKAGE_LOGGER = "dicelang"


class DiceRoller:
    """
    Evaluate dice notation with configured limits.

    Uses a configurable random source for testability.
    """

    ROLL_USAGE = (
        "Usage: [count]d<sides>[modifiers] combined with + - * / and ( )\n"
        "Examples: 2d6+3, d20, 4d6kh3, 2d20kl1, 3d6r1, 5d10cs>=8, 1d6!"
    )

    def __init__(
        self,
        config: Optional[Union[DiceConfig, Dict[str, Any]]] = None,
        rng: Optional[Union[RandomSource, random.Random]] = None,
        parser: Optional[DiceParser] = None,
    ):
        """
        Initialize roller.

        Args:
            config: DiceConfig or plain config dict (defaults applied)
            rng: Random source, or a random.Random to wrap (defaults to
                the process-wide system source)
            parser: Dice parser (defaults to one built from config limits)
        """
        if not isinstance(config, DiceConfig):
            config = DiceConfig.from_dict(config)
        self.config = config
        # Level of the package logger; handlers stay with the host
        logging.getLogger(PACKAGE_LOGGER).setLevel(config.level)

        if rng is None:
            self.source: RandomSource = default_source()
        elif isinstance(rng, RandomSource):
            self.source = rng
        else:
            self.source = SystemRandomSource(rng)

        self.parser = parser or DiceParser(
            max_dice=config.max_dice,
            max_sides=config.max_sides,
        )
        self.builder = ResultBuilder(emit_breakdown=config.emit_breakdown)
        logger.debug(
            f"DiceRoller ready (max_dice={config.max_dice}, "
            f"max_sides={config.max_sides}, max_iterations={config.max_iterations})"
        )

    def roll(self, notation: str) -> Result:
        """
        Parse notation and evaluate it.

        Args:
            notation: Dice expression (e.g., "2d6+5")

        Returns:
            Result with total, grouped rolls and breakdown

        Raises:
            DiceError: If the notation is invalid or evaluation fails
        """
        node = self.parser.parse_expression(notation)
        evaluator = Evaluator(self.source, max_iterations=self.config.max_iterations)
        value, trace = evaluator.evaluate(node)
        return self.builder.build(node, value, trace, notation)

    def distribution(self, notation: str) -> Distribution:
        """
        Exact distribution of the notation's totals.

        Returns:
            Dict of total -> number of ways, sorted by total

        Raises:
            DiceError: If the notation is invalid or cannot be modelled
        """
        node = self.parser.parse_expression(notation)
        return DistributionCalculator(self.config.max_outcomes).distribution(node)

    def handle_request(self, payload: Union[bytes, str, Dict[str, Any]]) -> Dict[str, Any]:
        """
        Evaluate a host request and build the response envelope.

        Expected payload format:
            {
                "args": "2d6+5",
                "distribution": false
            }

        Args:
            payload: Dict, JSON text or UTF-8 encoded JSON

        Returns:
            Response dict with success status and result or error
        """
        if not isinstance(payload, dict):
            try:
                if isinstance(payload, bytes):
                    payload = payload.decode()
                payload = json.loads(payload)
            except (json.JSONDecodeError, UnicodeDecodeError) as e:
                logger.error(f"Invalid message format: {e}")
                return {"success": False, "error": {"kind": "FormatError",
                                                    "message": "Invalid message format"}}
            if not isinstance(payload, dict):
                return {"success": False, "error": {"kind": "FormatError",
                                                    "message": "Invalid message format"}}

        notation = str(payload.get("args") or "").strip()
        if not notation:
            return {"success": False, "error": {"kind": "UsageError",
                                                "message": self.ROLL_USAGE}}

        try:
            if payload.get("distribution"):
                dist = self.distribution(notation)
                return {
                    "success": True,
                    "result": {
                        "expression": notation,
                        "distribution": {str(k): v for k, v in dist.items()},
                    },
                }

            result = self.roll(notation)
        except DiceError as e:
            logger.debug(f"Roll error for '{notation}': {e}")
            return {"success": False, "error": e.to_dict()}

        data = result.to_dict()
        data["formatted"] = result.format()
        return {"success": True, "result": data}


def evaluate(expression: str, rng: Optional[Union[RandomSource, random.Random]] = None) -> Result:
    """
    Evaluate dice notation with default limits.

    Args:
        expression: Dice expression (e.g., "4d6kh3")
        rng: Optional random source for deterministic runs

    Returns:
        Result of the evaluation

    Raises:
        DiceError: On any lexing, parsing or evaluation failure
    """
    return DiceRoller(rng=rng).roll(expression)


def distribution(expression: str) -> Distribution:
    """Exact distribution of an expression with default limits."""
    return DiceRoller().distribution(expression)
