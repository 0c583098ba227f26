"""
dicelang/config.py

Limits configuration and logging setup.

Configuration can be built from a plain dict (as embedded in a host's own
config file) or loaded from a JSON or YAML file:

    {
        "max_dice": 100,
        "max_sides": 1000,
        "max_iterations": 100,
        "max_outcomes": 1000000,
        "emit_breakdown": true,
        "log_level": "INFO"
    }
"""

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml

from .distribution import DistributionCalculator
from .errors import ConfigError
from .evaluator import Evaluator
from .parser import DiceParser


@dataclass(frozen=True)
class DiceConfig:
    """
    Evaluation limits.

    Attributes:
        max_dice: Maximum dice in one group
        max_sides: Maximum sides per die
        max_iterations: Cap on rerolls/explosions stemming from one die
        max_outcomes: Cap on the work of one distribution() call
        emit_breakdown: Render the textual breakdown in results
        log_level: Level name applied to the "dicelang" logger by DiceRoller
    """

    max_dice: int = DiceParser.DEFAULT_MAX_DICE
    max_sides: int = DiceParser.DEFAULT_MAX_SIDES
    max_iterations: int = Evaluator.DEFAULT_MAX_ITERATIONS
    max_outcomes: int = DistributionCalculator.DEFAULT_MAX_OUTCOMES
    emit_breakdown: bool = True
    log_level: str = "INFO"

    def __post_init__(self):
        for name in ("max_dice", "max_sides", "max_iterations", "max_outcomes"):
            value = getattr(self, name)
            if isinstance(value, bool) or not isinstance(value, int) or value < 1:
                raise ConfigError(f"{name} must be a positive integer, got {value!r}")
        if not isinstance(self.emit_breakdown, bool):
            raise ConfigError(f"emit_breakdown must be a boolean, got {self.emit_breakdown!r}")
        if not isinstance(logging.getLevelName(str(self.log_level).upper()), int):
            raise ConfigError(f"Unknown log_level {self.log_level!r}")

    @classmethod
    def from_dict(cls, conf: Optional[Dict[str, Any]] = None) -> "DiceConfig":
        """
        Build config from a dict, using defaults for missing keys.

        Raises:
            ConfigError: If a value is invalid or the key is unknown
        """
        conf = conf or {}
        unknown = set(conf) - set(cls.__dataclass_fields__)
        if unknown:
            raise ConfigError(f"Unknown config keys: {', '.join(sorted(unknown))}")

        return cls(
            max_dice=conf.get("max_dice", cls.max_dice),
            max_sides=conf.get("max_sides", cls.max_sides),
            max_iterations=conf.get("max_iterations", cls.max_iterations),
            max_outcomes=conf.get("max_outcomes", cls.max_outcomes),
            emit_breakdown=conf.get("emit_breakdown", cls.emit_breakdown),
            log_level=conf.get("log_level", cls.log_level),
        )

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @property
    def level(self) -> int:
        return logging.getLevelName(self.log_level.upper())


def load_config(config_file: Union[str, Path]) -> DiceConfig:
    """
    Load configuration from a JSON or YAML file.

    The format is picked from the extension: .yaml/.yml are YAML,
    anything else is JSON.

    Args:
        config_file: Path to the config file

    Returns:
        DiceConfig built from the file contents

    Raises:
        ConfigError: If the file cannot be read or parsed
    """
    path = Path(config_file)

    try:
        with open(path, 'r', encoding='utf-8') as fp:
            if path.suffix in ('.yaml', '.yml'):
                conf = yaml.safe_load(fp)
            else:
                conf = json.load(fp)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except (json.JSONDecodeError, yaml.YAMLError) as e:
        raise ConfigError(f"Cannot parse config file {path}: {e}") from e

    if conf is None:
        conf = {}
    if not isinstance(conf, dict):
        raise ConfigError(f"Config file {path} must contain a mapping")

    return DiceConfig.from_dict(conf)


def configure_logger(logger,
                     log_file=None,
                     log_format=None,
                     log_level=logging.INFO):
    """Configure a logger with a file or stream handler

    Args:
        logger: Logger instance or logger name string
        log_file: File path string or file-like object (None for stderr)
        log_format: Format string for log messages
        log_level: Logging level (e.g., logging.INFO, logging.DEBUG)

    Returns:
        Configured logger instance
    """
    if isinstance(log_file, (str, Path)):
        handler = logging.FileHandler(
            log_file,
            mode='a',
            encoding='utf-8',
            errors='replace'
        )
    else:
        handler = logging.StreamHandler(log_file)  # Default to stderr if None

    formatter = logging.Formatter(log_format)

    if isinstance(logger, str):
        logger = logging.getLogger(logger)

    handler.setFormatter(formatter)
    logger.addHandler(handler)
    logger.setLevel(log_level)

    return logger
