"""
Unit tests for the dice-notation parser.

Tests cover:
- Precedence, associativity, parentheses and unary minus
- Dice groups, defaults and limits
- Modifier parsing and ordering
- ParseError reporting
"""

import pytest

from dicelang import DiceLimitError, DiceParser, InvalidDiceGroupError, ParseError, parse, tokenize
from dicelang.nodes import (
    BinaryOp,
    Condition,
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
    Reroll,
    UnaryOp,
)


# =============================================================================
# Arithmetic
# =============================================================================


class TestArithmetic:
    """Tests for precedence and grouping."""

    def test_literal(self, parser: DiceParser) -> None:
        """Test a bare number."""
        assert parser.parse_expression("42") == Literal(42)

    def test_multiplication_binds_tighter(self, parser: DiceParser) -> None:
        """Test that * binds tighter than +."""
        assert parser.parse_expression("2+3*4") == BinaryOp(
            "+", Literal(2), BinaryOp("*", Literal(3), Literal(4))
        )

    def test_left_associative(self, parser: DiceParser) -> None:
        """Test that - and / associate to the left."""
        assert parser.parse_expression("10-3-2") == BinaryOp(
            "-", BinaryOp("-", Literal(10), Literal(3)), Literal(2)
        )
        assert parser.parse_expression("20/5/2") == BinaryOp(
            "/", BinaryOp("/", Literal(20), Literal(5)), Literal(2)
        )

    def test_parentheses(self, parser: DiceParser) -> None:
        """Test that parentheses override precedence."""
        assert parser.parse_expression("(2 + 2) * (5 + 3)") == BinaryOp(
            "*",
            BinaryOp("+", Literal(2), Literal(2)),
            BinaryOp("+", Literal(5), Literal(3)),
        )

    def test_unary_minus(self, parser: DiceParser) -> None:
        """Test unary minus, including after a binary operator."""
        assert parser.parse_expression("-3") == UnaryOp("-", Literal(3))
        assert parser.parse_expression("2+-3") == BinaryOp(
            "+", Literal(2), UnaryOp("-", Literal(3))
        )
        assert parser.parse_expression("--1d4") == UnaryOp(
            "-", UnaryOp("-", DiceGroup(1, 4))
        )

    def test_positions_ignored_by_equality(self, parser: DiceParser) -> None:
        """Test that spacing does not change the tree."""
        assert parser.parse_expression("2d6 + 3") == parser.parse_expression("2d6+3")

    def test_module_level_parse(self) -> None:
        """Test parse() on a token list."""
        assert parse(tokenize("1+1")) == BinaryOp("+", Literal(1), Literal(1))


# =============================================================================
# Dice Groups
# =============================================================================


class TestDiceGroups:
    """Tests for dice group syntax."""

    @pytest.mark.parametrize(
        "notation,count,sides",
        [
            ("2d6", 2, 6),
            ("d20", 1, 20),
            ("1d20", 1, 20),
            ("D8", 1, 8),
            ("1d1", 1, 1),
            ("d%", 1, 100),
            ("3d%", 3, 100),
        ],
    )
    def test_valid_group(self, parser: DiceParser, notation: str, count: int, sides: int) -> None:
        """Test parsing count and sides."""
        node = parser.parse_expression(notation)
        assert isinstance(node, DiceGroup)
        assert (node.count, node.sides) == (count, sides)
        assert node.modifiers == ()

    def test_group_indices_in_parse_order(self, parser: DiceParser) -> None:
        """Test that groups are numbered left to right."""
        node = parser.parse_expression("1d4 + 2d6 * (3d8 - 1)")
        first = node.left
        second = node.right.left
        third = node.right.right.left
        assert [first.index, second.index, third.index] == [0, 1, 2]

    def test_parser_reusable(self, parser: DiceParser) -> None:
        """Test that group numbering restarts for every parse."""
        parser.parse_expression("1d4+1d4")
        assert parser.parse_expression("1d6").index == 0

    def test_zero_sides(self, parser: DiceParser) -> None:
        """Test that zero sides raises InvalidDiceGroupError."""
        with pytest.raises(InvalidDiceGroupError, match="at least 1 side"):
            parser.parse_expression("3d0")

    def test_zero_dice(self, parser: DiceParser) -> None:
        """Test that zero dice raises InvalidDiceGroupError."""
        with pytest.raises(InvalidDiceGroupError, match="at least 1 die"):
            parser.parse_expression("0d6")

    def test_invalid_group_is_parse_error(self, parser: DiceParser) -> None:
        """Test that the dice group error belongs to the ParseError family."""
        with pytest.raises(ParseError) as exc_info:
            parser.parse_expression("2 + 3d0")
        assert exc_info.value.position == 5

    def test_missing_sides(self, parser: DiceParser) -> None:
        """Test that a dice marker needs sides."""
        with pytest.raises(ParseError) as exc_info:
            parser.parse_expression("2d")
        assert exc_info.value.expected == "number of sides"
        assert exc_info.value.found == "end of input"


class TestDiceLimits:
    """Tests for configured limits."""

    def test_exceeds_max_dice(self, strict_parser: DiceParser) -> None:
        """Test that exceeding max dice raises DiceLimitError."""
        with pytest.raises(DiceLimitError, match="Maximum 5 dice"):
            strict_parser.parse_expression("6d6")

    def test_at_max_dice(self, strict_parser: DiceParser) -> None:
        """Test that max dice exactly is allowed."""
        assert strict_parser.parse_expression("5d6").count == 5

    def test_exceeds_max_sides(self, strict_parser: DiceParser) -> None:
        """Test that exceeding max sides raises DiceLimitError."""
        with pytest.raises(DiceLimitError, match="Maximum 20 sides"):
            strict_parser.parse_expression("1d21")

    def test_percentile_respects_max_sides(self, strict_parser: DiceParser) -> None:
        """Test that d% counts as 100 sides."""
        with pytest.raises(DiceLimitError):
            strict_parser.parse_expression("d%")


# =============================================================================
# Modifiers
# =============================================================================


class TestModifiers:
    """Tests for modifier parsing."""

    @pytest.mark.parametrize(
        "notation,modifier",
        [
            ("4d6kh3", KeepHighest(3)),
            ("4d6k3", KeepHighest(3)),
            ("2d20kh", KeepHighest(1)),
            ("2d20kl1", KeepLowest(1)),
            ("4d6dh", DropHighest(1)),
            ("4d6dl2", DropLowest(2)),
            ("3d6r", Reroll(Condition("=", 1))),
            ("3d6r2", Reroll(Condition("=", 2))),
            ("3d6r<3", Reroll(Condition("<", 3))),
            ("3d6rr<=2", Reroll(Condition("<=", 2), until=True)),
            ("3d6!", Explode(Condition("=", 6))),
            ("3d6!>5", Explode(Condition(">", 5))),
            ("5d10cs>=8", CountSuccesses(Condition(">=", 8))),
            ("5d10cs", CountSuccesses(Condition("=", 10))),
            ("4d6min2", Minimum(2)),
            ("4d6max5", Maximum(5)),
        ],
    )
    def test_single_modifier(self, parser: DiceParser, notation: str, modifier) -> None:
        """Test each modifier with explicit and default arguments."""
        node = parser.parse_expression(notation)
        assert node.modifiers == (modifier,)

    def test_modifiers_keep_parse_order(self, parser: DiceParser) -> None:
        """Test that modifiers are stored in the order written."""
        node = parser.parse_expression("4d6r1kh3")
        assert node.modifiers == (Reroll(Condition("=", 1)), KeepHighest(3))

        node = parser.parse_expression("4d6kh3r1")
        assert node.modifiers == (KeepHighest(3), Reroll(Condition("=", 1)))

    def test_modifier_then_arithmetic(self, parser: DiceParser) -> None:
        """Test that an operator ends the modifier list."""
        node = parser.parse_expression("4d6kh3+2")
        assert node == BinaryOp("+", DiceGroup(4, 6, (KeepHighest(3),)), Literal(2))

    def test_modifier_on_number(self, parser: DiceParser) -> None:
        """Test that modifiers cannot follow a plain number."""
        with pytest.raises(ParseError, match="must follow a dice group"):
            parser.parse_expression("5kh1")

    def test_modifier_on_parentheses(self, parser: DiceParser) -> None:
        """Test that modifiers cannot follow a parenthesized expression."""
        with pytest.raises(ParseError, match="must follow a dice group"):
            parser.parse_expression("(2d6)kh1")

    def test_min_requires_number(self, parser: DiceParser) -> None:
        """Test that min/max need a value."""
        with pytest.raises(ParseError) as exc_info:
            parser.parse_expression("4d6min")
        assert exc_info.value.expected == "number after 'min'"

    def test_comparator_requires_number(self, parser: DiceParser) -> None:
        """Test that a comparator needs a target."""
        with pytest.raises(ParseError):
            parser.parse_expression("4d6r<")

    def test_count_successes_must_be_last(self, parser: DiceParser) -> None:
        """Test that nothing may follow cs."""
        with pytest.raises(ParseError, match="last modifier"):
            parser.parse_expression("5d10cs>7kh3")


# =============================================================================
# Errors
# =============================================================================


class TestParseErrors:
    """Tests for malformed notation."""

    def test_empty(self, parser: DiceParser) -> None:
        """Test that empty input raises ParseError."""
        with pytest.raises(ParseError, match="cannot be empty"):
            parser.parse_expression("   ")

    def test_unmatched_open(self, parser: DiceParser) -> None:
        """Test a missing closing parenthesis."""
        with pytest.raises(ParseError, match="Unmatched '\\('") as exc_info:
            parser.parse_expression("(1+2")
        assert exc_info.value.expected == "')'"

    def test_unmatched_close(self, parser: DiceParser) -> None:
        """Test an extra closing parenthesis."""
        with pytest.raises(ParseError, match="Unmatched '\\)'") as exc_info:
            parser.parse_expression("1+2)")
        assert exc_info.value.position == 3

    def test_trailing_tokens(self, parser: DiceParser) -> None:
        """Test that a complete expression cannot be followed by more input."""
        with pytest.raises(ParseError) as exc_info:
            parser.parse_expression("2d6 3")
        assert exc_info.value.expected == "end of input"
        assert exc_info.value.found == "number 3"

    @pytest.mark.parametrize("notation", ["+", "2+", "*3", "()", "2**3", "<5"])
    def test_missing_operand(self, parser: DiceParser, notation: str) -> None:
        """Test operators without operands."""
        with pytest.raises(ParseError):
            parser.parse_expression(notation)

    def test_error_carries_position_expected_found(self, parser: DiceParser) -> None:
        """Test the structured fields of ParseError."""
        with pytest.raises(ParseError) as exc_info:
            parser.parse_expression("1 + * 2")
        error = exc_info.value
        assert error.position == 4
        assert error.expected == "number, dice or '('"
        assert error.found == "'*'"
        assert error.to_dict() == {
            "kind": "ParseError",
            "message": "Expected number, dice or '(' at position 4, found '*'",
            "position": 4,
        }
