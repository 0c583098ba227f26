"""
dicelang/parser.py

Recursive-descent parser turning tokens into an expression tree.

Grammar (lowest to highest precedence):
    expr      := term (('+'|'-') term)*
    term      := factor (('*'|'/') factor)*
    factor    := diceGroup | number | '(' expr ')' | '-' factor
    diceGroup := [count] 'd' (sides | '%') modifier*
    modifier  := ('kh'|'kl'|'dh'|'dl') [number]
               | ('r'|'rr'|'!'|'cs') [[comparator] number]
               | ('min'|'max') number

Limits (configurable):
    - max_dice: Maximum dice in one group (default 100)
    - max_sides: Maximum sides per die (default 1000)
"""

import logging
from typing import List, Optional

from .errors import DiceLimitError, InvalidDiceGroupError, ParseError
from .lexer import Token, TokenKind, tokenize
from .nodes import (
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
    Modifier,
    Node,
    Reroll,
    UnaryOp,
)

logger = logging.getLogger(__name__)

RANK_KEYWORDS = {
    "kh": KeepHighest,
    "kl": KeepLowest,
    "dh": DropHighest,
    "dl": DropLowest,
}


class DiceParser:
    """
    Parse and validate dice notation.

    Examples:
        - "2d6+3" -> BinaryOp('+', DiceGroup(2, 6), Literal(3))
        - "d20" -> DiceGroup(1, 20) (count defaults to 1)
        - "4d6kh3" -> DiceGroup(4, 6, (KeepHighest(3),))
        - "(1d8+2)*2" -> BinaryOp('*', BinaryOp('+', ...), Literal(2))

    A parser instance holds only limits and can be shared; each parse()
    call walks the tokens with its own cursor.
    """

    DEFAULT_MAX_DICE = 100
    DEFAULT_MAX_SIDES = 1000

    def __init__(
        self,
        max_dice: int = DEFAULT_MAX_DICE,
        max_sides: int = DEFAULT_MAX_SIDES,
    ):
        """
        Initialize parser with limits.

        Args:
            max_dice: Maximum number of dice in a single group
            max_sides: Maximum sides per die
        """
        self.max_dice = max_dice
        self.max_sides = max_sides

    # =========================================================================
    # Public API
    # =========================================================================

    def parse_expression(self, text: str) -> Node:
        """
        Tokenize and parse dice notation.

        Args:
            text: Dice expression (e.g., "4d6kh3+2")

        Returns:
            Root node of the expression tree

        Raises:
            LexError: On characters outside the notation
            ParseError: On malformed notation or exceeded limits
        """
        node = self.parse(tokenize(text))
        logger.debug(f"Parsed '{text}' -> {node}")
        return node

    def parse(self, tokens: List[Token]) -> Node:
        """
        Parse a token list produced by tokenize().

        Args:
            tokens: Tokens terminated by an END token

        Returns:
            Root node of the expression tree

        Raises:
            ParseError: If the tokens do not form exactly one expression
        """
        return _ExpressionParser(self, tokens).run()


class _ExpressionParser:
    """Single-use cursor over one token list."""

    def __init__(self, limits: DiceParser, tokens: List[Token]):
        self.max_dice = limits.max_dice
        self.max_sides = limits.max_sides
        self._tokens = tokens
        self._pos = 0
        self._group_index = 0

    def run(self) -> Node:
        first = self._peek()
        if first.kind == TokenKind.END:
            raise ParseError(
                first.position, "expression", first.describe(),
                "Dice notation cannot be empty",
            )

        node = self._expr()

        trailing = self._peek()
        if trailing.kind == TokenKind.RPAREN:
            raise ParseError(
                trailing.position, "end of input", trailing.describe(),
                f"Unmatched ')' at position {trailing.position}",
            )
        if trailing.kind != TokenKind.END:
            raise ParseError(trailing.position, "end of input", trailing.describe())
        return node

    # =========================================================================
    # Token Cursor
    # =========================================================================

    def _peek(self) -> Token:
        return self._tokens[self._pos]

    def _advance(self) -> Token:
        token = self._tokens[self._pos]
        # END is a sentinel, never step past it
        if token.kind != TokenKind.END:
            self._pos += 1
        return token

    def _accept(self, kind: TokenKind) -> Optional[Token]:
        if self._peek().kind == kind:
            return self._advance()
        return None

    def _expect_number(self, what: str) -> Token:
        token = self._peek()
        if token.kind != TokenKind.NUMBER:
            raise ParseError(token.position, what, token.describe())
        return self._advance()

    # =========================================================================
    # Grammar Rules
    # =========================================================================

    def _expr(self) -> Node:
        node = self._term()
        while self._peek().kind in (TokenKind.PLUS, TokenKind.MINUS):
            op = self._advance()
            node = BinaryOp(op.value, node, self._term(), position=op.position)
        return node

    def _term(self) -> Node:
        node = self._factor()
        while self._peek().kind in (TokenKind.STAR, TokenKind.SLASH):
            op = self._advance()
            node = BinaryOp(op.value, node, self._factor(), position=op.position)
        return node

    def _factor(self) -> Node:
        token = self._peek()

        if token.kind == TokenKind.MINUS:
            self._advance()
            return UnaryOp("-", self._factor(), position=token.position)

        if token.kind == TokenKind.LPAREN:
            self._advance()
            inner = self._expr()
            closing = self._peek()
            if closing.kind != TokenKind.RPAREN:
                raise ParseError(
                    closing.position, "')'", closing.describe(),
                    f"Unmatched '(' at position {token.position}",
                )
            self._advance()
            self._reject_modifier()
            return inner

        if token.kind == TokenKind.NUMBER:
            self._advance()
            if self._peek().kind == TokenKind.DICE:
                return self._dice_group(token.value, token.position)
            self._reject_modifier()
            return Literal(token.value, position=token.position)

        if token.kind == TokenKind.DICE:
            return self._dice_group(None, token.position)

        raise ParseError(token.position, "number, dice or '('", token.describe())

    def _reject_modifier(self) -> None:
        """Modifiers may only follow a dice group."""
        token = self._peek()
        if token.kind == TokenKind.MODIFIER:
            raise ParseError(
                token.position, "operator", token.describe(),
                f"Modifier '{token.value}' at position {token.position} "
                "must follow a dice group",
            )

    def _dice_group(self, count: Optional[int], start: int) -> DiceGroup:
        marker = self._advance()
        if count is None:
            count = 1

        percentile = False
        if self._accept(TokenKind.PERCENT):
            sides = 100
            percentile = True
        else:
            sides = self._expect_number("number of sides").value

        self._validate_limits(count, sides, marker)

        modifiers: List[Modifier] = []
        while self._peek().kind == TokenKind.MODIFIER:
            keyword = self._peek()
            if modifiers and isinstance(modifiers[-1], CountSuccesses):
                raise ParseError(
                    keyword.position, "operator", keyword.describe(),
                    "'cs' must be the last modifier of a dice group",
                )
            modifiers.append(self._modifier(sides))

        group = DiceGroup(
            count,
            sides,
            tuple(modifiers),
            index=self._group_index,
            position=start,
            percentile=percentile,
        )
        self._group_index += 1
        return group

    def _validate_limits(self, count: int, sides: int, marker: Token) -> None:
        """
        Validate group parameters against limits.

        Raises:
            InvalidDiceGroupError: If count or sides is not positive
            DiceLimitError: If any limit is exceeded
        """
        if count < 1:
            raise InvalidDiceGroupError(
                marker.position, "positive dice count", str(count),
                "Must roll at least 1 die",
            )

        if sides < 1:
            raise InvalidDiceGroupError(
                marker.position, "positive side count", str(sides),
                "Dice must have at least 1 side",
            )

        if count > self.max_dice:
            raise DiceLimitError(
                marker.position, f"at most {self.max_dice} dice", str(count),
                f"Maximum {self.max_dice} dice allowed",
            )

        if sides > self.max_sides:
            raise DiceLimitError(
                marker.position, f"at most {self.max_sides} sides", str(sides),
                f"Maximum {self.max_sides} sides allowed",
            )

    def _modifier(self, sides: int) -> Modifier:
        keyword = self._advance()
        name = keyword.value

        if name in RANK_KEYWORDS:
            amount = self._accept(TokenKind.NUMBER)
            return RANK_KEYWORDS[name](amount.value if amount else 1)

        if name in ("min", "max"):
            value = self._expect_number(f"number after '{name}'").value
            return Minimum(value) if name == "min" else Maximum(value)

        # r, rr, ! and cs take a condition
        default_target = 1 if name in ("r", "rr") else sides
        condition = self._condition(default_target)
        if name == "r":
            return Reroll(condition)
        if name == "rr":
            return Reroll(condition, until=True)
        if name == "!":
            return Explode(condition)
        return CountSuccesses(condition)

    def _condition(self, default_target: int) -> Condition:
        comparator = self._accept(TokenKind.COMPARE)
        if comparator is not None:
            target = self._expect_number(f"number after '{comparator.value}'")
            return Condition(comparator.value, target.value)

        target = self._accept(TokenKind.NUMBER)
        if target is not None:
            return Condition("=", target.value)
        return Condition("=", default_target)


def parse(tokens: List[Token]) -> Node:
    """Parse tokens with default limits."""
    return DiceParser().parse(tokens)
