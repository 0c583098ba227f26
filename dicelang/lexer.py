"""
dicelang/lexer.py

Convert dice-notation text into a flat list of tokens.

Alphabet:
    - Digits: maximal runs become NUMBER tokens
    - d/D: dice marker (DICE), except "dh"/"dl" which are drop modifiers
    - %: percentile sides ("d%" is a d100)
    - + - * / ( ): arithmetic and grouping
    - k, kh, kl, dh, dl, r, rr, !, min, max, cs: modifier keywords
    - <, <=, >, >=, =: comparators for modifier conditions
    - Whitespace: skipped

Letters are case-insensitive. An END token is always appended.
"""

from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Union

from .errors import LexError


class TokenKind(Enum):
    """Token categories produced by the lexer."""

    NUMBER = "number"
    DICE = "dice"
    PERCENT = "percent"
    PLUS = "+"
    MINUS = "-"
    STAR = "*"
    SLASH = "/"
    LPAREN = "("
    RPAREN = ")"
    MODIFIER = "modifier"
    COMPARE = "compare"
    END = "end"


@dataclass(frozen=True)
class Token:
    """
    A lexed token.

    Attributes:
        kind: Token category
        value: Integer for NUMBER, symbol string otherwise
        position: Offset of the first character in the source text
    """

    kind: TokenKind
    value: Union[int, str]
    position: int

    def describe(self) -> str:
        """Human readable form used in parse error messages."""
        if self.kind == TokenKind.END:
            return "end of input"
        if self.kind == TokenKind.NUMBER:
            return f"number {self.value}"
        return f"'{self.value}'"


SINGLE_CHAR_TOKENS = {
    "+": TokenKind.PLUS,
    "-": TokenKind.MINUS,
    "*": TokenKind.STAR,
    "/": TokenKind.SLASH,
    "(": TokenKind.LPAREN,
    ")": TokenKind.RPAREN,
    "%": TokenKind.PERCENT,
}

# Longest match first
MODIFIER_KEYWORDS = ("min", "max", "kh", "kl", "dh", "dl", "rr", "cs", "k", "r", "!")

COMPARATORS = ("<=", ">=", "<", ">", "=")

DIGITS = "0123456789"


def _match_keyword(text: str, pos: int) -> Optional[str]:
    """Return the modifier keyword starting at pos, if any."""
    lowered = text[pos:pos + 3].lower()
    for keyword in MODIFIER_KEYWORDS:
        if lowered.startswith(keyword):
            return keyword
    return None


def tokenize(text: str) -> List[Token]:
    """
    Split dice notation into tokens.

    Args:
        text: Dice expression (e.g., "4d6kh3+2")

    Returns:
        List of tokens terminated by an END token

    Raises:
        LexError: If a character is not part of the notation

    Example:
        >>> [t.kind.name for t in tokenize("2d6+3")]
        ['NUMBER', 'DICE', 'NUMBER', 'PLUS', 'NUMBER', 'END']
    """
    tokens: List[Token] = []
    pos = 0
    length = len(text)

    while pos < length:
        char = text[pos]

        if char.isspace():
            pos += 1
            continue

        if char in DIGITS:
            start = pos
            while pos < length and text[pos] in DIGITS:
                pos += 1
            tokens.append(Token(TokenKind.NUMBER, int(text[start:pos]), start))
            continue

        if char in SINGLE_CHAR_TOKENS:
            tokens.append(Token(SINGLE_CHAR_TOKENS[char], char, pos))
            pos += 1
            continue

        if char in "<>=":
            op = text[pos:pos + 2] if text[pos:pos + 2] in COMPARATORS else char
            tokens.append(Token(TokenKind.COMPARE, op, pos))
            pos += len(op)
            continue

        # "dh"/"dl" are modifiers, any other d is the dice marker
        keyword = _match_keyword(text, pos)
        if keyword is not None:
            # Bare "k" is shorthand for keep highest
            value = "kh" if keyword == "k" else keyword
            tokens.append(Token(TokenKind.MODIFIER, value, pos))
            pos += len(keyword)
            continue

        if char in "dD":
            tokens.append(Token(TokenKind.DICE, "d", pos))
            pos += 1
            continue

        raise LexError(pos, char)

    tokens.append(Token(TokenKind.END, "", length))
    return tokens
