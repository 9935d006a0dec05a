"""Tokenization layer for selective XML extraction.

Key Components:
    XMLTokenizer: Strict pull tokenizer turning XML bytes into tokens
    Token: Element-open, element-close or text token with its source position
    TokenType: Enumeration of the token kinds
    TokenPosition: Line, column and byte offset of a token
"""

from .tokenizer import (
    Token,
    TokenPosition,
    TokenType,
    XMLTokenizer,
)

__all__ = [
    "Token",
    "TokenPosition",
    "TokenType",
    "XMLTokenizer",
]
