"""Compiler settings."""

from dataclasses import dataclass

DEFAULT_MAX_NAME_LENGTH = 30


@dataclass(frozen=True)
class CompilerConfig:
    """
    Settings for one compilation.

    Attributes:
        max_name_length: Maximum length of a sanitized identifier, before
            any collision suffix is appended
        name_replacements: (token, word) pairs; special tokens in labels
            are spelled out as words when building identifiers
            (e.g. "%" -> "perc")
        strict_references: Raise DanglingReferenceError instead of leaving
            unknown ${metric:...} tokens in function bodies
    """

    max_name_length: int = DEFAULT_MAX_NAME_LENGTH
    name_replacements: tuple[tuple[str, str], ...] = (("%", "perc"),)
    strict_references: bool = False

    def __post_init__(self):
        if self.max_name_length < 1:
            raise ValueError(
                f"max_name_length must be positive, got {self.max_name_length}"
            )
