"""Turn metric display names into unique identifiers."""

import re
from collections.abc import Container, Mapping
from typing import Optional

from gs_compile.config import DEFAULT_MAX_NAME_LENGTH

_WHITESPACE = re.compile(r"\s+")
_NON_WORD = re.compile(r"[^\w]", re.ASCII)


def base_name(
    label: str,
    max_length: int = DEFAULT_MAX_NAME_LENGTH,
    replacements: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Sanitize a label into an identifier, without collision handling.

    "Revenue %" -> "revenue_perc_", "2024 Sales" -> "_2024_sales"
    """
    if replacements is None:
        replacements = {"%": "perc"}

    name = label.lower()
    for token, word in replacements.items():
        name = name.replace(token, f" {word} ")
    name = _WHITESPACE.sub(" ", name)
    name = _NON_WORD.sub("_", name)
    name = name[:max_length]

    if not name:
        name = "_"
    if name[0].isdigit():
        name = "_" + name
    return name


def sanitize_name(
    label: str,
    used_names: Container[str],
    max_length: int = DEFAULT_MAX_NAME_LENGTH,
    replacements: Optional[Mapping[str, str]] = None,
) -> str:
    """
    Build an identifier for ``label`` that is not in ``used_names``.

    On collision the suffix is appended to the already suffixed candidate,
    so repeated collisions give foo, foo_2, foo_2_2, foo_2_2_3. The caller
    is responsible for registering the returned name.
    """
    name = base_name(label, max_length=max_length, replacements=replacements)

    if name in used_names:
        counter = 2
        name = f"{name}_{counter}"
        while name in used_names:
            name = f"{name}_{counter}"
            counter += 1
    return name
