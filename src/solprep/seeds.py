# SPDX-License-Identifier: AGPL-3.0

import re
from typing import Any

from .exceptions import MalformedConstant
from .logs import debug, info

# solc renders the type of integer literals as e.g. `int_const 42` or `int_const -1`
INT_CONST = "int_const"
INT_CONST_VALUE_OFFSET = len("int_const ")

# `type` in the legacy AST attributes, `typeString` in the compact AST typeDescriptions
TYPE_KEYS = ("type", "typeString")

SIGNED_DECIMAL = re.compile(r"[+-]?[0-9]+")

# large literals are abbreviated, e.g. `int_const 1157...(70 digits omitted)...9935`
ABBREVIATED = re.compile(r"[+-]?[0-9]+\.\.\.\([0-9]+ digits omitted\)\.\.\.[0-9]+")


def parse_int_const(type_str: str) -> int | None:
    """
    Parse the value of an `int_const` type string.

    Returns None for abbreviated values, which can't be recovered from the type string.
    """

    value = type_str[INT_CONST_VALUE_OFFSET:]

    if SIGNED_DECIMAL.fullmatch(value):
        return int(value)

    if ABBREVIATED.fullmatch(value):
        debug(f"Skipped abbreviated constant: {type_str}")
        return None

    raise MalformedConstant(f"error in constant parsing: {type_str!r}")


def is_marker(key: str, value: Any) -> bool:
    return key in TYPE_KEYS and isinstance(value, str) and value.startswith(INT_CONST)


def iter_constants(ast: Any):
    stack = [ast]
    while stack:
        node = stack.pop()
        if isinstance(node, dict):
            for key, value in node.items():
                if is_marker(key, value):
                    if (n := parse_int_const(value)) is not None:
                        yield n
                else:
                    stack.append(value)
        elif isinstance(node, list):
            stack.extend(reversed(node))
        # strings, numbers, booleans and nulls carry no constants


def find_constants(ast: Any) -> list[int]:
    """
    Collect every integer literal in a solc AST, duplicates included.

    The order of the result is not meaningful.
    """

    constants = list(iter_constants(ast))
    info(f"Constants found: {constants}")
    return constants
