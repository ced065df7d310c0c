# SPDX-License-Identifier: AGPL-3.0

import re
from dataclasses import dataclass
from functools import cached_property

from .exceptions import NoFuncs, NoTests, OnlyTests, TestArgsFound
from .utils import sha3_selector


@dataclass(frozen=True)
class AbiEntry:
    """A callable function of a contract: its name and its input types, in order."""

    name: str
    inputs: tuple[str, ...] = ()

    @cached_property
    def sig(self) -> str:
        return f"{self.name}({','.join(self.inputs)})"

    @cached_property
    def selector(self) -> str:
        return sha3_selector(self.sig)

    def has_args(self) -> bool:
        return len(self.inputs) > 0


@dataclass(frozen=True)
class Classification:
    tests: tuple[AbiEntry, ...]
    functions: tuple[AbiEntry, ...]

    @property
    def test_names(self) -> list[str]:
        return [entry.name for entry in self.tests]


def str_type(arg: dict) -> str:
    """
    Render the type of an ABI input, expanding tuple components.

    {"type": "tuple[2]", "components": [{"type": "uint256"}, {"type": "bool"}]}
    is rendered as `(uint256,bool)[2]`.
    """

    typ = arg["type"]
    match = re.search(r"^tuple((\[[0-9]*\])*)$", typ)
    if match:
        return "(" + ",".join(str_type(c) for c in arg["components"]) + ")" + match.group(1)
    return typ


def parse_abi(items: list[dict]) -> list[AbiEntry]:
    """Extract the functions of a JSON ABI, in ABI order"""

    return [
        AbiEntry(item["name"], tuple(str_type(arg) for arg in item.get("inputs", [])))
        for item in items
        if item.get("type", "function") == "function"
    ]


def is_test(entry: AbiEntry, prefix: str) -> bool:
    return entry.name.startswith(prefix)


def classify(abi: list[AbiEntry], prefix: str) -> Classification:
    """
    Split the ABI into tests (names starting with `prefix`) and the functions
    to fuzz (everything else).

    Raises NoFuncs, OnlyTests, NoTests or TestArgsFound, checked in that order.
    """

    tests, functions = [], []
    for entry in abi:
        (tests if is_test(entry, prefix) else functions).append(entry)

    if not abi:
        raise NoFuncs()
    if not functions:
        raise OnlyTests()
    if not tests:
        raise NoTests()

    for entry in tests:
        if entry.has_args():
            raise TestArgsFound(entry.name)

    return Classification(tests=tuple(tests), functions=tuple(functions))
