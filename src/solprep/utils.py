# SPDX-License-Identifier: AGPL-3.0

import re

from eth_hash.auto import keccak


class EVM:
    # virtual call schemes for outer transactions
    CREATE = 0xF0


# unlinked library references, e.g. __$53aea86b7d70b31448b230b20ae141a537$__
# or __src/Lib.sol:Lib______________________
LIBRARY_PLACEHOLDER_PATTERN = re.compile(r"__.{36}__")


def stripped(hexstring: str) -> str:
    """Remove 0x prefix from hexstring"""
    return hexstring[2:] if hexstring.startswith("0x") else hexstring


def decode_hex(hexstring: str) -> bytes | None:
    try:
        # not checking if length is even because fromhex accepts spaces
        return bytes.fromhex(stripped(hexstring))
    except ValueError:
        return None


def has_library_placeholders(hexcode: str) -> bool:
    return LIBRARY_PLACEHOLDER_PATTERN.search(hexcode) is not None


def zero_library_placeholders(hexcode: str) -> str:
    return LIBRARY_PLACEHOLDER_PATTERN.sub("0" * 40, hexcode)


def hex_addr(addr: int) -> str:
    return f"0x{addr:040x}"


def sha3_selector(sig: str) -> str:
    """Return the 4-byte function selector of the given signature, e.g. `f(uint256)`"""
    return keccak(sig.encode()).hex()[:8]
