# SPDX-License-Identifier: AGPL-3.0

import json
import os
import shlex
import subprocess
from dataclasses import dataclass, field
from tempfile import TemporaryDirectory
from typing import Any

from solprep.abi import AbiEntry, parse_abi
from solprep.config import Config as SolprepConfig
from solprep.exceptions import CompileFailure
from solprep.logs import LIBRARY_PLACEHOLDER, PARSING_ERROR, debug, error, warn_code
from solprep.utils import decode_hex, has_library_placeholders, zero_library_placeholders

COMBINED_JSON_OUTPUTS = ["bin-runtime", "bin", "srcmap", "srcmap-runtime", "abi", "ast"]


@dataclass(frozen=True)
class CompiledContract:
    name: str  # <file>:<ContractName>
    creation_code: bytes
    runtime_code: bytes
    abi: tuple[AbiEntry, ...]
    ast: Any = field(default=None, repr=False)
    srcmap: str = field(default="", repr=False)
    srcmap_runtime: str = field(default="", repr=False)


def solc_command(args: SolprepConfig, filename: str) -> list[str]:
    return [
        args.solc,
        f"--combined-json={','.join(COMBINED_JSON_OUTPUTS)}",
        filename,
        *shlex.split(args.solc_args),
    ]


def decode_bytecode(name: str, hexcode: str) -> bytes:
    if has_library_placeholders(hexcode):
        warn_code(
            LIBRARY_PLACEHOLDER,
            f"{name}: unlinked library references in bytecode, replacing them with the zero address",
        )
        hexcode = zero_library_placeholders(hexcode)

    bytecode = decode_hex(hexcode)
    if bytecode is None:
        raise ValueError(f"{name}: invalid bytecode")
    return bytecode


def get_ast(name: str, contract_json: dict, sources: dict) -> Any:
    if "ast" in contract_json:
        return contract_json["ast"]

    # since solc 0.4.x, the ast is reported per source file, not per contract
    source = sources.get(name.rsplit(":", 1)[0], {})
    return source.get("AST", source.get("ast"))


def parse_contract(name: str, contract_json: dict, sources: dict) -> CompiledContract:
    abi = contract_json.get("abi", [])

    # older compilers emit the abi as a json string
    if isinstance(abi, str):
        abi = json.loads(abi)

    return CompiledContract(
        name=name,
        creation_code=decode_bytecode(name, contract_json.get("bin", "")),
        runtime_code=decode_bytecode(name, contract_json.get("bin-runtime", "")),
        abi=tuple(parse_abi(abi)),
        ast=get_ast(name, contract_json, sources),
        srcmap=contract_json.get("srcmap", ""),
        srcmap_runtime=contract_json.get("srcmap-runtime", ""),
    )


def parse_combined_json(json_out: dict) -> list[CompiledContract]:
    contracts_json = json_out["contracts"]
    sources = json_out.get("sources", {})

    # keep the compiler's order, the first contract is the default target
    return [
        parse_contract(name, contract_json, sources)
        for name, contract_json in contracts_json.items()
    ]


def read_combined_json(json_path: str) -> list[CompiledContract]:
    """Parse the output of `solc --combined-json` saved at the given path"""

    try:
        with open(json_path, encoding="utf8") as f:
            json_out = json.load(f)
        return parse_combined_json(json_out)
    except (json.JSONDecodeError, KeyError, TypeError, AttributeError, ValueError) as err:
        warn_code(PARSING_ERROR, f"Parsing compiler output failed: {type(err).__name__}: {err}")
        raise CompileFailure() from err


def run_solc(args: SolprepConfig, filename: str) -> list[CompiledContract]:
    """
    Compile the given file and return its contracts in compiler output order.

    The compiler output goes through a temporary file that is removed before
    returning, whether parsing succeeds or not.
    """

    cmd = solc_command(args, filename)
    debug(f"Running {' '.join(cmd)}")

    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except OSError as err:
        error(f"Running {args.solc} failed: {err}")
        raise CompileFailure() from err

    if result.returncode:
        error(f"Compilation failed: {result.stderr.strip()}")
        raise CompileFailure()

    if result.stderr:
        debug(result.stderr.strip())

    with TemporaryDirectory(prefix="solprep-") as tmpdir:
        json_path = os.path.join(tmpdir, "combined.json")
        with open(json_path, "w", encoding="utf8") as f:
            f.write(result.stdout)

        return read_combined_json(json_path)
