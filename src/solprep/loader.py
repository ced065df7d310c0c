# SPDX-License-Identifier: AGPL-3.0

from dataclasses import dataclass
from typing import Any

from solprep.abi import AbiEntry, Classification, classify
from solprep.build import CompiledContract, run_solc
from solprep.config import Config as SolprepConfig
from solprep.deploy import ExecutionEngine, deploy
from solprep.exceptions import ContractNotFound, NoBytecode, NoContracts
from solprep.logs import info
from solprep.seeds import find_constants


@dataclass(frozen=True)
class PreparedContract:
    contract: CompiledContract
    classification: Classification
    constants: tuple[int, ...]


@dataclass(frozen=True)
class LoadResult:
    state: Any  # post-deployment state, owned by the caller
    functions: tuple[AbiEntry, ...]
    tests: tuple[str, ...]
    constants: tuple[int, ...]
    contract: CompiledContract


def qualified_name(filename: str, name: str) -> str:
    return name if ":" in name else f"{filename}:{name}"


def select_contract(
    contracts: list[CompiledContract], filename: str, name: str | None = None
) -> CompiledContract:
    """
    Pick the contract to load: the one with the given name, or the first one if
    no name is given.
    """

    if not contracts:
        raise NoContracts()

    if name:
        wanted = qualified_name(filename, name)
        selected = next((c for c in contracts if c.name == wanted), None)
        if selected is None:
            raise ContractNotFound(wanted)
    else:
        selected = contracts[0]
        if len(contracts) > 1:
            info("Multiple contracts found in file, only analyzing the first")

    info(f"Analyzing contract: {selected.name}")
    return selected


def prepare(
    filename: str, name: str | None, args: SolprepConfig
) -> PreparedContract:
    """Compile, select and validate the contract, without deploying it"""

    contracts = run_solc(args, filename)
    contract = select_contract(contracts, filename, name)

    if not contract.creation_code:
        raise NoBytecode(contract.name)

    classification = classify(list(contract.abi), args.prefix)
    constants = find_constants(contract.ast)

    return PreparedContract(contract, classification, tuple(constants))


def load(
    filename: str,
    name: str | None,
    args: SolprepConfig,
    engine: ExecutionEngine,
) -> LoadResult:
    """
    Load a Solidity file for fuzzing.

    Returns the state with the contract deployed at `args.contract_addr`, the
    functions to fuzz, the names of the tests, and the constants found in the
    source. Raises a LoadError if anything is wrong with the contract.
    """

    prepared = prepare(filename, name, args)
    state = deploy(engine, prepared.contract.creation_code, args)

    return LoadResult(
        state=state,
        functions=prepared.classification.functions,
        tests=tuple(prepared.classification.test_names),
        constants=prepared.constants,
        contract=prepared.contract,
    )
