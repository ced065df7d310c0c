# SPDX-License-Identifier: AGPL-3.0

from dataclasses import dataclass
from typing import Any, Protocol

from solprep.config import Config as SolprepConfig
from solprep.logs import debug
from solprep.utils import EVM, hex_addr


@dataclass(frozen=True, slots=True, eq=True, order=False)
class Tx:
    """
    An outer transaction, as handed to the execution engine.

    For a CREATE, `data` is the creation bytecode and `target` the address the
    new contract is installed at.
    """

    data: bytes
    caller: int
    target: int
    value: int

    # outer transactions carry a virtual call scheme, e.g. CREATE
    call_scheme: int

    def is_create(self) -> bool:
        return self.call_scheme == EVM.CREATE


class ExecutionEngine(Protocol):
    """The interface of the engine that runs transactions against a state."""

    def initial_state(self, creation_code: bytes) -> Any: ...

    def execute(self, state: Any, tx: Tx) -> Any: ...


def mk_deploy_tx(creation_code: bytes, deployer: int, target: int) -> Tx:
    return Tx(
        data=creation_code,
        caller=deployer,
        target=target,
        value=0,
        call_scheme=EVM.CREATE,
    )


def deploy(engine: ExecutionEngine, creation_code: bytes, args: SolprepConfig) -> Any:
    """
    Run the constructor in a fresh state and return the resulting state.

    The state is returned as the engine produced it; errors raised by the
    engine are propagated as is.
    """

    tx = mk_deploy_tx(creation_code, args.deployer, args.contract_addr)
    debug(
        f"Deploying {len(creation_code)} bytes at {hex_addr(tx.target)}"
        f" from {hex_addr(tx.caller)}"
    )

    state = engine.initial_state(creation_code)
    state = engine.execute(state, tx)

    return state
