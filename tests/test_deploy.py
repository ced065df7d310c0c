from unittest.mock import Mock

import pytest

from solprep.config import ConfigSource
from solprep.deploy import deploy, mk_deploy_tx
from solprep.exceptions import BadAddr, ErrorKind
from solprep.utils import EVM

CREATION_CODE = bytes.fromhex("6080604052348015600f57600080fd5b50")


def test_mk_deploy_tx():
    tx = mk_deploy_tx(CREATION_CODE, deployer=0x10, target=0x20)

    assert tx.is_create()
    assert tx.call_scheme == EVM.CREATE
    assert tx.data == CREATION_CODE
    assert tx.caller == 0x10
    assert tx.target == 0x20
    assert tx.value == 0


def test_deploy(args, engine):
    state = deploy(engine, CREATION_CODE, args)

    [tx] = engine.txs
    assert tx.is_create()
    assert tx.caller == args.deployer
    assert tx.target == args.contract_addr
    assert tx.value == 0
    assert engine.get_code(state, args.contract_addr) == CREATION_CODE


def test_deploy_uses_configured_addresses(args, engine):
    args = args.with_overrides(
        ConfigSource.command_line, contract_addr=0xAAAA, deployer=0xBBBB
    )
    state = deploy(engine, CREATION_CODE, args)

    [tx] = engine.txs
    assert (tx.caller, tx.target) == (0xBBBB, 0xAAAA)
    assert engine.get_code(state, 0xAAAA)


def test_deploy_starts_from_fresh_state(args):
    engine = Mock()

    state = deploy(engine, CREATION_CODE, args)

    engine.initial_state.assert_called_once_with(CREATION_CODE)
    initial = engine.initial_state.return_value
    (executed_state, tx), _ = engine.execute.call_args
    assert executed_state is initial
    assert tx.is_create()
    assert state is engine.execute.return_value


def test_deploy_returns_engine_state_unchanged(args):
    engine = Mock()
    engine.execute.return_value = {"code": {}}

    state = deploy(engine, CREATION_CODE, args)

    # empty runtime code at the target is still a valid deployment
    assert state is engine.execute.return_value
    assert state == {"code": {}}
    assert not engine.method_calls[2:]


def test_bad_addr():
    err = BadAddr(0x00A329C0648769A73AFAC7F9381E08FB43DBEA72)

    assert err.kind == ErrorKind.BAD_ADDR
    assert str(err) == "No contract at 0x00a329c0648769a73afac7f9381e08fb43dbea72 exists"


def test_deploy_propagates_engine_errors(args):
    engine = Mock()
    engine.execute.side_effect = RuntimeError("constructor reverted")

    with pytest.raises(RuntimeError, match="constructor reverted"):
        deploy(engine, CREATION_CODE, args)
