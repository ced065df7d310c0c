import json
import subprocess

import pytest

from solprep.config import default_config
from solprep.utils import EVM

TOKEN_ABI = [
    {
        "inputs": [{"name": "supply", "type": "uint256"}],
        "stateMutability": "nonpayable",
        "type": "constructor",
    },
    {
        "inputs": [
            {"name": "to", "type": "address"},
            {"name": "amount", "type": "uint256"},
        ],
        "name": "transfer",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "nonpayable",
        "type": "function",
    },
    {
        "inputs": [],
        "name": "echidna_balance_under_1000",
        "outputs": [{"name": "", "type": "bool"}],
        "stateMutability": "view",
        "type": "function",
    },
    {
        "anonymous": False,
        "inputs": [],
        "name": "Transfer",
        "type": "event",
    },
]

HELPER_ABI = [
    {
        "inputs": [],
        "name": "help",
        "outputs": [],
        "stateMutability": "nonpayable",
        "type": "function",
    },
]

TOKEN_AST = {
    "absolutePath": "Token.sol",
    "nodeType": "SourceUnit",
    "nodes": [
        {
            "nodeType": "ContractDefinition",
            "name": "Token",
            "nodes": [
                {
                    "nodeType": "Literal",
                    "value": "1000",
                    "typeDescriptions": {
                        "typeIdentifier": "t_rational_1000_by_1",
                        "typeString": "int_const 1000",
                    },
                },
                {
                    "nodeType": "Literal",
                    "value": "1",
                    "typeDescriptions": {
                        "typeIdentifier": "t_rational_minus_1_by_1",
                        "typeString": "int_const -1",
                    },
                },
                {
                    "nodeType": "Identifier",
                    "name": "owner",
                    "typeDescriptions": {"typeString": "address"},
                },
            ],
        }
    ],
}


def mk_combined_json(contracts: dict, sources: dict | None = None) -> dict:
    return {
        "contracts": contracts,
        "sourceList": list(sources or []),
        "sources": sources or {},
        "version": "0.8.24+commit.e11b9ed9",
    }


@pytest.fixture
def args():
    return default_config()


@pytest.fixture
def combined_json():
    return mk_combined_json(
        {
            "Token.sol:Token": {
                "abi": TOKEN_ABI,
                "bin": "6080604052348015600f57600080fd5b50",
                "bin-runtime": "6080604052600080fd",
                "srcmap": "25:120:0:-:0;;;",
                "srcmap-runtime": "25:120:0:-:0;;",
            },
            "Token.sol:Helper": {
                "abi": json.dumps(HELPER_ABI),
                "bin": "6080",
                "bin-runtime": "00",
                "srcmap": "",
                "srcmap-runtime": "",
            },
        },
        {"Token.sol": {"AST": TOKEN_AST}},
    )


@pytest.fixture
def fake_solc(monkeypatch):
    """Replace the compiler process; returns the list of commands that were run"""

    calls = []

    def install(stdout: str, returncode: int = 0, stderr: str = ""):
        def run(cmd, **kwargs):
            calls.append(cmd)
            return subprocess.CompletedProcess(cmd, returncode, stdout, stderr)

        monkeypatch.setattr("solprep.build.subprocess.run", run)
        return calls

    return install


class FakeEngine:
    """Installs the creation code at the target of a CREATE, without running it"""

    def __init__(self):
        self.txs = []

    def initial_state(self, creation_code: bytes) -> dict:
        return {"code": {}, "pending": creation_code}

    def execute(self, state: dict, tx) -> dict:
        self.txs.append(tx)
        code = dict(state["code"])
        if tx.call_scheme == EVM.CREATE:
            code[tx.target] = tx.data
        return {"code": code, "pending": None}

    def get_code(self, state: dict, address: int) -> bytes:
        return state["code"].get(address, b"")


@pytest.fixture
def engine():
    return FakeEngine()
