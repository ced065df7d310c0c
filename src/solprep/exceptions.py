"""
Load Errors
===========

Things that can go wrong while preparing a Solidity file for fuzzing.

Every `LoadError` is fatal to the load that raised it. The set of kinds is
closed: callers can branch on `err.kind` instead of matching messages.
"""

from enum import Enum


class ErrorKind(Enum):
    BAD_ADDR = "bad-addr"
    COMPILE_FAILURE = "compile-failure"
    NO_CONTRACTS = "no-contracts"
    CONTRACT_NOT_FOUND = "contract-not-found"
    NO_BYTECODE = "no-bytecode"
    NO_FUNCS = "no-funcs"
    NO_TESTS = "no-tests"
    ONLY_TESTS = "only-tests"
    TEST_ARGS_FOUND = "test-args-found"


class LoadError(Exception):
    """
    Base class for the errors raised while loading a contract for fuzzing.
    """

    kind: ErrorKind

    def message(self) -> str:
        raise NotImplementedError

    def __str__(self) -> str:
        return self.message()


class BadAddr(LoadError):
    """
    Raised when no contract code exists at an expected address.
    """

    kind = ErrorKind.BAD_ADDR

    def __init__(self, address: int):
        super().__init__(address)
        self.address = address

    def message(self) -> str:
        return f"No contract at 0x{self.address:040x} exists"


class CompileFailure(LoadError):
    """
    Raised when the compiler produced no usable output.
    """

    kind = ErrorKind.COMPILE_FAILURE

    def message(self) -> str:
        return "Couldn't compile given file"


class NoContracts(LoadError):
    kind = ErrorKind.NO_CONTRACTS

    def message(self) -> str:
        return "No contracts found in given file"


class ContractNotFound(LoadError):
    kind = ErrorKind.CONTRACT_NOT_FOUND

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def message(self) -> str:
        return f"Given contract {self.name!r} not found in given file"


class NoBytecode(LoadError):
    kind = ErrorKind.NO_BYTECODE

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def message(self) -> str:
        return f"No bytecode found for contract {self.name!r}"


class NoFuncs(LoadError):
    kind = ErrorKind.NO_FUNCS

    def message(self) -> str:
        return "ABI is empty, are you sure your constructor is right?"


class NoTests(LoadError):
    kind = ErrorKind.NO_TESTS

    def message(self) -> str:
        return "No tests found in ABI"


class OnlyTests(LoadError):
    kind = ErrorKind.ONLY_TESTS

    def message(self) -> str:
        return "Only tests and no public functions found in ABI"


class TestArgsFound(LoadError):
    """
    Raised when a test function declares input arguments.

    Tests are called without calldata, so they must not take any.
    """

    __test__ = False  # not a pytest test class

    kind = ErrorKind.TEST_ARGS_FOUND

    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def message(self) -> str:
        return f"Test {self.name!r} has arguments, aborting"


class MalformedConstant(Exception):
    """
    Raised when an integer constant marker in the AST can't be parsed.

    This means the assumption about the compiler's AST type strings is stale;
    it is an internal error, not a problem with the contract under test.
    """

    pass
