# SPDX-License-Identifier: AGPL-3.0

import importlib
import json
import logging
import os
import sys
import traceback
from dataclasses import asdict, dataclass, field
from importlib import metadata

from solprep.config import Config as SolprepConfig
from solprep.config import (
    ConfigSource,
    arg_parser,
    default_config,
    resolve_config_files,
    toml_parser,
)
from solprep.deploy import ExecutionEngine
from solprep.exceptions import LoadError
from solprep.loader import load, prepare
from solprep.logs import debug, error, set_level
from solprep.utils import hex_addr

# sometimes defaults to cp1252 on Windows, which can cause UnicodeEncodeError
if sys.stdout.encoding != "utf-8":
    sys.stdout.reconfigure(encoding="utf-8")


@dataclass(frozen=True)
class MainResult:
    exitcode: int
    contract: str | None = None
    tests: list[str] = field(default_factory=list)
    functions: list[str] = field(default_factory=list)  # function signatures
    constants: list[int] = field(default_factory=list)
    deployed: bool = False


def load_config(_args) -> SolprepConfig:
    config = default_config()

    # parse CLI args first, so that can get `--help` out of the way and resolve `--debug`
    # but don't apply the CLI overrides yet
    cli_overrides = arg_parser().parse_args(_args)

    # then for each config file, parse it and override the args
    config_files = resolve_config_files(_args)
    for config_file in config_files:
        if not os.path.exists(config_file):
            error(f"Config file not found: {config_file}")
            sys.exit(2)

        overrides = toml_parser().parse_file(config_file)
        config = config.with_overrides(ConfigSource.config_file, **overrides)

    # finally apply the CLI overrides
    config = config.with_overrides(ConfigSource.command_line, **vars(cli_overrides))

    return config


def load_engine(spec: str) -> ExecutionEngine:
    """Instantiate the engine factory given as `MODULE:ATTR`"""

    module_name, sep, attr = spec.partition(":")
    if not sep or not module_name or not attr:
        raise ValueError(f"expected MODULE:ATTR, got {spec!r}")

    factory = getattr(importlib.import_module(module_name), attr)
    return factory()


def _main(_args=None) -> MainResult:
    args = load_config(_args)

    if args.version:
        print(f"solprep {metadata.version('solprep')}")
        return MainResult(0)

    set_level(logging.DEBUG if args.debug else logging.INFO)

    if args.debug:
        debug(args.formatted_layers())

    if not args.file:
        error("No input file given")
        return MainResult(2)

    name = args.contract or None

    engine = None
    if args.engine:
        try:
            engine = load_engine(args.engine)
        except Exception as err:
            error(f"Loading engine {args.engine!r} failed: {type(err).__name__}: {err}")
            if args.debug:
                traceback.print_exc()
            return MainResult(1)

    try:
        if engine is not None:
            result = load(args.file, name, args, engine)
            contract = result.contract
            functions, tests = result.functions, list(result.tests)
            constants = list(result.constants)
            print(f"Deployed {contract.name} at {hex_addr(args.contract_addr)}")
        else:
            prepared = prepare(args.file, name, args)
            contract = prepared.contract
            functions = prepared.classification.functions
            tests = prepared.classification.test_names
            constants = list(prepared.constants)

    except LoadError as err:
        error(str(err))
        if args.debug:
            traceback.print_exc()
        return MainResult(1)

    print(f"Tests ({len(tests)}): {', '.join(tests)}")
    print(f"Functions ({len(functions)}): {', '.join(f.sig for f in functions)}")
    if args.verbose >= 1:
        print(f"Constants ({len(constants)}): {constants}")

    result = MainResult(
        exitcode=0,
        contract=contract.name,
        tests=tests,
        functions=[f.sig for f in functions],
        constants=constants,
        deployed=engine is not None,
    )

    if args.json_output:
        debug(f"Writing output to {args.json_output}")
        with open(args.json_output, "w") as json_file:
            json.dump(asdict(result), json_file, indent=4)

    return result


# entrypoint for the `solprep` script
def main() -> int:
    exitcode = _main().exitcode
    return exitcode


# entrypoint for `python -m solprep`
if __name__ == "__main__":
    sys.exit(main())
