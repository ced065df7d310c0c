import argparse
import os
import sys
from collections import OrderedDict
from collections.abc import Callable, Generator
from dataclasses import MISSING, dataclass, fields
from dataclasses import field as dataclass_field
from enum import Enum
from typing import Any

import toml

from .logs import warn

# common strings
internal = "internal"

# groups
addresses, debugging, build = (
    "Address options",
    "Debugging options",
    "Build options",
)

CONFIG_FILE_NAME = "solprep.toml"


class ConfigSource(str, Enum):
    void = "void"
    default = "default"
    config_file = "config-file"
    command_line = "command-line"


# helper to define config fields
def arg(
    help: str,
    global_default: Any,
    metavar: str | None = None,
    group: str | None = None,
    short: str | None = None,
    countable: bool = False,
    positional: bool = False,
    global_default_str: str | None = None,
    action: Callable = None,
):
    return dataclass_field(
        default=None,
        metadata={
            "help": help,
            "global_default": global_default,
            "metavar": metavar,
            "group": group,
            "short": short,
            "countable": countable,
            "positional": positional,
            "global_default_str": global_default_str,
            "action": action,
        },
    )


def ensure_non_empty(values: list | set | dict) -> list:
    if not values:
        raise ValueError("required a non-empty list")
    return values


def parse_csv(values: str, sep: str = ",") -> Generator[Any, None, None]:
    """Parse a CSV string and return a generator of *non-empty* values."""
    return (x for _x in values.split(sep) if (x := _x.strip()))


def parse_address(value: str | int) -> int:
    """Parse an address given in any integer base, e.g. 0x00a3..."""
    addr = value if isinstance(value, int) else int(value.strip(), 0)
    if not 0 <= addr < 2**160:
        raise ValueError(f"invalid address: {value}")
    return addr


class ParseAddress(argparse.Action):
    def __call__(self, parser, namespace, values, option_string=None):
        try:
            values = ParseAddress.parse(values)
        except ValueError as err:
            parser.error(str(err))
        setattr(namespace, self.dest, values)

    @staticmethod
    def parse(values: str | int) -> int:
        return parse_address(values)

    @staticmethod
    def unparse(values: int) -> str:
        return f"0x{values:040x}"


class ParseAddresses(argparse.Action):
    def __call__(self, parser, namespace, values, option_string=None):
        try:
            values = ParseAddresses.parse(values)
        except ValueError as err:
            parser.error(str(err))
        setattr(namespace, self.dest, values)

    @staticmethod
    def parse(values: str | list) -> list[int]:
        if isinstance(values, list):
            return ensure_non_empty([parse_address(x) for x in values])
        return ensure_non_empty([parse_address(x) for x in parse_csv(values)])

    @staticmethod
    def unparse(values: list[int]) -> str:
        return ",".join([ParseAddress.unparse(v) for v in values])


@dataclass(frozen=True)
class Config:
    """Configuration object for solprep.

    Don't instantiate this directly, since all fields have default value None. Instead, use:

     - `default_config()` to get the default configuration with the actual default values
     - `with_overrides()` to create a new configuration object with some fields overridden

    A Config is never mutated: every load step receives it as a read-only value.
    """

    ### Internal fields (not used to generate arg parsers)

    _parent: "Config" = dataclass_field(
        repr=False,
        metadata={
            internal: True,
        },
    )

    _source: ConfigSource = dataclass_field(
        metadata={
            internal: True,
        },
    )

    ### General options
    #
    # These are the fields that will be used to generate arg parsers.
    # New Config() objects only have None values for these fields; the actual
    # defaults live in the `default_config()` layer (see `global_default`).

    file: str = arg(
        help="Solidity source file to load",
        global_default=None,
        metavar="FILE",
        positional=True,
    )

    root: str = arg(
        help="project root directory",
        metavar="ROOT",
        global_default=os.getcwd,
        global_default_str="current working directory",
    )

    config: str = arg(
        help="path to the config file",
        metavar="FILE",
        global_default=lambda: os.path.join(os.getcwd(), CONFIG_FILE_NAME),
        global_default_str=f"ROOT/{CONFIG_FILE_NAME}",
    )

    contract: str = arg(
        help="load the given contract, either `NAME` or `FILE:NAME`; defaults to the first contract in the file",
        global_default="",
        metavar="CONTRACT_NAME",
    )

    prefix: str = arg(
        help="function name prefix used to denote tests",
        global_default="echidna_",
        metavar="PREFIX",
    )

    engine: str = arg(
        help="execution engine factory used to deploy the contract",
        global_default="",
        metavar="MODULE:ATTR",
    )

    version: bool = arg(
        help="print the version number",
        global_default=False,
    )

    ### Address options

    contract_addr: str = arg(
        help="address the contract is deployed to",
        global_default="0x00a329c0648769a73afac7f9381e08fb43dbea72",
        metavar="ADDRESS",
        group=addresses,
        action=ParseAddress,
    )

    deployer: str = arg(
        help="address that sends the deployment transaction",
        global_default="0x00a329c0648769a73afac7f9381e08fb43dbea70",
        metavar="ADDRESS",
        group=addresses,
        action=ParseAddress,
    )

    sender: str = arg(
        help="addresses that send fuzzing transactions",
        global_default="0x00a329c0648769a73afac7f9381e08fb43dbea70",
        metavar="ADDRESS1,ADDRESS2,...",
        group=addresses,
        action=ParseAddresses,
    )

    ### Debugging options

    verbose: int = arg(
        help="increase verbosity levels: -v, -vv, -vvv, ...",
        global_default=0,
        group=debugging,
        short="v",
        countable=True,
    )

    debug: bool = arg(
        help="run in debug mode",
        global_default=False,
        group=debugging,
    )

    json_output: str = arg(
        help="output the load result in JSON",
        global_default=None,
        metavar="JSON_FILE_PATH",
        group=debugging,
    )

    ### Build options

    solc: str = arg(
        help="solidity compiler executable",
        global_default="solc",
        metavar="PATH",
        group=build,
    )

    solc_args: str = arg(
        help="extra arguments passed to the compiler, appended verbatim",
        global_default="",
        metavar="ARGS",
        group=build,
    )

    ### Methods

    def __getattribute__(self, name):
        """Look up values in parent object if they are not set in the current object.

        This is because we consider the current object to override its parent.

        Because of this, printing a Config object will show a "flattened/resolved" view of the configuration.
        """

        # look up value in current object
        value = object.__getattribute__(self, name)
        if value is not None:
            return value

        # look up value in parent object
        parent = object.__getattribute__(self, "_parent")
        if parent is not None:
            return getattr(parent, name)

        return value

    def with_overrides(self, source: ConfigSource, **overrides):
        """Create a new configuration object with some fields overridden.

        Use vars(namespace) to pass in the arguments from an argparse parser or
        just a dictionary with the overrides (e.g. from a toml file)."""

        try:
            return Config(_parent=self, _source=source, **overrides)
        except TypeError as e:
            # follow argparse error message format and behavior
            warn(f"error: unrecognized argument: {str(e).split()[-1]}")
            sys.exit(2)

    def value_with_source(self, name: str) -> tuple[Any, ConfigSource]:
        # look up value in current object
        value = object.__getattribute__(self, name)
        if value is not None:
            return (value, self._source)

        # look up value in parent object
        parent = self._parent
        if parent is not None:
            return parent.value_with_source(name)

        return (value, self._source)

    def values(self):
        skip_empty = self._parent is not None

        for field in fields(self):
            if field.metadata.get(internal):
                continue

            field_value = object.__getattribute__(self, field.name)
            if skip_empty and field_value is None:
                continue

            yield field.name, field_value

    def values_by_layer(self) -> dict[str, dict[str, Any]]:
        # source -> {field, value}
        if self._parent is None:
            return OrderedDict([(self._source, dict(self.values()))])

        values = self._parent.values_by_layer()
        values[self._source] = dict(self.values())
        return values

    def formatted_layers(self) -> str:
        lines = []
        for layer, values in self.values_by_layer().items():
            lines.append(f"{layer.value}:")
            for field, value in values.items():
                lines.append(f"  {field}: {value}")
        return "\n".join(lines)


def resolve_config_files(args: list[str], include_missing: bool = False) -> list[str]:
    config_parser = argparse.ArgumentParser()
    config_parser.add_argument(
        "--root",
        metavar="DIRECTORY",
        default=os.getcwd(),
    )

    config_parser.add_argument("--config", metavar="FILE")

    # beware: errors and help flags will cause a system exit
    args = config_parser.parse_known_args(args)[0]

    # if --config is passed explicitly, use that
    # no check for existence is done here, we don't want to silently ignore
    # missing config files when they are requested explicitly
    if args.config:
        return [args.config]

    # we expect to find solprep.toml in the project root directory
    default_config_path = os.path.join(args.root, CONFIG_FILE_NAME)
    if not include_missing and not os.path.exists(default_config_path):
        return []

    return [default_config_path]


class TomlParser:
    def parse_file(self, toml_file_path: str) -> dict:
        with open(toml_file_path) as f:
            return self.parse_str(f.read(), source=toml_file_path)

    # exposed for easier testing
    def parse_str(self, file_contents: str, source: str = CONFIG_FILE_NAME) -> dict:
        parsed = toml.loads(file_contents)
        return self.parse_dict(parsed, source=source)

    # exposed for easier testing
    def parse_dict(self, parsed: dict, source: str = CONFIG_FILE_NAME) -> dict:
        if len(parsed) != 1:
            warn(
                f"error: expected a single `[global]` section in {source}, "
                f"got {len(parsed)}: {', '.join(parsed.keys())}"
            )
            sys.exit(2)

        data = parsed.get("global")
        if data is None:
            for key in parsed:
                warn(f"error: expected a `[global]` section in {source}, got '{key}'")
                sys.exit(2)

        # gather custom actions
        actions = {
            field.name: field.metadata["action"]
            for field in fields(Config)
            if field.metadata.get("action")
        }

        result = {}
        for key, value in data.items():
            key = key.replace("-", "_")
            action = actions.get(key)
            try:
                result[key] = action.parse(value) if action else value
            except ValueError as err:
                warn(f"error: {key}: {err}")
                sys.exit(2)
        return result


def _create_default_config() -> "Config":
    values = {}

    for field in fields(Config):
        # we build the default config by looking at the global_default metadata field
        default = field.metadata.get("global_default", MISSING)
        if default == MISSING:
            continue

        # retrieve the default value
        raw_value = default() if callable(default) else default

        # parse the default value, if a custom parser is provided
        action = field.metadata.get("action", None)
        values[field.name] = action.parse(raw_value) if action else raw_value

    return Config(_parent=None, _source=ConfigSource.default, **values)


def _create_arg_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="solprep",
        description="Compile a Solidity file and prepare its contract for fuzzing",
    )

    groups = {
        None: parser,
    }

    # add arguments from the Config dataclass
    for field_info in fields(Config):
        # skip internal fields
        if field_info.metadata.get(internal, False):
            continue

        arg_help = field_info.metadata.get("help", "")
        metavar = field_info.metadata.get("metavar", None)

        if field_info.metadata.get("positional", False):
            parser.add_argument(
                field_info.name, nargs="?", help=arg_help, metavar=metavar
            )
            continue

        long_name = f"--{field_info.name.replace('_', '-')}"
        names = [long_name]

        short_name = field_info.metadata.get("short", None)
        if short_name:
            names.append(f"-{short_name}")

        group_name = field_info.metadata.get("group", None)
        if group_name not in groups:
            groups[group_name] = parser.add_argument_group(group_name)

        group = groups[group_name]

        if field_info.type is bool:
            group.add_argument(*names, help=arg_help, action="store_true", default=None)
        elif field_info.metadata.get("countable", False):
            group.add_argument(*names, help=arg_help, action="count")
        else:
            # add the default value to the help text
            default = field_info.metadata.get("global_default", None)
            if default is not None:
                default_str = field_info.metadata.get("global_default_str", None)
                default_str = repr(default) if default_str is None else default_str
                arg_help += f" (default: {default_str})"

            kwargs = {
                "help": arg_help,
                "metavar": metavar,
                "type": field_info.type,
            }
            if action := field_info.metadata.get("action", None):
                kwargs["action"] = action
            group.add_argument(*names, **kwargs)

    return parser


def _create_toml_parser() -> TomlParser:
    return TomlParser()


# public singleton accessors
def default_config() -> "Config":
    return _default_config


def arg_parser() -> argparse.ArgumentParser:
    return _arg_parser


def toml_parser():
    return _toml_parser


# init module-level singletons
_arg_parser = _create_arg_parser()
_default_config = _create_default_config()
_toml_parser = _create_toml_parser()
