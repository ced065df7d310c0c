# SPDX-License-Identifier: AGPL-3.0

import logging
from dataclasses import dataclass

from rich.logging import RichHandler

#
# Basic logging
#

logging.basicConfig(
    format="%(message)s",
    handlers=[RichHandler(level=logging.NOTSET, show_time=False, show_path=False)],
)

logger = logging.getLogger("solprep")


def set_level(level: int) -> None:
    logger.setLevel(level)


def debug(text: str) -> None:
    logger.debug(text)


def info(text: str) -> None:
    logger.info(text)


def warn(text: str) -> None:
    logger.warning(text)


def error(text: str) -> None:
    logger.error(text)


#
# Warnings with error code
#


@dataclass
class ErrorCode:
    code: str


PARSING_ERROR = ErrorCode("parsing-error")
LIBRARY_PLACEHOLDER = ErrorCode("library-placeholder")


def warn_code(error_code: ErrorCode, msg: str) -> None:
    logger.warning(f"{msg} [{error_code.code}]")
