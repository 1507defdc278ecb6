"""Build version information and the --version command line flag."""

from __future__ import annotations

import argparse
import platform
import sys
from dataclasses import dataclass
from enum import Enum
from typing import TextIO

GIT_VERSION = "v0.0.0-master"
GIT_COMMIT = ""
GIT_TREE_STATE = ""
BUILD_DATE = "unknown"

_KUBE_GIT_VERSION = "v1.25.2"

PROGRAM_NAME = "Pediasync"


@dataclass(frozen=True)
class VersionInfo:
    git_version: str
    git_commit: str
    git_tree_state: str
    build_date: str
    python_version: str
    compiler: str
    platform: str
    kube_version: str

    def __str__(self) -> str:
        return self.git_version

    def as_dict(self) -> dict[str, str]:
        """Return the fields under their serialised names."""
        return {
            "gitVersion": self.git_version,
            "gitCommit": self.git_commit,
            "gitTreeState": self.git_tree_state,
            "buildDate": self.build_date,
            "pythonVersion": self.python_version,
            "compiler": self.compiler,
            "platform": self.platform,
            "kubeVersion": self.kube_version,
        }


def trim_kube_version(git_version: str) -> str:
    """Strip the distribution suffix some builds append to the version."""
    suffix = "-k3s1"
    if git_version.endswith(suffix):
        return git_version[: -len(suffix)]
    return git_version


def get() -> VersionInfo:
    """Return the version of this build and its runtime."""
    return VersionInfo(
        git_version=GIT_VERSION,
        git_commit=GIT_COMMIT,
        git_tree_state=GIT_TREE_STATE,
        build_date=BUILD_DATE,
        python_version=platform.python_version(),
        compiler=platform.python_implementation(),
        platform=f"{sys.platform}/{platform.machine()}",
        kube_version=trim_kube_version(_KUBE_GIT_VERSION),
    )


class VersionFlag(Enum):
    FALSE = 0
    TRUE = 1
    RAW = 2

    def __str__(self) -> str:
        if self is VersionFlag.RAW:
            return "raw"
        return "true" if self is VersionFlag.TRUE else "false"


_TRUE = {"1", "t", "T", "TRUE", "true", "True"}
_FALSE = {"0", "f", "F", "FALSE", "false", "False"}


def parse_version_flag(value: str) -> VersionFlag:
    """Parse ``raw`` or a boolean into a flag value."""
    if value == "raw":
        return VersionFlag.RAW
    if value in _TRUE:
        return VersionFlag.TRUE
    if value in _FALSE:
        return VersionFlag.FALSE
    raise ValueError(f"invalid version flag value: {value!r}")


def _argument_type(value: str) -> VersionFlag:
    try:
        return parse_version_flag(value)
    except ValueError as err:
        raise argparse.ArgumentTypeError(str(err)) from err


def add_version_argument(parser: argparse.ArgumentParser) -> None:
    """Add ``--version[=true|false|raw]``; a bare ``--version`` means true."""
    parser.add_argument(
        "--version",
        nargs="?",
        const=VersionFlag.TRUE,
        default=VersionFlag.FALSE,
        type=_argument_type,
        metavar="version",
        help="Print version information and quit",
    )


def print_and_exit_if_requested(flag: VersionFlag, stream: TextIO | None = None) -> None:
    """Print the version and exit when the flag asks for it."""
    out = stream if stream is not None else sys.stdout
    if flag is VersionFlag.RAW:
        print(repr(get()), file=out)
    elif flag is VersionFlag.TRUE:
        print(f"{PROGRAM_NAME} {get()}", file=out)
    else:
        return
    raise SystemExit(0)