"""Platform layer: process execution and executable lookup."""

from reltool.platform.detection import Platform, detect_platform, is_windows
from reltool.platform.paths import find_program, prepend_path
from reltool.platform.process import (
    MASK,
    CommandFailed,
    CommandInvocation,
    CommandRunner,
    ProcessRunner,
    RecordingRunner,
)

__all__ = [
    "MASK",
    "CommandFailed",
    "CommandInvocation",
    "CommandRunner",
    "Platform",
    "ProcessRunner",
    "RecordingRunner",
    "detect_platform",
    "find_program",
    "is_windows",
    "prepend_path",
]
