"""Utility functions for finsys."""

from finsys.core.utils.log import DEBUG, ERRORS, INFO, SILENT, LogSink, VerboseLogger

__all__ = [
    "LogSink",
    "VerboseLogger",
    "SILENT",
    "ERRORS",
    "INFO",
    "DEBUG",
]
