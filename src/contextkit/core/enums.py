"""Enumerations shared across contexts."""

from enum import Enum


class BusBackend(str, Enum):
    MEMORY = "memory"
    REDIS = "redis"


class LogFormat(str, Enum):
    JSON = "json"
    CONSOLE = "console"
