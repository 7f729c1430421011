"""Persistent project memory stored under ``memory-bank/``."""

from vibecheck.memory.ops import init_memory, read_memory, resolve_target, save_feature_spec, update_memory
from vibecheck.memory.routes import parse_routes_table
from vibecheck.memory.store import MemoryBank, generate_slug
from vibecheck.memory.types import MemoryBankContext, RouteEntry

__all__ = [
    "MemoryBank",
    "MemoryBankContext",
    "RouteEntry",
    "generate_slug",
    "init_memory",
    "parse_routes_table",
    "read_memory",
    "resolve_target",
    "save_feature_spec",
    "update_memory",
]
