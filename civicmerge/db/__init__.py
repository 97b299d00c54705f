"""Problem storage for civicmerge."""

from .connection import close_connection_pool, get_connection, get_connection_pool
from .init import init_database, validate_connection
from .problems import PostgresProblemStore
from .store import InMemoryProblemStore, ProblemStore, load_problems_file

__all__ = [
    "InMemoryProblemStore",
    "PostgresProblemStore",
    "ProblemStore",
    "close_connection_pool",
    "get_connection",
    "get_connection_pool",
    "init_database",
    "load_problems_file",
    "validate_connection",
]
