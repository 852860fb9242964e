"""
Repository

Per-table gateways that find, create, save and delete entities, and the
registry that wires them together for relation lookups.
"""

from tablemapper.repository.registry import RepositoryRegistry
from tablemapper.repository.repository import Repository, SaveMode

__all__ = ["Repository", "RepositoryRegistry", "SaveMode"]
