"""Backing stores the controller confirms moves against."""

from martrello.persistence.base import Persistence, unwrap
from martrello.persistence.http import HttpPersistence
from martrello.persistence.memory import MemoryPersistence

__all__ = ["HttpPersistence", "MemoryPersistence", "Persistence", "unwrap"]
