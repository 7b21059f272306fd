"""Infrastructure layer: concrete implementations of application ports."""

from cardlink.infrastructure.memory_repository import (
    InMemoryContactCardRepository,
    InMemoryContactRepository,
    InMemoryStore,
)
from cardlink.infrastructure.persistence.neo4j_repository import (
    Neo4jContactCardRepository,
    Neo4jContactRepository,
    Neo4jStore,
    ensure_constraints,
)
from cardlink.infrastructure.phone import normalize_phone
from cardlink.infrastructure.reciprocal_client import HttpReciprocalWriter

__all__ = [
    "HttpReciprocalWriter",
    "InMemoryContactCardRepository",
    "InMemoryContactRepository",
    "InMemoryStore",
    "Neo4jContactCardRepository",
    "Neo4jContactRepository",
    "Neo4jStore",
    "ensure_constraints",
    "normalize_phone",
]
