"""
cardlink core: clean-architecture layout.

- domain: entities (ContactCard, Contact) and the share code / username parser. No outer dependencies.
- application: use cases (MutualLinkService, CardService, ContactService), the elevated
  reciprocal boundary, ports (repositories, ReciprocalWriter), DTOs.
- infrastructure: adapters (InMemoryStore, Neo4jStore, HttpReciprocalWriter).
"""

from cardlink.application import (
    CardResolver,
    CardService,
    ContactCardData,
    ContactService,
    ElevatedContactBoundary,
    LinkOutcome,
    MutualLinkService,
)
from cardlink.domain import Contact, ContactCard, parse_identifier
from cardlink.infrastructure import HttpReciprocalWriter, InMemoryStore, Neo4jStore

__all__ = [
    "CardResolver",
    "CardService",
    "Contact",
    "ContactCard",
    "ContactCardData",
    "ContactService",
    "ElevatedContactBoundary",
    "HttpReciprocalWriter",
    "InMemoryStore",
    "LinkOutcome",
    "MutualLinkService",
    "Neo4jStore",
    "parse_identifier",
]
