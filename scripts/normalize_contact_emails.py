#!/usr/bin/env python3
"""One-off migration: lowercase Contact.email and create the uniqueness constraints.

The (owner_id, email) constraint cannot be created while one owner holds two
Contact nodes whose emails differ only in case or whitespace. This finds those
groups, keeps the oldest node of each, deletes the rest, lowercases every
remaining email, then runs ensure_constraints. Run from repo root with .env
(NEO4J_URI, NEO4J_USER, NEO4J_PASSWORD). Idempotent.
"""
import os
import sys
from pathlib import Path

REPO_ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(REPO_ROOT / "src"))

from dotenv import load_dotenv  # noqa: E402
from neo4j import GraphDatabase  # noqa: E402

from cardlink.infrastructure import ensure_constraints  # noqa: E402

load_dotenv(REPO_ROOT / ".env")

_FIND_DUPLICATES = """
MATCH (c:Contact)
WITH c.owner_id AS owner_id, toLower(trim(c.email)) AS email, c
ORDER BY c.created_at ASC
WITH owner_id, email, collect(c.id) AS ids
WHERE size(ids) > 1
RETURN owner_id, email, ids
"""

_DELETE_CONTACT = """
MATCH (c:Contact {id: $id})
DELETE c
"""

_LOWERCASE_EMAILS = """
MATCH (c:Contact)
WHERE c.email <> toLower(trim(c.email))
SET c.email = toLower(trim(c.email))
RETURN count(c) AS n
"""


def main() -> int:
    uri = os.environ.get("NEO4J_URI", "bolt://localhost:7687").strip()
    user = os.environ.get("NEO4J_USER", "neo4j").strip()
    password = os.environ.get("NEO4J_PASSWORD", "password").strip()
    driver = GraphDatabase.driver(uri, auth=(user, password))
    try:
        with driver.session() as session:
            groups = [(r["owner_id"], r["email"], r["ids"]) for r in session.run(_FIND_DUPLICATES)]
        removed = 0
        with driver.session() as session:
            for owner_id, email, ids in groups:
                for contact_id in ids[1:]:
                    session.run(_DELETE_CONTACT, id=contact_id).consume()
                    removed += 1
                print(f"{owner_id}: kept 1 of {len(ids)} contacts for {email}")
            updated = session.run(_LOWERCASE_EMAILS).single()["n"]
        ensure_constraints(driver)
        print(f"Removed {removed} duplicate contact(s), lowercased {updated} email(s).")
        return 0
    finally:
        driver.close()


if __name__ == "__main__":
    sys.exit(main())
