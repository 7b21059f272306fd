"""Environment configuration shared by the API processes.

Loads .env from the repo root (or cwd), then reads plain environment variables.
The end-user session driver and the elevated driver use separate credentials;
only the reciprocal boundary is given the elevated one.
"""

import os
from pathlib import Path

from dotenv import load_dotenv
from neo4j import GraphDatabase

for path in (
    Path(__file__).resolve().parent.parent.parent / ".env",
    Path.cwd() / ".env",
):
    if path.exists():
        load_dotenv(path)
        break

USER_ID_HEADER = "X-User-Id"


def _env(name: str, default: str = "") -> str:
    return (os.environ.get(name) or default).strip()


def neo4j_uri() -> str:
    return _env("NEO4J_URI", "bolt://localhost:7687")


def user_driver():
    """Driver for end-user requests (own card, own contact list, public lookups)."""
    user = _env("NEO4J_USER", "neo4j")
    password = _env("NEO4J_PASSWORD", "password")
    return GraphDatabase.driver(neo4j_uri(), auth=(user, password))


def elevated_driver():
    """Driver for the reciprocal boundary. Falls back to the user credentials when unset."""
    user = _env("NEO4J_ELEVATED_USER") or _env("NEO4J_USER", "neo4j")
    password = _env("NEO4J_ELEVATED_PASSWORD") or _env("NEO4J_PASSWORD", "password")
    return GraphDatabase.driver(neo4j_uri(), auth=(user, password))


def reciprocal_boundary_url() -> str | None:
    """Base URL of a separately deployed api.elevated service, or None for in-process."""
    return _env("RECIPROCAL_BOUNDARY_URL") or None


def reciprocal_timeout() -> float:
    raw = _env("RECIPROCAL_TIMEOUT_SECONDS", "10")
    try:
        return float(raw)
    except ValueError:
        return 10.0
