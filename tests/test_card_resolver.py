"""CardResolver over the in-memory store: format checks, active-only lookups."""

from cardlink.application import CardResolver, CardService, InvalidFormat, NotFound
from cardlink.domain import ContactCard
from cardlink.infrastructure import InMemoryStore


def _store_with_jane() -> InMemoryStore:
    store = InMemoryStore()
    store.card_repository().save(
        ContactCard(
            owner_id="jane",
            name="Jane Doe",
            email="jane@example.com",
            share_code="a1b2c3d4",
            username="JaneDoe",
        )
    )
    return store


def _resolver(store: InMemoryStore) -> CardResolver:
    return CardResolver(store.card_repository("someone"))


def test_resolve_by_code_returns_active_card() -> None:
    card = _resolver(_store_with_jane()).resolve_by_code("a1b2c3d4")
    assert isinstance(card, ContactCard)
    assert card.owner_id == "jane"


def test_code_is_trimmed_and_lowercased() -> None:
    card = _resolver(_store_with_jane()).resolve_by_code("  A1B2C3D4 ")
    assert isinstance(card, ContactCard)
    assert card.share_code == "a1b2c3d4"


def test_malformed_code_is_invalid_format() -> None:
    resolver = _resolver(_store_with_jane())
    for raw in ("", "a1b2c3d", "a1b2c3d4e", "zzzzzzzz", "a1b2-3d4"):
        result = resolver.resolve_by_code(raw)
        assert isinstance(result, InvalidFormat), raw
        assert result.value == raw


def test_unknown_code_is_not_found() -> None:
    result = _resolver(_store_with_jane()).resolve_by_code("deadbeef")
    assert result == NotFound(identifier="deadbeef")


def test_deactivated_card_does_not_resolve() -> None:
    store = _store_with_jane()
    CardService("jane", store.card_repository("jane")).deactivate_card()
    resolver = _resolver(store)
    assert isinstance(resolver.resolve_by_code("a1b2c3d4"), NotFound)
    assert isinstance(resolver.resolve_by_username("JaneDoe"), NotFound)


def test_username_match_is_exact_and_case_sensitive() -> None:
    resolver = _resolver(_store_with_jane())
    assert isinstance(resolver.resolve_by_username("JaneDoe"), ContactCard)
    assert isinstance(resolver.resolve_by_username("janedoe"), NotFound)
    assert isinstance(resolver.resolve_by_username("JaneDo"), NotFound)


def test_empty_username_is_invalid_format() -> None:
    resolver = _resolver(_store_with_jane())
    assert isinstance(resolver.resolve_by_username(""), InvalidFormat)
    assert isinstance(resolver.resolve_by_username("   "), InvalidFormat)
