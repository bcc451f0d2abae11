"""Service for minting stable ids for cards, decks and sessions."""

from ulid import ULID


def generate_card_id() -> str:
    """Generate a stable card id using ULID."""
    return f"card_{ULID()}"


def generate_deck_id() -> str:
    return f"deck_{ULID()}"


def generate_session_id() -> str:
    return f"session_{ULID()}"
