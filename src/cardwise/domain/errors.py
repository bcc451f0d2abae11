"""Exception hierarchy for cardwise."""


class CardwiseError(Exception):
    """Base class for every error raised by cardwise."""


class InvalidOutcome(CardwiseError, ValueError):
    """A review grade outside the four defined outcomes."""

    def __init__(self, value: object):
        self.value = value
        super().__init__(f"Invalid review outcome: {value!r}")


class StorageError(CardwiseError):
    """A storage collaborator failed to read or write."""


class CorruptRecordError(StorageError):
    """A persisted record could not be decoded into a domain object."""

    def __init__(self, key: str, detail: str):
        self.key = key
        super().__init__(f"Corrupt record {key!r}: {detail}")


class CardNotFound(CardwiseError, KeyError):
    def __init__(self, card_id: str):
        self.card_id = card_id
        super().__init__(card_id)

    def __str__(self) -> str:
        return f"Card not found: {self.card_id}"


class DeckNotFound(CardwiseError, KeyError):
    def __init__(self, deck_id: str):
        self.deck_id = deck_id
        super().__init__(deck_id)

    def __str__(self) -> str:
        return f"Deck not found: {self.deck_id}"


class SessionError(CardwiseError):
    """A study session was driven out of order."""
