"""Protocol for external ledger notarizers."""

import typing as t


class NotarizationFailed(Exception):
    """Raised by a notarizer when the ledger did not record the event."""


class Notarizer(t.Protocol):
    """Records pass events on an external ledger.

    Implementations must be safe to call more than once for the same event; the queue retries
    on failure.
    """

    def notarize(self, event: dict[str, t.Any]) -> str:
        """Record an event.

        Args:
            event: JSON-serializable event description. Carries an `idempotency_key`.

        Returns:
            The ledger's receipt id for the event.

        Raises:
            NotarizationFailed: If the event could not be recorded.
        """
        ...
