"""Cooperative cancellation shared between the controller and a provider stream."""

import asyncio


class CancellationToken:
    """One-shot cancellation flag.

    The controller owns the token for the in-flight turn and hands it to the
    provider generator. Both sides check it before yielding or mutating state.
    Cancelling is idempotent.
    """

    def __init__(self) -> None:
        self._event = asyncio.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    async def wait(self) -> None:
        """Block until the token is cancelled."""
        await self._event.wait()
