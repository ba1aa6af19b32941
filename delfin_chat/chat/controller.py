"""Conversation controller driving provider streams into chat state.

Owns the message list for one chat session and exposes the state/action
surface the view layer renders from:

    messages, is_loading, error, send_message, clear_chat, retry_last_message

Each fragment from the provider is merged into the in-flight assistant
message and observers are notified before the next fragment is requested.
"""

import asyncio
import logging
from collections.abc import Callable
from contextlib import aclosing

from delfin_chat.llm.base import ConfigurationError, LLMMessage, LLMProvider
from delfin_chat.llm.cancellation import CancellationToken
from delfin_chat.llm.registry import LLMServiceFactory, create_default_registry
from delfin_chat.models.schemas import ChatState, ImageAttachment, Message, Role, TurnStatus

logger = logging.getLogger(__name__)

NO_RESPONSE_FALLBACK = "No response generated."

StateListener = Callable[[ChatState], None]


def default_provider_factory() -> LLMProvider:
    """Create the provider selected by the environment."""
    return LLMServiceFactory(create_default_registry()).create_from_environment()


class ChatController:
    """State machine for a single conversation.

    A turn moves through ``sending -> streaming`` and ends ``settled``,
    ``aborted`` or ``errored``. Only one turn is in flight at a time; a new
    turn cancels the previous token before it starts.

    Args:
        provider_factory: Builds the provider on first use. Defaults to
            environment-based creation through the default registry.
    """

    def __init__(self, provider_factory: Callable[[], LLMProvider] | None = None) -> None:
        self._provider_factory = provider_factory or default_provider_factory
        self._provider: LLMProvider | None = None
        self._constructing = False

        self._messages: list[Message] = []
        self._is_loading = False
        self._error: str | None = None
        self._status = TurnStatus.IDLE
        self._cancel_token: CancellationToken | None = None
        self._listeners: list[StateListener] = []

    @property
    def messages(self) -> list[Message]:
        return list(self._messages)

    @property
    def is_loading(self) -> bool:
        return self._is_loading

    @property
    def error(self) -> str | None:
        return self._error

    @property
    def status(self) -> TurnStatus:
        return self._status

    @property
    def state(self) -> ChatState:
        return ChatState(
            messages=list(self._messages),
            is_loading=self._is_loading,
            error=self._error,
            status=self._status,
        )

    def subscribe(self, listener: StateListener) -> Callable[[], None]:
        """Register a listener called with a snapshot after every update.

        Returns:
            A callable that removes the listener.
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def get_provider(self) -> LLMProvider:
        """Return the provider, constructing it on first use.

        A failed construction is not cached, so the next turn tries again.

        Raises:
            ConfigurationError: If the provider has no credentials.
            RuntimeError: If called again while the provider is being built.
        """
        if self._provider is None:
            if self._constructing:
                raise RuntimeError("Provider construction re-entered")
            self._constructing = True
            try:
                provider = self._provider_factory()
            finally:
                self._constructing = False
            if not provider.is_configured():
                raise ConfigurationError(f"Provider '{provider.name}' is not configured")
            self._provider = provider
        return self._provider

    async def send_message(
        self,
        content: str,
        images: list[ImageAttachment] | None = None,
    ) -> None:
        """Append a user turn and stream the assistant reply.

        No-op when both text and images are empty or a turn is in flight.
        Failures end up in ``error``; nothing is raised to the caller.
        """
        text = content.strip()
        if (not text and not images) or self._is_loading:
            return

        user_message = Message.user(text, images)
        placeholder = Message.placeholder()
        history = [*self._messages, user_message]

        self._messages = [*history, placeholder]
        self._is_loading = True
        self._error = None
        self._status = TurnStatus.SENDING
        self._notify()

        await self._run_turn(placeholder.id, history)

    async def retry_last_message(self) -> None:
        """Regenerate the reply to the most recent user message.

        No-op when there is no user message or a turn is in flight.
        """
        last_user = next((m for m in reversed(self._messages) if m.role == Role.USER), None)
        if last_user is None or self._is_loading:
            return

        previous = self._messages
        trailing = previous[-1]
        remaining = previous[:-1] if trailing.role == Role.ASSISTANT else previous

        history = [m for m in previous if m.role == Role.USER or m.id != trailing.id]
        history.append(last_user)

        placeholder = Message.placeholder()
        self._messages = [*remaining, placeholder]
        self._is_loading = True
        self._error = None
        self._status = TurnStatus.SENDING
        self._notify()

        await self._run_turn(placeholder.id, history)

    def clear_chat(self) -> None:
        """Cancel any in-flight turn and reset the conversation."""
        if self._cancel_token is not None:
            self._cancel_token.cancel()
            self._cancel_token = None
            logger.info("In-flight turn cancelled by clear")

        self._messages = []
        self._error = None
        self._is_loading = False
        self._status = TurnStatus.IDLE
        self._notify()

    def cancel(self) -> None:
        """Abort the in-flight turn.

        Fragments already merged are kept; a placeholder that never received
        any text is removed. Has no effect when nothing is in flight.
        """
        token = self._cancel_token
        if token is None:
            return

        token.cancel()
        self._cancel_token = None
        self._messages = [m for m in self._messages if not m.is_loading]
        self._is_loading = False
        self._status = TurnStatus.ABORTED
        logger.info("In-flight turn cancelled")
        self._notify()

    def dismiss_error(self) -> None:
        if self._error is None:
            return
        self._error = None
        self._notify()

    async def _run_turn(self, assistant_id: str, history: list[Message]) -> None:
        if self._cancel_token is not None:
            self._cancel_token.cancel()
        token = CancellationToken()
        self._cancel_token = token

        received: list[str] = []
        try:
            provider = self.get_provider()
            llm_messages = [LLMMessage.from_message(m) for m in history]
            logger.info(f"Streaming reply from {provider.name} ({len(llm_messages)} messages)")

            stream = provider.generate_streaming_response(llm_messages, token)
            async with aclosing(stream):
                async for fragment in stream:
                    if token.cancelled:
                        break
                    received.append(fragment)
                    self._replace_message(
                        assistant_id, content="".join(received), is_loading=False
                    )
                    self._status = TurnStatus.STREAMING
                    self._notify()

            if token.cancelled:
                return

            self._replace_message(
                assistant_id,
                content="".join(received) or NO_RESPONSE_FALLBACK,
                is_loading=False,
            )
            self._status = TurnStatus.SETTLED
            logger.info(f"Turn settled after {len(received)} fragments")

        except asyncio.CancelledError:
            token.cancel()
            if self._cancel_token is token:
                self._messages = [
                    m for m in self._messages if not (m.id == assistant_id and m.is_loading)
                ]
                self._status = TurnStatus.ABORTED
            raise
        except Exception as e:
            if token.cancelled:
                return
            logger.error(f"Turn failed: {e}")
            self._messages = [m for m in self._messages if m.id != assistant_id]
            self._error = str(e) or "Something went wrong"
            self._status = TurnStatus.ERRORED

        finally:
            if self._cancel_token is token:
                self._cancel_token = None
                self._is_loading = False
                self._notify()

    def _replace_message(self, message_id: str, **changes: object) -> None:
        self._messages = [
            m.model_copy(update=changes) if m.id == message_id else m
            for m in self._messages
        ]

    def _notify(self) -> None:
        if not self._listeners:
            return
        snapshot = self.state
        for listener in list(self._listeners):
            try:
                listener(snapshot)
            except Exception as e:
                logger.warning(f"Chat state listener failed: {e}")
