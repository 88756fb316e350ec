"""
Conversation store.

Drives the optimistic message lifecycle of the chat client: submitting a
turn, applying streamed fragments to a placeholder, and reconciling with
the authoritative session and message lists once the turn ends.

State transitions:
    Idle --send_message--> Streaming
    Streaming --complete--> Settling (refresh) --> Idle
    Streaming --error--> Settling (input restored, refresh) --> Idle (error shown)
    Streaming --stop_generation / cancel--> Settling (input restored silently) --> Idle

send_message refuses a new turn until the previous one has settled.

Dependencies: chatrelay.client.stream_consumer, chatrelay.client.chat_api
System role: Client-side conversation state machine
"""

import itertools
import logging
from datetime import datetime, timezone

from chatrelay.application.services.message_composer import compose_user_content
from chatrelay.client.chat_api import ChatApiClient
from chatrelay.client.state import (
    DEFAULT_MODEL,
    GENERATION_FAILED,
    MESSAGE_LOAD_FAILED,
    NO_SESSION_SELECTED,
    SESSION_CREATE_FAILED,
    SESSION_DELETE_FAILED,
    SESSION_LOAD_FAILED,
    ChatMessage,
    ConversationState,
)
from chatrelay.client.stream_consumer import (
    ChatStreamClient,
    CompleteUpdate,
    DeltaUpdate,
    SessionUpdate,
    StreamCallbacks,
    StreamHandle,
)
from chatrelay.core.exceptions import ChatRelayException, StreamCancelledError
from chatrelay.core.providers import supports_reasoning
from chatrelay.models.attachment import Attachment
from chatrelay.models.chat import ChatStreamRequest
from chatrelay.models.message import MessageRole
from chatrelay.models.session import SessionResponse
from chatrelay.observability.log_utils import log_with_context

logger = logging.getLogger(__name__)


def _describe(error: Exception, default: str) -> str:
    if isinstance(error, ChatRelayException):
        return error.message or default
    return str(error) or default


class ConversationStore:
    """
    Conversation state plus the single in-flight stream.

    At most one stream is active per store. Callbacks of a stream that is
    no longer the active turn (stopped, or already settled) are ignored.
    """

    def __init__(
        self,
        api: ChatApiClient,
        stream_client: ChatStreamClient,
        model: str = DEFAULT_MODEL,
    ) -> None:
        """
        Initialize conversation store.

        Args:
            api: Session/message store client
            stream_client: Relay stream client
            model: Initially selected model
        """
        self.api = api
        self.stream_client = stream_client
        self.state = ConversationState(model=model)
        self._stream_handle: StreamHandle | None = None
        self._active_turn: int | None = None
        self._pending_ids: frozenset[str] = frozenset()
        self._turns = itertools.count(1)

    # ------------------------------------------------------------------
    # Sessions
    # ------------------------------------------------------------------

    async def initialize(self, force: bool = False) -> None:
        """Load sessions once and select the most recent one."""
        if self.state.has_initialized and not force:
            return
        self.state.has_initialized = True
        await self.refresh_sessions(select_first=True)

    async def refresh_sessions(
        self,
        select_first: bool = False,
        refresh_active_messages: bool = True,
    ) -> None:
        """
        Reload the session list.

        Args:
            select_first: Select the most recent session
            refresh_active_messages: Reload messages of the active session
        """
        self.state.loading_sessions = True
        self.state.error = None
        try:
            sessions = await self.api.list_sessions()
            self.state.sessions = sessions
            known_ids = {str(session.id) for session in sessions}

            target = self.state.active_session_id
            if select_first or (target and target not in known_ids):
                target = str(sessions[0].id) if sessions else None
                self.state.active_session_id = target

            if target:
                if select_first or refresh_active_messages:
                    await self.refresh_messages(target)
            else:
                self.state.messages = []
        except Exception as e:
            logger.exception("Failed to load sessions", extra={"error_type": type(e).__name__})
            self.state.error = _describe(e, SESSION_LOAD_FAILED)
        finally:
            self.state.loading_sessions = False

    async def refresh_messages(self, session_id: str | None) -> None:
        """Replace the message list with the authoritative one."""
        if not session_id:
            self.state.messages = []
            return

        self.state.loading_messages = True
        self.state.error = None
        try:
            messages = await self.api.list_messages(session_id)
            self.state.messages = [ChatMessage.from_response(message) for message in messages]
        except Exception as e:
            logger.exception(
                "Failed to load messages",
                extra={"session_id": session_id, "error_type": type(e).__name__},
            )
            self.state.error = _describe(e, MESSAGE_LOAD_FAILED)
        finally:
            self.state.loading_messages = False

    async def select_session(self, session_id: str | None) -> None:
        if not session_id or session_id == self.state.active_session_id:
            return
        self.state.active_session_id = session_id
        self.state.composer_value = ""
        await self.refresh_messages(session_id)

    async def create_new_session(self) -> None:
        try:
            session = await self.api.create_session(model=self.state.model)
        except Exception as e:
            logger.exception("Failed to create session", extra={"error_type": type(e).__name__})
            self.state.error = _describe(e, SESSION_CREATE_FAILED)
            return

        self.state.sessions = [session, *self.state.sessions]
        self.state.active_session_id = str(session.id)
        self.state.messages = []
        self.state.composer_value = ""

    async def remove_session(self, session_id: str | None) -> None:
        """Delete a session; when it was active, move to the next most recent one."""
        if not session_id:
            return

        was_active = session_id == self.state.active_session_id
        try:
            await self.api.delete_session(session_id)
        except Exception as e:
            logger.exception(
                "Failed to delete session",
                extra={"session_id": session_id, "error_type": type(e).__name__},
            )
            self.state.error = _describe(e, SESSION_DELETE_FAILED)
            return

        self.state.sessions = [s for s in self.state.sessions if str(s.id) != session_id]
        if was_active:
            next_id = str(self.state.sessions[0].id) if self.state.sessions else None
            self.state.active_session_id = next_id
            self.state.messages = []
            self.state.composer_value = ""
            if next_id:
                await self.refresh_messages(next_id)

    # ------------------------------------------------------------------
    # Composer
    # ------------------------------------------------------------------

    def set_composer_value(self, value: str) -> None:
        self.state.composer_value = value

    def set_model(self, model: str) -> None:
        self.state.model = model

    def add_attachment(self, attachment: Attachment) -> None:
        self.state.attachments = [*self.state.attachments, attachment]

    def remove_attachment(self, index: int) -> None:
        self.state.attachments = [
            attachment for i, attachment in enumerate(self.state.attachments) if i != index
        ]

    def clear_attachments(self) -> None:
        self.state.attachments = []

    def clear_error(self) -> None:
        self.state.error = None

    # ------------------------------------------------------------------
    # Streaming
    # ------------------------------------------------------------------

    async def send_message(self) -> bool:
        """
        Submit the composer contents as a new turn.

        Rejected (returns False) when there is nothing to send, when no
        session is selected, or while the previous turn is still streaming
        or settling.

        Returns:
            bool: Whether a stream was started
        """
        text = (self.state.composer_value or "").strip()
        attachments = list(self.state.attachments)

        if not text and not attachments:
            return False
        if not self.state.active_session_id:
            self.state.error = NO_SESSION_SELECTED
            return False
        if self.state.is_streaming or self.state.is_settling:
            return False

        model = self.state.model
        now = datetime.now(timezone.utc)
        stamp = now.isoformat()
        temp_user_id = f"temp-user-{stamp}"
        temp_assistant_id = f"temp-assistant-{stamp}"

        user_message = ChatMessage(
            id=temp_user_id,
            role=MessageRole.USER,
            content=compose_user_content(text, attachments),
            attachments=[a.model_dump(by_alias=True, exclude_none=True) for a in attachments] or None,
            created_at=now,
            temp=True,
        )
        assistant_message = ChatMessage(
            id=temp_assistant_id,
            role=MessageRole.ASSISTANT,
            content="",
            reasoning="" if supports_reasoning(model) else None,
            model=model,
            created_at=now,
            temp=True,
        )

        self.state.composer_value = ""
        self.state.last_submitted_input = text
        self.state.error = None
        self.state.messages = [*self.state.messages, user_message, assistant_message]
        self.state.is_streaming = True
        self.state.streaming_message_id = temp_assistant_id

        if attachments:
            log_with_context(
                logger,
                logging.DEBUG,
                "Sending attachments",
                attachment_names=[a.name for a in attachments],
                document_count=sum(1 for a in attachments if a.is_document),
                image_count=sum(1 for a in attachments if a.is_image),
            )
        self.clear_attachments()

        turn = next(self._turns)
        self._active_turn = turn
        self._pending_ids = frozenset({temp_user_id, temp_assistant_id})
        request = ChatStreamRequest(
            session_id=self.state.active_session_id,
            message=text,
            model=model,
            attachments=attachments,
        )
        self._stream_handle = self.stream_client.start_stream(
            request,
            self._callbacks(turn, self._pending_ids, temp_assistant_id, model),
        )
        return True

    async def stop_generation(self) -> None:
        """Abort the in-flight turn and restore the submitted input."""
        handle = self._stream_handle
        temp_ids = self._pending_ids
        self._release_stream()
        if handle is not None:
            handle.abort()
        await self._settle_cancelled(temp_ids)

    async def wait_for_stream(self) -> None:
        """Wait for the current turn, including its terminal transition."""
        if self._stream_handle is not None:
            await self._stream_handle.wait()

    def _callbacks(
        self,
        turn: int,
        temp_ids: frozenset[str],
        temp_assistant_id: str,
        model: str,
    ) -> StreamCallbacks:
        reasoning_enabled = supports_reasoning(model)

        def on_session(update: SessionUpdate) -> None:
            if turn != self._active_turn:
                return
            if update.session_id and update.session_id != self.state.active_session_id:
                self.state.active_session_id = update.session_id
            if update.session:
                self._merge_session(SessionResponse.model_validate(update.session))

        def on_delta(update: DeltaUpdate) -> None:
            if turn != self._active_turn:
                return
            for message in self.state.messages:
                if message.id != temp_assistant_id:
                    continue
                if update.content:
                    message.content += update.content
                if reasoning_enabled and update.reasoning:
                    message.reasoning = (message.reasoning or "") + update.reasoning

        async def on_complete(update: CompleteUpdate) -> None:
            if turn != self._active_turn:
                return
            self._release_stream()
            self.state.is_streaming = False
            self.state.streaming_message_id = None
            self.state.last_submitted_input = ""
            if reasoning_enabled and update.reasoning:
                self._apply_reasoning(temp_assistant_id, update.reasoning)

            await self._reconcile(update.session_id or self.state.active_session_id, temp_ids)

            if reasoning_enabled and update.message_id and update.reasoning:
                self._apply_reasoning(update.message_id, update.reasoning)

        async def on_error(error: Exception) -> None:
            if turn != self._active_turn:
                return
            self._release_stream()
            if isinstance(error, StreamCancelledError):
                await self._settle_cancelled(temp_ids)
                return

            logger.warning(
                "Chat turn failed",
                extra={"error_type": type(error).__name__, "error_msg": str(error)},
            )
            self.state.composer_value = self.state.last_submitted_input or self.state.composer_value
            self.state.last_submitted_input = ""
            self.state.is_streaming = False
            self.state.streaming_message_id = None

            await self._reconcile(self.state.active_session_id, temp_ids)
            self.state.error = _describe(error, GENERATION_FAILED)

        return StreamCallbacks(
            on_session=on_session,
            on_delta=on_delta,
            on_complete=on_complete,
            on_error=on_error,
        )

    async def _settle_cancelled(self, temp_ids: frozenset[str]) -> None:
        self.state.is_streaming = False
        self.state.streaming_message_id = None
        if self.state.last_submitted_input:
            self.state.composer_value = self.state.last_submitted_input
            self.state.last_submitted_input = ""

        await self._reconcile(self.state.active_session_id, temp_ids)

    async def _reconcile(self, session_id: str | None, temp_ids: frozenset[str]) -> None:
        """
        Reload sessions and messages after a turn, then drop its placeholders.

        ``is_settling`` stays set for the whole reload so no new turn can add
        placeholders that this pass would discard.
        """
        self.state.is_settling = True
        try:
            if session_id:
                await self.refresh_sessions(select_first=False, refresh_active_messages=False)
                await self.refresh_messages(session_id)
        finally:
            self.state.messages = [m for m in self.state.messages if m.id not in temp_ids]
            self.state.is_settling = False

    def _release_stream(self) -> None:
        self._stream_handle = None
        self._active_turn = None
        self._pending_ids = frozenset()

    def _merge_session(self, session: SessionResponse) -> None:
        for index, existing in enumerate(self.state.sessions):
            if existing.id == session.id:
                self.state.sessions[index] = session
                return
        self.state.sessions = [session, *self.state.sessions]

    def _apply_reasoning(self, message_id: str, reasoning: str) -> None:
        for message in self.state.messages:
            if message.id == message_id:
                message.reasoning = reasoning
