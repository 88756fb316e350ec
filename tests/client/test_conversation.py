"""
Test suite for ConversationStore.

Uses an in-memory fake of the session/message API and a fake stream
client that captures callbacks, so each test drives the stream
lifecycle by hand.

System role: Verification of the client conversation state machine
"""

import asyncio
import uuid
from datetime import datetime, timedelta, timezone

import pytest

from chatrelay.client.conversation import ConversationStore
from chatrelay.client.state import GENERATION_FAILED, NO_SESSION_SELECTED
from chatrelay.client.stream_consumer import CompleteUpdate, DeltaUpdate, SessionUpdate
from chatrelay.core.exceptions import StreamCancelledError, StreamRequestError
from chatrelay.models.attachment import Attachment
from chatrelay.models.message import MessageResponse, MessageRole
from chatrelay.models.session import SessionResponse

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


def _session(title: str, minutes: int = 0) -> SessionResponse:
    stamp = BASE_TIME + timedelta(minutes=minutes)
    return SessionResponse(
        id=uuid.uuid4(),
        title=title,
        model="deepseek-chat",
        created_at=stamp,
        updated_at=stamp,
    )


def _message(session_id: uuid.UUID, role: MessageRole, content: str, **extra) -> MessageResponse:
    return MessageResponse(
        id=uuid.uuid4(),
        session_id=session_id,
        role=role,
        content=content,
        created_at=BASE_TIME,
        **extra,
    )


class FakeApi:
    """In-memory stand-in for ChatApiClient."""

    def __init__(self, sessions: list[SessionResponse]) -> None:
        self.sessions = list(sessions)
        self.messages: dict[str, list[MessageResponse]] = {}
        self.fail_with: Exception | None = None
        self.created: list[dict] = []
        self.hold: asyncio.Event | None = None

    async def list_sessions(self) -> list[SessionResponse]:
        if self.fail_with is not None:
            raise self.fail_with
        return list(self.sessions)

    async def list_messages(self, session_id: str) -> list[MessageResponse]:
        if self.hold is not None:
            await self.hold.wait()
        return list(self.messages.get(str(session_id), []))

    async def create_session(self, title: str | None = None, model: str | None = None) -> SessionResponse:
        self.created.append({"title": title, "model": model})
        session = _session(title or "New Chat", minutes=100)
        self.sessions.insert(0, session)
        return session

    async def delete_session(self, session_id: str) -> None:
        self.sessions = [s for s in self.sessions if str(s.id) != str(session_id)]


class FakeHandle:
    def __init__(self) -> None:
        self.aborted = 0

    def abort(self) -> None:
        self.aborted += 1

    async def wait(self) -> None:
        return None


class FakeStreamClient:
    """Records start_stream calls instead of contacting a relay."""

    def __init__(self) -> None:
        self.started: list[tuple] = []

    def start_stream(self, request, callbacks) -> FakeHandle:
        handle = FakeHandle()
        self.started.append((request, callbacks, handle))
        return handle

    @property
    def last(self):
        return self.started[-1]


@pytest.fixture
def sessions() -> list[SessionResponse]:
    return [_session("Newest", minutes=10), _session("Older", minutes=0)]


@pytest.fixture
def api(sessions) -> FakeApi:
    return FakeApi(sessions)


@pytest.fixture
def stream_client() -> FakeStreamClient:
    return FakeStreamClient()


@pytest.fixture
async def store(api, stream_client) -> ConversationStore:
    """Initialized store with the newest session selected."""
    conversation = ConversationStore(api, stream_client)
    await conversation.initialize()
    return conversation


class TestSessions:
    """Test suite for session actions."""

    @pytest.mark.asyncio
    async def test_initialize_should_select_most_recent_session(self, store, sessions, api) -> None:
        """Test first load selects the first session and loads its messages."""
        # Arrange
        newest = sessions[0]
        api.messages[str(newest.id)] = [_message(newest.id, MessageRole.USER, "hi")]

        # Act
        await store.initialize(force=True)

        # Assert
        assert store.state.active_session_id == str(newest.id)
        assert [m.content for m in store.state.messages] == ["hi"]
        assert store.state.has_initialized is True

    @pytest.mark.asyncio
    async def test_initialize_should_run_once(self, store, api) -> None:
        """Test a second initialize does not reload."""
        # Arrange
        api.sessions = []

        # Act
        await store.initialize()

        # Assert
        assert len(store.state.sessions) == 2

    @pytest.mark.asyncio
    async def test_refresh_failure_should_set_error(self, store, api) -> None:
        """Test load failures surface as a user-facing error."""
        # Arrange
        api.fail_with = RuntimeError("relay down")

        # Act
        await store.refresh_sessions()

        # Assert
        assert store.state.error == "relay down"
        assert store.state.loading_sessions is False

    @pytest.mark.asyncio
    async def test_select_session_should_load_messages_and_clear_composer(self, store, sessions, api) -> None:
        """Test switching sessions replaces the message list."""
        # Arrange
        older = sessions[1]
        api.messages[str(older.id)] = [_message(older.id, MessageRole.USER, "old")]
        store.set_composer_value("draft")

        # Act
        await store.select_session(str(older.id))

        # Assert
        assert store.state.active_session_id == str(older.id)
        assert store.state.composer_value == ""
        assert [m.content for m in store.state.messages] == ["old"]

    @pytest.mark.asyncio
    async def test_create_new_session_should_prepend_and_select(self, store, api) -> None:
        """Test created session becomes active with the selected model."""
        # Arrange
        store.set_model("gpt-4o-mini")

        # Act
        await store.create_new_session()

        # Assert
        assert api.created == [{"title": None, "model": "gpt-4o-mini"}]
        assert store.state.sessions[0].title == "New Chat"
        assert store.state.active_session_id == str(store.state.sessions[0].id)
        assert store.state.messages == []

    @pytest.mark.asyncio
    async def test_remove_active_session_should_select_next(self, store, sessions) -> None:
        """Test deleting the active session moves to the next most recent."""
        # Act
        await store.remove_session(str(sessions[0].id))

        # Assert
        assert [s.id for s in store.state.sessions] == [sessions[1].id]
        assert store.state.active_session_id == str(sessions[1].id)

    @pytest.mark.asyncio
    async def test_remove_last_session_should_clear_selection(self, api, stream_client) -> None:
        """Test deleting the only session leaves nothing selected."""
        # Arrange
        only = _session("Only")
        store = ConversationStore(FakeApi([only]), stream_client)
        await store.initialize()

        # Act
        await store.remove_session(str(only.id))

        # Assert
        assert store.state.sessions == []
        assert store.state.active_session_id is None


class TestComposer:
    """Test suite for composer actions."""

    def test_attachments_should_add_remove_and_clear(self, api, stream_client) -> None:
        """Test attachment list editing by index."""
        # Arrange
        store = ConversationStore(api, stream_client)
        first = Attachment(name="a.txt", text_content="a")
        second = Attachment(name="b.png", type="image/png", url="https://cdn.test/b.png")

        # Act
        store.add_attachment(first)
        store.add_attachment(second)
        store.remove_attachment(0)

        # Assert
        assert store.state.attachments == [second]
        store.clear_attachments()
        assert store.state.attachments == []


class TestSendMessage:
    """Test suite for starting a turn."""

    @pytest.mark.asyncio
    async def test_send_without_session_should_set_error(self, api, stream_client) -> None:
        """Test sending with nothing selected is refused."""
        # Arrange
        store = ConversationStore(api, stream_client)
        store.set_composer_value("Hello")

        # Act
        started = await store.send_message()

        # Assert
        assert started is False
        assert store.state.error == NO_SESSION_SELECTED
        assert stream_client.started == []

    @pytest.mark.asyncio
    async def test_send_empty_input_should_be_rejected(self, store, stream_client) -> None:
        """Test whitespace-only composer without attachments does nothing."""
        # Arrange
        store.set_composer_value("   ")

        # Act
        started = await store.send_message()

        # Assert
        assert started is False
        assert stream_client.started == []
        assert store.state.error is None

    @pytest.mark.asyncio
    async def test_send_should_add_optimistic_messages(self, store, stream_client) -> None:
        """Test user and placeholder assistant messages appear immediately."""
        # Arrange
        store.set_composer_value("  Hello  ")

        # Act
        started = await store.send_message()

        # Assert
        assert started is True
        user, assistant = store.state.messages[-2:]
        assert user.temp and user.role == MessageRole.USER and user.content == "Hello"
        assert assistant.temp and assistant.role == MessageRole.ASSISTANT and assistant.content == ""
        assert store.state.streaming_message_id == assistant.id
        assert store.state.is_streaming is True
        assert store.state.composer_value == ""
        assert store.state.last_submitted_input == "Hello"

        request = stream_client.last[0]
        assert request.message == "Hello"
        assert str(request.session_id) == store.state.active_session_id
        assert request.model == "deepseek-chat"

    @pytest.mark.asyncio
    async def test_send_while_streaming_should_be_single_flight(self, store, stream_client) -> None:
        """Test a second submit during a turn is ignored."""
        # Arrange
        api.hold = asyncio.Event()
        store.set_composer_value("First")
        await store.send_message()
        store.set_composer_value("Second")

        # Act
        started = await store.send_message()

        # Assert
        assert started is False
        assert len(stream_client.started) == 1
        assert store.state.composer_value == "Second"

    @pytest.mark.asyncio
    async def test_send_attachments_only_should_start_turn(self, store, stream_client) -> None:
        """Test attachments alone are enough and are cleared after sending."""
        # Arrange
        document = Attachment(name="notes.txt", type="text/plain", text_content="abc")
        store.add_attachment(document)

        # Act
        started = await store.send_message()

        # Assert
        assert started is True
        assert stream_client.last[0].attachments == [document]
        assert store.state.attachments == []
        user = store.state.temp_messages[0]
        assert "notes.txt" in user.content
        assert user.attachments[0]["textContent"] == "abc"


class TestStreamCallbacks:
    """Test suite for stream lifecycle transitions."""

    @pytest.mark.asyncio
    async def test_deltas_should_grow_placeholder(self, store, stream_client) -> None:
        """Test delta content is appended to the assistant placeholder."""
        # Arrange
        store.set_composer_value("Hello")
        await store.send_message()
        callbacks = stream_client.last[1]

        # Act
        callbacks.on_delta(DeltaUpdate(content="Hel"))
        callbacks.on_delta(DeltaUpdate(content="lo", reasoning="ignored"))

        # Assert
        placeholder = store.state.messages[-1]
        assert placeholder.content == "Hello"
        assert placeholder.reasoning is None

    @pytest.mark.asyncio
    async def test_reasoning_model_should_collect_reasoning(self, store, stream_client) -> None:
        """Test reasoning deltas accumulate only for reasoning models."""
        # Arrange
        store.set_model("deepseek-reasoner")
        store.set_composer_value("Why?")
        await store.send_message()
        callbacks = stream_client.last[1]

        # Act
        callbacks.on_delta(DeltaUpdate(content="", reasoning="think "))
        callbacks.on_delta(DeltaUpdate(content="Because", reasoning="more"))

        # Assert
        placeholder = store.state.messages[-1]
        assert placeholder.reasoning == "think more"
        assert placeholder.content == "Because"

    @pytest.mark.asyncio
    async def test_session_event_should_merge_session(self, store, stream_client) -> None:
        """Test a session announced in-stream is added to the list."""
        # Arrange
        store.set_composer_value("Hello")
        await store.send_message()
        callbacks = stream_client.last[1]
        announced = _session("Fresh", minutes=50)

        # Act
        callbacks.on_session(
            SessionUpdate(session_id=str(announced.id), session=announced.model_dump(mode="json"))
        )

        # Assert
        assert store.state.active_session_id == str(announced.id)
        assert store.state.sessions[0].id == announced.id

    @pytest.mark.asyncio
    async def test_complete_should_replace_temps_with_persisted(self, store, stream_client, api, sessions) -> None:
        """Test completion reloads messages and drops optimistic entries."""
        # Arrange
        active = sessions[0]
        store.set_composer_value("Hello")
        await store.send_message()
        callbacks = stream_client.last[1]
        callbacks.on_delta(DeltaUpdate(content="Hi there"))
        assistant = _message(active.id, MessageRole.ASSISTANT, "Hi there")
        api.messages[str(active.id)] = [_message(active.id, MessageRole.USER, "Hello"), assistant]

        # Act
        await callbacks.on_complete(CompleteUpdate(session_id=str(active.id), message_id=str(assistant.id)))

        # Assert
        assert store.state.is_streaming is False
        assert store.state.streaming_message_id is None
        assert store.state.last_submitted_input == ""
        assert store.state.temp_messages == []
        assert [m.content for m in store.state.messages] == ["Hello", "Hi there"]

    @pytest.mark.asyncio
    async def test_complete_should_keep_reasoning_on_persisted_message(
        self, store, stream_client, api, sessions
    ) -> None:
        """Test accumulated reasoning is applied to the reloaded message."""
        # Arrange
        active = sessions[0]
        store.set_model("deepseek-reasoner")
        store.set_composer_value("Why?")
        await store.send_message()
        callbacks = stream_client.last[1]
        assistant = _message(active.id, MessageRole.ASSISTANT, "Because")
        api.messages[str(active.id)] = [assistant]

        # Act
        await callbacks.on_complete(
            CompleteUpdate(session_id=str(active.id), message_id=str(assistant.id), reasoning="chain")
        )

        # Assert
        assert store.state.messages[0].reasoning == "chain"

    @pytest.mark.asyncio
    async def test_error_should_restore_input_and_show_error(self, store, stream_client, api, sessions) -> None:
        """Test a failed turn restores the composer and surfaces the message."""
        # Arrange
        active = sessions[0]
        store.set_composer_value("Hello")
        await store.send_message()
        callbacks = stream_client.last[1]
        api.messages[str(active.id)] = [_message(active.id, MessageRole.USER, "Hello")]

        # Act
        await callbacks.on_error(StreamRequestError("DeepSeek API error: 500 boom"))

        # Assert
        assert store.state.composer_value == "Hello"
        assert store.state.error == "DeepSeek API error: 500 boom"
        assert store.state.is_streaming is False
        assert store.state.temp_messages == []
        assert [m.content for m in store.state.messages] == ["Hello"]

    @pytest.mark.asyncio
    async def test_error_without_message_should_use_default(self, store, stream_client) -> None:
        """Test an empty error falls back to the generic message."""
        # Arrange
        store.set_composer_value("Hello")
        await store.send_message()

        # Act
        await stream_client.last[1].on_error(RuntimeError())

        # Assert
        assert store.state.error == GENERATION_FAILED

    @pytest.mark.asyncio
    async def test_cancel_callback_should_restore_input_silently(self, store, stream_client) -> None:
        """Test a delivered cancellation behaves like stop without an error."""
        # Arrange
        store.set_composer_value("Hello")
        await store.send_message()

        # Act
        await stream_client.last[1].on_error(StreamCancelledError())

        # Assert
        assert store.state.composer_value == "Hello"
        assert store.state.error is None
        assert store.state.is_streaming is False
        assert store.state.temp_messages == []


class TestStopGeneration:
    """Test suite for user-initiated cancel."""

    @pytest.mark.asyncio
    async def test_stop_should_abort_and_restore_input(self, store, stream_client) -> None:
        """Test stop aborts the handle and returns to idle."""
        # Arrange
        store.set_composer_value("Hello")
        await store.send_message()
        handle = stream_client.last[2]

        # Act
        await store.stop_generation()

        # Assert
        assert handle.aborted == 1
        assert store.state.is_streaming is False
        assert store.state.composer_value == "Hello"
        assert store.state.error is None
        assert store.state.temp_messages == []

    @pytest.mark.asyncio
    async def test_late_callbacks_after_stop_should_be_ignored(self, store, stream_client) -> None:
        """Test callbacks of a stopped turn no longer touch state."""
        # Arrange
        store.set_composer_value("Hello")
        await store.send_message()
        callbacks = stream_client.last[1]
        await store.stop_generation()
        store.set_composer_value("edited")

        # Act
        callbacks.on_delta(DeltaUpdate(content="late"))
        await callbacks.on_error(StreamCancelledError())
        await callbacks.on_error(StreamRequestError("late failure"))

        # Assert
        assert store.state.composer_value == "edited"
        assert store.state.error is None
        assert all("late" not in m.content for m in store.state.messages)

    @pytest.mark.asyncio
    async def test_new_turn_after_stop_should_ignore_old_callbacks(self, store, stream_client) -> None:
        """Test the previous turn cannot settle the next one."""
        # Arrange
        api.hold = asyncio.Event()
        store.set_composer_value("First")
        await store.send_message()
        old_callbacks = stream_client.last[1]
        await store.stop_generation()
        store.set_composer_value("Second")
        await store.send_message()

        # Act
        await old_callbacks.on_complete(CompleteUpdate(session_id=None, message_id=None))

        # Assert
        assert store.state.is_streaming is True
        assert store.state.last_submitted_input == "Second"


async def _wait_for_reload(store: ConversationStore) -> None:
    for _ in range(20):
        if store.state.loading_messages:
            return
        await asyncio.sleep(0)
    raise AssertionError("message reload never started")


class TestSettling:
    """Test suite for the refresh window after a turn ends."""

    @pytest.mark.asyncio
    async def test_send_during_complete_refresh_should_be_rejected(
        self, store, stream_client, api, sessions
    ) -> None:
        """Test a new turn waits until the completed one is reconciled."""
        # Arrange
        api.hold = asyncio.Event()
        active = sessions[0]
        store.set_composer_value("First")
        await store.send_message()
        callbacks = stream_client.last[1]
        api.messages[str(active.id)] = [
            _message(active.id, MessageRole.USER, "First"),
            _message(active.id, MessageRole.ASSISTANT, "Answer"),
        ]
        settling = asyncio.create_task(
            callbacks.on_complete(CompleteUpdate(session_id=str(active.id), message_id=None))
        )
        await _wait_for_reload(store)
        store.set_composer_value("Second")

        # Act
        accepted = await store.send_message()

        # Assert
        assert accepted is False
        assert store.state.is_settling is True
        assert len(stream_client.started) == 1
        assert len(store.state.temp_messages) == 2
        assert store.state.composer_value == "Second"

        api.hold.set()
        await settling
        assert store.state.is_settling is False
        assert [m.content for m in store.state.messages] == ["First", "Answer"]

        assert await store.send_message() is True
        assert len(stream_client.started) == 2
        assert [m.content for m in store.state.temp_messages] == ["Second", ""]

    @pytest.mark.asyncio
    async def test_send_during_error_refresh_should_be_rejected(
        self, store, stream_client, api
    ) -> None:
        """Test the failed turn finishes settling before the error is shown."""
        # Arrange
        api.hold = asyncio.Event()
        store.set_composer_value("First")
        await store.send_message()
        callbacks = stream_client.last[1]
        settling = asyncio.create_task(callbacks.on_error(StreamRequestError("upstream down")))
        await _wait_for_reload(store)

        # Act
        accepted = await store.send_message()

        # Assert
        assert accepted is False
        assert store.state.composer_value == "First"
        assert store.state.error is None
        assert len(stream_client.started) == 1

        api.hold.set()
        await settling
        assert store.state.error == "upstream down"
        assert store.state.temp_messages == []

        assert await store.send_message() is True
        assert len(stream_client.started) == 2
        assert len(store.state.temp_messages) == 2

    @pytest.mark.asyncio
    async def test_send_during_stop_refresh_should_be_rejected(
        self, store, stream_client, api
    ) -> None:
        """Test stop keeps the store settling until its reload returns."""
        # Arrange
        api.hold = asyncio.Event()
        store.set_composer_value("First")
        await store.send_message()
        handle = stream_client.last[2]
        stopping = asyncio.create_task(store.stop_generation())
        await _wait_for_reload(store)

        # Act
        accepted = await store.send_message()

        # Assert
        assert accepted is False
        assert handle.aborted == 1
        assert len(stream_client.started) == 1

        api.hold.set()
        await stopping
        assert store.state.is_settling is False
        assert store.state.temp_messages == []

        assert await store.send_message() is True
        assert store.state.last_submitted_input == "First"
        assert len(store.state.temp_messages) == 2
