"""
Chat client.

Exports:
  - ChatStreamClient, StreamHandle, StreamCallbacks: Relay stream consumer
  - SessionUpdate, DeltaUpdate, CompleteUpdate, ErrorUpdate: Typed stream updates
  - ChatApiClient: Session/message store client
  - ConversationStore, ConversationState, ChatMessage: Conversation state machine
"""

from chatrelay.client.chat_api import ChatApiClient
from chatrelay.client.conversation import ConversationStore
from chatrelay.client.state import ChatMessage, ConversationState
from chatrelay.client.stream_consumer import (
    ChatStreamClient,
    CompleteUpdate,
    DeltaUpdate,
    ErrorUpdate,
    SessionUpdate,
    StreamCallbacks,
    StreamHandle,
    StreamUpdate,
)

__all__ = [
    "ChatApiClient",
    "ChatMessage",
    "ChatStreamClient",
    "CompleteUpdate",
    "ConversationState",
    "ConversationStore",
    "DeltaUpdate",
    "ErrorUpdate",
    "SessionUpdate",
    "StreamCallbacks",
    "StreamHandle",
    "StreamUpdate",
]
