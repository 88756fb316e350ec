"""
Server-Sent Events frame codec.

Maps named events with JSON payloads to the blank-line delimited
``event:``/``data:`` wire format and back. The decoder is incremental:
chunks from any transport are appended to a buffer and only complete
frames are returned; the trailing partial frame waits for the next chunk.

Used on both sides of the relay: to read the provider's token stream,
to write the relay's session stream, and by the client consumer.

Dependencies: json, codecs (stdlib)
System role: SSE wire format encoding/decoding
"""

import codecs
import json
import uuid
from collections.abc import AsyncIterable, AsyncIterator
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any

DONE = "[DONE]"
DEFAULT_EVENT = "message"
FRAME_DELIMITER = "\n\n"


def _json_default(value: Any) -> Any:
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


@dataclass(frozen=True)
class SSEFrame:
    """
    One decoded SSE frame.

    Attributes:
        event: Event name (``message`` when the frame had no ``event:`` line)
        data: Raw data text, multiple ``data:`` lines joined with ``\\n``
        payload: Parsed JSON value, None when malformed or the DONE sentinel
        malformed: True when data was not valid JSON
    """

    event: str
    data: str
    payload: Any = None
    malformed: bool = False

    @property
    def is_done(self) -> bool:
        """Whether this frame carries the ``[DONE]`` completion sentinel."""
        return self.data.strip() == DONE


def encode_event(event: str, payload: Any) -> bytes:
    """
    Encode one named event as a complete SSE frame.

    The payload is serialized before anything is written, so a payload
    that cannot be serialized raises without producing partial output.

    Args:
        event: Event name, must be a single line
        payload: JSON-serializable value (UUIDs and datetimes allowed)

    Returns:
        bytes: ``event: <name>\\ndata: <json>\\n\\n`` in UTF-8

    Raises:
        ValueError: If the event name contains a line break
        TypeError: If the payload is not serializable
    """
    if "\n" in event or "\r" in event:
        raise ValueError(f"Event name must be a single line: {event!r}")
    data = json.dumps(payload, ensure_ascii=False, default=_json_default)
    return f"event: {event}\ndata: {data}{FRAME_DELIMITER}".encode("utf-8")


def encode_done() -> bytes:
    """Encode the unnamed ``[DONE]`` sentinel frame."""
    return f"data: {DONE}{FRAME_DELIMITER}".encode("utf-8")


def parse_frame(block: str) -> SSEFrame | None:
    """
    Parse one delimiter-free block of SSE lines.

    Args:
        block: Text between two frame delimiters

    Returns:
        SSEFrame, or None when the block carries no ``data:`` line
        (comments, keep-alives, retry hints)
    """
    event = DEFAULT_EVENT
    data_lines: list[str] = []

    for line in block.split("\n"):
        line = line.rstrip("\r")
        if not line or line.startswith(":"):
            continue
        field, sep, value = line.partition(":")
        if sep and value.startswith(" "):
            value = value[1:]
        if field == "event":
            event = value.strip() or DEFAULT_EVENT
        elif field == "data":
            data_lines.append(value)

    if not data_lines:
        return None

    data = "\n".join(data_lines)
    if data.strip() == DONE:
        return SSEFrame(event=event, data=data)

    try:
        payload = json.loads(data)
    except ValueError:
        return SSEFrame(event=event, data=data, malformed=True)
    return SSEFrame(event=event, data=data, payload=payload)


class SSEDecoder:
    """
    Incremental SSE decoder owning an accumulation buffer.

    Bytes are decoded with an incremental UTF-8 decoder, so a multi-byte
    character split across two chunks is reassembled before parsing.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        self._text_decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    @property
    def pending(self) -> str:
        """Text retained after the last complete frame."""
        return self._buffer

    def feed(self, chunk: bytes | str) -> list[SSEFrame]:
        """
        Append a chunk and return every frame it completes.

        Args:
            chunk: Raw bytes from the transport (or already decoded text)

        Returns:
            list[SSEFrame]: Complete frames in wire order
        """
        text = chunk if isinstance(chunk, str) else self._text_decoder.decode(chunk)
        self._buffer += text
        *blocks, self._buffer = self._buffer.split(FRAME_DELIMITER)

        frames = []
        for block in blocks:
            frame = parse_frame(block)
            if frame is not None:
                frames.append(frame)
        return frames

    def flush(self) -> list[SSEFrame]:
        """
        Return the unterminated trailing frame, if any, and reset.

        Called once the transport reports end of stream.
        """
        tail = self._buffer + self._text_decoder.decode(b"", final=True)
        self._buffer = ""
        if not tail.strip():
            return []
        frame = parse_frame(tail)
        return [frame] if frame is not None else []


async def aiter_frames(
    byte_stream: AsyncIterable[bytes],
    decoder: SSEDecoder | None = None,
) -> AsyncIterator[SSEFrame]:
    """
    Lazily decode frames from an async byte stream.

    Args:
        byte_stream: Transport chunks (e.g. ``httpx.Response.aiter_bytes()``)
        decoder: Optional decoder instance to reuse

    Yields:
        SSEFrame: Frames in wire order, including the trailing frame at EOF
    """
    decoder = decoder or SSEDecoder()
    async for chunk in byte_stream:
        for frame in decoder.feed(chunk):
            yield frame
    for frame in decoder.flush():
        yield frame
