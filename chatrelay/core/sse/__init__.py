"""
SSE wire codec.

Exports:
  - SSEFrame, SSEDecoder: Decoded frame and incremental decoder
  - encode_event(), encode_done(), parse_frame(), aiter_frames()
  - DONE, DEFAULT_EVENT: Sentinel payload and default event name
"""

from chatrelay.core.sse.codec import (
    DEFAULT_EVENT,
    DONE,
    SSEDecoder,
    SSEFrame,
    aiter_frames,
    encode_done,
    encode_event,
    parse_frame,
)

__all__ = [
    "DEFAULT_EVENT",
    "DONE",
    "SSEDecoder",
    "SSEFrame",
    "aiter_frames",
    "encode_done",
    "encode_event",
    "parse_frame",
]
