"""Streaming response decoding."""

from .decoder import STREAM_ERROR_MESSAGE, EventType, StreamDecoder

__all__ = ["STREAM_ERROR_MESSAGE", "EventType", "StreamDecoder"]
