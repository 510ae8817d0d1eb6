"""
Incremental wire decoders for streamed provider responses.

Bytes arrive in arbitrary chunks; a decoder keeps whatever follows the last
newline in a carry-over buffer and only emits frames whose terminating newline
has been seen. ``flush()`` hands out the trailing partial line once the
transport has finished.
"""

from __future__ import annotations

import codecs
import json
import logging
from dataclasses import dataclass
from typing import Any, List, Optional

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class WireFrame:
    """One complete protocol frame."""

    data: str
    event: Optional[str] = None

    def json(self) -> Any:
        """Decode the frame payload. Raises ``ValueError`` on malformed JSON."""
        return json.loads(self.data)


class LineBuffer:
    """Splits a byte stream into complete text lines."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._decoder = codecs.getincrementaldecoder(encoding)(errors="replace")
        self._buffer = ""

    def feed(self, chunk: bytes) -> List[str]:
        self._buffer += self._decoder.decode(chunk)
        if "\n" not in self._buffer:
            return []
        *lines, self._buffer = self._buffer.split("\n")
        return [line.rstrip("\r") for line in lines]

    def flush(self) -> List[str]:
        self._buffer += self._decoder.decode(b"", final=True)
        remainder, self._buffer = self._buffer, ""
        remainder = remainder.rstrip("\r")
        return [remainder] if remainder else []

    @property
    def pending(self) -> str:
        return self._buffer


class WireDecoder:
    """Base decoder: subclasses turn complete lines into frames."""

    def __init__(self, encoding: str = "utf-8") -> None:
        self._lines = LineBuffer(encoding)

    def feed(self, chunk: bytes) -> List[WireFrame]:
        return self._frames(self._lines.feed(chunk))

    def flush(self) -> List[WireFrame]:
        return self._frames(self._lines.flush())

    def _frames(self, lines: List[str]) -> List[WireFrame]:
        frames = []
        for line in lines:
            frame = self._parse_line(line)
            if frame is not None:
                frames.append(frame)
        return frames

    def _parse_line(self, line: str) -> Optional[WireFrame]:
        raise NotImplementedError


class SSEDecoder(WireDecoder):
    """
    Server-sent events, one frame per ``data:`` line.

    The most recent ``event:`` name is attached to the frame and forgotten at
    the next blank line. Comment lines (heartbeats), ``id:`` and ``retry:``
    fields produce no frame.
    """

    def __init__(self, encoding: str = "utf-8") -> None:
        super().__init__(encoding)
        self._event: Optional[str] = None

    def _parse_line(self, line: str) -> Optional[WireFrame]:
        if not line:
            self._event = None
            return None
        if line.startswith(":"):
            return None
        field_name, _, value = line.partition(":")
        if value.startswith(" "):
            value = value[1:]
        if field_name == "event":
            self._event = value.strip() or None
            return None
        if field_name == "data":
            return WireFrame(data=value, event=self._event)
        logger.debug("Ignoring SSE field %r", field_name)
        return None


class JSONLinesDecoder(WireDecoder):
    """Newline-delimited JSON: every non-blank line is one frame."""

    def _parse_line(self, line: str) -> Optional[WireFrame]:
        stripped = line.strip()
        if not stripped:
            return None
        return WireFrame(data=stripped)


__all__ = ["WireFrame", "LineBuffer", "WireDecoder", "SSEDecoder", "JSONLinesDecoder"]
