"""
Server-Sent Events helpers

Decodes the backend SSE byte stream and frames outward SSE events.
"""

from typing import Optional

# Literal payload of the last outward frame
DONE_SENTINEL = "[DONE]"


class SSEDecoder:
    """
    Incremental decoder for the backend event stream

    Events end at a blank line; CRLF line endings are normalized first and
    only "data:" fields are kept (multiple data lines are joined with "\\n").
    """

    def __init__(self) -> None:
        self._buf = b""

    def feed(self, chunk: bytes) -> list[str]:
        """
        Consume a chunk of bytes and return the data payload of every completed event.
        """
        if not chunk:
            return []

        data = (self._buf + chunk).replace(b"\r\n", b"\n")
        parts = data.split(b"\n\n")
        # Trailing bytes are an incomplete event
        self._buf = parts.pop()

        payloads: list[str] = []
        for event in parts:
            payload = self._extract_data_payload(event)
            if payload is not None:
                payloads.append(payload)
        return payloads

    def flush(self) -> list[str]:
        """Return the payload of a trailing event that had no blank-line terminator."""
        if not self._buf.strip():
            self._buf = b""
            return []
        payload = self._extract_data_payload(self._buf.replace(b"\r\n", b"\n"))
        self._buf = b""
        return [payload] if payload is not None else []

    @staticmethod
    def _extract_data_payload(event: bytes) -> Optional[str]:
        data_lines: list[bytes] = []
        for line in event.split(b"\n"):
            if not line:
                continue
            if line.startswith(b"data:"):
                value = line[5:]
                if value.startswith(b" "):
                    value = value[1:]
                data_lines.append(value)
        if not data_lines:
            return None
        return b"\n".join(data_lines).decode("utf-8", errors="replace")


def encode_sse_data(payload: str) -> bytes:
    """Frame a raw payload as one SSE data event."""
    return f"data: {payload}\n\n".encode("utf-8")
