"""Streaming handle over a Drive media download."""

from __future__ import annotations

from typing import Any, Callable, Iterator, Optional

from portalsync.util.mime import DEFAULT_CONTENT_TYPE


class DownloadStream:
    """
    Pass-through byte stream for one remote object.

    The upstream response (and its session) is released when the stream is
    closed, when iteration finishes, or when an abandoned iterator is
    garbage-collected.
    """

    def __init__(
        self,
        response: Any,
        *,
        chunk_size: int = 1024 * 1024,
        on_close: Optional[Callable[[], None]] = None,
    ) -> None:
        self._response = response
        self._chunk_size = chunk_size
        self._on_close = on_close
        self._closed = False

        headers = getattr(response, "headers", None) or {}
        self.content_type: str = headers.get("Content-Type") or DEFAULT_CONTENT_TYPE
        length = headers.get("Content-Length")
        self.size: Optional[int] = int(length) if length and str(length).isdigit() else None

    @property
    def closed(self) -> bool:
        return self._closed

    def iter_chunks(self) -> Iterator[bytes]:
        try:
            for chunk in self._response.iter_content(chunk_size=self._chunk_size):
                if chunk:
                    yield chunk
        finally:
            self.close()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        try:
            self._response.close()
        finally:
            if self._on_close is not None:
                self._on_close()

    def __iter__(self) -> Iterator[bytes]:
        return self.iter_chunks()

    def __enter__(self) -> DownloadStream:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()
