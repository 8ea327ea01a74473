"""Backpressured in-memory pipe connecting the encoder to a rendering sink.

A write hands its bytes to the reader and blocks until the reader has taken
all of them, so at most one chunk is ever in flight. ``run_bridged`` runs the
consumer on a worker thread and the producer on the caller's thread.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import TypeVar

from .errors import BridgeClosedError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_EMPTY = memoryview(b"")


class _Pipe:
    """Shared state of one bridge; every field is guarded by ``_cond``."""

    def __init__(self) -> None:
        self._cond = threading.Condition()
        self._chunk: memoryview | None = None
        self._writer_closed = False
        self._writer_error: BaseException | None = None
        self._reader_closed = False

    def write(self, data: bytes) -> int:
        size = len(data)
        if not size:
            return 0
        with self._cond:
            if self._writer_closed:
                raise ValueError("write to closed bridge")
            if self._reader_closed:
                raise BridgeClosedError("bridge reader is closed")
            self._chunk = memoryview(bytes(data))
            self._cond.notify_all()
            while self._chunk and not self._reader_closed:
                self._cond.wait()
            unread = len(self._chunk)
            self._chunk = None
            if unread:
                raise BridgeClosedError(f"bridge reader closed with {unread} bytes unread")
        return size

    def read(self, size: int = -1) -> bytes:
        with self._cond:
            while not self._chunk:
                if self._reader_closed:
                    raise ValueError("read from closed bridge")
                if self._writer_closed:
                    if self._writer_error is not None:
                        raise BridgeClosedError(f"bridge writer failed: {self._writer_error}")
                    return b""
                self._cond.wait()
            chunk = self._chunk
            if size < 0 or size >= len(chunk):
                out = bytes(chunk)
                self._chunk = _EMPTY
            else:
                out = bytes(chunk[:size])
                self._chunk = chunk[size:]
            if not self._chunk:
                self._cond.notify_all()
            return out

    def close_writer(self, error: BaseException | None) -> None:
        with self._cond:
            if self._writer_closed:
                return
            self._writer_closed = True
            self._writer_error = error
            self._cond.notify_all()

    def close_reader(self) -> None:
        with self._cond:
            self._reader_closed = True
            self._cond.notify_all()


class BridgeReader:
    """Reading end of a bridge; ``read`` returns ``b""`` at end of stream."""

    def __init__(self, pipe: _Pipe) -> None:
        self._pipe = pipe

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        return self._pipe.read(size)

    def close(self) -> None:
        self._pipe.close_reader()

    def __enter__(self) -> BridgeReader:
        return self

    def __exit__(self, *_exc: object) -> None:
        self.close()


class BridgeWriter:
    """Writing end of a bridge; ``write`` blocks until the reader drains it."""

    def __init__(self, pipe: _Pipe) -> None:
        self._pipe = pipe

    def writable(self) -> bool:
        return True

    def write(self, data: bytes) -> int:
        return self._pipe.write(data)

    def flush(self) -> None:
        pass

    def close(self, error: BaseException | None = None) -> None:
        """End the stream; with ``error`` the reader fails instead of seeing EOF."""
        self._pipe.close_writer(error)

    def __enter__(self) -> BridgeWriter:
        return self

    def __exit__(self, _exc_type: object, exc: BaseException | None, _tb: object) -> None:
        self.close(exc)


def open_bridge() -> tuple[BridgeReader, BridgeWriter]:
    """Create a connected reader/writer pair."""
    pipe = _Pipe()
    return BridgeReader(pipe), BridgeWriter(pipe)


def run_bridged(
    produce: Callable[[BridgeWriter], T],
    consume: Callable[[BridgeReader], None],
    *,
    name: str = "treetext-bridge-consumer",
) -> T:
    """Run ``consume`` on a worker thread fed by ``produce`` on this thread.

    The producer's error is raised first. When the producer only failed
    because the consumer went away, the consumer's error is raised instead.
    """
    reader, writer = open_bridge()
    consumer_errors: list[Exception] = []

    def _consumer() -> None:
        try:
            consume(reader)
        except Exception as exc:
            consumer_errors.append(exc)
        finally:
            reader.close()

    worker = threading.Thread(target=_consumer, name=name, daemon=True)
    worker.start()
    try:
        result = produce(writer)
    except BridgeClosedError:
        writer.close()
        worker.join()
        if consumer_errors:
            raise consumer_errors[0] from None
        raise
    except BaseException as exc:
        writer.close(exc)
        worker.join()
        if consumer_errors:
            logger.debug("consumer also failed: %s", consumer_errors[0])
        raise
    writer.close()
    worker.join()
    if consumer_errors:
        raise consumer_errors[0]
    return result


__all__ = ["BridgeReader", "BridgeWriter", "open_bridge", "run_bridged"]
