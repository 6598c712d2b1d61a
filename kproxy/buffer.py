"""A byte buffer that spills to disk past a memory limit, and a reusable buffer pool."""

from __future__ import annotations

import logging
import os
import tempfile
import threading
from typing import BinaryIO

log = logging.getLogger(__name__)

_CHUNK = 32 * 1024


class MaximumSizeExceededError(Exception):
    """The buffer would grow beyond its maximum size."""

    def __init__(self) -> None:
        super().__init__("maximum size exceeded")


class WriteAfterReadError(Exception):
    """A write was attempted after reading began."""

    def __init__(self) -> None:
        super().__init__("write after read")


class Buffer:
    """Holds up to ``max_mem_bytes`` in memory and the rest in a temporary file.

    A ``max_bytes`` of zero means no overall limit.
    """

    def __init__(self, max_bytes: int, max_mem_bytes: int) -> None:
        self.max_bytes = max_bytes
        self.max_mem_bytes = max_mem_bytes
        self._memory = bytearray()
        self._disk: BinaryIO | None = None
        self._disk_written = 0
        self.overflowed = False
        self._reading = False
        self._mem_pos = 0
        self._closed = False

    def write(self, data: bytes) -> int:
        if self._reading:
            raise WriteAfterReadError()
        length = len(data)
        if self.max_bytes > 0 and len(self._memory) + self._disk_written + length > self.max_bytes:
            self.overflowed = True
            raise MaximumSizeExceededError()
        if self._disk is not None:
            return self._write_disk(data)
        if len(self._memory) + length <= self.max_mem_bytes:
            self._memory.extend(data)
            return length
        self._create_spill()
        room = self.max_mem_bytes - len(self._memory)
        self._memory.extend(data[:room])
        return room + self._write_disk(data[room:])

    def read(self, size: int = -1) -> bytes:
        self._start_reading()
        out = bytearray()
        want = None if size is None or size < 0 else size
        mem_take = len(self._memory) - self._mem_pos
        if want is not None:
            mem_take = min(mem_take, want)
        out += self._memory[self._mem_pos:self._mem_pos + mem_take]
        self._mem_pos += mem_take
        if self._disk is not None and (want is None or len(out) < want):
            out += self._disk.read(-1 if want is None else want - len(out))
        return bytes(out)

    def send(self, writer) -> None:
        """Copy the remaining contents to anything with a ``write`` method."""
        while True:
            chunk = self.read(_CHUNK)
            if not chunk:
                return
            writer.write(chunk)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        if self._disk is not None:
            name = self._disk.name
            self._disk.close()
            log.debug("Buffer: removing spill %s", name)
            try:
                os.remove(name)
            except OSError as exc:
                log.error("Buffer: failed to remove spill %s: %s", name, exc)

    def __enter__(self) -> "Buffer":
        return self

    def __exit__(self, *exc) -> None:
        self.close()

    def _write_disk(self, data: bytes) -> int:
        n = self._disk.write(data)
        self._disk_written += n
        return n

    def _start_reading(self) -> None:
        if not self._reading:
            self._reading = True
            if self._disk is not None:
                self._disk.flush()
                self._disk.seek(0)

    def _create_spill(self) -> None:
        try:
            self._disk = tempfile.NamedTemporaryFile(prefix="proxy-buffer-", delete=False)
        except OSError as exc:
            log.error("Buffer: failed to create spill file: %s", exc)
            raise
        log.debug("Buffer: spilling to disk %s", self._disk.name)


def buffered_read(reader, max_bytes: int, max_mem_bytes: int) -> Buffer:
    """Read everything from ``reader`` into a new Buffer ready for reading."""
    buf = Buffer(max_bytes, max_mem_bytes)
    try:
        while True:
            chunk = reader.read(_CHUNK)
            if not chunk:
                break
            buf.write(chunk)
    except BaseException:
        buf.close()
        raise
    return buf


class BufferPool:
    """A thread-safe pool of fixed-size byte buffers."""

    def __init__(self, buffer_size: int) -> None:
        self.buffer_size = buffer_size
        self._free: list[bytearray] = []
        self._lock = threading.Lock()

    def get(self) -> bytearray:
        with self._lock:
            if self._free:
                return self._free.pop()
        return bytearray(self.buffer_size)

    def put(self, content: bytearray) -> None:
        with self._lock:
            self._free.append(content)