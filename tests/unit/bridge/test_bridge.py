"""Tests for the backpressured streaming bridge."""

from __future__ import annotations

import threading
import unittest

from treetext.bridge import open_bridge, run_bridged
from treetext.errors import BridgeClosedError


def _read_all(reader, size: int = 3) -> bytes:
    out = bytearray()
    while True:
        data = reader.read(size)
        if not data:
            return bytes(out)
        out += data


class BridgeTests(unittest.TestCase):
    def test_bytes_arrive_in_order_and_end_with_eof(self) -> None:
        reader, writer = open_bridge()
        received: list[bytes] = []
        consumer = threading.Thread(target=lambda: received.append(_read_all(reader)))
        consumer.start()
        writer.write(b"hello ")
        writer.write(b"")
        writer.write(b"world")
        writer.close()
        consumer.join(timeout=5)
        self.assertEqual(received, [b"hello world"])

    def test_write_blocks_until_reader_drains_chunk(self) -> None:
        reader, writer = open_bridge()
        done = threading.Event()

        def produce() -> None:
            writer.write(b"abcd")
            done.set()

        producer = threading.Thread(target=produce)
        producer.start()
        self.assertFalse(done.wait(0.1))
        self.assertEqual(reader.read(2), b"ab")
        self.assertFalse(done.wait(0.1))
        self.assertEqual(reader.read(10), b"cd")
        self.assertTrue(done.wait(5))
        producer.join(timeout=5)

    def test_write_after_reader_close_raises(self) -> None:
        reader, writer = open_bridge()
        reader.close()
        with self.assertRaises(BridgeClosedError):
            writer.write(b"data")

    def test_reader_close_releases_blocked_writer(self) -> None:
        reader, writer = open_bridge()
        errors: list[BaseException] = []

        def produce() -> None:
            try:
                writer.write(b"never read")
            except BridgeClosedError as exc:
                errors.append(exc)

        producer = threading.Thread(target=produce)
        producer.start()
        producer.join(timeout=0.05)
        reader.close()
        producer.join(timeout=5)
        self.assertEqual(len(errors), 1)

    def test_writer_error_reaches_reader(self) -> None:
        reader, writer = open_bridge()
        writer.close(RuntimeError("walk failed"))
        with self.assertRaises(BridgeClosedError) as ctx:
            reader.read()
        self.assertIn("walk failed", str(ctx.exception))


class RunBridgedTests(unittest.TestCase):
    def test_returns_producer_result_after_consumer_finishes(self) -> None:
        received: list[bytes] = []

        def produce(writer) -> int:
            for part in (b"a", b"b", b"c"):
                writer.write(part)
            return 3

        result = run_bridged(produce, lambda reader: received.append(_read_all(reader, 1)))
        self.assertEqual(result, 3)
        self.assertEqual(received, [b"abc"])

    def test_producer_error_propagates_after_join(self) -> None:
        consumer_saw: list[str] = []

        def produce(writer) -> None:
            writer.write(b"partial")
            raise ValueError("unreadable file")

        def consume(reader) -> None:
            try:
                _read_all(reader)
            except BridgeClosedError:
                consumer_saw.append("error")

        with self.assertRaises(ValueError):
            run_bridged(produce, consume)
        self.assertEqual(consumer_saw, ["error"])

    def test_consumer_error_wins_when_producer_only_lost_its_reader(self) -> None:
        def produce(writer) -> None:
            while True:
                writer.write(b"x" * 10)

        def consume(reader) -> None:
            reader.read(1)
            raise RuntimeError("render failed")

        with self.assertRaises(RuntimeError) as ctx:
            run_bridged(produce, consume)
        self.assertIn("render failed", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
