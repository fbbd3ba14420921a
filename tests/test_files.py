from __future__ import annotations

import io
import sys
import tempfile
import unittest
from pathlib import Path

TESTS_DIR = Path(__file__).resolve().parent
PROJECT_ROOT = TESTS_DIR.parent
sys.path.insert(0, str(PROJECT_ROOT / "src"))

from dotweave import (
    MalformedInputError,
    NotValidTextEncodingError,
    cluster,
    decode_utf8,
    digraph,
    edge,
    get_dot,
    node,
    print_compact_dot,
    print_dot,
    put_compact_dot,
    put_dot,
    read_dot_file,
    sequence,
    write_dot_file,
)
from dotweave.files import get_strict


def sample_graph():
    return digraph(
        sequence(node("Zürich", {"label": "Grüezi ☃"}), edge("Zürich", "b"), cluster("c", node("d"))),
        identifier="G",
    )


class DecodeTests(unittest.TestCase):
    def test_decodes_utf8(self) -> None:
        self.assertEqual(decode_utf8("héllo".encode("utf-8")), "héllo")

    def test_rejects_invalid_bytes_with_offset(self) -> None:
        with self.assertRaises(NotValidTextEncodingError) as ctx:
            decode_utf8(b"digraph { a\xff }")
        self.assertEqual(ctx.exception.offset, 11)
        self.assertEqual(ctx.exception.code, "E_NOT_UTF8")
        self.assertIn("byte 11", str(ctx.exception))

    def test_latin1_is_not_silently_accepted(self) -> None:
        with self.assertRaises(NotValidTextEncodingError):
            decode_utf8("café".encode("latin-1"))


class HandleTests(unittest.TestCase):
    def test_put_dot_writes_utf8_and_newline(self) -> None:
        buf = io.BytesIO()
        put_dot(buf, sample_graph())
        self.assertEqual(buf.getvalue(), (print_dot(sample_graph()) + "\n").encode("utf-8"))

    def test_put_compact_dot(self) -> None:
        buf = io.BytesIO()
        put_compact_dot(buf, sample_graph())
        self.assertEqual(buf.getvalue(), (print_compact_dot(sample_graph()) + "\n").encode("utf-8"))

    def test_get_dot_reads_back(self) -> None:
        buf = io.BytesIO()
        put_compact_dot(buf, sample_graph())
        buf.seek(0)
        self.assertEqual(get_dot(buf), sample_graph())

    def test_get_strict_leaves_handle_open(self) -> None:
        buf = io.BytesIO(b"graph {}")
        self.assertEqual(get_strict(buf), "graph {}")
        self.assertFalse(buf.closed)

    def test_get_dot_propagates_errors(self) -> None:
        with self.assertRaises(NotValidTextEncodingError):
            get_dot(io.BytesIO(b"\xc3\x28"))
        with self.assertRaises(MalformedInputError):
            get_dot(io.BytesIO(b"not dot"))


class FileTests(unittest.TestCase):
    def test_write_then_read_file(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "g.gv"
            write_dot_file(path, sample_graph())
            self.assertTrue(path.read_text(encoding="utf-8").endswith("}\n"))
            self.assertEqual(read_dot_file(path), sample_graph())
            self.assertEqual(read_dot_file(str(path)), sample_graph())

    def test_read_file_with_bad_encoding(self) -> None:
        with tempfile.TemporaryDirectory() as td:
            path = Path(td) / "bad.gv"
            path.write_bytes("graph { café }".encode("latin-1"))
            with self.assertRaises(NotValidTextEncodingError):
                read_dot_file(path)


if __name__ == "__main__":
    unittest.main()
