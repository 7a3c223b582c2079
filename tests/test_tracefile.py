import io
import unittest
import sys
import os

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from simulator import Access, AccessKind
from tracefile import generate_trace, parse_line, read_trace, write_trace, PATTERNS


class TestParseLine(unittest.TestCase):

    def test_load_and_store(self):
        self.assertEqual(parse_line("l 0x1fffff50 1\n"), Access(AccessKind.LOAD, 0x1fffff50))
        self.assertEqual(parse_line("s 0x1fffff4c 3"), Access(AccessKind.STORE, 0x1fffff4c))

    def test_address_without_prefix(self):
        self.assertEqual(parse_line("l 30e0 0"), Access(AccessKind.LOAD, 0x30e0))

    def test_malformed_lines(self):
        for line in ["", "   \n", "x 0x10 0", "l zz 0", "l 0x10", "l 0x10 abc",
                     "load 0x10 0", "l + 0", "s 0x10 -",
                     "l 0x10000000000000000 0"]:
            self.assertIsNone(parse_line(line), line)

    def test_address_is_truncated_to_32_bits(self):
        self.assertEqual(parse_line("l 0x100000000 0"), Access(AccessKind.LOAD, 0))
        self.assertEqual(parse_line("s 0x123456789 0"), Access(AccessKind.STORE, 0x23456789))
        self.assertEqual(parse_line("s -0x10 0"), Access(AccessKind.STORE, 0xFFFFFFF0))

    def test_address_uses_leading_hex_digits(self):
        self.assertEqual(parse_line("l 0x10zz 0"), Access(AccessKind.LOAD, 0x10))
        self.assertEqual(parse_line("l 1_0 0"), Access(AccessKind.LOAD, 0x1))
        self.assertEqual(parse_line("l 0x 0"), Access(AccessKind.LOAD, 0x0))
        self.assertEqual(parse_line("l 0x20 7junk"), Access(AccessKind.LOAD, 0x20))

    def test_read_trace_skips_bad_lines(self):
        stream = io.StringIO("l 0x0 0\n\nbogus line here\ns 0x4 0\nl nothex 0\n")
        self.assertEqual(list(read_trace(stream)),
                         [Access(AccessKind.LOAD, 0x0), Access(AccessKind.STORE, 0x4)])

    def test_write_trace_format(self):
        out = io.StringIO()
        write_trace([Access(AccessKind.STORE, 0xabc), Access(AccessKind.LOAD, 0x0)], out)
        self.assertEqual(out.getvalue(), "s 0x00000abc 0\nl 0x00000000 0\n")
        self.assertEqual(len(list(read_trace(io.StringIO(out.getvalue())))), 2)


class TestGenerateTrace(unittest.TestCase):

    def test_patterns_stay_in_working_set(self):
        for pattern in PATTERNS:
            trace = generate_trace(num_accesses=500, pattern=pattern,
                                   working_set_bytes=4096, seed=1, base_address=0x1000)
            self.assertEqual(len(trace), 500)
            for kind, address in trace:
                self.assertIsInstance(kind, AccessKind)
                self.assertIsInstance(address, int)
                self.assertEqual(address % 4, 0)
                self.assertTrue(0x1000 <= address < 0x2000, pattern)

    def test_sequential_walks_by_stride(self):
        trace = generate_trace(num_accesses=4, pattern="sequential", stride=16, seed=0)
        self.assertEqual([a.address for a in trace], [0, 16, 32, 48])

    def test_seed_is_reproducible(self):
        a = generate_trace(num_accesses=200, pattern="random", seed=7)
        b = generate_trace(num_accesses=200, pattern="random", seed=7)
        self.assertEqual(a, b)

    def test_store_ratio_extremes(self):
        loads = generate_trace(num_accesses=100, store_ratio=0.0, seed=3)
        stores = generate_trace(num_accesses=100, store_ratio=1.0, seed=3)
        self.assertTrue(all(a.kind is AccessKind.LOAD for a in loads))
        self.assertTrue(all(a.kind is AccessKind.STORE for a in stores))

    def test_unknown_pattern(self):
        with self.assertRaises(ValueError):
            generate_trace(num_accesses=10, pattern="strided")


if __name__ == '__main__':
    unittest.main()
