# tracefile.py
import re
import numpy as np

from cache import ADDRESS_MASK, WORD_BYTES
from simulator import Access, AccessKind

PATTERNS = ("sequential", "random", "mixed", "zipf", "cyclic")

# longest leading number, the way the C library conversions read a token
HEX_PREFIX = re.compile(r"([+-]?)(?:0[xX])?([0-9a-fA-F]+)")
INT_PREFIX = re.compile(r"[+-]?[0-9]")
ULONG_MAX = (1 << 64) - 1


def parse_line(line):
    """
    Parse one trace line such as "l 0x1fffff50 1". The third field is
    required but ignored. Returns None for blank or malformed lines.
    """
    fields = line.split()
    if len(fields) < 3:
        return None
    op, addr_str = fields[0], fields[1]
    if op == AccessKind.LOAD.value:
        kind = AccessKind.LOAD
    elif op == AccessKind.STORE.value:
        kind = AccessKind.STORE
    else:
        return None
    if not INT_PREFIX.match(fields[2]):
        return None
    m = HEX_PREFIX.match(addr_str)
    if not m:
        return None
    magnitude = int(m.group(2), 16)
    if magnitude > ULONG_MAX:
        return None
    # negative values wrap and wide ones are truncated to 32 bits
    address = (-magnitude if m.group(1) == "-" else magnitude) & ADDRESS_MASK
    return Access(kind, address)


def read_trace(stream):
    for line in stream:
        access = parse_line(line)
        if access is not None:
            yield access


def write_trace(accesses, stream):
    for kind, address in accesses:
        stream.write("{} 0x{:08x} 0\n".format(kind.value, address))


def generate_trace(num_accesses=10000, pattern="mixed", working_set_bytes=64 * 1024,
                   store_ratio=0.2, seed=None, stride=WORD_BYTES, base_address=0):
    """
    Build a synthetic list of Access records.
    pattern: one of "sequential", "random", "mixed", "zipf", "cyclic".
    Addresses stay inside [base_address, base_address + working_set_bytes)
    and are word aligned.
    """
    rng = np.random.default_rng(seed)
    num_words = max(1, working_set_bytes // WORD_BYTES)
    step = max(1, stride // WORD_BYTES)

    if pattern == "sequential":
        words = (np.arange(num_accesses) * step) % num_words
    elif pattern == "random":
        words = rng.integers(0, num_words, size=num_accesses)
    elif pattern == "mixed":
        # mostly sequential walk with some random jumps
        seq = (np.arange(num_accesses) * step) % num_words
        rnd = rng.integers(0, num_words, size=num_accesses)
        words = np.where(rng.random(num_accesses) < 0.8, seq, rnd)
    elif pattern == "zipf":
        words = (rng.zipf(a=1.5, size=num_accesses) - 1) % num_words
    elif pattern == "cyclic":
        words = np.arange(num_accesses) % num_words
    else:
        raise ValueError(f"Unknown trace pattern: {pattern}")

    stores = rng.random(num_accesses) < store_ratio
    addresses = (base_address + words.astype(np.int64) * WORD_BYTES) & ADDRESS_MASK
    return [
        Access(AccessKind.STORE if is_store else AccessKind.LOAD, int(addr))
        for is_store, addr in zip(stores, addresses)
    ]
