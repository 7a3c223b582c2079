# simulator.py
from collections import namedtuple
from dataclasses import dataclass, asdict
from enum import Enum

from cache import CacheSet, decode_address

HIT_CYCLES = 1
WORD_TRANSFER_CYCLES = 100   # per 4-byte word moved between cache and memory
MEMORY_WRITE_CYCLES = 100    # single store sent straight to memory


class AccessKind(Enum):
    LOAD = "l"
    STORE = "s"


Access = namedtuple("Access", ["kind", "address"])


class Outcome(Enum):
    LOAD_HIT = "load_hit"
    LOAD_MISS = "load_miss"
    STORE_HIT = "store_hit"
    STORE_MISS = "store_miss"


AccessResult = namedtuple("AccessResult", ["outcome", "cycles", "evicted_dirty"])


class CostModel:
    """
    Cycle costs for one cache configuration. Memory is never modelled,
    only the time a transfer would take.
    """

    def __init__(self, config):
        self.words_per_block = config.words_per_block

    def hit(self):
        return HIT_CYCLES

    def fetch(self):
        # base access plus loading the whole block from memory
        return HIT_CYCLES + WORD_TRANSFER_CYCLES * self.words_per_block

    def write_back(self):
        return WORD_TRANSFER_CYCLES * self.words_per_block

    def write_through(self):
        return MEMORY_WRITE_CYCLES

    def direct_write(self):
        # no-write-allocate miss: independent of block size
        return HIT_CYCLES + MEMORY_WRITE_CYCLES


@dataclass
class Stats:
    total_loads: int = 0
    total_stores: int = 0
    load_hits: int = 0
    load_misses: int = 0
    store_hits: int = 0
    store_misses: int = 0
    total_cycles: int = 0

    @property
    def total_accesses(self):
        return self.total_loads + self.total_stores

    @property
    def hits(self):
        return self.load_hits + self.store_hits

    @property
    def misses(self):
        return self.load_misses + self.store_misses

    @property
    def hit_rate(self):
        return self.hits / self.total_accesses if self.total_accesses else 0.0

    @property
    def load_hit_rate(self):
        return self.load_hits / self.total_loads if self.total_loads else 0.0

    @property
    def store_hit_rate(self):
        return self.store_hits / self.total_stores if self.total_stores else 0.0

    @property
    def average_cycles(self):
        return self.total_cycles / self.total_accesses if self.total_accesses else 0.0

    def as_dict(self):
        d = asdict(self)
        d.update({
            "hit_rate": self.hit_rate,
            "load_hit_rate": self.load_hit_rate,
            "store_hit_rate": self.store_hit_rate,
            "average_cycles": self.average_cycles,
        })
        return d


class CacheSimulator:
    """
    Replays loads and stores against a set-associative cache and counts
    hits, misses and cycles.

    A single logical clock is shared by every set. It advances once for each
    block installed and once for each hit under LRU, so arrival and access
    times are totally ordered across the whole cache.
    """

    def __init__(self, config):
        config.validate()
        self.config = config
        self.cost = CostModel(config)
        self.sets = [CacheSet.empty(config.num_blocks) for _ in range(config.num_sets)]
        self.clock = 0
        self.stats = Stats()

    def _tick(self):
        now = self.clock
        self.clock += 1
        return now

    def _lookup(self, address):
        tag, index = decode_address(address, self.config)
        cache_set = self.sets[index]
        return cache_set, tag, cache_set.find_match(tag)

    def _touch(self, blk):
        if self.config.use_lru:
            blk.touch(self._tick())

    def _allocate(self, cache_set, tag):
        """Fill a block for tag. Returns (block, cycles, evicted_dirty)."""
        cycles = self.cost.fetch()
        victim = cache_set.blocks[cache_set.select_victim(self.config.use_lru)]
        evicted_dirty = victim.valid and victim.dirty and not self.config.write_through
        if evicted_dirty:
            cycles += self.cost.write_back()
        victim.install(tag, self._tick())
        return victim, cycles, evicted_dirty

    def load(self, address):
        self.stats.total_loads += 1
        cache_set, tag, pos = self._lookup(address)

        if pos is not None:
            self.stats.load_hits += 1
            self._touch(cache_set.blocks[pos])
            result = AccessResult(Outcome.LOAD_HIT, self.cost.hit(), False)
        else:
            self.stats.load_misses += 1
            _, cycles, evicted_dirty = self._allocate(cache_set, tag)
            result = AccessResult(Outcome.LOAD_MISS, cycles, evicted_dirty)

        self.stats.total_cycles += result.cycles
        return result

    def store(self, address):
        self.stats.total_stores += 1
        cache_set, tag, pos = self._lookup(address)
        evicted_dirty = False

        if pos is not None:
            self.stats.store_hits += 1
            blk = cache_set.blocks[pos]
            self._touch(blk)
            cycles = self.cost.hit()
            if self.config.write_through:
                cycles += self.cost.write_through()
            else:
                blk.dirty = True
            outcome = Outcome.STORE_HIT
        else:
            self.stats.store_misses += 1
            outcome = Outcome.STORE_MISS
            if self.config.write_allocate:
                blk, cycles, evicted_dirty = self._allocate(cache_set, tag)
                if self.config.write_through:
                    cycles += self.cost.write_through()
                else:
                    blk.dirty = True
            else:
                cycles = self.cost.direct_write()

        self.stats.total_cycles += cycles
        return AccessResult(outcome, cycles, evicted_dirty)

    def access(self, kind, address):
        if kind is AccessKind.LOAD:
            return self.load(address)
        return self.store(address)

    def run(self, accesses, costs=None):
        """
        Replay every access and return the accumulated Stats. When a list is
        passed as costs, the cycle count of each access is appended to it.
        """
        for kind, address in accesses:
            result = self.access(kind, address)
            if costs is not None:
                costs.append(result.cycles)
        return self.stats

    def resident_tags(self, index):
        return [blk.tag for blk in self.sets[index].blocks if blk.valid]

    def flush_dirty_count(self):
        return sum(1 for s in self.sets for blk in s.blocks if blk.valid and blk.dirty)
