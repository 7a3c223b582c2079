# cache.py
from dataclasses import dataclass, field

ADDRESS_BITS = 32
ADDRESS_MASK = (1 << ADDRESS_BITS) - 1
WORD_BYTES = 4

ALLOCATE_POLICIES = {"write-allocate": True, "no-write-allocate": False}
WRITE_POLICIES = {"write-through": True, "write-back": False}
EVICTION_POLICIES = {"lru": True, "fifo": False}


class InvalidConfigError(ValueError):
    """Raised when a cache geometry or policy combination cannot be simulated."""


def is_power_of_two(n):
    return isinstance(n, int) and n > 0 and (n & (n - 1)) == 0


def log2(n):
    # n is a validated power of two
    return n.bit_length() - 1


@dataclass(frozen=True)
class CacheConfig:
    """
    Geometry and policies of a single-level set-associative cache.
    All sizes are powers of two; block_size is in bytes.
    """
    num_sets: int
    num_blocks: int
    block_size: int
    write_allocate: bool = True
    write_through: bool = False
    use_lru: bool = True

    def __post_init__(self):
        self.validate()

    def validate(self):
        if not is_power_of_two(self.num_sets):
            raise InvalidConfigError("Number of sets must be a positive power of 2")
        if not is_power_of_two(self.num_blocks):
            raise InvalidConfigError("Number of blocks must be a positive power of 2")
        if not is_power_of_two(self.block_size) or self.block_size < WORD_BYTES:
            raise InvalidConfigError("Block size must be a power of 2 and at least 4")
        if not self.write_allocate and not self.write_through:
            raise InvalidConfigError("no-write-allocate cannot be combined with write-back")

    @classmethod
    def from_policy_names(cls, num_sets, num_blocks, block_size, allocate, write, eviction):
        """
        Build a config from the policy words used on the command line:
        write-allocate|no-write-allocate, write-through|write-back, lru|fifo.
        """
        if allocate not in ALLOCATE_POLICIES:
            raise InvalidConfigError("Write allocate must be 'write-allocate' or 'no-write-allocate'")
        if write not in WRITE_POLICIES:
            raise InvalidConfigError("Write policy must be 'write-through' or 'write-back'")
        if eviction not in EVICTION_POLICIES:
            raise InvalidConfigError("Eviction policy must be 'lru' or 'fifo'")
        return cls(
            num_sets=num_sets,
            num_blocks=num_blocks,
            block_size=block_size,
            write_allocate=ALLOCATE_POLICIES[allocate],
            write_through=WRITE_POLICIES[write],
            use_lru=EVICTION_POLICIES[eviction],
        )

    @classmethod
    def from_dict(cls, d):
        return cls.from_policy_names(
            d.get("sets", 1),
            d.get("blocks", 1),
            d.get("block_size", 16),
            d.get("allocate", "write-allocate"),
            d.get("write", "write-back"),
            d.get("eviction", "lru"),
        )

    @property
    def offset_bits(self):
        return log2(self.block_size)

    @property
    def index_bits(self):
        return log2(self.num_sets)

    @property
    def tag_bits(self):
        return ADDRESS_BITS - self.offset_bits - self.index_bits

    @property
    def words_per_block(self):
        return self.block_size // WORD_BYTES

    def describe(self):
        return "{}x{}x{}B {} {} {}".format(
            self.num_sets,
            self.num_blocks,
            self.block_size,
            "write-allocate" if self.write_allocate else "no-write-allocate",
            "write-through" if self.write_through else "write-back",
            "lru" if self.use_lru else "fifo",
        )


def decode_address(address, config):
    """Split a 32-bit address into (tag, set index); the block offset is dropped."""
    without_offset = (address & ADDRESS_MASK) >> config.offset_bits
    index = without_offset & ((1 << config.index_bits) - 1)  # 0 for a single set
    tag = without_offset >> config.index_bits
    return tag, index


def encode_address(tag, index, offset, config):
    return ((tag << (config.index_bits + config.offset_bits))
            | (index << config.offset_bits)
            | offset) & ADDRESS_MASK


@dataclass
class Block:
    valid: bool = False
    dirty: bool = False
    tag: int = 0
    arrival_time: int = 0
    last_access_time: int = 0

    def install(self, tag, now):
        # replaces whatever was resident; the caller has already charged any write-back
        self.valid = True
        self.dirty = False
        self.tag = tag
        self.arrival_time = now
        self.last_access_time = now

    def touch(self, now):
        self.last_access_time = now


@dataclass
class CacheSet:
    """
    A fixed number of blocks. Block positions never move, so a scan in
    position order is deterministic.
    """
    blocks: list = field(default_factory=list)

    @classmethod
    def empty(cls, num_blocks):
        return cls([Block() for _ in range(num_blocks)])

    def find_match(self, tag):
        for i, blk in enumerate(self.blocks):
            if blk.valid and blk.tag == tag:
                return i
        return None

    def select_victim(self, use_lru):
        """
        Position of the block to fill: the first invalid block if there is
        one, otherwise the block with the smallest last-access time (LRU) or
        arrival time (FIFO). Ties go to the lowest position.
        """
        for i, blk in enumerate(self.blocks):
            if not blk.valid:
                return i

        def key(blk):
            return blk.last_access_time if use_lru else blk.arrival_time

        victim = 0
        best = key(self.blocks[0])
        for i in range(1, len(self.blocks)):
            k = key(self.blocks[i])
            if k < best:
                best = k
                victim = i
        return victim

    def valid_count(self):
        return sum(1 for blk in self.blocks if blk.valid)
