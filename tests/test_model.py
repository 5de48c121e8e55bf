import pytest

from mesisim.model import (
    BusRequest,
    BusType,
    Cache,
    CacheLine,
    LRUClock,
    MESIState,
    Stats,
    parse_address,
)


def test_parse_address_with_prefix():
    assert parse_address("0x1F") == 0x1F
    assert parse_address("0XABC") == 0xABC


def test_parse_address_without_prefix_is_hex():
    assert parse_address("1f") == 0x1F
    assert parse_address("10") == 0x10


def test_parse_address_ignores_trailing_text():
    assert parse_address("12zz") == 0x12


def test_parse_address_truncates_to_32_bits():
    assert parse_address("100000000") == 0
    assert parse_address("1ffffffff") == parse_address("ffffffff")


def test_parse_address_rejects_garbage():
    with pytest.raises(ValueError):
        parse_address("zz")
    with pytest.raises(ValueError):
        parse_address("0x")


def test_cache_line_defaults():
    line = CacheLine()
    assert (line.tag, line.state, line.lru) == (0, MESIState.INVALID, 0)


@pytest.mark.parametrize(
    "state", [MESIState.SHARED, MESIState.EXCLUSIVE, MESIState.MODIFIED]
)
def test_every_valid_state_is_found(state):
    cache = Cache(0, 2, 4)
    cache.sets[0][1].tag = 3
    cache.sets[0][1].state = state
    assert cache.find_line(3, 0) == 1
    assert cache.find_invalid_line(0) == 0


def test_lru_clock_is_strictly_increasing():
    clock = LRUClock()
    first = clock.tick()
    second = clock.tick()
    assert first == 1
    assert second > first
    assert clock.value == second


def test_cache_shape():
    cache = Cache(2, 3, 4)
    assert len(cache.sets) == 1 << 2
    assert all(len(row) == 3 for row in cache.sets)
    assert cache.block_size == 1 << 4
    assert cache.num_sets == 1 << 2


def test_cache_rejects_negative_parameters():
    with pytest.raises(ValueError):
        Cache(-1, 2, 4)


def test_find_line_only_matches_valid_lines():
    cache = Cache(1, 2, 4)
    assert cache.find_line(7, 0) is None
    cache.sets[0][1].tag = 7
    assert cache.find_line(7, 0) is None
    cache.sets[0][1].state = MESIState.SHARED
    assert cache.find_line(7, 0) == 1
    assert cache.find_line(7, 1) is None


def test_find_invalid_line():
    cache = Cache(0, 2, 4)
    assert cache.find_invalid_line(0) == 0
    cache.sets[0][0].state = MESIState.EXCLUSIVE
    assert cache.find_invalid_line(0) == 1
    cache.sets[0][1].state = MESIState.MODIFIED
    assert cache.find_invalid_line(0) is None


def test_find_lru_line_picks_oldest_and_first_on_tie():
    cache = Cache(0, 3, 4)
    for way, stamp in enumerate([5, 2, 9]):
        cache.sets[0][way].lru = stamp
    assert cache.find_lru_line(0) == 1
    cache.sets[0][2].lru = 2
    assert cache.find_lru_line(0) == 1


@pytest.mark.parametrize("s,b", [(0, 5), (2, 4), (6, 5), (3, 0)])
@pytest.mark.parametrize("address", [0, 0x1234, 0xDEADBEEF, 0xFFFFFFFF])
def test_split_address_round_trip(s, b, address):
    cache = Cache(s, 2, b)
    tag, set_index = cache.split_address(address)
    assert 0 <= set_index < cache.num_sets
    rebuilt = (tag << (b + s)) | (set_index << b)
    assert rebuilt == address & ~((1 << b) - 1)


def test_split_address_without_index_bits():
    cache = Cache(0, 2, 4)
    assert cache.split_address(0xABCD)[1] == 0


def test_stats_start_at_zero():
    stats = Stats()
    assert all(value == 0 for value in vars(stats).values())


def test_bus_request_defaults():
    request = BusRequest(core=2, tag=9, set_index=1, kind=BusType.BUS_RD)
    assert request.other_core is None
    assert request.new_state == MESIState.INVALID
    assert request.shared is False
    assert request.kind is BusType.BUS_RD