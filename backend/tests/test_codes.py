import pytest

from taggame.errors import RoomCodesExhausted
from taggame.services.codes import CODE_MAX, CODE_MIN, RoomCodeAllocator

from conftest import ScriptedRandom


def test_allocates_four_digit_code():
    code = RoomCodeAllocator(ScriptedRandom(codes=[1234])).allocate(set())
    assert code == '1234'


def test_retries_past_live_codes():
    allocator = RoomCodeAllocator(ScriptedRandom(codes=[1234, 1234, 5678]))
    assert allocator.allocate({'1234'}) == '5678'


def test_falls_back_to_scan_after_attempts():
    # Every random draw collides; the scan starts at the next draw (1234)
    allocator = RoomCodeAllocator(ScriptedRandom(codes=[1000, 1000, 1000, 1234]), attempts=3)
    live = {'1000', '1234', '1235'}
    assert allocator.allocate(live) == '1236'


def test_scan_wraps_around_code_space():
    allocator = RoomCodeAllocator(ScriptedRandom(codes=[9999]), attempts=0)
    live = {'9999'}
    assert allocator.allocate(live) == '1000'


def test_exhausted_code_space_raises():
    live = {str(c) for c in range(CODE_MIN, CODE_MAX + 1)}
    allocator = RoomCodeAllocator(ScriptedRandom(), attempts=5)
    with pytest.raises(RoomCodesExhausted):
        allocator.allocate(live)


def test_live_codes_are_pairwise_distinct():
    allocator = RoomCodeAllocator(ScriptedRandom(seed=7), attempts=2)
    live = set()
    for _ in range(500):
        code = allocator.allocate(live)
        assert code not in live
        assert len(code) == 4 and code.isdigit()
        live.add(code)
    assert len(live) == 500
