import pytest

from xvtools.kralloc import HEADER_SIZE, MIN_CORE, Allocator


def test_fresh_allocator_has_no_free_blocks():
    assert Allocator().free_blocks() == []


def test_malloc_returns_aligned_address():
    heap = Allocator()
    addr = heap.malloc(10)
    assert addr > 0
    assert addr % HEADER_SIZE == 0


def test_blocks_come_from_top_and_do_not_overlap():
    heap = Allocator()
    a = heap.malloc(100)
    b = heap.malloc(100)
    assert b < a
    assert b + 100 <= a - HEADER_SIZE


def test_free_everything_coalesces_to_one_core_chunk():
    heap = Allocator()
    addrs = [heap.malloc(n) for n in (5, 50, 500, 17)]
    for addr in (addrs[2], addrs[0], addrs[3], addrs[1]):
        heap.free(addr)
    blocks = heap.free_blocks()
    assert len(blocks) == 1
    assert blocks[0].units == MIN_CORE


def test_freed_block_is_reused():
    heap = Allocator()
    a = heap.malloc(100)
    heap.free(a)
    assert heap.malloc(100) == a


def test_free_list_is_address_ordered():
    heap = Allocator()
    addrs = [heap.malloc(64) for _ in range(5)]
    heap.free(addrs[1])
    heap.free(addrs[3])
    blocks = heap.free_blocks()
    assert [b.address for b in blocks] == sorted(b.address for b in blocks)
    assert len(blocks) == 3


def test_limit_below_minimum_core_fails():
    with pytest.raises(MemoryError):
        Allocator(100).malloc(1)


def test_request_larger_than_limit_fails():
    with pytest.raises(MemoryError):
        Allocator(MIN_CORE).malloc(MIN_CORE * HEADER_SIZE)


def test_exhaust_then_recover():
    heap = Allocator(20000)
    held = []
    with pytest.raises(MemoryError):
        while True:
            held.append(heap.malloc(10001))
    assert held
    for addr in held:
        heap.free(addr)
    blocks = heap.free_blocks()
    assert len(blocks) == 1
    big = heap.malloc(1024 * 20)
    assert big % HEADER_SIZE == 0


def test_double_free_rejected():
    heap = Allocator()
    a = heap.malloc(8)
    heap.free(a)
    with pytest.raises(ValueError):
        heap.free(a)


def test_bad_address_rejected():
    heap = Allocator()
    a = heap.malloc(8)
    with pytest.raises(ValueError):
        heap.free(a + 3)


def test_negative_size_rejected():
    with pytest.raises(ValueError):
        Allocator().malloc(-1)