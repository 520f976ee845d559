import pytest

from hypermine.ring_alloc import AllocId, RingAlloc

CAP = 4


def test_sanity():
    r = RingAlloc()
    a = r.alloc(CAP, 3)
    assert a is not None
    assert r.alloc(CAP, 2) is None
    b = r.alloc(CAP, 1)
    assert b[0] == 3
    assert r.alloc(CAP, 1) is None
    r.free(a[1])
    c = r.alloc(CAP, 1)
    assert c[0] == 0
    d = r.alloc(CAP, 2)
    assert d[0] == 1
    assert r.alloc(CAP, 1) is None
    r.free(c[1])
    r.free(b[1])
    e = r.alloc(CAP, 1)
    assert e[0] == 3
    f = r.alloc(CAP, 1)
    assert f[0] == 0


def test_too_large_for_empty_ring():
    r = RingAlloc()
    assert r.alloc(CAP, CAP + 1) is None
    assert r.alloc(CAP, CAP) == (0, AllocId(0))


def test_ids_are_sequential():
    r = RingAlloc()
    ids = [r.alloc(CAP, 1)[1] for _ in range(CAP)]
    assert ids == [AllocId(n) for n in range(CAP)]


def test_empty_ring_resets_to_start():
    r = RingAlloc()
    first = r.alloc(CAP, 2)
    second = r.alloc(CAP, 1)
    r.free(second[1])
    r.free(first[1])
    assert r.alloc(CAP, CAP) == (0, AllocId(0))


def test_free_unknown_id_raises():
    r = RingAlloc()
    with pytest.raises(ValueError):
        r.free(AllocId(0))


def test_double_free_after_reclaim_raises():
    r = RingAlloc()
    _, ident = r.alloc(CAP, 1)
    r.free(ident)
    with pytest.raises(ValueError):
        r.free(ident)