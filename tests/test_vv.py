import pytest

from interleave.vv import MAX_THREADS, VersionVec


def _vv(*values):
    vv = VersionVec()
    for index, value in enumerate(values):
        vv[index] = value
    return vv


def test_new_is_all_zero():
    vv = VersionVec()
    assert len(vv) == MAX_THREADS
    assert list(vv) == [0] * MAX_THREADS


def test_inc_touches_one_slot():
    vv = VersionVec()
    vv.inc(2)
    vv.inc(2)
    assert vv[2] == 2
    assert sum(vv) == 2


def test_join_dominates_both_inputs():
    a = _vv(3, 0, 2)
    b = _vv(1, 4, 2)
    original = a.copy()
    a.join(b)
    assert a >= b
    assert a >= original
    assert a[1] == b[1]
    assert a[0] == original[0]


def test_join_is_commutative_and_idempotent():
    a = _vv(3, 0, 2)
    b = _vv(1, 4, 2)
    ab = a.copy()
    ab.join(b)
    ba = b.copy()
    ba.join(a)
    assert ab == ba
    again = ab.copy()
    again.join(b)
    assert again == ab


def test_partial_cmp_orders():
    zero = VersionVec()
    one = VersionVec()
    one.inc(1)
    assert zero.partial_cmp(zero) == 0
    assert one.partial_cmp(zero) == 1
    assert zero.partial_cmp(one) == -1
    assert zero < one
    assert one > zero
    assert zero <= zero


def test_partial_cmp_concurrent():
    a = _vv(1, 0)
    b = _vv(0, 1)
    assert a.partial_cmp(b) is None
    assert not a < b
    assert not a > b
    assert not a <= b


def test_ahead_finds_first_index():
    zero = VersionVec()
    other = VersionVec()
    other.inc(3)
    assert zero.ahead(other) == 3
    assert other.ahead(zero) is None


def test_copy_is_independent():
    a = _vv(1, 1)
    c = a.copy()
    c.inc(0)
    assert a[0] == 1
    assert c[0] == 2
    assert not c == a


def test_join_size_mismatch():
    with pytest.raises(ValueError):
        VersionVec(2).join(VersionVec(3))


def test_inc_overflow():
    vv = VersionVec()
    vv[0] = 0xFFFF
    with pytest.raises(OverflowError):
        vv.inc(0)


def test_setitem_rejects_negative():
    with pytest.raises(ValueError):
        VersionVec()[0] = -1