from dataclasses import dataclass

import pytest

from interleave.objects import Action, ActionKind, Operation, Ref, Store


@dataclass
class Apple:
    name: str


@dataclass
class Pear:
    weight: int


def _filled():
    store = Store()
    refs = [store.insert(Apple("a")), store.insert(Pear(1)), store.insert(Apple("b")), store.insert(Pear(2))]
    return store, refs


def test_insert_assigns_sequential_indices():
    store, refs = _filled()
    assert [r.index for r in refs] == [0, 1, 2, 3]
    assert len(store) == 4
    assert refs[1].kind is Pear


def test_get_returns_stored_object():
    store = Store()
    apple = Apple("x")
    ref = store.insert(apple)
    assert store.get(ref) is apple
    store.get(ref).name = "y"
    assert store.get(ref).name == "y"


def test_get_with_wrong_kind_raises():
    store, refs = _filled()
    with pytest.raises(TypeError):
        store.get(Ref(refs[0].index, Pear))


def test_downcast():
    store, refs = _filled()
    erased = refs[1].erase()
    typed = store.downcast(erased, Pear)
    assert typed == erased
    assert typed.kind is Pear
    assert store.downcast(erased, Apple) is None


def test_truncate_keeps_through_ref():
    store, refs = _filled()
    store.truncate(refs[1])
    assert len(store) == 2
    assert store.get(refs[1]) == Pear(1)
    with pytest.raises(IndexError):
        store.get(refs[2])


def test_clear():
    store, _ = _filled()
    store.clear()
    assert len(store) == 0
    assert store.iter_ref(Apple) == []


def test_iter_ref_and_iter_objects_filter_by_kind():
    store, refs = _filled()
    assert store.iter_ref(Pear) == [refs[1], refs[3]]
    assert list(store.iter_objects(Apple)) == [Apple("a"), Apple("b")]
    assert list(reversed(store.iter_ref(Apple)))[0] == refs[2]


def test_erase_and_ref_eq():
    ref = Ref(3, Apple)
    erased = ref.erase()
    assert erased == ref
    assert erased.kind is None
    assert ref.ref_eq(Ref(3, Apple))
    assert not ref.ref_eq(Ref(4, Apple))
    assert repr(erased) == "Ref<()>(3)"


def test_action_unwrap():
    action = Action(ActionKind.ATOMIC, "rmw")
    assert action.unwrap(ActionKind.ATOMIC) == "rmw"
    with pytest.raises(ValueError):
        action.unwrap(ActionKind.CHANNEL)


def test_action_detail_rules():
    assert Action.opaque() == Action(ActionKind.OPAQUE)
    with pytest.raises(ValueError):
        Action(ActionKind.OPAQUE, "x")
    with pytest.raises(ValueError):
        Action(ActionKind.RWLOCK)


def test_operation_stores_erased_ref():
    ref = Ref(2, Pear)
    op = Operation(ref, Action.opaque(), "here")
    assert op.obj == ref
    assert op.obj.kind is None
    assert op.location == "here"
    assert op.action.kind is ActionKind.OPAQUE


def test_capacity_is_configurable():
    store = Store(capacity=8)
    store.insert(Apple("a"))
    assert store.capacity == 8
    assert len(store) < store.capacity