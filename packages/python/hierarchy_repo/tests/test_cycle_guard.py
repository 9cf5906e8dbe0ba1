from hierarchy_repo.cycle_guard import would_create_cycle
from hierarchy_repo.graph import EdgeIndex
from hierarchy_repo.models import Edge


def edge(parent_id, child_id, order=0, scope_id="u1"):
    return Edge(parent_id=parent_id, child_id=child_id, scope_id=scope_id, display_order=order)


def _index(*pairs):
    return EdgeIndex([edge(parent, child) for parent, child in pairs])


def test_self_parenting_is_a_cycle():
    assert would_create_cycle("a", "a", _index().parents)


def test_root_edge_never_cycles():
    index = _index((None, "a"), ("a", "b"))
    assert not would_create_cycle(None, "a", index.parents)


def test_attaching_ancestor_under_descendant_is_rejected():
    index = _index((None, "a"), ("a", "b"), ("b", "c"))
    assert would_create_cycle("c", "a", index.parents)
    assert would_create_cycle("b", "a", index.parents)


def test_unrelated_branch_is_accepted():
    index = _index((None, "a"), ("a", "b"), (None, "x"), ("x", "y"))
    assert not would_create_cycle("y", "b", index.parents)
    assert not would_create_cycle("b", "x", index.parents)


def test_cycle_through_any_parent_of_a_dag_is_found():
    # d has two parents; only the second chain reaches a.
    index = _index((None, "a"), ("a", "c"), (None, "b"), ("b", "d"), ("c", "d"))
    assert would_create_cycle("d", "a", index.parents)


def test_diamond_is_not_reported_as_corruption():
    index = _index((None, "r"), ("r", "a"), ("r", "b"), ("a", "d"), ("b", "d"))
    assert not would_create_cycle("d", "x", index.parents)


def test_walk_terminates_on_existing_corruption():
    index = _index(("a", "b"), ("b", "a"))
    assert not would_create_cycle("a", "z", index.parents)
    assert would_create_cycle("a", "b", index.parents)
