import asyncio

import pytest

from hierarchy_repo import relationships
from hierarchy_repo.errors import CyclicEdgeError, InvalidEdgeError, NodeNotFoundError


@pytest.fixture()
async def season_tree(add_node):
    for node_id in ("season", "arc", "other"):
        await add_node(node_id)
    for node_id in ("ep1", "ep2", "ep3"):
        await add_node(node_id, viewable=True)

    await relationships.create_edge("u1", None, "season")
    await relationships.create_edge("u1", None, "other")
    await relationships.create_edge("u1", "season", "arc")
    await relationships.create_edge("u1", "arc", "ep1")
    await relationships.create_edge("u1", "arc", "ep2")
    await relationships.create_edge("u1", "season", "ep3")


async def _child_ids(parent_id):
    return [edge.child_id for edge in await relationships.get_children("u1", parent_id)]


async def test_create_edge_appends_after_last_sibling(season_tree):
    children = await relationships.get_children("u1", "arc")

    assert [edge.child_id for edge in children] == ["ep1", "ep2"]
    assert [edge.display_order for edge in children] == [0, 1]
    assert await _child_ids(None) == ["season", "other"]


async def test_create_edge_with_explicit_order(add_node, season_tree):
    await add_node("ep0", viewable=True)

    created = await relationships.create_edge("u1", "other", "ep0", order=7)

    assert created.display_order == 0
    assert (await relationships.get_children("u1", "other"))[0].display_order == 0


async def test_create_edge_at_occupied_position_renumbers_siblings(add_node, season_tree):
    await add_node("ep0", viewable=True)

    created = await relationships.create_edge("u1", "arc", "ep0", order=0)
    children = await relationships.get_children("u1", "arc")

    assert created.display_order == 0
    assert [edge.child_id for edge in children] == ["ep0", "ep1", "ep2"]
    assert [edge.display_order for edge in children] == [0, 1, 2]


async def test_self_parent_is_invalid(season_tree):
    with pytest.raises(InvalidEdgeError):
        await relationships.create_edge("u1", "arc", "arc")


async def test_unknown_or_foreign_nodes_are_invalid(add_node, season_tree):
    await add_node("foreign", scope_id="u2")

    with pytest.raises(InvalidEdgeError):
        await relationships.create_edge("u1", "season", "nope")
    with pytest.raises(InvalidEdgeError):
        await relationships.create_edge("u1", "season", "foreign")


async def test_duplicate_edge_is_invalid(season_tree):
    with pytest.raises(InvalidEdgeError):
        await relationships.create_edge("u1", "arc", "ep1")


async def test_create_edge_rejects_cycle(season_tree):
    with pytest.raises(CyclicEdgeError) as excinfo:
        await relationships.create_edge("u1", "arc", "season")

    assert excinfo.value.parent_id == "arc"
    assert await _child_ids("arc") == ["ep1", "ep2"]


async def test_get_parents(season_tree):
    parents = await relationships.get_parents("ep1")
    assert [edge.parent_id for edge in parents] == ["arc"]
    assert await relationships.get_parents("season") != []
    assert (await relationships.get_parents("season"))[0].parent_id is None


async def test_delete_edge_is_idempotent(season_tree):
    assert await relationships.delete_edge("u1", "arc", "ep1") is True
    assert await relationships.delete_edge("u1", "arc", "ep1") is False
    assert await _child_ids("arc") == ["ep2"]


async def test_delete_all_for_node(season_tree):
    removed = await relationships.delete_all_for_node("u1", "arc")

    assert removed == 3
    assert await _child_ids("arc") == []
    assert await _child_ids("season") == ["ep3"]
    assert await relationships.delete_all_for_node("u1", "arc") == 0


async def test_reorder_siblings(season_tree, add_node):
    await add_node("c3", viewable=True)
    await relationships.create_edge("u1", "arc", "c3")

    result = await relationships.reorder_siblings("u1", "arc", ["ep2", "ep1", "c3"])

    assert [edge.child_id for edge in result] == ["ep2", "ep1", "c3"]
    assert [edge.display_order for edge in result] == [0, 1, 2]
    assert await _child_ids("arc") == ["ep2", "ep1", "c3"]


async def test_reorder_keeps_unlisted_siblings_last(season_tree, add_node):
    await add_node("c3", viewable=True)
    await relationships.create_edge("u1", "arc", "c3")

    await relationships.reorder_siblings("u1", "arc", ["c3"])

    assert await _child_ids("arc") == ["c3", "ep1", "ep2"]


async def test_reorder_rejects_strangers_and_duplicates(season_tree):
    with pytest.raises(InvalidEdgeError):
        await relationships.reorder_siblings("u1", "arc", ["ep1", "ep3"])
    with pytest.raises(InvalidEdgeError):
        await relationships.reorder_siblings("u1", "arc", ["ep1", "ep1"])


async def test_reorder_roots(season_tree):
    await relationships.reorder_siblings("u1", None, ["other", "season"])
    assert await _child_ids(None) == ["other", "season"]


async def test_move_node_reparents_at_position(season_tree):
    moved = await relationships.move_node("u1", "ep3", "arc", 1)

    assert moved.parent_id == "arc" and moved.display_order == 1
    assert await _child_ids("arc") == ["ep1", "ep3", "ep2"]
    assert await _child_ids("season") == ["arc"]
    parents = await relationships.get_parents("ep3")
    assert [edge.parent_id for edge in parents] == ["arc"]


async def test_move_without_order_appends(season_tree):
    await relationships.move_node("u1", "ep1", "other")
    assert await _child_ids("other") == ["ep1"]


async def test_move_to_root(season_tree):
    await relationships.move_node("u1", "arc", None, 0)

    assert await _child_ids(None) == ["arc", "season", "other"]
    assert await _child_ids("season") == ["ep3"]


async def test_move_into_own_descendant_is_rejected(season_tree):
    with pytest.raises(CyclicEdgeError):
        await relationships.move_node("u1", "season", "arc", 0)

    assert await _child_ids(None) == ["season", "other"]
    assert await _child_ids("season") == ["arc", "ep3"]


async def test_move_unknown_node_is_not_found(season_tree):
    with pytest.raises(NodeNotFoundError):
        await relationships.move_node("u1", "ghost", "arc", 0)
    with pytest.raises(InvalidEdgeError):
        await relationships.move_node("u1", "ep1", "ghost", 0)


async def test_move_collapses_multiple_parents(season_tree):
    await relationships.create_edge("u1", "other", "ep1")

    await relationships.move_node("u1", "ep1", "season", 0)

    parents = await relationships.get_parents("ep1")
    assert [edge.parent_id for edge in parents] == ["season"]
    assert await _child_ids("season") == ["ep1", "arc", "ep3"]


async def test_concurrent_opposite_moves_cannot_both_succeed(add_node):
    for node_id in ("a", "b"):
        await add_node(node_id)
        await relationships.create_edge("u1", None, node_id)

    results = await asyncio.gather(
        relationships.move_node("u1", "a", "b", 0),
        relationships.move_node("u1", "b", "a", 0),
        return_exceptions=True,
    )

    errors = [result for result in results if isinstance(result, Exception)]
    assert len(errors) == 1
    assert isinstance(errors[0], CyclicEdgeError)


async def test_accepted_mutations_never_form_a_cycle(add_node):
    ids = [f"n{i}" for i in range(6)]
    for node_id in ids:
        await add_node(node_id)
        await relationships.create_edge("u1", None, node_id)

    attempts = [("n0", "n1"), ("n1", "n2"), ("n2", "n0"), ("n3", "n2"), ("n0", "n3"), ("n4", "n5"), ("n5", "n4")]
    for child, parent in attempts:
        try:
            await relationships.move_node("u1", child, parent, 0)
        except CyclicEdgeError:
            pass

    index = await relationships.load_edge_index("u1")
    for node_id in ids:
        current, steps = node_id, 0
        while True:
            parents = [edge.parent_id for edge in index.parents(current) if edge.parent_id]
            if not parents:
                break
            current = parents[0]
            steps += 1
            assert steps <= len(ids)
