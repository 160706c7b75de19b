"""
Tests for bounded-depth dependency queries.
"""

import pytest

from conftest import build_snapshot, job
from controlm_analysis.errors import QueryError
from controlm_analysis.graph.query import Direction, Scope


@pytest.fixture
def query(analyzer):
    # UP1(F1) -> MID(F1) -> DOWN1(F1) -> DOWN2(F2)
    #            MID <- EXT(F2)
    snapshot = build_snapshot([
        job('UP1', 'F1', outs=['UP1-OK']),
        job('MID', 'F1', ins=['UP1-OK', 'EXT-OK'], outs=['MID-OK']),
        job('DOWN1', 'F1', ins=['MID-OK'], outs=['DOWN1-OK']),
        job('DOWN2', 'F2', ins=['DOWN1-OK']),
        job('EXT', 'F2', outs=['EXT-OK']),
        job('LONER', 'F1'),
    ], folders=['F1', 'F2'])
    return analyzer.analyze(snapshot).dependency_query()


def _names(subgraph):
    return [n.job_name for n in subgraph.nodes]


def test_direct_neighbours_both_directions(query):
    subgraph = query.extract(1)
    assert _names(subgraph) == ['MID', 'UP1', 'DOWN1', 'EXT']
    assert subgraph.nodes[0].is_root and subgraph.nodes[0].hop == 0
    assert all(n.hop == 1 for n in subgraph.nodes[1:])
    assert subgraph.stats == {
        'total_dependencies': 3,
        'internal_dependencies': 2,
        'external_dependencies': 1,
        'max_depth': 1,
    }


def test_upstream_and_downstream(query):
    assert _names(query.extract(1, Direction.UPSTREAM)) == ['MID', 'UP1', 'EXT']
    assert _names(query.extract(1, Direction.DOWNSTREAM, depth=None)) == ['MID', 'DOWN1', 'DOWN2']


def test_depth_limit(query):
    two_hops = query.extract(0, Direction.DOWNSTREAM, depth=2)
    assert _names(two_hops) == ['UP1', 'MID', 'DOWN1']
    assert two_hops.stats['max_depth'] == 2

    everything = query.extract(0, Direction.DOWNSTREAM, depth=None)
    assert _names(everything) == ['UP1', 'MID', 'DOWN1', 'DOWN2']
    assert everything.stats['max_depth'] == 3


def test_end_to_end_both_directions_reaches_component(query):
    subgraph = query.extract(3, depth=None)
    assert sorted(n.job_id for n in subgraph.nodes) == [0, 1, 2, 3, 4]
    assert 'LONER' not in _names(subgraph)


def test_scope_filters_traversal(query):
    internal = query.extract(1, depth=None, scope=Scope.INTERNAL)
    assert _names(internal) == ['MID', 'UP1', 'DOWN1']
    assert all(e.internal for e in internal.edges)

    external = query.extract(1, depth=None, scope=Scope.EXTERNAL)
    assert _names(external) == ['MID', 'EXT']
    assert external.stats['external_dependencies'] == 1


def test_nodes_flag_root_folder(query):
    subgraph = query.extract(2, Direction.DOWNSTREAM)
    by_name = {n.job_name: n for n in subgraph.nodes}
    assert by_name['DOWN1'].is_internal
    assert not by_name['DOWN2'].is_internal
    assert by_name['DOWN2'].datacenter == 'DC1'


def test_isolated_root(query):
    subgraph = query.extract(5, depth=None)
    assert _names(subgraph) == ['LONER']
    assert subgraph.edges == ()
    assert subgraph.stats['max_depth'] == 0


def test_to_dict_accepts_string_enums(query):
    result = query.extract(1, 'upstream', 1, 'all').to_dict()
    assert result['direction'] == 'upstream'
    assert result['scope'] == 'all'
    assert result['nodes'][0]['id'] == 1
    assert {e['source_id'] for e in result['edges']} == {0, 4}
    assert all(e['target_id'] == 1 for e in result['edges'])


def test_invalid_queries(query):
    with pytest.raises(QueryError):
        query.extract(99)
    with pytest.raises(QueryError):
        query.extract(-1)
    with pytest.raises(QueryError):
        query.extract(1, depth=0)
    with pytest.raises(QueryError):
        query.extract(1, direction='sideways')
    with pytest.raises(QueryError):
        query.extract(1, scope='nearby')
