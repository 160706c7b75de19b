"""
Shared fixtures for the Control-M analysis tests.
"""

import sys
from pathlib import Path

import pytest

# Add src to path
sys.path.insert(0, str(Path(__file__).parent / "src"))

from controlm_analysis.analyzer import MigrationAnalyzer
from controlm_analysis.config import AnalysisSettings
from controlm_analysis.graph.builder import GraphBuilder
from controlm_analysis.graph.condition_index import ConditionIndex
from controlm_analysis.records.assembler import SnapshotAssembler
from controlm_analysis.records.loader import load_snapshot


def job(name, folder='F1', ins=(), outs=(), **fields):
    """Shorthand for one exported job record."""
    record = {'job_name': name, 'folder_name': folder, **fields}
    if ins:
        record['in_conditions'] = list(ins)
    if outs:
        record['out_conditions'] = list(outs)
    return record


def build_snapshot(jobs, folders=None):
    if folders is None:
        folders = sorted({j['folder_name'] for j in jobs})
    return load_snapshot({
        'folders': [{'folder_name': f, 'datacenter': 'DC1'} for f in folders],
        'jobs': list(jobs),
    })


def build_graph(jobs, max_workers=1, **builder_args):
    """Assemble, index and build a graph; returns (profiles, graph)."""
    assembled = SnapshotAssembler().assemble(build_snapshot(jobs))
    index = ConditionIndex.build(assembled.profiles)
    graph = GraphBuilder(max_workers=max_workers, **builder_args).build(assembled.profiles, index)
    return assembled.profiles, graph


@pytest.fixture
def analyzer():
    return MigrationAnalyzer(AnalysisSettings(max_workers=1))


@pytest.fixture
def scenario_a():
    return build_snapshot([
        job('X', 'F1', outs=['C1']),
        job('Y', 'F1', ins=['C1']),
    ])


@pytest.fixture
def scenario_b():
    return build_snapshot([
        job('X', 'F1', outs=['C2']),
        job('Z', 'F2', ins=['C2']),
    ])


@pytest.fixture
def scenario_c():
    return build_snapshot([
        job('A', 'F1', ins=['C4'], outs=['C3']),
        job('B', 'F1', ins=['C3'], outs=['C4']),
    ])


@pytest.fixture
def mixed_snapshot():
    """Two folders, a cycle, a chain across folders and an isolated job."""
    return build_snapshot([
        job('EXTRACT', 'SALES', outs=['EXTRACT-OK']),
        job('TRANSFORM', 'SALES', ins=['EXTRACT-OK'], outs=['TRANSFORM-OK']),
        job('LOAD', 'DWH', ins=['TRANSFORM-OK'], outs=['LOAD-OK'], critical=True),
        job('REPORT', 'DWH', ins=['LOAD-OK', 'EXTERNAL-FEED']),
        job('PING', 'DWH', ins=['PONG-OK'], outs=['PING-OK']),
        job('PONG', 'DWH', ins=['PING-OK'], outs=['PONG-OK'], cyclic=True),
        job('HOUSEKEEP', 'OPS'),
    ])
