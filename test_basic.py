"""
Basic tests for snapshot loading, configuration and the command line.
"""

import gzip
import json

import pytest

from analyze_migration import main
from controlm_analysis.config import AnalysisSettings, Config
from controlm_analysis.errors import SnapshotError, WarningKind
from controlm_analysis.records.loader import SnapshotLoader, load_snapshot
from controlm_analysis.records.models import ConditionDirection, VariableKind

SAMPLE = {
    'folders': [{'folder_name': 'SALES', 'datacenter': 'DC_EU', 'folder_order_method': 'SYSTEM'}],
    'jobs': [
        {
            'job_name': 'EXTRACT', 'folder_name': 'SALES', 'application': 'FIN',
            'out_conditions': ['EXTRACT-OK'],
            'scheduling': {'days_calendar': 'WORKDAYS', 'months': ['JAN', 'FEB']},
            'variables': {'%%PATH': '/data'},
            'auto_edits': [{'name': '%%RUN', 'value': '1'}],
        },
        {
            'job_name': 'LOAD', 'folder_name': 'SALES', 'critical': True,
            'in_conditions': [{'name': 'EXTRACT-OK', 'odate': 'ODAT', 'and_or': 'A'}],
            'on_conditions': [{'stmt': '*', 'code': 'NOTOK', 'actions': ['DOMAIL', {'kind': 'DOOK'}]}],
            'quantitative_resources': [{'name': 'CPU', 'quantity': 2}],
        },
    ],
    'control_resources': [{'job_name': 'LOAD', 'folder_name': 'SALES', 'name': 'DB', 'resource_type': 'E'}],
}


def test_loader():
    """Test nested and flat records end up on the snapshot."""
    snapshot = load_snapshot(SAMPLE)

    assert [j.job_name for j in snapshot.jobs] == ['EXTRACT', 'LOAD']
    assert snapshot.folders[0].datacenter == 'DC_EU'
    assert snapshot.jobs[0].scheduling.feature_count() == 2
    assert snapshot.jobs[1].critical

    directions = [(c.job_name, c.name, c.direction) for c in snapshot.conditions]
    assert directions == [
        ('EXTRACT', 'EXTRACT-OK', ConditionDirection.OUT),
        ('LOAD', 'EXTRACT-OK', ConditionDirection.IN),
    ]
    assert snapshot.conditions[1].odate == 'ODAT'
    assert [a.kind for a in snapshot.on_conditions[0].actions] == ['DOMAIL', 'DOOK']
    assert snapshot.quantitative_resources[0].quantity == 2
    assert snapshot.control_resources[0].job_key == ('LOAD', 'SALES')
    assert [(v.name, v.kind) for v in snapshot.variables] == [
        ('%%PATH', VariableKind.VARIABLE),
        ('%%RUN', VariableKind.AUTO_EDIT),
    ]
    print("✓ Loader test passed")


def test_loader_files(tmp_path):
    plain = tmp_path / 'snapshot.json'
    plain.write_text(json.dumps(SAMPLE), encoding='utf-8')
    compressed = tmp_path / 'snapshot.json.gz'
    with gzip.open(compressed, 'wt', encoding='utf-8') as f:
        json.dump(SAMPLE, f)

    assert load_snapshot(plain) == load_snapshot(compressed) == load_snapshot(SAMPLE)


def test_loader_errors(tmp_path):
    with pytest.raises(SnapshotError):
        load_snapshot(tmp_path / 'missing.json')

    broken = tmp_path / 'broken.json'
    broken.write_text('{"jobs": [', encoding='utf-8')
    with pytest.raises(SnapshotError):
        load_snapshot(broken)

    with pytest.raises(SnapshotError):
        load_snapshot([{'job_name': 'J', 'folder_name': 'F1'}])


def test_bad_records_are_skipped_with_warnings():
    """Test one bad record never aborts the load."""
    loader = SnapshotLoader()
    snapshot = loader.load_dict({
        'folders': [{'folder_name': 'F1'}, {'datacenter': 'DC1'}],
        'jobs': [
            {'folder_name': 'F1'},
            {
                'job_name': 'NO_SCHEDULE', 'folder_name': 'F1', 'scheduling': 'daily',
                'out_conditions': ['NEVER-SEEN'],
            },
            {
                'job_name': 'KEEP', 'folder_name': 'F1',
                'in_conditions': [{'odate': 'ODAT'}, 'UPSTREAM-OK'],
                'quantitative_resources': [{'name': 'CPU', 'quantity': 'two'}, {'name': 'MEM', 'quantity': 4}],
                'on_conditions': [{'code': 'NOTOK', 'actions': [42]}],
                'variables': 'not-a-mapping',
            },
            {'job_name': 'ALSO_KEPT', 'folder_name': 'F1'},
        ],
        'variables': [{'job_name': 'KEEP', 'folder_name': 'F1', 'name': '%%V', 'kind': 'secret'}],
    })

    assert [f.folder_name for f in snapshot.folders] == ['F1']
    assert [j.job_name for j in snapshot.jobs] == ['KEEP', 'ALSO_KEPT']
    assert [c.name for c in snapshot.conditions] == ['UPSTREAM-OK']
    assert [r.name for r in snapshot.quantitative_resources] == ['MEM']
    assert snapshot.on_conditions == ()
    assert snapshot.variables == ()

    record_types = [w.record_type for w in snapshot.load_warnings]
    assert record_types == [
        'Folder', 'Job', 'Job', 'Condition', 'OnCondition', 'QuantitativeResource', 'Variable', 'Variable',
    ]
    assert all(w.kind == WarningKind.MALFORMED_RECORD for w in snapshot.load_warnings)
    nested = [w for w in snapshot.load_warnings if w.record_type == 'QuantitativeResource'][0]
    assert (nested.job_name, nested.folder_name) == ('KEEP', 'F1')


def test_unknown_direction_is_a_warning():
    loader = SnapshotLoader()
    snapshot = loader.load_dict({
        'conditions': [{'job_name': 'J', 'folder_name': 'F', 'name': 'C', 'direction': 'both'}],
    })
    assert snapshot.conditions == ()
    assert len(snapshot.load_warnings) == 1
    assert loader.warnings == list(snapshot.load_warnings)


def test_config(tmp_path):
    """Test a YAML file is deep-merged over the defaults."""
    cfg = Config()
    config_file = tmp_path / 'config.yaml'
    config_file.write_text("analysis:\n  max_workers: 8\n  low_dependency_threshold: 3\n", encoding='utf-8')

    try:
        cfg.load_file(config_file)
        assert cfg.get('analysis', 'max_workers') == 8
        assert cfg.get('analysis', 'max_jobs') == 500000
        assert cfg.get('output', 'output_dir') == './output'
        assert cfg.get('analysis', 'missing', default='x') == 'x'

        settings = AnalysisSettings.from_config(cfg, max_workers=2)
        assert settings.max_workers == 2
        assert settings.low_dependency_threshold == 3
    finally:
        cfg.reload()

    assert Config() is cfg
    assert cfg.get('analysis', 'max_workers') == 4


def test_cli_json_export(tmp_path, capsys):
    snapshot = tmp_path / 'snapshot.json'
    snapshot.write_text(json.dumps(SAMPLE), encoding='utf-8')
    output = tmp_path / 'out' / 'report.json'

    assert main([str(snapshot), '-o', str(output), '-w', '1']) == 0

    report = json.loads(output.read_text(encoding='utf-8'))
    assert report['total_jobs_analyzed'] == 2
    assert [j['job_name'] for j in report['jobs']] == ['EXTRACT', 'LOAD']
    assert report['jobs'][1]['dependency_depth'] == 1
    assert 'MIGRATION ANALYSIS REPORT' in capsys.readouterr().out


def test_cli_query(tmp_path, capsys):
    snapshot = tmp_path / 'snapshot.json'
    snapshot.write_text(json.dumps(SAMPLE), encoding='utf-8')
    output = tmp_path / 'query.json'

    assert main([str(snapshot), '--query', 'LOAD', '--direction', 'upstream', '--depth', 'all',
                 '-o', str(output)]) == 0

    subgraph = json.loads(output.read_text(encoding='utf-8'))
    assert [n['job_name'] for n in subgraph['nodes']] == ['LOAD', 'EXTRACT']
    assert subgraph['depth'] is None

    assert main([str(snapshot), '--query', 'NOPE']) == 1
    assert 'Job not found' in capsys.readouterr().out


def test_cli_missing_snapshot(tmp_path, capsys):
    assert main([str(tmp_path / 'nothing.json')]) == 1
    assert 'not found' in capsys.readouterr().out


def test_cli_query_prefers_job_name_over_id(tmp_path):
    # Job "1" has id 0; job "NEXT" has id 1
    snapshot = tmp_path / 'snapshot.json'
    snapshot.write_text(json.dumps({
        'folders': [{'folder_name': 'F1'}],
        'jobs': [
            {'job_name': '1', 'folder_name': 'F1', 'out_conditions': ['ONE-OK']},
            {'job_name': 'NEXT', 'folder_name': 'F1', 'in_conditions': ['ONE-OK']},
        ],
    }), encoding='utf-8')
    output = tmp_path / 'query.json'

    assert main([str(snapshot), '--query', '1', '-o', str(output)]) == 0
    assert json.loads(output.read_text(encoding='utf-8'))['nodes'][0]['job_name'] == '1'

    assert main([str(snapshot), '--query', '0', '-o', str(output)]) == 0
    assert json.loads(output.read_text(encoding='utf-8'))['nodes'][0]['job_name'] == '1'

    assert main([str(snapshot), '--query', '7']) == 1
