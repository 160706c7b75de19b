"""
Tests for complexity scoring and migration prediction.
"""

from controlm_analysis.analysis.complexity import ComplexityScorer, Difficulty
from controlm_analysis.prediction.migration_predictor import MigrationPredictor, MigrationRisk
from controlm_analysis.records.assembler import JobProfile
from controlm_analysis.records.models import (
    Condition,
    ConditionDirection,
    ControlResource,
    DoAction,
    Job,
    OnCondition,
    QuantitativeResource,
    SchedulingInfo,
    Variable,
    VariableKind,
)


def _profile(job_id=0, critical=False, cyclic=False, ins=0, outs=0, control=0, quantitative=0,
             variables=0, auto_edits=0, on_conditions=(), scheduling=None, name='JOB'):
    job = Job(job_name=name, folder_name='F1', critical=critical, cyclic=cyclic,
              scheduling=scheduling or SchedulingInfo())
    return JobProfile(
        job_id=job_id,
        job=job,
        in_conditions=tuple(Condition(name, 'F1', f'IN{i}', ConditionDirection.IN) for i in range(ins)),
        out_conditions=tuple(Condition(name, 'F1', f'OUT{i}', ConditionDirection.OUT) for i in range(outs)),
        control_resources=tuple(ControlResource(name, 'F1', f'CR{i}') for i in range(control)),
        quantitative_resources=tuple(QuantitativeResource(name, 'F1', f'QR{i}') for i in range(quantitative)),
        variables=tuple(Variable(name, 'F1', f'%%V{i}') for i in range(variables)),
        auto_edits=tuple(Variable(name, 'F1', f'%%A{i}', kind=VariableKind.AUTO_EDIT) for i in range(auto_edits)),
        on_conditions=tuple(
            OnCondition(name, 'F1', stmt='*', code='NOTOK', actions=tuple(DoAction('DOMAIL') for _ in range(n)))
            for n in on_conditions
        ),
    )


def test_empty_job_scores_zero():
    result = ComplexityScorer().score_job(_profile(), dependency_depth=0)
    assert result.score == 0
    assert result.difficulty == Difficulty.EASY


def test_heavy_cyclic_job_is_hard():
    result = ComplexityScorer().score_job(_profile(ins=20, control=2, cyclic=True), dependency_depth=3)
    # 3*22 + 5*3 + 2*20 + 15 + 3*2
    assert result.score == 142
    assert result.difficulty == Difficulty.HARD
    assert result.components['dependencies'] == 66
    assert result.components['resources'] == 6


def test_every_component_is_weighted():
    scheduling = SchedulingInfo(days_calendar='WORKDAYS', time_from='0800', time_to='1000',
                                days='1,15', months=('JAN',), weekdays='1,2', shift='+1')
    profile = _profile(ins=1, outs=2, control=1, quantitative=2, variables=3, auto_edits=1,
                       on_conditions=(2, 0), scheduling=scheduling)
    result = ComplexityScorer().score_job(profile, dependency_depth=1)

    assert profile.scheduling_feature_count == 6
    assert result.components == {
        'dependencies': 3 * 2,
        'depth': 5,
        'conditions': 2 * 3,
        'variables': 4,
        'on_conditions': (4 + 2) + (4 + 0),
        'cyclic': 0,
        'resources': 3 * 3,
        'scheduling': 12,
    }
    assert result.score == 6 + 5 + 6 + 4 + 10 + 0 + 9 + 12


def test_time_window_needs_both_ends():
    assert SchedulingInfo(time_from='0800').feature_count() == 0
    assert SchedulingInfo(weeks_calendar='W', conf_calendar='C').feature_count() == 1


def test_difficulty_boundaries():
    assert Difficulty.from_score(30) == Difficulty.EASY
    assert Difficulty.from_score(31) == Difficulty.MEDIUM
    assert Difficulty.from_score(60) == Difficulty.MEDIUM
    assert Difficulty.from_score(61) == Difficulty.HARD


def test_score_all_matches_sequential_scoring():
    profiles = [_profile(job_id=i, ins=i % 7, outs=i % 3, cyclic=i % 11 == 0) for i in range(200)]
    depths = [i % 5 for i in range(200)]

    sequential = ComplexityScorer(max_workers=1).score_all(profiles, depths)
    parallel = ComplexityScorer(max_workers=6).score_all(profiles, depths)
    assert sequential == parallel
    assert [r.job_id for r in parallel] == list(range(200))


def test_complexity_report():
    scorer = ComplexityScorer()
    results = [
        scorer.score_job(_profile(job_id=0), 0),
        scorer.score_job(_profile(job_id=1, ins=20, control=2, cyclic=True), 3),
    ]
    report = scorer.generate_complexity_report(results)

    assert report['total_jobs'] == 2
    assert report['avg_complexity'] == 71.0
    assert report['max_complexity'] == 142
    assert report['difficulty_distribution'] == {'easy': 1, 'medium': 0, 'hard': 1}
    assert scorer.generate_complexity_report([])['avg_complexity'] == 0


def test_priority_and_effort():
    scorer = ComplexityScorer()
    predictor = MigrationPredictor()

    easy_critical = _profile(critical=True, ins=2)
    prediction = predictor.predict(scorer.score_job(easy_critical, 0), easy_critical)
    assert prediction.priority == 100 + 50 - 2 * 2
    assert prediction.estimated_hours == 4

    hard = _profile(ins=20, control=2, cyclic=True)
    prediction = predictor.predict(scorer.score_job(hard, 3), hard)
    assert prediction.priority == 1
    assert prediction.estimated_hours == 16
    assert prediction.airflow_mapping.operator_type == "PythonOperator"


def test_risks():
    scorer = ComplexityScorer()
    predictor = MigrationPredictor()

    plain = _profile(name='Daily_Load')
    prediction = predictor.predict(scorer.score_job(plain, 0), plain)
    assert prediction.risk_factors == ["Low risk migration"]
    assert prediction.risk_level == MigrationRisk.LOW
    assert prediction.airflow_mapping.suggested_dag_name == 'daily_load'
    assert prediction.airflow_mapping.operator_type == "BashOperator"

    busy = _profile(ins=6, critical=True)
    prediction = predictor.predict(scorer.score_job(busy, 0), busy, in_cycle=True, unresolved_count=2)
    assert len(prediction.risk_factors) == 4
    assert any('dependencies' in r for r in prediction.risk_factors)
    assert any('Circular dependency' in r for r in prediction.risk_factors)
    assert any('Unresolved upstream conditions (2)' in r for r in prediction.risk_factors)
    assert prediction.risk_level == MigrationRisk.CRITICAL


def test_predict_batch_report():
    scorer = ComplexityScorer()
    profiles = [_profile(job_id=0, name='A'), _profile(job_id=1, name='B', critical=True, cyclic=True)]
    complexities = [scorer.score_job(p, 0) for p in profiles]

    predictions, report = MigrationPredictor().predict_batch(profiles, complexities, [False, False], [0, 0])

    assert [p.job_name for p in predictions] == ['A', 'B']
    assert report.total_jobs == 2
    assert report.total_estimated_hours == 4 + 4
    assert report.high_risk_jobs == ['B']
    assert "Low risk migration" not in report.common_risks
