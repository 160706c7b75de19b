"""
Prediction Module

Migration priority, effort, risk and Airflow mapping for Control-M jobs.
"""

from .migration_predictor import (
    AirflowMapping,
    BatchPredictionReport,
    MigrationPrediction,
    MigrationPredictor,
    MigrationRisk,
)

__all__ = [
    'AirflowMapping',
    'BatchPredictionReport',
    'MigrationPrediction',
    'MigrationPredictor',
    'MigrationRisk',
]
