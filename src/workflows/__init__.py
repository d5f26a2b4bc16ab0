"""
Workflows module - orchestration of one aggregation run.
"""
from workflows.aggregation import AggregationEngine, create_engine_from_config

__all__ = [
    "AggregationEngine",
    "create_engine_from_config",
]
