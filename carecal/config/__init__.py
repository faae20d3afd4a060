"""
carecal config: load from env.

Load from env: load_postgres_config(), load_scheduling_config().
"""
from carecal.config.postgres import PostgresConfig, load_postgres_config
from carecal.config.scheduling import SchedulingConfig, load_scheduling_config

__all__ = [
    "PostgresConfig",
    "load_postgres_config",
    "SchedulingConfig",
    "load_scheduling_config",
]
