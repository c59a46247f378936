# database/config.py
"""Database configuration for different environments."""

import os
from typing import Dict, Any

from sqlalchemy.pool import StaticPool


class DatabaseConfig:
    """Database configuration manager."""

    @staticmethod
    def get_database_url(environment: str = 'development') -> str:
        """Get database URL for specified environment."""

        configs = {
            'development': {
                'url': os.getenv('TABFLOW_DEV_DATABASE_URL', 'sqlite:///tabflow_dev.db')
            },
            'production': {
                'url': os.getenv('TABFLOW_DATABASE_URL', 'sqlite:///tabflow.db')
            },
            'testing': {
                'url': os.getenv('TABFLOW_TEST_DATABASE_URL', 'sqlite://')
            }
        }

        return configs.get(environment, configs['development'])['url']

    @staticmethod
    def is_memory_url(database_url: str) -> bool:
        return database_url in ('sqlite://', 'sqlite:///:memory:')

    @staticmethod
    def get_engine_kwargs(database_url: str) -> Dict[str, Any]:
        """Get SQLAlchemy engine configuration."""

        base_config = {
            'echo': os.getenv('TABFLOW_SQL_DEBUG', 'false').lower() == 'true',
        }

        # For SQLite, share the connection across the classification workers
        if database_url.startswith('sqlite'):
            base_config['connect_args'] = {
                'check_same_thread': False,
                'timeout': 20
            }
            if DatabaseConfig.is_memory_url(database_url):
                # a single connection keeps the in-memory database alive
                base_config['poolclass'] = StaticPool
        else:
            base_config['pool_pre_ping'] = True

        return base_config
