"""Relational schema management for SQL-backed providers.

The memory provider needs no schema; SQLite and PostgreSQL providers get
their tables created from the models Protean derives for each aggregate,
entity and projection.
"""

import structlog
from protean.domain import Domain
from sqlalchemy import create_engine

logger = structlog.get_logger(__name__)

_SQL_PROVIDERS = ("sqlite", "postgresql")


def _register_models(domain: Domain, provider_name: str) -> None:
    # Accessing a repository's DAO registers its model with SQLAlchemy metadata
    records = [
        *domain.registry.aggregates.values(),
        *domain.registry.entities.values(),
        *domain.registry.projections.values(),
    ]
    for record in records:
        if record.cls.meta_.provider == provider_name:
            domain.repository_for(record.cls)._dao  # noqa: B018


def sql_providers(domain: Domain) -> list:
    """Providers of ``domain`` that are backed by a relational database."""
    return [provider for provider in domain.providers.values() if provider.conn_info["provider"] in _SQL_PROVIDERS]


def setup_db(domain: Domain) -> int:
    """Create tables for every SQL provider. Returns how many were set up."""
    with domain.domain_context():
        providers = sql_providers(domain)
        for provider in providers:
            _register_models(domain, provider.name)
            engine = create_engine(provider.conn_info["database_uri"])
            provider._metadata.create_all(engine)
            logger.info("db.schema_created", provider=provider.name)
        return len(providers)


def drop_db(domain: Domain) -> int:
    """Drop tables for every SQL provider. Returns how many were dropped."""
    with domain.domain_context():
        providers = sql_providers(domain)
        for provider in providers:
            _register_models(domain, provider.name)
            engine = create_engine(provider.conn_info["database_uri"])
            provider._metadata.drop_all(engine)
            logger.info("db.schema_dropped", provider=provider.name)
        return len(providers)
