from protean.domain import Domain
from sqlalchemy import create_engine

_SQL_PROVIDERS = ("sqlite", "postgresql")


def _register_tables(domain: Domain, provider) -> None:
    # Touching ``_dao`` makes Protean build the SQLAlchemy model for each
    # aggregate and entity, registering its table on the provider metadata.
    for _, record in domain.registry.aggregates.items():
        if record.cls.meta_.provider == provider.name:
            domain.repository_for(record.cls)._dao  # noqa: B018

    for _, record in domain.registry.entities.items():
        if record.cls.meta_.provider == provider.name:
            domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain) -> list[str]:
    """Create tables for every SQL-backed provider. Returns the provider names touched."""
    touched = []
    with domain.domain_context():
        for name, provider in domain.providers.items():
            if provider.conn_info["provider"] not in _SQL_PROVIDERS:
                continue
            engine = create_engine(provider.conn_info["database_uri"])
            _register_tables(domain, provider)
            provider._metadata.create_all(engine)
            touched.append(name)
    return touched


def drop_db(domain: Domain) -> list[str]:
    """Drop tables for every SQL-backed provider."""
    touched = []
    with domain.domain_context():
        for name, provider in domain.providers.items():
            if provider.conn_info["provider"] not in _SQL_PROVIDERS:
                continue
            engine = create_engine(provider.conn_info["database_uri"])
            _register_tables(domain, provider)
            provider._metadata.drop_all(engine)
            touched.append(name)
    return touched
