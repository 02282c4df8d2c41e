from protean.domain import Domain
from sqlalchemy import create_engine

_RDBMS_PROVIDERS = ("sqlite", "postgresql")


def _register_models(domain: Domain, provider_name: str) -> None:
    # Accessing a repository's _dao registers its model with SQLAlchemy's metadata
    records = (
        list(domain.registry.aggregates.values())
        + list(domain.registry.entities.values())
        + list(domain.registry.projections.values())
    )
    for record in records:
        if record.cls.meta_.provider == provider_name:
            domain.repository_for(record.cls)._dao  # noqa: B018


def setup_db(domain: Domain):
    """Create the RDBMS tables of every SQL provider configured for ``domain``."""
    with domain.domain_context():
        for name, provider in domain.providers.items():
            if provider.conn_info["provider"] in _RDBMS_PROVIDERS:
                engine = create_engine(provider.conn_info["database_uri"])
                _register_models(domain, name)
                provider._metadata.create_all(engine)


def drop_db(domain: Domain):
    """Drop the RDBMS tables of every SQL provider configured for ``domain``."""
    with domain.domain_context():
        for _, provider in domain.providers.items():
            if provider.conn_info["provider"] in _RDBMS_PROVIDERS:
                engine = create_engine(provider.conn_info["database_uri"])
                provider._metadata.drop_all(engine)
