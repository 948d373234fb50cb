from protean.domain import Domain
from sqlalchemy import create_engine

_SQL_PROVIDERS = ("sqlite", "postgresql")


def _sql_providers(domain: Domain):
    for _, provider in domain.providers.items():
        if provider.conn_info["provider"] in _SQL_PROVIDERS:
            yield provider


def setup_db(domain: Domain) -> bool:
    """Create tables for every aggregate and entity stored in a SQL provider.

    Returns False when the domain runs entirely on non-SQL providers (the
    in-memory default), in which case there is nothing to create.
    """
    created = False
    with domain.domain_context():
        for provider in _sql_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])

            for _, aggregate_record in domain.registry.aggregates.items():
                if aggregate_record.cls.meta_.provider == provider.name:
                    domain.repository_for(aggregate_record.cls)._dao  # noqa: B018

            for _, entity_record in domain.registry.entities.items():
                if entity_record.cls.meta_.provider == provider.name:
                    domain.repository_for(entity_record.cls)._dao  # noqa: B018

            provider._metadata.create_all(engine)
            created = True
    return created


def drop_db(domain: Domain) -> bool:
    """Drop the SQL schema created by `setup_db`."""
    dropped = False
    with domain.domain_context():
        for provider in _sql_providers(domain):
            engine = create_engine(provider.conn_info["database_uri"])
            provider._metadata.drop_all(engine)
            dropped = True
    return dropped


def fetch_all(queryset, batch_size: int = 100) -> list:
    """Every record matching `queryset`.

    protean caps an unbounded query at the aggregate's default limit, so the
    records are read page by page in a stable `id` order.
    """
    records = []
    offset = 0
    while True:
        items = queryset.order_by("id").offset(offset).limit(batch_size).all().items
        records.extend(items)
        if len(items) < batch_size:
            return records
        offset += batch_size
