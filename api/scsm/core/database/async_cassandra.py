"""Async Cassandra connection using cassandra-asyncio-driver.

Provides:
- Cluster/session lifecycle
- Session with aexecute() for non-blocking queries
- Keyspace and enrollment table initialization
"""

from cassandra.auth import PlainTextAuthProvider
from cassandra.policies import DCAwareRoundRobinPolicy, TokenAwarePolicy
from cassandra_asyncio.cluster import Cluster

from scsm.config.settings import Settings
from scsm.core.logging import get_logger
from scsm.enrollments.models import get_enrollments_tables_cql


logger = get_logger(__name__)


class AsyncCassandraConnection:
    """Async Cassandra connection manager (one cluster per process)."""

    _cluster: Cluster | None = None
    _session = None  # Session type from cassandra_asyncio

    @classmethod
    def connect(cls, settings: Settings):
        """Establish connection to the Cassandra cluster.

        Connecting is synchronous; queries run through aexecute().

        Raises:
            ConnectionError: If connection fails
        """
        if cls._session is not None:
            return cls._session

        auth_provider = None
        if settings.cassandra_username and settings.cassandra_password:
            auth_provider = PlainTextAuthProvider(
                username=settings.cassandra_username,
                password=settings.cassandra_password,
            )

        cls._cluster = Cluster(
            contact_points=settings.cassandra_hosts,
            port=settings.cassandra_port,
            auth_provider=auth_provider,
            protocol_version=settings.cassandra_protocol_version,
            load_balancing_policy=TokenAwarePolicy(DCAwareRoundRobinPolicy()),
            connect_timeout=settings.cassandra_connect_timeout,
        )

        try:
            session = cls._cluster.connect()
        except Exception as e:
            logger.error("cassandra_connection_failed", error=str(e))
            cls._cluster.shutdown()
            cls._cluster = None
            raise ConnectionError(f"Failed to connect to Cassandra: {e}") from e

        session.default_timeout = settings.cassandra_request_timeout
        cls._session = session
        logger.info(
            "cassandra_connected",
            hosts=settings.cassandra_hosts,
            port=settings.cassandra_port,
        )
        return session

    @classmethod
    def disconnect(cls) -> None:
        """Close the session and the cluster."""
        if cls._session is not None:
            cls._session.shutdown()
            cls._session = None

        if cls._cluster is not None:
            cls._cluster.shutdown()
            cls._cluster = None
            logger.info("cassandra_disconnected")

    @classmethod
    def is_connected(cls) -> bool:
        """Check if connection is active."""
        return cls._session is not None and not cls._session.is_shutdown


async def init_keyspace(session, keyspace: str, production: bool = False) -> None:
    """Create keyspace if not exists."""
    if production:
        replication = "'class': 'NetworkTopologyStrategy', 'datacenter1': 3"
    else:
        replication = "'class': 'SimpleStrategy', 'replication_factor': 1"

    await session.aexecute(
        f"CREATE KEYSPACE IF NOT EXISTS {keyspace} "
        f"WITH replication = {{{replication}}} AND durable_writes = true"
    )
    logger.info("keyspace_ready", keyspace=keyspace)


async def init_enrollments_tables(session, keyspace: str) -> None:
    """Create student and lookup tables."""
    for cql in get_enrollments_tables_cql(keyspace):
        await session.aexecute(cql)
    logger.info("enrollments_tables_ready", keyspace=keyspace)


async def init_async_cassandra(settings: Settings):
    """Connect and make sure keyspace and tables exist.

    Returns:
        Cassandra session with aexecute() support
    """
    session = AsyncCassandraConnection.connect(settings)

    await init_keyspace(session, settings.cassandra_keyspace, settings.is_production)
    session.set_keyspace(settings.cassandra_keyspace)
    await init_enrollments_tables(session, settings.cassandra_keyspace)

    logger.info("cassandra_initialized", keyspace=settings.cassandra_keyspace)
    return session


async def shutdown_async_cassandra() -> None:
    """Shutdown the Cassandra connection."""
    AsyncCassandraConnection.disconnect()
