"""Database configuration and initialization."""
import logging

from sqlalchemy import BigInteger, Integer, create_engine, event, text
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base

logger = logging.getLogger(__name__)

# Create SQLAlchemy base
Base = declarative_base()

# SQLite only autoincrements INTEGER PRIMARY KEY columns. Tables using it also
# set sqlite_autoincrement: ledger rows and order lines keep plain product ids,
# so ids of deleted rows must never be handed out again.
BigIntegerPK = BigInteger().with_variant(Integer, 'sqlite')

# Global session and engine
engine = None
db_session = None


def _configure_sqlite(sqlite_engine):
    """
    SQLite ignores SELECT ... FOR UPDATE, so every transaction is opened
    with BEGIN IMMEDIATE. Writers are serialized database-wide.
    """

    @event.listens_for(sqlite_engine, 'connect')
    def on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself instead of pysqlite
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute('PRAGMA foreign_keys=ON')
        cursor.close()

    @event.listens_for(sqlite_engine, 'begin')
    def on_begin(conn):
        conn.exec_driver_sql('BEGIN IMMEDIATE')


def build_engine(database_uri, echo=False, pool_size=10, max_overflow=20, sqlite_timeout=30.0):
    """Create an engine for the given URI with dialect-specific setup."""
    if database_uri.startswith('sqlite'):
        new_engine = create_engine(
            database_uri,
            echo=echo,
            connect_args={'check_same_thread': False, 'timeout': sqlite_timeout},
        )
        _configure_sqlite(new_engine)
        return new_engine

    return create_engine(
        database_uri,
        echo=echo,
        pool_pre_ping=True,  # Enable connection health checks
        pool_size=pool_size,
        max_overflow=max_overflow
    )


def init_db(app):
    """Initialize database connection."""
    global engine, db_session

    engine = build_engine(
        app.config['SQLALCHEMY_DATABASE_URI'],
        echo=app.config.get('SQLALCHEMY_ECHO', False),
        pool_size=app.config.get('DB_POOL_SIZE', 10),
        max_overflow=app.config.get('DB_MAX_OVERFLOW', 20),
        sqlite_timeout=app.config.get('SQLITE_BUSY_TIMEOUT', 30.0),
    )

    db_session = scoped_session(
        sessionmaker(autocommit=False, autoflush=False, bind=engine)
    )

    Base.query = db_session.query_property()

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            db_session.rollback()
        db_session.remove()


def create_all():
    """Create every table known to the models package."""
    import stockorders.models  # noqa: F401 - registers mappers on Base
    Base.metadata.create_all(bind=engine)
    logger.info(f"Schema created on {engine.url.render_as_string(hide_password=True)}")


def drop_all():
    """Drop every table known to the models package."""
    import stockorders.models  # noqa: F401
    Base.metadata.drop_all(bind=engine)


def get_session():
    """Get database session."""
    return db_session


def is_postgres(session):
    """True when the session is bound to a PostgreSQL database."""
    return session.get_bind().dialect.name == 'postgresql'


def apply_lock_timeout(session, timeout_ms):
    """Bound how long the current transaction waits on row locks (Postgres only)."""
    if timeout_ms and is_postgres(session):
        session.execute(text(f"SET LOCAL lock_timeout = {int(timeout_ms)}"))
