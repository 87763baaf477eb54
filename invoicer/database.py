"""Database configuration and initialization."""
from sqlalchemy import create_engine, event
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# Create SQLAlchemy base
Base = declarative_base()

# Global session and engine
engine = None
db_session = None


def _engine_options(database_uri: str, echo: bool) -> dict:
    """Build create_engine() keyword arguments for the configured backend."""
    options = {'echo': echo, 'pool_pre_ping': True}

    if database_uri.startswith('sqlite'):
        options['connect_args'] = {'check_same_thread': False}
        if database_uri in ('sqlite://', 'sqlite:///:memory:'):
            # One shared in-memory database for every session
            options['poolclass'] = StaticPool
    else:
        options['pool_size'] = 10
        options['max_overflow'] = 20

    return options


def init_db(app):
    """Initialize database connection and create missing tables."""
    global engine, db_session

    database_uri = app.config['SQLALCHEMY_DATABASE_URI']
    engine = create_engine(
        database_uri,
        **_engine_options(database_uri, app.config.get('SQLALCHEMY_ECHO', False))
    )

    if engine.dialect.name == 'sqlite':
        @event.listens_for(engine, 'connect')
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute('PRAGMA foreign_keys=ON')
            cursor.close()

    db_session = scoped_session(
        sessionmaker(autocommit=False, autoflush=False, bind=engine)
    )

    Base.query = db_session.query_property()

    init_schema()

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            db_session.rollback()
        db_session.remove()


def init_schema():
    """Create all tables that do not exist yet."""
    import invoicer.models  # noqa: F401  (registers every model on Base.metadata)
    Base.metadata.create_all(bind=engine)


def drop_schema():
    """Drop every table (used by the test suite)."""
    Base.metadata.drop_all(bind=engine)


def get_session():
    """Get database session."""
    return db_session
