"""Database configuration and initialization."""
from sqlalchemy import create_engine, text, BigInteger, Integer
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

# Create SQLAlchemy base
Base = declarative_base()

# SQLite only autoincrements INTEGER primary keys
BigIntPK = BigInteger().with_variant(Integer, 'sqlite')

# Global session and engine
engine = None
db_session = None


def _engine_options(app, database_uri):
    """Pool options per backend (SQLite has no connection pool sizing)."""
    options = {'echo': app.config.get('SQLALCHEMY_ECHO', False)}
    if database_uri.startswith('sqlite'):
        options['connect_args'] = {'check_same_thread': False}
        if ':memory:' in database_uri or database_uri.rstrip('/') == 'sqlite:':
            # Share the single in-memory database across sessions
            options['poolclass'] = StaticPool
    else:
        options.update(
            pool_pre_ping=True,  # Enable connection health checks
            pool_size=10,
            max_overflow=20
        )
    return options


def init_db(app):
    """Initialize database connection."""
    global engine, db_session

    database_uri = app.config['SQLALCHEMY_DATABASE_URI']
    engine = create_engine(database_uri, **_engine_options(app, database_uri))

    if db_session is None:
        db_session = scoped_session(
            sessionmaker(autocommit=False, autoflush=False, bind=engine)
        )
    else:
        db_session.remove()
        db_session.configure(bind=engine)

    Base.query = db_session.query_property()

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        if exception:
            db_session.rollback()
        db_session.remove()


def init_schema():
    """Create all tables for the registered models."""
    import app.models  # noqa: F401  (registers mappers on Base.metadata)
    Base.metadata.create_all(bind=engine)


def drop_schema():
    """Drop all tables (tests and local resets only)."""
    Base.metadata.drop_all(bind=engine)


def ping():
    """Return True if the database answers a trivial query."""
    row = db_session.execute(text("SELECT 1 as health_check")).fetchone()
    return bool(row and row[0] == 1)


def get_session():
    """Get database session."""
    return db_session
