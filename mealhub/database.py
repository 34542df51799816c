"""Database configuration and initialization."""
import logging

from flask import current_app
from sqlalchemy import create_engine, BigInteger, Integer
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import scoped_session, sessionmaker, declarative_base
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Create SQLAlchemy base
Base = declarative_base()

# SQLite only autoincrements INTEGER PRIMARY KEY columns
BigIntId = BigInteger().with_variant(Integer, 'sqlite')


class Database:
    """
    Storage handle owned by the application.

    Created once by the app factory, it holds the engine and a scoped
    session registry. Sessions are released on app-context teardown and the
    engine is disposed on shutdown.
    """

    def __init__(self, database_uri, echo=False, pool_size=10, max_overflow=20):
        if database_uri.startswith('sqlite'):
            # In-memory SQLite must share one connection across sessions
            self.engine = create_engine(
                database_uri,
                echo=echo,
                connect_args={'check_same_thread': False},
                poolclass=StaticPool
            )
        else:
            self.engine = create_engine(
                database_uri,
                echo=echo,
                pool_pre_ping=True,  # Enable connection health checks
                pool_size=pool_size,
                max_overflow=max_overflow
            )

        self.session = scoped_session(
            sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        )

    def create_all(self):
        """Create every table known to the models package."""
        import mealhub.models  # noqa: F401
        Base.metadata.create_all(self.engine)

    def drop_all(self):
        Base.metadata.drop_all(self.engine)

    def remove_session(self, exception=None):
        """Close the current session, rolling back on error."""
        if exception:
            self.session.rollback()
        self.session.remove()

    def dispose(self):
        """Release every pooled connection."""
        self.session.remove()
        self.engine.dispose()
        logger.info("Database engine disposed")


def init_db(app):
    """Initialize database connection for the app."""
    database = Database(
        app.config['SQLALCHEMY_DATABASE_URI'],
        echo=app.config.get('SQLALCHEMY_ECHO', False),
        pool_size=app.config.get('SQLALCHEMY_POOL_SIZE', 10),
        max_overflow=app.config.get('SQLALCHEMY_MAX_OVERFLOW', 20)
    )
    app.extensions['database'] = database

    # Register teardown
    @app.teardown_appcontext
    def shutdown_session(exception=None):
        """Close database session and rollback on error."""
        database.remove_session(exception)

    return database


def get_database() -> Database:
    """Get the storage handle bound to the current app."""
    return current_app.extensions['database']


def get_session():
    """Get database session."""
    return get_database().session


def commit_session(session, action='saving'):
    """
    Commit, turning driver failures into a retryable StorageError.
    """
    from mealhub.exceptions import StorageError

    try:
        session.commit()
    except SQLAlchemyError as e:
        session.rollback()
        logger.error(f"Commit failed while {action}: {e}", exc_info=True)
        raise StorageError(f'Server error while {action}')
