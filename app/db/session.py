from sqlmodel import SQLModel, create_engine, Session
from app.core.config import settings

# Global tunnel and engine instances
_tunnel = None
_engine = None


def _database_url() -> str:
    global _tunnel

    if settings.USE_SSH:
        from sshtunnel import SSHTunnelForwarder

        # Forward a local port to the remote MySQL server through the bastion
        if _tunnel is None:
            _tunnel = SSHTunnelForwarder(
                (settings.SSH_HOST, 22),
                ssh_username=settings.SSH_USER,
                ssh_password=settings.SSH_PASSWORD,
                remote_bind_address=(settings.DB_HOST, 3306),
                set_keepalive=60  # Send keepalive packets every 60 seconds
            )
            _tunnel.start()
        return (
            f"mysql+pymysql://{settings.DB_USER}:{settings.DB_PASSWORD}"
            f"@127.0.0.1:{_tunnel.local_bind_port}/{settings.DB_NAME}"
        )

    if settings.DATABASE_URL:
        return settings.DATABASE_URL

    if settings.DB_HOST and settings.DB_NAME:
        return (
            f"mysql+pymysql://{settings.DB_USER}:{settings.DB_PASSWORD}"
            f"@{settings.DB_HOST}/{settings.DB_NAME}"
        )

    return "sqlite:///./workforce.db"


def get_engine():
    global _engine

    if _engine is not None:
        return _engine

    db_url = _database_url()

    # SQLite fix for multithreading
    connect_args = {"check_same_thread": False} if db_url.startswith("sqlite") else {}

    _engine = create_engine(db_url, connect_args=connect_args, pool_pre_ping=True)
    return _engine


engine = get_engine()


def init_db(bind=None) -> None:
    """Create every table registered on SQLModel.metadata."""
    import app.models  # noqa: F401  (registers the table models)

    SQLModel.metadata.create_all(bind or engine)


def get_db():
    with Session(engine) as session:
        yield session
