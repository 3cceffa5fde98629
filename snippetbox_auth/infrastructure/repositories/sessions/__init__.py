from .sqlalchemy_session_store import SessionSweeper, SqlAlchemySessionStore

__all__ = ["SessionSweeper", "SqlAlchemySessionStore"]
