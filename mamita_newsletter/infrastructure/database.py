"""Document store backed by SQLAlchemy for the daily menu newsletter."""

import uuid
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Protocol

from sqlalchemy import Boolean, Column, DateTime, JSON, String
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import select

from mamita_newsletter.infrastructure.config import ApplicationConfig
from mamita_newsletter.models.menu import Outlet

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class User(Base):
    """Registered customer account with per-outlet newsletter flags."""

    __tablename__ = "users"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    newsletter_mamita = Column(Boolean, default=False, nullable=False)
    newsletter_boutique_cafe = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=_utcnow, nullable=False)

    def __repr__(self):
        return f"<User(id={self.id}, email={self.email})>"


class SettingsDocument(Base):
    """A settings document stored as JSON under a fixed id."""

    __tablename__ = "settings"

    id = Column(String(255), primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)


# Document field names as stored by the website, mapped to user columns
USER_FLAG_COLUMNS = {
    "newsletterMamita": User.newsletter_mamita,
    "newsletterBoutiqueCafe": User.newsletter_boutique_cafe,
}


class DocumentStore(Protocol):
    """Narrow repository interface used by the newsletter pipeline."""

    async def get_settings_document(self, doc_id: str) -> Optional[Dict[str, Any]]:
        ...

    async def save_settings_document(
        self, doc_id: str, data: Dict[str, Any], merge: bool = False
    ) -> None:
        ...

    async def query_user_emails(self, field: str, value: Any) -> List[str]:
        ...


class Database:
    """Database manager with async support."""

    def __init__(self, database_url: str):
        self.database_url = database_url
        self.engine = create_async_engine(
            database_url,
            echo=False,  # Set to True for SQL debugging
            pool_pre_ping=True,
        )
        self.session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    async def init_tables(self) -> None:
        """Initialize database tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Close database connections."""
        await self.engine.dispose()

    def get_session(self) -> AsyncSession:
        """Get database session."""
        return self.session_factory()

    # Settings documents
    async def get_settings_document(self, doc_id: str) -> Optional[Dict[str, Any]]:
        """Return the document data, or None when it does not exist."""
        async with self.get_session() as session:
            document = await session.get(SettingsDocument, doc_id)
            return dict(document.data) if document else None

    async def save_settings_document(
        self, doc_id: str, data: Dict[str, Any], merge: bool = False
    ) -> None:
        """Write a settings document.

        With ``merge`` the top-level keys of ``data`` are applied over the
        stored document; otherwise the document is replaced.
        """
        async with self.get_session() as session:
            document = await session.get(SettingsDocument, doc_id)
            if document is None:
                session.add(SettingsDocument(id=doc_id, data=dict(data)))
            elif merge:
                document.data = {**document.data, **data}
            else:
                document.data = dict(data)
            await session.commit()

    # User operations
    async def query_user_emails(self, field: str, value: Any) -> List[str]:
        """Emails of users whose flag ``field`` equals ``value``."""
        column = USER_FLAG_COLUMNS.get(field)
        if column is None:
            raise ValueError(f"Unknown user field: {field}")

        async with self.get_session() as session:
            result = await session.execute(
                select(User.email).where(column == value).order_by(User.created_at)
            )
            return list(result.scalars().all())

    async def create_user(
        self,
        email: str,
        name: Optional[str] = None,
        subscriptions: Optional[List[Outlet]] = None,
    ) -> User:
        """Create a new user."""
        subscriptions = subscriptions or []
        async with self.get_session() as session:
            user = User(
                email=email,
                name=name,
                newsletter_mamita=Outlet.MAMITA in subscriptions,
                newsletter_boutique_cafe=Outlet.BOUTIQUE_CAFE in subscriptions,
            )
            session.add(user)
            await session.commit()
            await session.refresh(user)
            return user

    async def get_user_by_email(self, email: str) -> Optional[User]:
        """Get user by email."""
        async with self.get_session() as session:
            result = await session.execute(select(User).where(User.email == email))
            return result.scalar_one_or_none()

    async def list_users(self) -> List[User]:
        async with self.get_session() as session:
            result = await session.execute(select(User).order_by(User.email))
            return list(result.scalars().all())

    async def set_user_subscription(self, email: str, outlet: Outlet, subscribed: bool) -> bool:
        """Toggle a user's newsletter flag. Returns False if the user is unknown."""
        column = USER_FLAG_COLUMNS[outlet.profile.subscription_field]
        async with self.get_session() as session:
            result = await session.execute(select(User).where(User.email == email))
            user = result.scalar_one_or_none()
            if user is None:
                return False
            setattr(user, column.key, subscribed)
            await session.commit()
            return True


async def init_database(config: ApplicationConfig) -> Database:
    """Initialize database with configuration."""
    db = Database(config.async_database_url)
    await db.init_tables()
    return db
