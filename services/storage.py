"""
Record persistence for users, images and orders.

Two interchangeable backends implement one Repository contract:

    MemoryRepository    - dicts + per-entity counters, process lifetime
    DatabaseRepository  - SQLAlchemy tables with autoincrement keys

Contract (identical for both):
    create_x(data) -> record with a new, strictly increasing id
    get_x(id)      -> record or None
    list_x()       -> all records ordered by id

There is no update and no delete. Records are append-only.

Thread Safety:
    - MemoryRepository assigns ids and inserts under one threading.Lock,
      so concurrent creates never collide
    - DatabaseRepository delegates id assignment to the database and
      uses one short session per call

Usage:
    repository = create_repository(app.config)
    image = repository.create_image(ImageCreate(...))
    same = repository.get_image(image.id)
"""

from __future__ import annotations

import itertools
import threading
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy import JSON, Integer, String, Text, create_engine, select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker
from sqlalchemy.pool import StaticPool

from core.exceptions import StorageError, ValidationError
from models.records import ImageRecord, OrderRecord, User
from models.schemas import ImageCreate, OrderCreate, UserCreate
from logging_config import get_logger


# Module logger
logger = get_logger(__name__)


class Repository(ABC):
    """Persistence contract shared by every backend."""

    backend_name = "abstract"

    # Users
    @abstractmethod
    def create_user(self, data: UserCreate) -> User: ...

    @abstractmethod
    def get_user(self, user_id: int) -> Optional[User]: ...

    @abstractmethod
    def get_user_by_username(self, username: str) -> Optional[User]: ...

    # Images
    @abstractmethod
    def create_image(self, data: ImageCreate) -> ImageRecord: ...

    @abstractmethod
    def get_image(self, image_id: int) -> Optional[ImageRecord]: ...

    @abstractmethod
    def list_images(self) -> List[ImageRecord]: ...

    # Orders
    @abstractmethod
    def create_order(self, data: OrderCreate) -> OrderRecord: ...

    @abstractmethod
    def get_order(self, order_id: int) -> Optional[OrderRecord]: ...

    @abstractmethod
    def list_orders(self) -> List[OrderRecord]: ...

    def close(self) -> None:
        """Release backend resources. No-op by default."""


def _customer_info(data: OrderCreate) -> Dict[str, Any]:
    return data.customer_info.model_dump(by_alias=True, mode="json")


# =============================================================================
# IN-MEMORY BACKEND
# =============================================================================

class MemoryRepository(Repository):
    """
    Map-backed repository. All data is lost when the process exits.

    Each entity type has its own dict and its own counter starting at 1.
    """

    backend_name = "memory"

    def __init__(self):
        self._users: Dict[int, User] = {}
        self._images: Dict[int, ImageRecord] = {}
        self._orders: Dict[int, OrderRecord] = {}

        self._user_ids = itertools.count(1)
        self._image_ids = itertools.count(1)
        self._order_ids = itertools.count(1)

        self._lock = threading.Lock()

    # Users

    def create_user(self, data: UserCreate) -> User:
        with self._lock:
            if any(user.username == data.username for user in self._users.values()):
                raise ValidationError("Username already exists", field="username")
            user = User(
                id=next(self._user_ids),
                username=data.username,
                password=data.password,
            )
            self._users[user.id] = user
        logger.debug(f"Created user {user.id}")
        return user

    def get_user(self, user_id: int) -> Optional[User]:
        with self._lock:
            return self._users.get(user_id)

    def get_user_by_username(self, username: str) -> Optional[User]:
        with self._lock:
            for user in self._users.values():
                if user.username == username:
                    return user
        return None

    # Images

    def create_image(self, data: ImageCreate) -> ImageRecord:
        with self._lock:
            image = ImageRecord(
                id=next(self._image_ids),
                file_name=data.file_name,
                original_file_name=data.original_file_name,
                mime_type=data.mime_type,
                size_mb=data.size_mb,
                uploaded_at=data.uploaded_at,
            )
            self._images[image.id] = image
        logger.debug(f"Created image {image.id} ({image.file_name})")
        return image

    def get_image(self, image_id: int) -> Optional[ImageRecord]:
        with self._lock:
            return self._images.get(image_id)

    def list_images(self) -> List[ImageRecord]:
        with self._lock:
            return [self._images[key] for key in sorted(self._images)]

    # Orders

    def create_order(self, data: OrderCreate) -> OrderRecord:
        with self._lock:
            order = OrderRecord(
                id=next(self._order_ids),
                image_id=data.image_id,
                product_type=data.product_type,
                product_size=data.product_size,
                quantity=data.quantity,
                unit_price=data.unit_price,
                total_price=data.total_price,
                rotation=data.rotation,
                filter=data.filter,
                customer_info=_customer_info(data),
                ordered_at=data.ordered_at,
            )
            self._orders[order.id] = order
        logger.debug(f"Created order {order.id} for image {order.image_id}")
        return order

    def get_order(self, order_id: int) -> Optional[OrderRecord]:
        with self._lock:
            return self._orders.get(order_id)

    def list_orders(self) -> List[OrderRecord]:
        with self._lock:
            return [self._orders[key] for key in sorted(self._orders)]


# =============================================================================
# RELATIONAL BACKEND
# =============================================================================

class Base(DeclarativeBase):
    pass


class UserRow(Base):
    __tablename__ = "users"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    username: Mapped[str] = mapped_column(String(255), nullable=False, unique=True)
    password: Mapped[str] = mapped_column(Text, nullable=False)

    def to_record(self) -> User:
        return User(id=self.id, username=self.username, password=self.password)


class ImageRow(Base):
    __tablename__ = "images"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    file_name: Mapped[str] = mapped_column(Text, nullable=False)
    original_file_name: Mapped[str] = mapped_column(Text, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(32), nullable=False)
    # Decimal strings, so both backends return byte-identical values
    size_mb: Mapped[str] = mapped_column(String(64), nullable=False)
    uploaded_at: Mapped[str] = mapped_column(String(64), nullable=False)

    def to_record(self) -> ImageRecord:
        return ImageRecord(
            id=self.id,
            file_name=self.file_name,
            original_file_name=self.original_file_name,
            mime_type=self.mime_type,
            size_mb=self.size_mb,
            uploaded_at=self.uploaded_at,
        )


class OrderRow(Base):
    __tablename__ = "orders"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    image_id: Mapped[int] = mapped_column(Integer, nullable=False)
    product_type: Mapped[str] = mapped_column(String(32), nullable=False)
    product_size: Mapped[str] = mapped_column(String(32), nullable=False)
    quantity: Mapped[int] = mapped_column(Integer, nullable=False)
    unit_price: Mapped[str] = mapped_column(String(64), nullable=False)
    total_price: Mapped[str] = mapped_column(String(64), nullable=False)
    rotation: Mapped[int] = mapped_column(Integer, nullable=False)
    filter: Mapped[str] = mapped_column(String(64), nullable=False)
    customer_info: Mapped[Dict[str, Any]] = mapped_column(JSON, nullable=False)
    ordered_at: Mapped[str] = mapped_column(String(64), nullable=False)

    def to_record(self) -> OrderRecord:
        return OrderRecord(
            id=self.id,
            image_id=self.image_id,
            product_type=self.product_type,
            product_size=self.product_size,
            quantity=self.quantity,
            unit_price=self.unit_price,
            total_price=self.total_price,
            rotation=self.rotation,
            filter=self.filter,
            customer_info=dict(self.customer_info),
            ordered_at=self.ordered_at,
        )


class DatabaseRepository(Repository):
    """
    SQLAlchemy-backed repository. Survives restarts.

    Tables are created on construction if missing. Any SQLAlchemy URL
    works; SQLite is the default, PostgreSQL in production.
    """

    backend_name = "database"

    def __init__(self, database_url: str, echo: bool = False):
        engine_args: Dict[str, Any] = {"echo": echo}
        if database_url.startswith("sqlite"):
            # Flask serves requests from several threads
            engine_args["connect_args"] = {"check_same_thread": False}
            if database_url in ("sqlite://", "sqlite:///:memory:"):
                # One shared connection, or every checkout sees an empty database
                engine_args["poolclass"] = StaticPool

        self._engine = create_engine(database_url, **engine_args)
        self._sessions = sessionmaker(bind=self._engine, expire_on_commit=False)

        try:
            Base.metadata.create_all(self._engine)
        except SQLAlchemyError as e:
            raise StorageError("create_tables", str(e)) from e

        logger.info(f"Database repository ready ({self._engine.url.get_backend_name()})")

    def _insert(self, row: Base, operation: str):
        try:
            with self._sessions.begin() as session:
                session.add(row)
                session.flush()
                return row.to_record()
        except IntegrityError:
            raise
        except SQLAlchemyError as e:
            logger.error(f"{operation} failed: {e}", exc_info=True)
            raise StorageError(operation, str(e)) from e

    def _get(self, model, key: int, operation: str):
        try:
            with self._sessions() as session:
                row = session.get(model, key)
                return row.to_record() if row else None
        except SQLAlchemyError as e:
            logger.error(f"{operation} failed: {e}", exc_info=True)
            raise StorageError(operation, str(e)) from e

    def _list(self, model, operation: str):
        try:
            with self._sessions() as session:
                rows = session.scalars(select(model).order_by(model.id)).all()
                return [row.to_record() for row in rows]
        except SQLAlchemyError as e:
            logger.error(f"{operation} failed: {e}", exc_info=True)
            raise StorageError(operation, str(e)) from e

    # Users

    def create_user(self, data: UserCreate) -> User:
        row = UserRow(username=data.username, password=data.password)
        try:
            return self._insert(row, "create_user")
        except IntegrityError as e:
            raise ValidationError("Username already exists", field="username") from e

    def get_user(self, user_id: int) -> Optional[User]:
        return self._get(UserRow, user_id, "get_user")

    def get_user_by_username(self, username: str) -> Optional[User]:
        try:
            with self._sessions() as session:
                row = session.scalars(
                    select(UserRow).where(UserRow.username == username)
                ).first()
                return row.to_record() if row else None
        except SQLAlchemyError as e:
            logger.error(f"get_user_by_username failed: {e}", exc_info=True)
            raise StorageError("get_user_by_username", str(e)) from e

    # Images

    def create_image(self, data: ImageCreate) -> ImageRecord:
        row = ImageRow(
            file_name=data.file_name,
            original_file_name=data.original_file_name,
            mime_type=data.mime_type,
            size_mb=data.size_mb,
            uploaded_at=data.uploaded_at,
        )
        try:
            return self._insert(row, "create_image")
        except IntegrityError as e:
            raise StorageError("create_image", str(e)) from e

    def get_image(self, image_id: int) -> Optional[ImageRecord]:
        return self._get(ImageRow, image_id, "get_image")

    def list_images(self) -> List[ImageRecord]:
        return self._list(ImageRow, "list_images")

    # Orders

    def create_order(self, data: OrderCreate) -> OrderRecord:
        row = OrderRow(
            image_id=data.image_id,
            product_type=data.product_type,
            product_size=data.product_size,
            quantity=data.quantity,
            unit_price=data.unit_price,
            total_price=data.total_price,
            rotation=data.rotation,
            filter=data.filter,
            customer_info=_customer_info(data),
            ordered_at=data.ordered_at,
        )
        try:
            return self._insert(row, "create_order")
        except IntegrityError as e:
            raise StorageError("create_order", str(e)) from e

    def get_order(self, order_id: int) -> Optional[OrderRecord]:
        return self._get(OrderRow, order_id, "get_order")

    def list_orders(self) -> List[OrderRecord]:
        return self._list(OrderRow, "list_orders")

    def close(self) -> None:
        self._engine.dispose()
        logger.info("Database connections closed")


# =============================================================================
# FACTORY
# =============================================================================

def create_repository(config: Mapping[str, Any]) -> Repository:
    """
    Build the repository selected by ``STORAGE_BACKEND``.

    Args:
        config: Flask config (or any mapping) with STORAGE_BACKEND and,
                for the database backend, DATABASE_URL

    Raises:
        ValueError: If the backend name is unknown
    """
    backend = str(config.get("STORAGE_BACKEND", "memory")).lower()

    if backend == "memory":
        logger.info("Using in-memory repository (data is lost on restart)")
        return MemoryRepository()

    if backend == "database":
        return DatabaseRepository(
            config["DATABASE_URL"],
            echo=bool(config.get("SQLALCHEMY_ECHO", False)),
        )

    raise ValueError(f"Unknown STORAGE_BACKEND: {backend!r} (expected 'memory' or 'database')")
