from decimal import Decimal, ROUND_HALF_UP
from typing import Dict, List, Optional, Tuple

from sqlalchemy import func
from sqlalchemy.orm import Session

from . import models


# Business rule: prices stored rounded to 2 decimals
def round_amount(value: Decimal) -> Decimal:
    return Decimal(value).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)


def _offset(page: int, limit: int) -> int:
    return (page - 1) * limit


class OrderRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: int, data: dict) -> models.Order:
        order = models.Order(user_id=user_id, **data)
        if order.price is not None:
            order.price = round_amount(order.price)
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def find_by_id(self, order_id: int) -> Optional[models.Order]:
        return self.db.get(models.Order, order_id)

    def find_many(
        self,
        page: int,
        limit: int,
        status: Optional[str] = None,
        client: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> Tuple[List[models.Order], int]:
        query = self.db.query(models.Order)
        if status:
            query = query.filter(models.Order.status == status)
        if client:
            # case-insensitive substring; bound parameter, never interpolated
            query = query.filter(func.lower(models.Order.client).contains(client.lower(), autoescape=True))
        if user_id is not None:
            query = query.filter(models.Order.user_id == user_id)
        total = query.count()
        orders = (
            query.order_by(models.Order.created_at.desc(), models.Order.id.desc())
            .offset(_offset(page, limit))
            .limit(limit)
            .all()
        )
        return orders, total

    def update(self, order: models.Order, data: dict) -> models.Order:
        for field, value in data.items():
            if field == "price" and value is not None:
                value = round_amount(value)
            setattr(order, field, value)
        self.db.add(order)
        self.db.commit()
        self.db.refresh(order)
        return order

    def delete(self, order: models.Order) -> None:
        self.db.delete(order)
        self.db.commit()

    def count_by_status(self, user_id: Optional[int] = None) -> Dict[str, int]:
        query = self.db.query(models.Order.status, func.count(models.Order.id))
        if user_id is not None:
            query = query.filter(models.Order.user_id == user_id)
        return {status: count for status, count in query.group_by(models.Order.status).all()}


class UserRepository:
    def __init__(self, db: Session):
        self.db = db

    def create(self, name: str, email: str, password_hash: str, role: str = models.ROLE_USER) -> models.User:
        user = models.User(name=name, email=email, password_hash=password_hash, role=role, is_active=True)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def find_by_id(self, user_id: int) -> Optional[models.User]:
        return self.db.get(models.User, user_id)

    def find_by_email(self, email: str) -> Optional[models.User]:
        return self.db.query(models.User).filter(models.User.email == email).first()

    def find_many(self, page: int, limit: int) -> Tuple[List[models.User], int]:
        query = self.db.query(models.User).filter(models.User.is_active.is_(True))
        total = query.count()
        users = (
            query.order_by(models.User.created_at.desc(), models.User.id.desc())
            .offset(_offset(page, limit))
            .limit(limit)
            .all()
        )
        return users, total

    def update(self, user: models.User, data: dict) -> models.User:
        for field, value in data.items():
            setattr(user, field, value)
        self.db.add(user)
        self.db.commit()
        self.db.refresh(user)
        return user

    def email_exists(self, email: str, exclude_id: Optional[int] = None) -> bool:
        query = self.db.query(models.User.id).filter(models.User.email == email)
        if exclude_id is not None:
            query = query.filter(models.User.id != exclude_id)
        return query.first() is not None

    def rollback(self) -> None:
        self.db.rollback()


class FileRepository:
    def __init__(self, db: Session):
        self.db = db

    def add(self, record: models.FileRecord) -> None:
        """Stage a record without committing, so a batch can commit or roll back together."""
        self.db.add(record)

    def commit(self) -> None:
        self.db.commit()

    def rollback(self) -> None:
        self.db.rollback()

    def refresh(self, record: models.FileRecord) -> None:
        self.db.refresh(record)

    def find_by_id(self, file_id: str) -> Optional[models.FileRecord]:
        return self.db.get(models.FileRecord, file_id)

    def find_many(self, page: int, limit: int, user_id: Optional[int] = None) -> Tuple[List[models.FileRecord], int]:
        query = self.db.query(models.FileRecord)
        if user_id is not None:
            query = query.filter(models.FileRecord.user_id == user_id)
        total = query.count()
        files = (
            query.order_by(models.FileRecord.created_at.desc(), models.FileRecord.id)
            .offset(_offset(page, limit))
            .limit(limit)
            .all()
        )
        return files, total

    def delete(self, record: models.FileRecord) -> None:
        self.db.delete(record)
        self.db.commit()

    def sizes_and_types(self, user_id: Optional[int] = None) -> List[Tuple[int, str]]:
        query = self.db.query(models.FileRecord.size, models.FileRecord.content_type)
        if user_id is not None:
            query = query.filter(models.FileRecord.user_id == user_id)
        return [(size, content_type) for size, content_type in query.all()]
