from datetime import datetime

from sqlalchemy import Column, DateTime, String

from worklog.database import Base


class UserRole:
    ADMIN = "ADMIN"
    WORKER = "WORKER"
    CLIENT = "CLIENT"


class UserStatus:
    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"


class User(Base):
    __tablename__ = "users"

    # subject issued by the identity provider
    id = Column(String, primary_key=True, index=True)
    email = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=True)
    role = Column(String, nullable=False, default=UserRole.WORKER, index=True)
    status = Column(String, nullable=False, default=UserStatus.ACTIVE)
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    @property
    def display_name(self) -> str:
        return self.name or self.email
