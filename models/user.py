from datetime import datetime

from pydantic import BaseModel
from sqlalchemy import Column, Integer, String, DateTime, func, Enum as SQLEnum

from enums.user_role import UserRole
from models.base import Base


# Users are owned by the external auth service, only ownership and
# registration date are read here
class User(Base):
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True)
    email = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=False)
    role = Column(SQLEnum(UserRole), nullable=False, default=UserRole.USER)
    created_at = Column(DateTime, nullable=False, default=func.now())


class UserDTO(BaseModel):
    id: int | None = None
    email: str | None = None
    name: str | None = None
    role: UserRole | None = None
    created_at: datetime | None = None
