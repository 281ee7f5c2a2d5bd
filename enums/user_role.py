from enum import Enum


class UserRole(Enum):
    USER = "user"
    ADMIN = "admin"
