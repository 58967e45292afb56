from enum import Enum


class UserAccountType(str, Enum):
    ADMIN = "admin"
    DRIVER = "driver"
