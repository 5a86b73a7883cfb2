from enum import Enum


class Role(str, Enum):
    ADMIN = "ADMIN"
    MENTOR = "MENTOR"
    TRAINEE = "TRAINEE"
