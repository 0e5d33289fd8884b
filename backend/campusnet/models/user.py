"""User directory models."""

from enum import Enum

from pydantic import BaseModel


class Role(str, Enum):
    CLIENT = "Client"
    DESIGNER = "Network Designer"
    INSTALLER = "Network Installation Team"
    ADMIN = "Web Admin"


class User(BaseModel):
    """A person acting on requests. Referenced everywhere else by id."""

    id: str
    name: str
    email: str = ""
    role: Role
