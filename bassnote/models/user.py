from sqlalchemy import false
from sqlmodel import Field, SQLModel


class UserEntitlement(SQLModel, table=True):
    """One row per opaque user id; created on the first verified payment."""

    __tablename__ = "users"

    id: str = Field(primary_key=True)
    is_pro: bool = Field(default=False, sa_column_kwargs={"server_default": false()})
