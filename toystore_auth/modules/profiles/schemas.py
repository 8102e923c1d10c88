from pydantic import BaseModel
from typing import Optional, Union


class ProfilePublic(BaseModel):
    id: Union[int, str]
    username: Optional[str] = None
    email: Optional[str] = None
    role: Optional[str] = None

    @classmethod
    def from_row(cls, row: dict) -> "ProfilePublic":
        return cls(
            id=row["id"],
            username=row.get("username"),
            email=row.get("email"),
            role=row.get("role"),
        )
