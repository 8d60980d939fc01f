from typing import Optional

from pydantic import BaseModel


class User(BaseModel):
    id: int
    email: str
    preferences: Optional[dict] = None
