# models/invite.py

from typing import Optional
from pydantic import BaseModel, EmailStr


class InviteRequest(BaseModel):
    email: EmailStr
    name: str
    role: str


class InvitedUser(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    role: Optional[str] = None
