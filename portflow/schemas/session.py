from pydantic import BaseModel, EmailStr, Field
from pydantic.alias_generators import to_camel

from portflow.core.config import settings


class User(BaseModel):
    """Logged-in operator. Presence alone grants dashboard access."""
    email: EmailStr
    company_name: str = Field(..., min_length=1, max_length=120)

    class Config:
        alias_generator = to_camel
        populate_by_name = True


class LoginRequest(BaseModel):
    email: EmailStr = settings.DEFAULT_LOGIN_EMAIL
    company_name: str = Field(settings.DEFAULT_COMPANY_NAME, min_length=1, max_length=120)


class NavigationResponse(BaseModel):
    fragment: str
    screen: str
    user: User | None = None


class MessageResponse(BaseModel):
    message: str
    success: bool = True
