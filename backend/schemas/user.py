from pydantic import EmailStr, Field

from schemas.common import ApiModel

# Shared properties for user models
class UserBase(ApiModel):
    email: EmailStr

# Schema for user authentication credentials
class UserLogin(UserBase):
    password: str

# Schema for signup requests
class UserCreate(UserBase):
    name: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)

# Output schema for user profile details
class UserResponse(UserBase):
    id: str
    name: str
    role: str

# Login response: bearer token plus the id it was issued for
class Token(ApiModel):
    token: str
    user_id: str
    token_type: str = "bearer"

