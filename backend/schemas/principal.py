# backend/schemas/principal.py
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


# Caller identity produced by the bearer token dependency.
# Services trust it as-is and never re-check the credential.
class AuthenticatedIdentity(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str = Field(..., description="ID of the authenticated user")
    role: str = Field("customer", description="customer | admin")
    email: Optional[str] = None
