"""
Pydantic models for user administration.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class UpdateUserRequest(BaseModel):
    """
    Request body for updating a user.

    isActive and isEmailVerified are only applied for admins.
    """
    model_config = ConfigDict(str_strip_whitespace=True)

    name: Optional[str] = Field(None, min_length=2, max_length=50)
    avatar: Optional[str] = Field(None, max_length=500)
    bio: Optional[str] = Field(None, max_length=500)
    isActive: Optional[bool] = None
    isEmailVerified: Optional[bool] = None
