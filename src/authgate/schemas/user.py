"""Pydantic schemas for the user resource."""

from pydantic import BaseModel, Field


class UserUpdate(BaseModel):
    name: str = Field(..., min_length=1, max_length=255)
