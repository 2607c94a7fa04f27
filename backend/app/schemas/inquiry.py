"""Inquiry Schemas — user-submitted messages to administrators.

Invariants:
    - title: 1-120 chars after strip; content: 1-4000 chars after strip
"""

from pydantic import BaseModel, Field, field_validator


class InquiryCreate(BaseModel):
    title: str = Field(min_length=1, max_length=200)
    content: str = Field(min_length=1, max_length=8000)

    @field_validator("title")
    @classmethod
    def strip_title(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("title cannot be empty or whitespace")
        if len(v) > 120:
            raise ValueError("title must be at most 120 characters")
        return v

    @field_validator("content")
    @classmethod
    def strip_content(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("content cannot be empty or whitespace")
        if len(v) > 4000:
            raise ValueError("content must be at most 4000 characters")
        return v


class InquiryCreated(BaseModel):
    success: bool = True
    id: int
