"""Note Schemas - database note payloads."""

from pydantic import BaseModel, Field


class NoteCreate(BaseModel):
    title: str = ""
    content: str = ""
    visibility: str | None = Field(None, max_length=16)


class NoteUpdate(BaseModel):
    title: str | None = None
    content: str | None = None
    visibility: str | None = Field(None, max_length=16)
