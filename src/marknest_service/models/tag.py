"""Tag data models."""

from typing import List
from pydantic import BaseModel, Field


class TagCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=50)


class TagResponse(BaseModel):
    id: str
    name: str
    slug: str

    @classmethod
    def from_model(cls, tag):
        return cls(id=tag.id, name=tag.name, slug=tag.slug)


class TagListResponse(BaseModel):
    data: List[TagResponse]
