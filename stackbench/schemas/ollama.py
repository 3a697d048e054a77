"""Ollama API Pydantic schemas"""
from typing import Optional

from pydantic import BaseModel, Field


class GenerateRequest(BaseModel):
    """Body of POST /api/generate"""
    model: str = Field(..., min_length=1)
    prompt: str
    stream: bool = False


class GenerateResponse(BaseModel):
    """Non-streaming /api/generate reply"""
    model: Optional[str] = None
    response: str
    done: bool = True
    total_duration: Optional[int] = None  # nanoseconds
    eval_count: Optional[int] = None

    class Config:
        extra = "ignore"


class ModelTag(BaseModel):
    """One entry of GET /api/tags"""
    name: str
    size: Optional[int] = None
    digest: Optional[str] = None

    class Config:
        extra = "ignore"


class TagsResponse(BaseModel):
    """GET /api/tags reply"""
    models: list[ModelTag] = []
