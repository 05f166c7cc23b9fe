"""Pydantic request / response models for the HTTP API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class FileCreateRequest(BaseModel):
    """POST /{kind} body. Missing fields are reported as 422 by the service."""
    filename: Optional[str] = Field(default=None, description="Name of the file to create")
    content: Optional[str] = Field(default=None, description="Full file content")


class FileUpdateRequest(BaseModel):
    """PUT /{kind}/{name} body. ``filename`` is accepted but the path wins."""
    filename: Optional[str] = Field(default=None, description="Ignored; the path names the file")
    content: Optional[str] = Field(default=None, description="Replacement content")


class HealthResponse(BaseModel):
    status: str
    version: str
    environment: str
    storage_root: str
