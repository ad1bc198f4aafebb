"""
Pydantic request schemas for the content API.

Clients send camelCase keys; ``fields_set()`` yields the snake_case field
dicts the stores expect.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class CamelModel(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    def fields_set(self) -> dict:
        # Explicit nulls are treated as "leave unchanged".
        return self.model_dump(exclude_unset=True, exclude_none=True)


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class GalleryCreate(CamelModel):
    filename: Optional[str] = None
    original_name: Optional[str] = Field(default=None, alias="originalName")
    title: Optional[str] = None
    description: Optional[str] = None
    featured: bool = False
    size: Optional[int] = Field(default=None, ge=0)
    mimetype: Optional[str] = None


class GalleryUpdate(CamelModel):
    """Only presentation fields of an uploaded photo can change."""

    title: Optional[str] = None
    description: Optional[str] = None
    featured: Optional[bool] = None


class StructureCreate(CamelModel):
    position: Optional[str] = None
    name: Optional[str] = None
    icon: Optional[str] = None
    level: Optional[str] = None


class StructureUpdate(StructureCreate):
    pass


class ConfessionCreate(BaseModel):
    message: Optional[str] = None


class SettingsUpdate(CamelModel):
    site_name: Optional[str] = Field(default=None, alias="siteName")
    site_title: Optional[str] = Field(default=None, alias="siteTitle")
    site_description: Optional[str] = Field(default=None, alias="siteDescription")
    welcome_text: Optional[str] = Field(default=None, alias="welcomeText")
