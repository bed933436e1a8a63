"""
Pydantic schemas for the site API.

Request fields are optional at the schema level; required-field checks happen
in the handlers so a missing field is a 400 like any other input error.
"""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class PublicationPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: Optional[str] = None
    author: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    publication_url: Optional[str] = Field(default=None, alias="publicationUrl")
    description: Optional[str] = None


class MemberPayload(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    name: Optional[str] = None
    role: Optional[str] = None
    image_url: Optional[str] = Field(default=None, alias="imageUrl")
    lattes_url: Optional[str] = Field(default=None, alias="lattesUrl")
    research_topic: Optional[str] = Field(default=None, alias="researchTopic")
    category: Optional[str] = None


class PublicationResponse(BaseModel):
    id: int
    title: str
    author: str
    image_url: str
    publication_url: str
    description: Optional[str] = None
    created_at: str
    updated_at: Optional[str] = None


class MemberResponse(BaseModel):
    id: int
    name: str
    role: str
    image_url: str
    lattes_url: Optional[str] = None
    research_topic: Optional[str] = None
    category: str
    created_at: str
    updated_at: Optional[str] = None


class LoginRequest(BaseModel):
    username: Optional[str] = None
    password: Optional[str] = None


class LoginResponse(BaseModel):
    success: bool
    message: str


class MessageResponse(BaseModel):
    message: str


class UploadImageResponse(BaseModel):
    success: bool
    imageUrl: str
    filename: str
