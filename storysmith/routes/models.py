"""Pydantic request models for API endpoints."""

from pydantic import BaseModel, ConfigDict


class CreateProject(BaseModel):
    title: str
    visual_style: str | None = None


class UpdateProject(BaseModel):
    title: str | None = None


class ActiveProjectBody(BaseModel):
    project_id: str


class CoverUpdate(BaseModel):
    model_config = ConfigDict(extra="allow")

    cover_image_prompt: str | None = None
    cover_image_url: str | None = None
    cover_title: str | None = None


class FinalizeBody(BaseModel):
    author: str
    dedication: str = ""


class MessageBody(BaseModel):
    message: str


class GenerateImageBody(BaseModel):
    prompt: str


class GenerateNamesBody(BaseModel):
    gender: str = "any"
    count: int = 5


class FlagBody(BaseModel):
    value: bool | str | int | float | None = True
