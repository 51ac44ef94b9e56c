"""Pydantic schemas for API responses."""

from typing import List

from pydantic import BaseModel, ConfigDict, Field


class ThumbnailSchema(BaseModel):
    """Public thumbnail type."""
    name: str
    width: int
    height: int


class SettingsSchema(BaseModel):
    """UI settings."""
    theme: str
    language: str


class ClientConfigResponse(BaseModel):
    """Configuration values for the web interface."""
    model_config = ConfigDict(populate_by_name=True)

    name: str
    url: str
    title: str
    subtitle: str
    description: str
    author: str
    twitter: str
    version: str
    copyright: str
    debug: bool
    readonly: bool
    upload_nsfw: bool = Field(alias="uploadNSFW")
    public: bool
    experimental: bool
    thumbnails: List[ThumbnailSchema]
    settings: SettingsSchema


class WorkerStatus(BaseModel):
    """Busy state of a background job."""
    busy: bool
    canceled: bool


class StatusResponse(BaseModel):
    """Server status."""
    version: str
    database: str
    workers: int
    wakeup_interval: float = Field(description="Seconds between background runs")
    worker: WorkerStatus
    share: WorkerStatus
    sync: WorkerStatus
