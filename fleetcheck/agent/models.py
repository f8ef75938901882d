"""Pydantic models for diagnostics agent responses."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class DiskInfo(BaseModel):
    name: str
    size_bytes: int = Field(ge=0)
    free_bytes: int = Field(ge=0)


class ServiceInfo(BaseModel):
    name: str
    state: str


class EventErrorCounts(BaseModel):
    system: int = Field(ge=0)
    application: int = Field(ge=0)


class UptimeInfo(BaseModel):
    last_boot: datetime


class PendingUpdates(BaseModel):
    critical: int = Field(default=0, ge=0)
    important: int = Field(default=0, ge=0)
    other: int = Field(default=0, ge=0)


class Utilization(BaseModel):
    cpu_percent: float = Field(ge=0)
    memory_percent: float = Field(ge=0)
    pagefile_percent: float = Field(default=0.0, ge=0)


class AdapterInfo(BaseModel):
    name: str
    addresses: list[str] = []
    gateway: str | None = None
    dns_servers: list[str] = []
