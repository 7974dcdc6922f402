"""Health check response."""

from typing import Literal

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    service: str = Field(default="ani3lix-api", description="Service name (JWT issuer)")
    environment: str = Field(description="dev or prod")
    database: Literal["connected", "disconnected"] | None = Field(
        default=None,
        description="User store connectivity; auth requests fail while disconnected",
    )
