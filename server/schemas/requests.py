"""Pydantic request models for FastAPI endpoints."""

from pydantic import BaseModel


class WebsiteImportRequest(BaseModel):
    # Shape is validated by the pipeline so bad URLs get the public 400 message
    url: str | None = None
