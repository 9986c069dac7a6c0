"""Pydantic schemas for request/response validation in the URL shortener.

Schema Hierarchy
=================
::
    ShortenRequest (Input)
    └─ long_url: str

    ShortenResponse (Output)
    ├─ long_url: str
    ├─ short_url: str
    └─ code: str

    URLStats (Output)
    ├─ code: str
    ├─ long_url: str
    ├─ short_url: str
    ├─ hits: int
    └─ created_at: datetime

    ErrorResponse (Output)
    └─ error: str

Key Behaviours
===============
- long_url is not checked for URL syntax; emptiness is rejected by the
  shortening service so the caller gets a 400, not a 422.
- A missing long_url field parses as the empty string.
"""

import datetime

from pydantic import BaseModel

__all__ = ["ShortenRequest", "ShortenResponse", "URLStats", "ErrorResponse"]


class ShortenRequest(BaseModel):
    long_url: str = ""


class ShortenResponse(BaseModel):
    long_url: str
    short_url: str
    code: str


class URLStats(BaseModel):
    code: str
    long_url: str
    short_url: str
    hits: int
    created_at: datetime.datetime

    model_config = {"from_attributes": True}


class ErrorResponse(BaseModel):
    error: str
