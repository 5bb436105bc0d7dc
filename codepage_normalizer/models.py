from __future__ import annotations

from enum import Enum
from typing import Literal, Optional
from pydantic import BaseModel, Field

from .rules import CHANNEL_FLAT, CHANNEL_MARKUP, CHANNEL_PLAIN


class ProcessingMode(str, Enum):
    TEXT = "text"
    IDENTIFIER = "identifier"
    DISPLAY_NAME = "display_name"


Channel = Literal[CHANNEL_PLAIN, CHANNEL_MARKUP, CHANNEL_FLAT]


class ProcessingRequest(BaseModel):
    raw_text: Optional[str] = Field(default=None, examples=["L&apos;Oréal & Co"])
    max_length: Optional[int] = Field(default=None, ge=0)
    mode: ProcessingMode = ProcessingMode.TEXT


class ProcessingResult(BaseModel):
    processed_text: str


class ProcessingStats(BaseModel):
    original_length: int = 0
    processed_length: int = 0
    had_non_ascii_input: bool = False
    transformation_applied: bool = False
    codepage_safe: bool = True


class NormalizeRequest(ProcessingRequest):
    channel: Channel = "plain"


class NormalizeResponse(BaseModel):
    result: ProcessingResult
    stats: ProcessingStats
    mode: ProcessingMode
    channel: Channel


class HealthResponse(BaseModel):
    ok: bool = True
    substitutions: int = 0
