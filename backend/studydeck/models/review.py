from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, StrictInt


class ReviewRequest(BaseModel):
    rating: StrictInt  # 0=Wrong, 2=Hard, 3=Good, 5=Easy


class ReviewEvent(BaseModel):
    id: str
    flashcard_id: str
    quality: int  # mapped SM-2 quality, 0-5
    rating: int   # button the user pressed
    reviewed_at: datetime


class ReviewEventList(BaseModel):
    items: list[ReviewEvent]
    total: int


class ReviewResult(BaseModel):
    id: str
    quality: int
    ease_factor: float
    interval: int
    repetitions: int
    last_reviewed: datetime
    next_review: datetime
    next_review_in: str
