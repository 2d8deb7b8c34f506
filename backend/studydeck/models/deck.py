from enum import Enum

from pydantic import BaseModel, Field


class DeckColor(str, Enum):
    SLATE = "slate"
    RED = "red"
    BLUE = "blue"
    GREEN = "green"
    AMBER = "amber"
    VIOLET = "violet"


class DeckCreate(BaseModel):
    name: str = Field(min_length=1, max_length=200)
    description: str = ""
    color: DeckColor = DeckColor.SLATE


class DeckUpdate(BaseModel):
    name: str | None = Field(default=None, min_length=1, max_length=200)
    description: str | None = None
    color: DeckColor | None = None


class Deck(BaseModel):
    id: str
    name: str
    description: str
    color: DeckColor
    card_count: int = 0
    created_at: str
    updated_at: str


class DeckList(BaseModel):
    items: list[Deck]
    total: int
    offset: int
    limit: int
