"""
SM-2 spaced repetition scheduler.

Pure functions only: every call takes the card's current schedule plus the
review moment (`now`) and returns a new schedule. Nothing here touches the
database or the system clock.

Quality scale (0-5):
  0  total blackout          3  correct, significant effort
  1  wrong, answer familiar  4  correct after hesitation
  2  wrong, answer hard      5  perfect recall

The study UI only offers four buttons; see RATING_TO_QUALITY.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from enum import Enum

INITIAL_EASE = 2.5
MIN_EASE = 1.3
PASS_QUALITY = 3
FIRST_INTERVAL = 1
SECOND_INTERVAL = 6
MAX_QUALITY = 5

# UI rating -> SM-2 quality: Wrong, Hard, Good, Easy
RATING_TO_QUALITY: dict[int, int] = {0: 0, 2: 3, 3: 4, 5: 5}

YOUNG_INTERVAL_LIMIT = 21  # days; cards at or above this are "mature"


class InvalidRating(ValueError):
    """Raised for a UI rating outside the button set or a quality outside 0-5."""


class InvalidCardState(ValueError):
    """Raised when a stored schedule violates the scheduler's preconditions."""


@dataclass(frozen=True)
class CardSchedule:
    ease_factor: float = INITIAL_EASE
    interval: int = 0
    repetitions: int = 0
    last_reviewed: datetime | None = None
    next_review: datetime | None = None


@dataclass(frozen=True)
class ReviewOutcome:
    schedule: CardSchedule
    quality: int  # kept by the caller for the review history row


class CardStage(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    YOUNG = "young"
    MATURE = "mature"


@dataclass(frozen=True)
class CardStatistics:
    stage: CardStage
    difficulty: int
    review_count: int
    current_interval: int
    next_review_in: str
    is_due: bool
    last_reviewed: datetime | None


def map_rating_to_quality(rating: int) -> int:
    """Translate a UI rating (0, 2, 3, 5) into an SM-2 quality score."""
    # bool is an int subclass; True must not pass as a rating of 1
    if isinstance(rating, bool) or not isinstance(rating, int):
        raise InvalidRating(f"rating must be one of 0, 2, 3, 5 (got {rating!r})")
    try:
        return RATING_TO_QUALITY[rating]
    except KeyError:
        raise InvalidRating(
            f"rating must be one of 0, 2, 3, 5 (got {rating!r})"
        ) from None


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def _check_preconditions(card: CardSchedule, quality: int) -> None:
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidRating(f"quality must be an integer 0-5 (got {quality!r})")
    if not 0 <= quality <= MAX_QUALITY:
        raise InvalidRating(f"quality must be an integer 0-5 (got {quality})")
    if card.ease_factor < MIN_EASE:
        raise InvalidCardState(
            f"ease_factor {card.ease_factor} is below the floor {MIN_EASE}"
        )
    if card.interval < 0:
        raise InvalidCardState(f"interval must be >= 0 (got {card.interval})")
    if card.repetitions < 0:
        raise InvalidCardState(
            f"repetitions must be >= 0 (got {card.repetitions})"
        )


def next_ease_factor(ease_factor: float, quality: int) -> float:
    """SM-2 ease update with the 1.3 floor. Applied on passes and failures alike."""
    miss = MAX_QUALITY - quality
    return max(ease_factor + (0.1 - miss * (0.08 + miss * 0.02)), MIN_EASE)


def calculate_next_review(
    card: CardSchedule, quality: int, now: datetime
) -> CardSchedule:
    """
    Compute the schedule that follows a review of `card` graded `quality`.

    A failing grade (< 3) resets repetitions to 0 and the interval to one day.
    A passing grade advances repetitions; the interval is 1 day, then 6 days,
    then the previous interval scaled by the updated ease factor.
    """
    _check_preconditions(card, quality)

    ease = next_ease_factor(card.ease_factor, quality)

    if quality < PASS_QUALITY:
        repetitions = 0
        interval = FIRST_INTERVAL
    else:
        repetitions = card.repetitions + 1
        if repetitions == 1:
            interval = FIRST_INTERVAL
        elif repetitions == 2:
            interval = SECOND_INTERVAL
        else:
            interval = _round_half_up(card.interval * ease)

    return replace(
        card,
        ease_factor=ease,
        interval=interval,
        repetitions=repetitions,
        last_reviewed=now,
        next_review=now + timedelta(days=interval),
    )


def review(card: CardSchedule, rating: int, now: datetime) -> ReviewOutcome:
    """Map a UI rating and schedule the card in one step."""
    quality = map_rating_to_quality(rating)
    return ReviewOutcome(
        schedule=calculate_next_review(card, quality, now), quality=quality
    )


# --- Schedule insight helpers ---


def _days_between(start: datetime, end: datetime) -> int:
    return (end.date() - start.date()).days


def is_due(next_review: datetime | None, now: datetime) -> bool:
    """A card is due on (or after) the calendar day of its next review."""
    if next_review is None:
        return True
    return next_review.date() <= now.date()


def _plural(count: int, unit: str) -> str:
    return f"In {count} {unit if count == 1 else unit + 's'}"


def describe_interval(next_review: datetime, now: datetime) -> str:
    days = _days_between(now, next_review)
    if days <= 0:
        return "Later today"
    if days == 1:
        return "Tomorrow"
    if days < 7:
        return f"In {days} days"
    if days < 30:
        return _plural(_round_half_up(days / 7), "week")
    if days < 365:
        return _plural(_round_half_up(days / 30), "month")
    return _plural(_round_half_up(days / 365), "year")


def card_stage(card: CardSchedule) -> CardStage:
    if card.repetitions == 0:
        return CardStage.NEW
    if card.repetitions < 3:
        return CardStage.LEARNING
    if card.interval < YOUNG_INTERVAL_LIMIT:
        return CardStage.YOUNG
    return CardStage.MATURE


def card_statistics(card: CardSchedule, now: datetime) -> CardStatistics:
    return CardStatistics(
        stage=card_stage(card),
        difficulty=_round_half_up(100 / card.ease_factor),
        review_count=card.repetitions,
        current_interval=card.interval,
        next_review_in=(
            describe_interval(card.next_review, now)
            if card.next_review is not None
            else "Not scheduled"
        ),
        is_due=is_due(card.next_review, now),
        last_reviewed=card.last_reviewed,
    )
