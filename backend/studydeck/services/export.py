"""
Deck export as Anki-compatible CSV.

One header row, then one row per card:
  Front, Back, EaseFactor, Interval, Repetitions, NextReview (YYYY-MM-DD or empty)
"""
from __future__ import annotations

import csv
import io
import re
from datetime import date

from studydeck.models.flashcard import Flashcard

CSV_HEADER = ["Front", "Back", "EaseFactor", "Interval", "Repetitions", "NextReview"]


def deck_to_csv(cards: list[Flashcard]) -> str:
    buf = io.StringIO()
    writer = csv.writer(buf, lineterminator="\n")
    writer.writerow(CSV_HEADER)
    for card in cards:
        writer.writerow([
            card.front,
            card.back,
            card.ease_factor,
            card.interval,
            card.repetitions,
            card.next_review.date().isoformat() if card.next_review else "",
        ])
    return buf.getvalue()


def export_filename(deck_name: str, today: date) -> str:
    safe = re.sub(r"[^a-z0-9]", "_", deck_name, flags=re.IGNORECASE)
    return f"{safe}_flashcards_{today.isoformat()}.csv"
