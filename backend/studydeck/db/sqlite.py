import logging
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import AsyncIterator

import aiosqlite

from studydeck.config import settings
from studydeck.models.deck import Deck, DeckCreate, DeckUpdate
from studydeck.models.flashcard import Flashcard, FlashcardCreate, FlashcardUpdate
from studydeck.models.review import ReviewEvent
from studydeck.services.scheduler import CardSchedule

logger = logging.getLogger(__name__)

_db_path: Path | None = None

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA foreign_keys=ON;

CREATE TABLE IF NOT EXISTS decks (
    id          TEXT PRIMARY KEY,
    name        TEXT NOT NULL,
    description TEXT NOT NULL DEFAULT '',
    color       TEXT NOT NULL DEFAULT 'slate',
    created_at  TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at  TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS flashcards (
    id            TEXT PRIMARY KEY,
    deck_id       TEXT NOT NULL REFERENCES decks(id) ON DELETE CASCADE,
    front         TEXT NOT NULL,
    back          TEXT NOT NULL,
    ease_factor   REAL NOT NULL DEFAULT 2.5,
    interval      INTEGER NOT NULL DEFAULT 0,
    repetitions   INTEGER NOT NULL DEFAULT 0,
    last_reviewed TEXT,
    next_review   TEXT,
    created_at    TEXT NOT NULL DEFAULT (datetime('now')),
    updated_at    TEXT NOT NULL DEFAULT (datetime('now'))
);
CREATE INDEX IF NOT EXISTS idx_flashcards_deck ON flashcards(deck_id);
CREATE INDEX IF NOT EXISTS idx_flashcards_review ON flashcards(next_review);

CREATE TABLE IF NOT EXISTS reviews (
    id           TEXT PRIMARY KEY,
    flashcard_id TEXT NOT NULL REFERENCES flashcards(id) ON DELETE CASCADE,
    quality      INTEGER NOT NULL,
    rating       INTEGER NOT NULL,
    reviewed_at  TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_reviews_flashcard ON reviews(flashcard_id, reviewed_at);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER PRIMARY KEY,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);
INSERT OR IGNORE INTO schema_version(version) VALUES (1);
"""


async def init_sqlite(data_dir: Path) -> None:
    global _db_path
    _db_path = data_dir / settings.sqlite_filename
    async with aiosqlite.connect(_db_path) as db:
        await db.executescript(SCHEMA_SQL)
        cursor = await db.execute("SELECT MAX(version) FROM schema_version")
        current_version = (await cursor.fetchone())[0]
        await db.commit()
    logger.info("SQLite ready at %s (schema v%s)", _db_path, current_version)


async def get_db() -> AsyncIterator[aiosqlite.Connection]:
    assert _db_path is not None, "SQLite not initialized"
    async with aiosqlite.connect(_db_path) as db:
        db.row_factory = aiosqlite.Row
        await db.execute("PRAGMA foreign_keys=ON")
        yield db


def _now() -> str:
    return datetime.now(timezone.utc).strftime("%Y-%m-%d %H:%M:%S")


def _iso(value: datetime | None) -> str | None:
    """Schedule timestamps are stored as ISO-8601 in UTC so text order is time order."""
    if value is None:
        return None
    return value.astimezone(timezone.utc).isoformat()


# --- Decks ---

_DECK_SELECT = """
SELECT d.*, (SELECT COUNT(*) FROM flashcards f WHERE f.deck_id = d.id) AS card_count
FROM decks d
"""


def _row_to_deck(row: aiosqlite.Row) -> Deck:
    return Deck(**dict(row))


async def create_deck(db: aiosqlite.Connection, deck: DeckCreate) -> Deck:
    deck_id = str(uuid.uuid4())
    now = _now()
    await db.execute(
        """INSERT INTO decks (id, name, description, color, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?)""",
        (deck_id, deck.name, deck.description, deck.color.value, now, now),
    )
    await db.commit()
    return await get_deck(db, deck_id)  # type: ignore[return-value]


async def get_deck(db: aiosqlite.Connection, deck_id: str) -> Deck | None:
    cursor = await db.execute(_DECK_SELECT + " WHERE d.id = ?", (deck_id,))
    row = await cursor.fetchone()
    if row is None:
        return None
    return _row_to_deck(row)


async def list_decks(
    db: aiosqlite.Connection, offset: int = 0, limit: int = 50
) -> tuple[list[Deck], int]:
    cursor = await db.execute("SELECT COUNT(*) FROM decks")
    total = (await cursor.fetchone())[0]

    cursor = await db.execute(
        _DECK_SELECT + " ORDER BY d.created_at DESC, d.name ASC LIMIT ? OFFSET ?",
        (limit, offset),
    )
    rows = await cursor.fetchall()
    return [_row_to_deck(r) for r in rows], total


async def update_deck(
    db: aiosqlite.Connection, deck_id: str, updates: DeckUpdate
) -> Deck | None:
    fields = updates.model_dump(exclude_none=True)
    if not fields:
        return await get_deck(db, deck_id)

    for key, val in fields.items():
        if hasattr(val, "value"):
            fields[key] = val.value

    fields["updated_at"] = _now()
    set_clause = ", ".join(f"{k} = ?" for k in fields)
    values = list(fields.values()) + [deck_id]

    await db.execute(
        f"UPDATE decks SET {set_clause} WHERE id = ?",  # noqa: S608
        values,
    )
    await db.commit()
    return await get_deck(db, deck_id)


async def delete_deck(db: aiosqlite.Connection, deck_id: str) -> bool:
    cursor = await db.execute("DELETE FROM decks WHERE id = ?", (deck_id,))
    await db.commit()
    return cursor.rowcount > 0


async def get_deck_stats(
    db: aiosqlite.Connection, deck_id: str, now: datetime
) -> dict:
    """Card counts for one deck: total, due today, and per learning stage."""
    today = now.astimezone(timezone.utc).date().isoformat()
    cursor = await db.execute(
        """SELECT COUNT(*) AS total,
                  SUM(CASE WHEN next_review IS NULL OR substr(next_review, 1, 10) <= ?
                      THEN 1 ELSE 0 END) AS due,
                  SUM(CASE WHEN repetitions = 0 THEN 1 ELSE 0 END) AS new_cards,
                  SUM(CASE WHEN repetitions BETWEEN 1 AND 2 THEN 1 ELSE 0 END) AS learning_cards,
                  SUM(CASE WHEN repetitions >= 3 THEN 1 ELSE 0 END) AS review_cards
           FROM flashcards WHERE deck_id = ?""",
        (today, deck_id),
    )
    row = await cursor.fetchone()
    return {
        "deck_id": deck_id,
        "total": row["total"],
        "due": row["due"] or 0,
        "new": row["new_cards"] or 0,
        "learning": row["learning_cards"] or 0,
        "review": row["review_cards"] or 0,
    }


# --- Flashcards ---


def _row_to_flashcard(row: aiosqlite.Row) -> Flashcard:
    return Flashcard(**dict(row))


async def create_flashcard(
    db: aiosqlite.Connection, deck_id: str, card: FlashcardCreate
) -> Flashcard:
    card_id = str(uuid.uuid4())
    now = _now()
    await db.execute(
        """INSERT INTO flashcards (id, deck_id, front, back, created_at, updated_at)
           VALUES (?, ?, ?, ?, ?, ?)""",
        (card_id, deck_id, card.front, card.back, now, now),
    )
    await db.commit()
    return await get_flashcard(db, card_id)  # type: ignore[return-value]


async def get_flashcard(
    db: aiosqlite.Connection, card_id: str, deck_id: str | None = None
) -> Flashcard | None:
    if deck_id:
        cursor = await db.execute(
            "SELECT * FROM flashcards WHERE id = ? AND deck_id = ?", (card_id, deck_id)
        )
    else:
        cursor = await db.execute("SELECT * FROM flashcards WHERE id = ?", (card_id,))
    row = await cursor.fetchone()
    return _row_to_flashcard(row) if row else None


async def list_flashcards(
    db: aiosqlite.Connection,
    deck_id: str,
    offset: int = 0,
    limit: int = 50,
) -> tuple[list[Flashcard], int]:
    cursor = await db.execute(
        "SELECT * FROM flashcards WHERE deck_id = ? ORDER BY created_at ASC LIMIT ? OFFSET ?",
        (deck_id, limit, offset),
    )
    rows = await cursor.fetchall()
    count_cursor = await db.execute(
        "SELECT COUNT(*) FROM flashcards WHERE deck_id = ?", (deck_id,)
    )
    count_row = await count_cursor.fetchone()
    total = count_row[0] if count_row else 0
    return [_row_to_flashcard(r) for r in rows], total


async def get_deck_flashcards(
    db: aiosqlite.Connection, deck_id: str
) -> list[Flashcard]:
    """Every card in a deck, oldest first (export)."""
    cursor = await db.execute(
        "SELECT * FROM flashcards WHERE deck_id = ? ORDER BY created_at ASC, rowid ASC",
        (deck_id,),
    )
    rows = await cursor.fetchall()
    return [_row_to_flashcard(r) for r in rows]


async def get_due_flashcards(
    db: aiosqlite.Connection,
    now: datetime,
    deck_id: str | None = None,
    limit: int = 20,
) -> list[Flashcard]:
    """Cards whose next review falls on or before today; never-reviewed cards first."""
    today = now.astimezone(timezone.utc).date().isoformat()
    query = """SELECT * FROM flashcards
               WHERE (next_review IS NULL OR substr(next_review, 1, 10) <= ?)"""
    params: list = [today]
    if deck_id:
        query += " AND deck_id = ?"
        params.append(deck_id)
    query += """ ORDER BY next_review IS NOT NULL, next_review ASC, created_at ASC
                 LIMIT ?"""
    params.append(limit)
    cursor = await db.execute(query, params)
    rows = await cursor.fetchall()
    return [_row_to_flashcard(r) for r in rows]


async def update_flashcard_content(
    db: aiosqlite.Connection,
    card_id: str,
    update: FlashcardUpdate,
) -> Flashcard | None:
    card = await get_flashcard(db, card_id)
    if not card:
        return None
    new_front = update.front if update.front is not None else card.front
    new_back = update.back if update.back is not None else card.back
    now = _now()
    await db.execute(
        "UPDATE flashcards SET front = ?, back = ?, updated_at = ? WHERE id = ?",
        (new_front, new_back, now, card_id),
    )
    await db.commit()
    return await get_flashcard(db, card_id)


async def delete_flashcard(db: aiosqlite.Connection, card_id: str) -> bool:
    cursor = await db.execute("DELETE FROM flashcards WHERE id = ?", (card_id,))
    await db.commit()
    return (cursor.rowcount or 0) > 0


# --- Reviews ---


async def apply_review(
    db: aiosqlite.Connection,
    card_id: str,
    previous: CardSchedule,
    schedule: CardSchedule,
    quality: int,
    rating: int,
) -> Flashcard | None:
    """
    Persist a new schedule and append its review row in one transaction.

    The update only lands if the stored last_reviewed still matches the
    snapshot the scheduler was given; otherwise another review won the race
    and nothing is written (returns None).
    """
    cursor = await db.execute(
        """UPDATE flashcards
           SET ease_factor = ?, interval = ?, repetitions = ?,
               last_reviewed = ?, next_review = ?, updated_at = ?
           WHERE id = ? AND last_reviewed IS ?""",
        (
            schedule.ease_factor,
            schedule.interval,
            schedule.repetitions,
            _iso(schedule.last_reviewed),
            _iso(schedule.next_review),
            _now(),
            card_id,
            _iso(previous.last_reviewed),
        ),
    )
    if (cursor.rowcount or 0) == 0:
        await db.rollback()
        return None

    await db.execute(
        """INSERT INTO reviews (id, flashcard_id, quality, rating, reviewed_at)
           VALUES (?, ?, ?, ?, ?)""",
        (str(uuid.uuid4()), card_id, quality, rating, _iso(schedule.last_reviewed)),
    )
    await db.commit()
    return await get_flashcard(db, card_id)


async def list_reviews(
    db: aiosqlite.Connection, card_id: str, offset: int = 0, limit: int = 50
) -> tuple[list[ReviewEvent], int]:
    cursor = await db.execute(
        "SELECT COUNT(*) FROM reviews WHERE flashcard_id = ?", (card_id,)
    )
    total = (await cursor.fetchone())[0]

    cursor = await db.execute(
        """SELECT * FROM reviews WHERE flashcard_id = ?
           ORDER BY reviewed_at DESC LIMIT ? OFFSET ?""",
        (card_id, limit, offset),
    )
    rows = await cursor.fetchall()
    return [ReviewEvent(**dict(r)) for r in rows], total
