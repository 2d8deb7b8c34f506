import csv
import io
from datetime import date, timedelta

from studydeck.models.flashcard import Flashcard
from studydeck.services.export import CSV_HEADER, deck_to_csv, export_filename


def _card(front, back, **schedule):
    return Flashcard(
        id="c1",
        deck_id="d1",
        front=front,
        back=back,
        created_at="2026-03-14 09:00:00",
        updated_at="2026-03-14 09:00:00",
        **schedule,
    )


def test_csv_escapes_commas_quotes_and_newlines(now):
    cards = [
        _card("a, b", 'say "hi"'),
        _card("line one\nline two", "plain", interval=6, repetitions=2,
              next_review=now + timedelta(days=6)),
    ]
    rows = list(csv.reader(io.StringIO(deck_to_csv(cards))))
    assert rows == [
        CSV_HEADER,
        ["a, b", 'say "hi"', "2.5", "0", "0", ""],
        ["line one\nline two", "plain", "2.5", "6", "2", "2026-03-20"],
    ]


def test_export_filename_replaces_unsafe_characters():
    assert (
        export_filename("Español 101: verbs!", date(2026, 3, 14))
        == "Espa_ol_101__verbs__flashcards_2026-03-14.csv"
    )
