"""Shared constants for synthetic review generation."""

GAMES = [
    "Terraria",
    "Stardew Valley",
    "Hollow Knight",
    "Celeste",
    "Factorio",
    "RimWorld",
    "Hades",
    "Portal 2",
    "Dead Cells",
    "Slay the Spire",
]

# Relative share of reviews per language
LANGUAGE_WEIGHTS = {
    "english": 0.45,
    "schinese": 0.15,
    "russian": 0.10,
    "spanish": 0.08,
    "brazilian": 0.07,
    "german": 0.06,
    "french": 0.05,
    "japanese": 0.04,
}

REVIEW_PHRASES = [
    "Great game",
    "Would recommend",
    "Not worth the price",
    "Amazing soundtrack",
    "Too many bugs",
    "Best purchase this year",
    "Runs well on old hardware",
    "Needs more content",
    "Hundreds of hours and counting",
    "Refunded after an hour",
]

MALFORMED_VOTES = ["", "n/a", "-3", "1.5", "ten", " 7", "99999999999"]

# Vote counts are drawn from a small range so ties are common
MAX_VOTES = 50
