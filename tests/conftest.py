from __future__ import annotations

from pathlib import Path
import sys
from datetime import datetime, timezone

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parents[1]))

CREATED = datetime(2020, 9, 11, 12, 21, 21, tzinfo=timezone.utc)


def make_recipe_document(**overrides) -> dict:
    doc = {
        "_id": "k3mL0pQ8rS2tU4vW6xY9",
        "cookingTimeInMinutes": 10,
        "created": CREATED,
        "lastModified": CREATED,
        "ingredients": [
            {"id": "0", "amount": 100, "title": "Cheese", "measurementUnit": "Kilogramm"},
            {"id": "1", "amount": 200, "title": "Bread", "measurementUnit": "Piece"},
        ],
        "version": 1,
        "difficulty": "Easy",
        "description": "Recipe description",
        "title": "Recipe title",
        "tags": ["vegan", "fast"],
        "image": None,
        "instructions": ["do it", "do that", "do this"],
        "defaultServings": 2,
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def recipe_document() -> dict:
    return make_recipe_document()
