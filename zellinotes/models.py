from __future__ import annotations

from dataclasses import dataclass, field as dataclass_field
from datetime import datetime
from enum import Enum
from typing import List, Optional


class RecipeFormatError(ValueError):
    """Raised when a document field cannot be converted into its recipe value."""

    def __init__(self, field: str, message: str) -> None:
        super().__init__(message)
        self.field = field
        self.message = message


class _LiteralEnum(str, Enum):
    """String enum whose members only parse from their exact literal."""

    @classmethod
    def parse(cls, value: object, *, field: Optional[str] = None):
        """Return the member whose literal equals ``value`` exactly."""
        if field is None:
            field = cls.__name__[0].lower() + cls.__name__[1:]
        if isinstance(value, str):
            for member in cls:
                if member.value == value:
                    return member
        allowed = ", ".join(member.value for member in cls)
        raise RecipeFormatError(
            field,
            f"{cls.__name__} '{value}' does not match one of the predefined values ({allowed})",
        )

    def __str__(self) -> str:
        return self.value


class Difficulty(_LiteralEnum):
    EASY = "Easy"
    MEDIUM = "Medium"
    HARD = "Hard"


class MeasurementUnit(_LiteralEnum):
    KILOGRAMM = "Kilogramm"
    GRAMM = "Gramm"
    MILLILITER = "Milliliter"
    LITER = "Liter"
    PIECE = "Piece"
    PACK = "Pack"


@dataclass
class Ingredient:
    """One line item of a recipe."""

    id: str
    amount: int
    title: str
    measurement_unit: MeasurementUnit


@dataclass
class Recipe:
    """Domain object representing a stored recipe.

    ``image`` is the name of the image object in the bucket, or ``None`` when
    the recipe has no image. ``id`` is ``None`` until the recipe is stored.
    """

    cooking_time_in_minutes: int
    created: datetime
    last_modified: datetime
    version: int
    difficulty: Difficulty
    description: str
    title: str
    default_servings: int
    ingredients: List[Ingredient] = dataclass_field(default_factory=list)
    tags: List[str] = dataclass_field(default_factory=list)
    instructions: List[str] = dataclass_field(default_factory=list)
    image: Optional[str] = None
    id: Optional[str] = None


__all__ = ["Difficulty", "Ingredient", "MeasurementUnit", "Recipe", "RecipeFormatError"]
