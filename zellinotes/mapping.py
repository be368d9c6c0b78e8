"""Conversion between recipe objects and their document representation.

Documents are the plain dictionaries handed out by the document store: nested
mappings and lists of ``None``, ``bool``, ``int``, ``str`` and ``datetime``
values. Every field is extracted on its own with the helper for its expected
type, and the first field that cannot be extracted aborts the conversion with
a :class:`RecipeFormatError` naming that field.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Callable, List, Mapping, Optional, TypeVar

from .models import Difficulty, Ingredient, MeasurementUnit, Recipe, RecipeFormatError

ATTR_ID = "_id"
ATTR_COOKING_TIME = "cookingTimeInMinutes"
ATTR_CREATED = "created"
ATTR_LAST_MODIFIED = "lastModified"
ATTR_INGREDIENTS = "ingredients"
ATTR_VERSION = "version"
ATTR_DIFFICULTY = "difficulty"
ATTR_DESCRIPTION = "description"
ATTR_TITLE = "title"
ATTR_TAGS = "tags"
ATTR_IMAGE = "image"
ATTR_INSTRUCTIONS = "instructions"
ATTR_DEFAULT_SERVINGS = "defaultServings"

INGREDIENT_ID = "id"
INGREDIENT_AMOUNT = "amount"
INGREDIENT_TITLE = "title"
INGREDIENT_MEASUREMENT_UNIT = "measurementUnit"

INT32_MIN = -(2**31)
INT32_MAX = 2**31 - 1

_MISSING = object()

T = TypeVar("T")


def _error(field: str, what: str) -> RecipeFormatError:
    return RecipeFormatError(field, f"Error getting {what} from document")


def get_str(doc: Mapping[str, Any], key: str, what: Optional[str] = None) -> str:
    value = doc.get(key, _MISSING)
    if not isinstance(value, str):
        raise _error(key, what or key)
    return value


def get_int32(doc: Mapping[str, Any], key: str, what: Optional[str] = None) -> int:
    value = doc.get(key, _MISSING)
    # bool is an int subclass but never a valid number here
    if type(value) is not int or not INT32_MIN <= value <= INT32_MAX:
        raise _error(key, what or key)
    return value


def get_datetime(doc: Mapping[str, Any], key: str, what: Optional[str] = None) -> datetime:
    value = doc.get(key, _MISSING)
    if not isinstance(value, datetime):
        raise _error(key, what or key)
    return value


def get_array(doc: Mapping[str, Any], key: str, what: Optional[str] = None) -> list:
    value = doc.get(key, _MISSING)
    if not isinstance(value, (list, tuple)):
        raise _error(key, what or key)
    return list(value)


def _convert_elements(
    elements: list,
    convert: Callable[[Any], T],
    field: str,
    what: str,
    index_context: bool,
) -> List[T]:
    converted: List[T] = []
    for index, element in enumerate(elements):
        try:
            converted.append(convert(element))
        except RecipeFormatError as exc:
            message = f"Error getting {what} from document"
            if index_context:
                message = f"{message}: element {index}: {exc.message}"
            raise RecipeFormatError(field, message) from exc
    return converted


def _as_str(field: str) -> Callable[[Any], str]:
    def convert(value: Any) -> str:
        if not isinstance(value, str):
            raise RecipeFormatError(field, f"Expected a string, got {type(value).__name__}")
        return value

    return convert


def parse_ingredient(raw: Any) -> Ingredient:
    """Build an :class:`Ingredient` from a nested ingredient document."""
    if not isinstance(raw, Mapping):
        raise RecipeFormatError(ATTR_INGREDIENTS, "Error getting ingredients from document")

    ingredient_id = get_str(raw, INGREDIENT_ID, "id from ingredient")
    amount = get_int32(raw, INGREDIENT_AMOUNT, "amount from ingredient")
    title = get_str(raw, INGREDIENT_TITLE, "title from ingredient")
    unit = get_str(raw, INGREDIENT_MEASUREMENT_UNIT, "measurement unit from ingredient")

    return Ingredient(
        id=ingredient_id,
        amount=amount,
        title=title,
        measurement_unit=MeasurementUnit.parse(unit, field=INGREDIENT_MEASUREMENT_UNIT),
    )


def ingredient_to_document(ingredient: Ingredient) -> dict:
    return {
        INGREDIENT_ID: ingredient.id,
        INGREDIENT_AMOUNT: ingredient.amount,
        INGREDIENT_TITLE: ingredient.title,
        INGREDIENT_MEASUREMENT_UNIT: ingredient.measurement_unit.value,
    }


def _extract_image(doc: Mapping[str, Any]) -> Optional[str]:
    value = doc.get(ATTR_IMAGE, _MISSING)
    if value is None:
        return None
    if isinstance(value, str) and value:
        return value
    raise _error(ATTR_IMAGE, "image")


def _extract_version(doc: Mapping[str, Any]) -> int:
    # Negative versions wrap to their unsigned 32-bit value instead of failing.
    return get_int32(doc, ATTR_VERSION, "version") & 0xFFFFFFFF


def _version_to_int32(version: int) -> int:
    # Inverse of the wrap above so stored versions stay 32-bit integers.
    return version - 2**32 if version > INT32_MAX else version


def parse_recipe(
    doc: Mapping[str, Any],
    *,
    require_id: bool = True,
    index_context: bool = False,
) -> Recipe:
    """Build a :class:`Recipe` from a stored document.

    Parameters
    ----------
    doc:
        The document, including its ``_id`` unless ``require_id`` is false.
    require_id:
        When false the identifier is not read and the recipe's ``id`` is
        ``None``. Used for request payloads, where the store assigns the id.
    index_context:
        Add the position and cause of the failing element to errors raised
        for ``ingredients``, ``tags`` and ``instructions``.
    """

    recipe_id = None
    if require_id:
        recipe_id = get_str(doc, ATTR_ID, "object id")
        if not recipe_id:
            raise _error(ATTR_ID, "object id")

    cooking_time = max(get_int32(doc, ATTR_COOKING_TIME, "cooking time"), 0)
    created = get_datetime(doc, ATTR_CREATED, "created")
    last_modified = get_datetime(doc, ATTR_LAST_MODIFIED, "last modified")
    ingredients = _convert_elements(
        get_array(doc, ATTR_INGREDIENTS, "ingredients"),
        parse_ingredient,
        ATTR_INGREDIENTS,
        "ingredients",
        index_context,
    )
    version = _extract_version(doc)
    difficulty = Difficulty.parse(
        get_str(doc, ATTR_DIFFICULTY, "difficulty"), field=ATTR_DIFFICULTY
    )
    description = get_str(doc, ATTR_DESCRIPTION, "description")
    title = get_str(doc, ATTR_TITLE, "title")
    tags = _convert_elements(
        get_array(doc, ATTR_TAGS, "tags"),
        _as_str(ATTR_TAGS),
        ATTR_TAGS,
        "tags",
        index_context,
    )
    image = _extract_image(doc)
    instructions = _convert_elements(
        get_array(doc, ATTR_INSTRUCTIONS, "instructions"),
        _as_str(ATTR_INSTRUCTIONS),
        ATTR_INSTRUCTIONS,
        "instructions",
        index_context,
    )
    default_servings = max(get_int32(doc, ATTR_DEFAULT_SERVINGS, "default servings"), 1)

    return Recipe(
        id=recipe_id,
        cooking_time_in_minutes=cooking_time,
        created=created,
        last_modified=last_modified,
        ingredients=ingredients,
        version=version,
        difficulty=difficulty,
        description=description,
        title=title,
        tags=tags,
        image=image,
        instructions=instructions,
        default_servings=default_servings,
    )


def recipe_to_document(recipe: Recipe, *, include_id: bool = False) -> dict:
    """Return the document stored for ``recipe``.

    The image is always written, as ``None`` when the recipe has none. The id
    is left out unless ``include_id`` is set since the store keeps it apart
    from the document body.
    """

    doc = {
        ATTR_COOKING_TIME: recipe.cooking_time_in_minutes,
        ATTR_CREATED: recipe.created,
        ATTR_LAST_MODIFIED: recipe.last_modified,
        ATTR_INGREDIENTS: [ingredient_to_document(i) for i in recipe.ingredients],
        ATTR_VERSION: _version_to_int32(recipe.version),
        ATTR_DIFFICULTY: recipe.difficulty.value,
        ATTR_DESCRIPTION: recipe.description,
        ATTR_TITLE: recipe.title,
        ATTR_TAGS: list(recipe.tags),
        ATTR_IMAGE: recipe.image,
        ATTR_INSTRUCTIONS: list(recipe.instructions),
        ATTR_DEFAULT_SERVINGS: recipe.default_servings,
    }
    if include_id:
        doc[ATTR_ID] = recipe.id
    return doc


def _parse_timestamp(value: Any) -> Any:
    if not isinstance(value, str):
        return value
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return value
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def recipe_from_json(payload: Any, *, index_context: bool = False) -> Recipe:
    """Build a new :class:`Recipe` from a request body.

    Timestamps arrive as ISO-8601 strings; naive ones are taken as UTC. Any
    identifier in the payload is ignored.
    """

    if not isinstance(payload, Mapping):
        raise RecipeFormatError("", "Expected a JSON object describing a recipe")

    doc = dict(payload)
    for key in (ATTR_CREATED, ATTR_LAST_MODIFIED):
        if key in doc:
            doc[key] = _parse_timestamp(doc[key])
    return parse_recipe(doc, require_id=False, index_context=index_context)


def recipe_to_json(recipe: Recipe) -> dict:
    body = recipe_to_document(recipe)
    body["id"] = recipe.id
    body[ATTR_CREATED] = recipe.created.isoformat()
    body[ATTR_LAST_MODIFIED] = recipe.last_modified.isoformat()
    return body


__all__ = [
    "ingredient_to_document",
    "parse_ingredient",
    "parse_recipe",
    "recipe_from_json",
    "recipe_to_document",
    "recipe_to_json",
]
