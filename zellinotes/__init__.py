import logging
import os
from typing import Optional

from flask import Flask, jsonify, request
from werkzeug.exceptions import BadRequest

from .mapping import recipe_from_json, recipe_to_json
from .models import Recipe, RecipeFormatError
from .pagination import Pagination
from .storage import RecipeRepository

try:
    from .gcp_storage import FirestoreRecipeStorage
except ImportError:  # pragma: no cover - allows running tests without optional deps
    FirestoreRecipeStorage = None  # type: ignore[assignment]

ALLOWED_IMAGE_EXTENSIONS = {"png", "jpg", "jpeg", "gif", "webp"}

logger = logging.getLogger(__name__)


def create_app(storage: Optional[RecipeRepository] = None) -> Flask:
    """Create and configure the Flask application.

    Parameters
    ----------
    storage:
        Optional recipe repository. When ``None`` the application will use
        :class:`FirestoreRecipeStorage` configured through environment variables.
    """

    app = Flask(__name__)
    app.config.setdefault("MAX_CONTENT_LENGTH", 16 * 1024 * 1024)
    app.config.setdefault(
        "RECIPE_ERROR_INDEX_CONTEXT",
        os.environ.get("RECIPE_ERROR_INDEX_CONTEXT", "").lower() in {"1", "true", "yes"},
    )

    if storage is None:
        if FirestoreRecipeStorage is None:
            raise RuntimeError(
                "google-cloud-firestore is not installed. Install optional dependencies "
                "or pass an explicit storage backend to create_app."
            )
        storage = FirestoreRecipeStorage.from_env()
    app.config["RECIPE_STORAGE"] = storage

    def _recipe_from_body() -> Recipe:
        return recipe_from_json(
            request.get_json(force=True),
            index_context=app.config["RECIPE_ERROR_INDEX_CONTEXT"],
        )

    @app.errorhandler(RecipeFormatError)
    def invalid_recipe(exc: RecipeFormatError):
        # Raised from request bodies only; routes reading stored documents
        # catch it themselves.
        logger.info("Rejected recipe payload field=%s: %s", exc.field, exc.message)
        return jsonify(error=exc.message, field=exc.field), 400

    @app.errorhandler(BadRequest)
    def bad_request(exc: BadRequest):
        return jsonify(error=exc.description), 400

    @app.get("/api/v1/recipes")
    def list_recipes():
        storage_backend: RecipeRepository = app.config["RECIPE_STORAGE"]

        try:
            pagination = Pagination.from_args(request.args)
        except ValueError:
            return jsonify(error="Pagination values must be integers."), 400

        if pagination.is_fully_set():
            logger.info("Get recipes with pagination: %s", pagination)
            page: Optional[Pagination] = pagination
        elif pagination.is_fully_empty():
            logger.info("Get recipes without pagination")
            page = None
        else:
            logger.error("Get recipes with wrong pagination: %s", pagination)
            return jsonify(error="page, items and sorting must be given together."), 400

        try:
            recipes = storage_backend.list_recipes(page)
        except RecipeFormatError as exc:
            return _stored_recipe_error(exc)
        return jsonify([recipe_to_json(recipe) for recipe in recipes])

    @app.post("/api/v1/recipes")
    def add_recipes():
        storage_backend: RecipeRepository = app.config["RECIPE_STORAGE"]
        payload = request.get_json(force=True)
        index_context = app.config["RECIPE_ERROR_INDEX_CONTEXT"]

        if isinstance(payload, list):
            recipes = [recipe_from_json(item, index_context=index_context) for item in payload]
            return jsonify(ids=storage_backend.add_recipes(recipes)), 201

        recipe = recipe_from_json(payload, index_context=index_context)
        return jsonify(id=storage_backend.add_recipe(recipe)), 201

    @app.get("/api/v1/recipes/<recipe_id>")
    def get_recipe(recipe_id: str):
        storage_backend: RecipeRepository = app.config["RECIPE_STORAGE"]

        try:
            recipe = storage_backend.get_recipe(recipe_id)
        except KeyError:
            return _not_found()
        except RecipeFormatError as exc:
            return _stored_recipe_error(exc)
        return jsonify(recipe_to_json(recipe))

    @app.put("/api/v1/recipes/<recipe_id>")
    def update_recipe(recipe_id: str):
        storage_backend: RecipeRepository = app.config["RECIPE_STORAGE"]
        recipe = _recipe_from_body()

        try:
            storage_backend.update_recipe(recipe_id, recipe)
        except KeyError:
            return _not_found()
        return jsonify(id=recipe_id)

    @app.delete("/api/v1/recipes/<recipe_id>")
    def delete_recipe(recipe_id: str):
        storage_backend: RecipeRepository = app.config["RECIPE_STORAGE"]

        try:
            storage_backend.delete_recipe(recipe_id)
        except KeyError:
            return _not_found()
        return "", 204

    @app.get("/api/v1/recipes/<recipe_id>/image")
    def get_image(recipe_id: str):
        storage_backend: RecipeRepository = app.config["RECIPE_STORAGE"]

        try:
            url = storage_backend.get_image_url(recipe_id)
        except KeyError:
            return _not_found()
        except RecipeFormatError as exc:
            return _stored_recipe_error(exc)

        if url is None:
            return jsonify(error="Recipe has no image."), 404
        return jsonify(image=url)

    @app.put("/api/v1/recipes/<recipe_id>/image")
    def update_image(recipe_id: str):
        storage_backend: RecipeRepository = app.config["RECIPE_STORAGE"]
        image = request.files.get("image")

        if not image or not image.filename:
            return jsonify(error="Please provide an image file."), 400

        if not _allowed_image(image.filename):
            return jsonify(
                error="Unsupported image format. Allowed formats: PNG, JPG, JPEG, GIF, WEBP."
            ), 400

        try:
            storage_backend.update_image(recipe_id, image)
        except KeyError:
            return _not_found()
        return jsonify(id=recipe_id)

    @app.delete("/api/v1/recipes/<recipe_id>/image")
    def delete_image(recipe_id: str):
        storage_backend: RecipeRepository = app.config["RECIPE_STORAGE"]

        try:
            storage_backend.update_image(recipe_id, None)
        except KeyError:
            return _not_found()
        return "", 204

    return app


def _not_found():
    return jsonify(error="Recipe not found."), 404


def _stored_recipe_error(exc: RecipeFormatError):
    logger.error("Could not read stored recipe field=%s: %s", exc.field, exc.message)
    return jsonify(error=f"Stored recipe is malformed: {exc.message}"), 500


def _allowed_image(filename: str) -> bool:
    if not filename or "." not in filename:
        return False
    ext = filename.rsplit(".", 1)[1].lower()
    return ext in ALLOWED_IMAGE_EXTENSIONS


__all__ = ["create_app", "Recipe"]
