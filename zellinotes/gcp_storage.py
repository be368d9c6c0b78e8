from __future__ import annotations

import logging
import os
import uuid
from datetime import timedelta
from typing import List, Optional, Sequence

from google.api_core import exceptions as gcloud_exceptions
from google.auth import exceptions as auth_exceptions
from google.cloud import firestore, storage
from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from .mapping import ATTR_CREATED, ATTR_ID, ATTR_IMAGE, parse_recipe, recipe_to_document
from .models import Recipe, RecipeFormatError
from .pagination import Pagination
from .storage import RecipeRepository

logger = logging.getLogger(__name__)

SIGNED_URL_EXPIRATION = timedelta(days=7)


class FirestoreRecipeStorage(RecipeRepository):
    """GCP backed recipe storage using Firestore and Cloud Storage."""

    def __init__(
        self,
        *,
        project: Optional[str] = None,
        collection_name: str = "recipes",
        bucket_name: Optional[str] = None,
        firestore_client: Optional[firestore.Client] = None,
        storage_client: Optional[storage.Client] = None,
    ) -> None:
        self._project = project
        self._collection_name = collection_name
        self._bucket_name = bucket_name

        self._firestore_client = firestore_client or firestore.Client(project=project)
        self._collection = self._firestore_client.collection(collection_name)

        if bucket_name:
            self._storage_client = storage_client or storage.Client(project=project)
            self._bucket = self._storage_client.bucket(bucket_name)
        else:
            self._storage_client = None
            self._bucket = None

    @classmethod
    def from_env(cls) -> "FirestoreRecipeStorage":
        """Build a storage instance from environment variables."""

        project = os.environ.get("GCP_PROJECT")
        collection_name = os.environ.get("RECIPES_COLLECTION", "recipes")
        bucket_name = os.environ.get("GCS_BUCKET")
        return cls(project=project, collection_name=collection_name, bucket_name=bucket_name)

    def list_recipes(self, pagination: Optional[Pagination] = None) -> List[Recipe]:
        query = self._collection
        if pagination is not None:
            direction = (
                firestore.Query.ASCENDING if pagination.sorting == 1 else firestore.Query.DESCENDING
            )
            query = (
                self._collection.order_by(ATTR_CREATED, direction=direction)
                .offset(pagination.skip)
                .limit(pagination.items)
            )

        recipes = [self._snapshot_to_recipe(doc) for doc in query.stream()]
        logger.info("Listed %d recipes (pagination=%s)", len(recipes), pagination)
        return recipes

    def get_recipe(self, recipe_id: str) -> Recipe:
        snapshot = self._existing_snapshot(recipe_id)
        return self._snapshot_to_recipe(snapshot)

    def add_recipe(self, recipe: Recipe) -> str:
        doc_ref = self._collection.document()
        doc_ref.set(_new_document(recipe))
        logger.info("Added recipe id=%s", doc_ref.id)
        return doc_ref.id

    def add_recipes(self, recipes: Sequence[Recipe]) -> List[str]:
        batch = self._firestore_client.batch()
        ids = []
        for recipe in recipes:
            doc_ref = self._collection.document()
            batch.set(doc_ref, _new_document(recipe))
            ids.append(doc_ref.id)
        batch.commit()
        logger.info("Added %d recipes ids=%s", len(ids), ids)
        return ids

    def update_recipe(self, recipe_id: str, recipe: Recipe) -> None:
        doc_ref = self._existing_snapshot(recipe_id).reference

        update_doc = recipe_to_document(recipe)
        update_doc.pop(ATTR_IMAGE)
        doc_ref.update(update_doc)
        logger.info("Updated recipe id=%s", recipe_id)

    def delete_recipe(self, recipe_id: str) -> None:
        snapshot = self._existing_snapshot(recipe_id)

        data = snapshot.to_dict() or {}
        self._delete_blob_if_exists(data.get(ATTR_IMAGE))

        snapshot.reference.delete()
        logger.info("Deleted recipe id=%s", recipe_id)

    def get_image_url(self, recipe_id: str) -> Optional[str]:
        recipe = self.get_recipe(recipe_id)
        if recipe.image is None:
            return None
        if not self._bucket:
            raise RuntimeError("A Cloud Storage bucket must be configured to serve images.")
        return self._get_image_url(self._bucket.blob(recipe.image))

    def update_image(self, recipe_id: str, image: FileStorage | None) -> None:
        snapshot = self._existing_snapshot(recipe_id)
        current_blob_name = (snapshot.to_dict() or {}).get(ATTR_IMAGE)

        new_blob_name: Optional[str] = None
        if image and image.filename:
            if not self._bucket:
                raise RuntimeError("A Cloud Storage bucket must be configured to upload images.")

            new_blob_name = self._build_blob_name(image.filename)
            blob = self._bucket.blob(new_blob_name)

            image.stream.seek(0)
            blob.upload_from_file(image.stream, content_type=image.mimetype)

        snapshot.reference.update({ATTR_IMAGE: new_blob_name})
        self._delete_blob_if_exists(current_blob_name)
        logger.info("Updated image of recipe id=%s image=%s", recipe_id, new_blob_name)

    def _existing_snapshot(self, recipe_id: str):
        snapshot = self._collection.document(recipe_id).get()

        if not snapshot.exists:
            logger.info("Recipe not found id=%s", recipe_id)
            raise KeyError(f"Recipe '{recipe_id}' does not exist.")
        return snapshot

    def _snapshot_to_recipe(self, snapshot) -> Recipe:
        data = snapshot.to_dict() or {}
        data[ATTR_ID] = snapshot.id
        try:
            return parse_recipe(data)
        except RecipeFormatError as exc:
            logger.error("Stored recipe id=%s is malformed: %s", snapshot.id, exc.message)
            raise

    def _build_blob_name(self, filename: str) -> str:
        safe = secure_filename(filename)
        unique = uuid.uuid4().hex
        return f"recipes/{unique}_{safe}"

    def _delete_blob_if_exists(self, blob_name: str | None) -> None:
        if not blob_name or not isinstance(blob_name, str) or not self._bucket:
            return

        blob = self._bucket.blob(blob_name)

        try:
            blob.delete()
        except gcloud_exceptions.NotFound:
            # The blob may already have been removed manually; ignore.
            pass

    def _get_image_url(self, blob: storage.Blob) -> str:
        try:
            return blob.generate_signed_url(
                version="v4", method="GET", expiration=SIGNED_URL_EXPIRATION
            )
        except (ValueError, TypeError, AttributeError, auth_exceptions.GoogleAuthError):
            # Signed URLs need credentials able to sign; fall back to the
            # object's public URL without touching bucket permissions.
            return blob.public_url


def _new_document(recipe: Recipe) -> dict:
    # Image references are only ever set by update_image.
    doc = recipe_to_document(recipe)
    doc[ATTR_IMAGE] = None
    return doc


__all__ = ["FirestoreRecipeStorage"]
