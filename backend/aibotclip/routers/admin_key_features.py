"""Admin CRUD and ordering for key features.

`display_order` on create or update is a requested position; the list is
renumbered 1..N around it. Deletes close the gap they leave.
"""

import logging

from fastapi import APIRouter, Depends, status

from aibotclip.auth.deps import require_admin
from aibotclip.middleware.exceptions import ResourceNotFoundError
from aibotclip.schemas.key_feature import (
    KeyFeatureCreate,
    KeyFeatureMove,
    KeyFeatureOut,
    KeyFeatureUpdate,
)
from aibotclip.services.key_features import (
    list_key_features,
    move_key_feature,
    place_key_feature,
    renumber_key_features,
)
from aibotclip.store.rows import RowStore, get_store

logger = logging.getLogger(__name__)

router = APIRouter(dependencies=[Depends(require_admin)])


def _pick(features: list[KeyFeatureOut], feature_id: str) -> KeyFeatureOut:
    return next(f for f in features if f.id == feature_id)


@router.get("/", response_model=list[KeyFeatureOut])
async def list_all_key_features(store: RowStore = Depends(get_store)):
    return await list_key_features(store)


@router.post("/", response_model=KeyFeatureOut, status_code=status.HTTP_201_CREATED)
async def create_key_feature(body: KeyFeatureCreate, store: RowStore = Depends(get_store)):
    data = body.model_dump()
    position = data["display_order"]
    # Parked past the end until placed
    data["display_order"] = await store.count("key_features") + 1
    feature = await store.insert("key_features", data)
    logger.info("Key feature %s created", feature["id"])

    features = await place_key_feature(store, feature["id"], position)
    return _pick(features, feature["id"])


@router.patch("/{feature_id}", response_model=KeyFeatureOut)
async def update_key_feature(
    feature_id: str,
    body: KeyFeatureUpdate,
    store: RowStore = Depends(get_store),
):
    changes = body.model_dump(exclude_unset=True)
    position = changes.pop("display_order", None)

    if changes:
        feature = await store.update("key_features", feature_id, changes)
    else:
        feature = await store.select_one("key_features", {"id": feature_id})
    if feature is None:
        raise ResourceNotFoundError("Key feature", feature_id)

    if position is None:
        return feature
    features = await place_key_feature(store, feature_id, position)
    return _pick(features, feature_id)


@router.delete("/{feature_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_key_feature(feature_id: str, store: RowStore = Depends(get_store)):
    if not await store.delete("key_features", feature_id):
        raise ResourceNotFoundError("Key feature", feature_id)
    logger.info("Key feature %s deleted", feature_id)
    await renumber_key_features(store)


@router.post("/{feature_id}/move", response_model=list[KeyFeatureOut])
async def move(
    feature_id: str,
    body: KeyFeatureMove,
    store: RowStore = Depends(get_store),
):
    """Move one place up or down. Returns the whole list in its new order."""
    return await move_key_feature(store, feature_id, body.direction)
