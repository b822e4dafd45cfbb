"""Public key-feature list for the home page."""

from fastapi import APIRouter, Depends

from aibotclip.schemas.key_feature import KeyFeatureOut
from aibotclip.services.key_features import list_key_features
from aibotclip.store.rows import RowStore, get_store

router = APIRouter()


@router.get("/", response_model=list[KeyFeatureOut])
async def active_key_features(store: RowStore = Depends(get_store)):
    return await list_key_features(store, active_only=True)
