# GET /presets — style and room dropdown contents for the UI.

from fastapi import APIRouter

from roomdesigner.pipeline.prompt_presets import ROOM_TYPES, STYLE_PRESETS
from roomdesigner.schemas import PresetsResponse, RoomOption, StyleOption

router = APIRouter()

# Tables are static, so the payload is built once.
_PRESETS = PresetsResponse(
    styles=[StyleOption(id=s.id, name=s.name) for s in STYLE_PRESETS],
    rooms=[RoomOption(id=r.id, name=r.name, name_en=r.name_en) for r in ROOM_TYPES],
)


@router.get("/presets", response_model=PresetsResponse)
async def presets() -> PresetsResponse:
    return _PRESETS
