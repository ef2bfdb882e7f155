# ─────────────────────────────────────────────────────────────────────────────
# Prompt Presets — Dutch interior design styles and room types
# ─────────────────────────────────────────────────────────────────────────────
# Static tables, loaded once at import and never mutated. Lookups are by the
# Dutch display name the UI sends (exact match) or by id.
# ─────────────────────────────────────────────────────────────────────────────

from dataclasses import dataclass


@dataclass(frozen=True)
class StylePreset:
    """A named interior design style: positive + negative prompt pair."""

    id: str
    name: str
    prompt: str
    negative_prompt: str


@dataclass(frozen=True)
class RoomType:
    """A room type. `name_en` enriches the English prompt."""

    id: str
    name: str
    name_en: str


@dataclass(frozen=True)
class ResolvedPrompt:
    prompt: str
    negative_prompt: str


# Shared quality tail for every style prompt.
_QUALITY = "professional interior photography, 8k, high quality, detailed"

STYLE_PRESETS: tuple[StylePreset, ...] = (
    StylePreset(
        id="scandinavisch",
        name="Scandinavisch Modern",
        prompt=(
            "scandinavian modern interior design, light oak wood floors, crisp white walls, "
            "minimal furniture, abundant natural light, hygge cozy atmosphere, clean lines, "
            "neutral colors with soft pastel accents, large windows, simple elegant decor, "
            f"{_QUALITY}"
        ),
        negative_prompt=(
            "cluttered, dark, ornate, heavy furniture, busy patterns, excessive decoration, "
            "low quality, blurry, distorted, watermark, text"
        ),
    ),
    StylePreset(
        id="grachtenpand",
        name="Amsterdamse Grachtenpand",
        prompt=(
            "classic amsterdam canal house interior, high ornate ceilings with stucco details, "
            "tall windows with white frames, herringbone parquet wood floors, elegant period "
            "furniture, crystal chandelier, fireplace mantle, sophisticated dutch heritage style, "
            f"{_QUALITY}"
        ),
        negative_prompt=(
            "modern minimalist, low ceiling, industrial, contemporary furniture, cheap materials, "
            "low quality, blurry, distorted"
        ),
    ),
    StylePreset(
        id="industrieel",
        name="Industrieel Loft",
        prompt=(
            "industrial loft interior design, exposed red brick walls, black metal beams and "
            "pipes, polished concrete floors, large factory windows, vintage industrial "
            "furniture, edison bulb lighting, raw authentic materials, urban warehouse "
            f"aesthetic, {_QUALITY}"
        ),
        negative_prompt=(
            "cozy traditional, ornate classical, soft pastel colors, romantic style, carpeted "
            "floors, low quality, blurry"
        ),
    ),
    StylePreset(
        id="landelijk",
        name="Landelijk Klassiek",
        prompt=(
            "dutch country house interior, exposed wooden ceiling beams, warm earth tones, "
            "comfortable linen upholstered furniture, stone fireplace, natural materials, rustic "
            "farmhouse charm, cozy inviting atmosphere, antique wooden furniture, "
            f"{_QUALITY}"
        ),
        negative_prompt=(
            "modern minimalist, industrial, urban contemporary, cold sterile, metal furniture, "
            "low quality, blurry"
        ),
    ),
    StylePreset(
        id="minimalistisch",
        name="Minimalistisch",
        prompt=(
            "minimalist interior design, pure white walls, simple functional furniture, hidden "
            "storage solutions, monochromatic color palette, zen peaceful atmosphere, "
            "uncluttered open space, clean geometric lines, natural light focus, "
            f"{_QUALITY}"
        ),
        negative_prompt=(
            "cluttered, colorful, ornate, busy patterns, excessive decoration, traditional heavy "
            "furniture, low quality, blurry"
        ),
    ),
    StylePreset(
        id="bohemian",
        name="Bohemian",
        prompt=(
            "bohemian eclectic interior, layered colorful textiles, abundant green plants, "
            "vintage persian rugs, mix of global patterns, moroccan poufs, macrame wall hangings, "
            "warm ambient lighting, artistic creative atmosphere, collected treasures, "
            f"{_QUALITY}"
        ),
        negative_prompt=(
            "minimal sterile, corporate office, cold modern, monochromatic, empty walls, "
            "low quality, blurry"
        ),
    ),
    StylePreset(
        id="art-deco",
        name="Art Deco",
        prompt=(
            "art deco interior design, bold geometric patterns, luxurious velvet furniture, "
            "polished brass and gold accents, black lacquer surfaces, marble details, dramatic "
            "statement lighting, glamorous 1920s inspired elegance, rich jewel tones, "
            f"{_QUALITY}"
        ),
        negative_prompt=(
            "rustic farmhouse, minimal modern, casual relaxed, natural organic materials, cheap "
            "finishes, low quality, blurry"
        ),
    ),
    StylePreset(
        id="japandi",
        name="Japandi",
        prompt=(
            "japandi interior design, japanese scandinavian fusion, natural light wood, muted "
            "earth tone palette, low profile furniture, shoji screen elements, wabi-sabi "
            "imperfect beauty aesthetic, peaceful serene atmosphere, organic textures, "
            f"{_QUALITY}"
        ),
        negative_prompt=(
            "colorful vibrant, ornate decorative, western traditional, cluttered busy, heavy dark "
            "furniture, low quality, blurry"
        ),
    ),
    StylePreset(
        id="modern-luxe",
        name="Modern Luxe",
        prompt=(
            "modern luxury interior design, high-end designer furniture, calacatta marble "
            "surfaces, polished brass hardware, sophisticated neutral palette, statement "
            "contemporary art, elegant ambient lighting, premium materials and finishes, "
            f"{_QUALITY}"
        ),
        negative_prompt=(
            "cheap budget materials, dated style, cluttered messy, rustic farmhouse, plastic "
            "furniture, low quality, blurry"
        ),
    ),
    StylePreset(
        id="coastal",
        name="Kust & Strand",
        prompt=(
            "coastal beach house interior, light blue and white color palette, natural rattan "
            "and wicker furniture, weathered wood accents, nautical subtle details, sheer "
            "flowing curtains, bright airy atmosphere, relaxed seaside living, "
            f"{_QUALITY}"
        ),
        negative_prompt=(
            "dark heavy colors, urban industrial, formal traditional, landlocked mountain cabin, "
            "heavy drapes, low quality, blurry"
        ),
    ),
    StylePreset(
        id="mid-century",
        name="Mid-Century Modern",
        prompt=(
            "mid-century modern interior, 1950s 1960s iconic furniture design, organic curved "
            "shapes, warm walnut wood tones, mustard and teal accent colors, statement lighting "
            "fixtures, clean functional aesthetic, retro sophistication, "
            f"{_QUALITY}"
        ),
        negative_prompt=(
            "contemporary trendy, ornate traditional, industrial raw, rustic country, "
            "ultra-modern, low quality, blurry"
        ),
    ),
    StylePreset(
        id="eclectisch",
        name="Eclectisch",
        prompt=(
            "eclectic interior design, curated mix of styles and eras, bold statement colors, "
            "unique collected furniture pieces, personality-filled creative space, artful "
            "arrangement, conversation starter decor, sophisticated maximalism, "
            f"{_QUALITY}"
        ),
        negative_prompt=(
            "minimal boring, uniform matching sets, corporate sterile, bland generic, "
            "cookie-cutter design, low quality, blurry"
        ),
    ),
)

ROOM_TYPES: tuple[RoomType, ...] = (
    RoomType(id="woonkamer", name="Woonkamer", name_en="Living Room"),
    RoomType(id="slaapkamer", name="Slaapkamer", name_en="Bedroom"),
    RoomType(id="keuken", name="Keuken", name_en="Kitchen"),
    RoomType(id="badkamer", name="Badkamer", name_en="Bathroom"),
    RoomType(id="eetkamer", name="Eetkamer", name_en="Dining Room"),
    RoomType(id="kantoor", name="Thuiskantoor", name_en="Home Office"),
    RoomType(id="kinderkamer", name="Kinderkamer", name_en="Kids Room"),
    RoomType(id="hal", name="Hal / Entree", name_en="Hallway"),
)

_STYLES_BY_NAME: dict[str, StylePreset] = {s.name: s for s in STYLE_PRESETS}
_STYLES_BY_ID: dict[str, StylePreset] = {s.id: s for s in STYLE_PRESETS}
_ROOMS_BY_NAME: dict[str, RoomType] = {r.name: r for r in ROOM_TYPES}

# Dropdown values for the UI.
THEMES: list[str] = [s.name for s in STYLE_PRESETS]
ROOMS: list[str] = [r.name for r in ROOM_TYPES]

_FALLBACK_NEGATIVE = "low quality, blurry, distorted, watermark, text"


def get_style_by_name(name: str) -> StylePreset | None:
    return _STYLES_BY_NAME.get(name)


def get_style_by_id(style_id: str) -> StylePreset | None:
    return _STYLES_BY_ID.get(style_id)


def get_room_by_name(name: str) -> RoomType | None:
    return _ROOMS_BY_NAME.get(name)


def resolve_prompt(style_name: str, room_name: str, extra: str | None = None) -> ResolvedPrompt:
    """Build the generation prompt pair for a style and room.

    Unknown styles get a generic prompt that embeds the raw style and room
    names verbatim; this never raises. A known room appends its English
    name as context ("..., living room interior"). `extra` is appended
    verbatim when non-empty.

    Args:
        style_name: Dutch display name of the style, e.g. "Scandinavisch Modern".
        room_name: Dutch display name of the room, e.g. "Woonkamer".
        extra: Optional free-text addition from the user.

    Returns:
        The positive and negative prompt.
    """
    custom = f", {extra}" if extra else ""

    style = get_style_by_name(style_name)
    if style is None:
        return ResolvedPrompt(
            prompt=(
                f"{style_name} style {room_name}, interior design, "
                f"professional photography, 8k, high quality{custom}"
            ),
            negative_prompt=_FALLBACK_NEGATIVE,
        )

    room = get_room_by_name(room_name)
    room_context = f", {room.name_en.lower()} interior" if room else ""

    return ResolvedPrompt(
        prompt=f"{style.prompt}{room_context}{custom}",
        negative_prompt=style.negative_prompt,
    )
