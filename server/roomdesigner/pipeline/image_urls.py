# ─────────────────────────────────────────────────────────────────────────────
# Image URL rewrite — CDN transformation URLs → raw origin URLs
# ─────────────────────────────────────────────────────────────────────────────
# Bytescale (upcdn.io) serves uploads as https://upcdn.io/<account>/<mode>/<path>.
# The provider must fetch original bytes, so "thumbnail" and "image" modes
# are rewritten to "raw". Pure string work, no network access.
# ─────────────────────────────────────────────────────────────────────────────

from urllib.parse import urlsplit, urlunsplit

import structlog

logger = structlog.get_logger(__name__)

_CDN_HOSTS: tuple[str, ...] = ("upcdn.io",)
_TRANSFORMATION_MODES: frozenset[str] = frozenset({"thumbnail", "image"})
_RAW_MODE = "raw"


def _is_cdn_host(host: str) -> bool:
    host = host.lower()
    return any(host == cdn or host.endswith(f".{cdn}") for cdn in _CDN_HOSTS)


def to_raw_url(url: str) -> str:
    """Rewrite a CDN thumbnail/image URL to its raw equivalent.

    Only the transformation segment changes; account, file path, query and
    fragment are preserved. URLs on other hosts, raw URLs and anything that
    does not parse as a CDN file URL are returned unchanged, so the rewrite
    is idempotent.
    """
    if not url:
        return url

    parts = urlsplit(url)
    if not _is_cdn_host(parts.hostname or ""):
        return url

    # "/<account>/<mode>/<file path...>" → ["", account, mode, ...]
    segments = parts.path.split("/")
    if len(segments) < 4 or segments[2] not in _TRANSFORMATION_MODES:
        return url

    segments[2] = _RAW_MODE
    fixed = urlunsplit(parts._replace(path="/".join(segments)))
    logger.info("image_url_rewritten", original=url, fixed=fixed)
    return fixed
