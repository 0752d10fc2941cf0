"""Selectable event catalog, generated from the WAHA OpenAPI document."""

from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from importlib import resources
from pathlib import Path
from typing import Any

import httpx
import structlog
import yaml

logger = structlog.get_logger()

OPENAPI_URL = "https://waha.devlike.pro/swagger/openapi.json"
CATALOG_FILENAME = "webhook-events.json"
INFO_FILENAME = "info.json"


class CatalogError(Exception):
    """The catalog or the OpenAPI document it is built from is malformed."""


@dataclass(frozen=True)
class EventOption:
    name: str
    value: str


# Not present in the OpenAPI webhooks section.
STATIC_TRIGGER_OPTIONS = (
    EventOption("Any / All Events", "*"),
    EventOption("Self", "self"),
    EventOption("Message Waiting", "message_waiting"),
)
STATIC_BODY_OPTIONS = (EventOption("Message Waiting", "message.waiting"),)


def _parse_options(raw: Any, source: str) -> list[EventOption]:
    if not isinstance(raw, list):
        raise CatalogError(f"{source} is not an array")
    options = []
    for entry in raw:
        if not isinstance(entry, dict) or "name" not in entry or "value" not in entry:
            raise CatalogError(f"{source} has an entry without name/value: {entry!r}")
        options.append(EventOption(name=str(entry["name"]), value=str(entry["value"])))
    return options


def load_catalog(path: str | Path | None = None) -> list[EventOption]:
    """Load the catalog from ``path`` or the copy bundled with the package."""
    if path:
        source = Path(path)
        text = source.read_text(encoding="utf-8")
    else:
        source = resources.files("hookgate") / "data" / CATALOG_FILENAME
        text = source.read_text(encoding="utf-8")
    try:
        raw = json.loads(text)
    except ValueError as exc:
        raise CatalogError(f"{source} is not valid JSON: {exc}") from exc
    return _parse_options(raw, str(source))


def catalog_values(catalog: list[EventOption]) -> set[str]:
    return {option.value for option in catalog}


def _get_path(doc: dict[str, Any], data_path: str) -> Any:
    """Resolve a dot path such as ``info.version`` inside the document."""
    current: Any = doc
    keys = data_path.split(".")
    for i, key in enumerate(keys):
        if isinstance(current, dict) and key in current:
            current = current[key]
        else:
            raise CatalogError(f"Path '{'.'.join(keys[: i + 1])}' does not exist in the schema")
    return current


def extract_webhook_events(
    doc: dict[str, Any],
    *,
    for_trigger: bool = True,
    deprecated: bool = False,
    get_all: bool = False,
    with_format: bool = True,
) -> list[EventOption]:
    """Turn the ``webhooks`` section into selectable options.

    ``group.v2.participants`` becomes ``Group V2 Participants`` /
    ``group_v2_participants``. Unless ``get_all`` is set only events whose
    deprecation flag equals ``deprecated`` are kept.
    """
    webhooks = _get_path(doc, "webhooks")
    if not isinstance(webhooks, dict):
        raise CatalogError("'webhooks' is not an object")

    results: list[tuple[EventOption, bool]] = []
    for event_name, details in webhooks.items():
        readable = " ".join(word[:1].upper() + word[1:] for word in event_name.split("."))
        value = event_name.replace(".", "_") if with_format else event_name
        post = details.get("post") if isinstance(details, dict) else None
        is_deprecated = bool(post.get("deprecated", False)) if isinstance(post, dict) else False
        results.append((EventOption(readable, value), is_deprecated))

    selected = [option for option, flag in results if get_all or flag == deprecated]
    static = STATIC_TRIGGER_OPTIONS if for_trigger else STATIC_BODY_OPTIONS
    return [*static, *selected]


def api_version(doc: dict[str, Any]) -> str:
    return str(_get_path(doc, "info.version"))


def fetch_openapi(path: str | Path, url: str = OPENAPI_URL, *, timeout_s: float = 30.0) -> dict[str, Any]:
    """Read the OpenAPI document at ``path``, downloading it first if missing."""
    target = Path(path)
    if not target.exists():
        logger.info("catalog.openapi.downloading", url=url, path=str(target))
        response = httpx.get(url, timeout=timeout_s, follow_redirects=True)
        response.raise_for_status()
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(response.text, encoding="utf-8")

    # JSON is a subset of YAML, so both document flavours load here.
    doc = yaml.safe_load(target.read_text(encoding="utf-8"))
    if not isinstance(doc, dict):
        raise CatalogError(f"{target} does not contain an OpenAPI document")
    return doc


def save_catalog(events: list[EventOption], path: str | Path) -> Path:
    target = Path(path)
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps([asdict(event) for event in events], indent=2) + "\n", encoding="utf-8")
    logger.info("catalog.saved", path=str(target), count=len(events))
    return target


def save_api_info(version: str, directory: str | Path) -> Path:
    """Record the API version a catalog was built on, next to the catalog."""
    target = Path(directory) / INFO_FILENAME
    target.parent.mkdir(parents=True, exist_ok=True)
    target.write_text(json.dumps({"version": version}, indent=2) + "\n", encoding="utf-8")
    return target


def load_api_version(catalog_path: str | Path | None = None) -> str | None:
    """Version recorded beside the catalog, or None when it was never saved."""
    if catalog_path:
        source = Path(catalog_path).parent / INFO_FILENAME
        if not source.exists():
            return None
    else:
        source = resources.files("hookgate") / "data" / INFO_FILENAME
        if not source.is_file():
            return None
    try:
        info = json.loads(source.read_text(encoding="utf-8"))
    except ValueError as exc:
        raise CatalogError(f"{source} is not valid JSON: {exc}") from exc
    version = info.get("version") if isinstance(info, dict) else None
    return str(version) if version is not None else None
