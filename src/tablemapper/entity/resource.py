from datetime import datetime
from typing import Any, Optional

from tablemapper.entity.entity import Entity


def _parse_datetime(value: Any) -> Optional[datetime]:
    if not value:
        return None
    if isinstance(value, datetime):
        return value
    return datetime.fromisoformat(str(value))


def _text(value: Any) -> str:
    return "" if value is None else str(value)


class ResourceEntity(Entity):
    """
    Entity for routable content resources.

    Expects (but does not require) the columns resource_type_id, resource_id,
    slug, title, subtitle, description, meta_title, meta_description,
    created and updated, plus an optional "image" relation whose rows carry
    a path. Missing fields read as None.
    """

    resource_id = "resource"

    def __init__(self, data=None):
        self._route_id: Optional[str] = None
        self._route_path: Optional[str] = None
        super().__init__(data)

    def reset(self) -> None:
        super().reset()
        self._route_id = None
        self._route_path = None

    def _value(self, column: str) -> Any:
        return self.get(column) if column in self else None

    def route_id(self, path: str = "") -> str:
        if self._route_id is None:
            type_id, resource_id = (self._value(c) for c in ("resource_type_id", "resource_id"))
            self._route_id = f"{_text(type_id)}-{_text(resource_id)}"
        return "/".join(part for part in (self._route_id, path) if part)

    def route_path(self) -> str:
        if self._route_path is None:
            parts = str(self._value("slug") or "").split("/")
            self._route_path = "/" + "/".join(part for part in parts if part)
        return self._route_path

    def meta_title(self) -> str:
        fallback = " ".join(
            str(part) for part in (self._value("title"), self._value("subtitle")) if part
        )
        return self._value("meta_title") or fallback

    def meta_description(self) -> Optional[str]:
        return self._value("meta_description") or self._value("description")

    def meta_image(self) -> Optional[str]:
        images = self._value("image")
        if not images:
            return None
        first = images[0] if isinstance(images, (list, tuple)) else images
        return first.get("path") if "path" in first else None

    def meta_modified(self) -> Optional[datetime]:
        return _parse_datetime(self._value("updated"))

    def meta_published(self) -> Optional[datetime]:
        return _parse_datetime(self._value("created"))
