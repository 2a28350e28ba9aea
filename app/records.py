"""
Catalog record model and upstream normalization.

The UI and the cache only ever see ``Record`` objects, never raw upstream
payloads. Every field except ``id`` is best-effort: catalog entries vary in
completeness, so a missing nested field maps to None or an empty collection.
"""
import logging
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from app.utils.helpers import dig, safe_dict, safe_int, safe_list, safe_number, safe_str

logger = logging.getLogger("records")

Number = Union[int, float]

# Image variant name -> path inside the upstream "sprites" object
IMAGE_VARIANTS: Dict[str, Tuple[str, ...]] = {
    "official": ("other", "official-artwork", "front_default"),
    "classic": ("front_default",),
    "shiny": ("front_shiny",),
    "animated": ("other", "showdown", "front_default"),
}


class MalformedRecordError(ValueError):
    """Raised when an upstream payload cannot be turned into a Record at all."""


@dataclass(frozen=True)
class Record:
    """
    Normalized catalog item.

    Instances are read-only once built: sequences are tuples and mappings are
    wrapped in ``MappingProxyType``.
    """
    id: int
    name: str
    categories: Tuple[str, ...] = ()
    numeric_attributes: Mapping[str, Number] = field(default_factory=dict)
    named_attribute_groups: Mapping[str, Tuple[str, ...]] = field(default_factory=dict)
    images: Mapping[str, Optional[str]] = field(default_factory=dict)

    def __post_init__(self):
        object.__setattr__(self, "categories", tuple(self.categories))
        object.__setattr__(
            self, "numeric_attributes", MappingProxyType(dict(self.numeric_attributes))
        )
        object.__setattr__(
            self,
            "named_attribute_groups",
            MappingProxyType(
                {name: tuple(values) for name, values in self.named_attribute_groups.items()}
            ),
        )
        object.__setattr__(self, "images", MappingProxyType(dict(self.images)))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to a JSON-serializable dictionary."""
        return {
            "id": self.id,
            "name": self.name,
            "categories": list(self.categories),
            "numeric_attributes": dict(self.numeric_attributes),
            "named_attribute_groups": {
                name: list(values) for name, values in self.named_attribute_groups.items()
            },
            "images": dict(self.images),
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Record":
        """
        Rebuild a Record from ``to_dict`` output.

        Raises:
            MalformedRecordError: If the data has no integer id
        """
        if not isinstance(data, dict):
            raise MalformedRecordError(f"Expected a dict, got {type(data).__name__}")
        record_id = safe_int(data.get("id"))
        if record_id is None:
            raise MalformedRecordError("Stored record has no integer id")
        return cls(
            id=record_id,
            name=safe_str(data.get("name")),
            categories=[safe_str(c) for c in safe_list(data.get("categories"))],
            numeric_attributes={
                k: v for k, v in safe_dict(data.get("numeric_attributes")).items()
                if safe_number(v) is not None
            },
            named_attribute_groups={
                k: [safe_str(v) for v in safe_list(values)]
                for k, values in safe_dict(data.get("named_attribute_groups")).items()
            },
            images={k: v for k, v in safe_dict(data.get("images")).items()},
        )


def _names(items: Any, key: str):
    """Extract ``item[key]["name"]`` from each entry, skipping incomplete ones."""
    names = []
    for item in safe_list(items):
        name = dig(item, key, "name")
        if name is not None:
            names.append(safe_str(name))
    return names


def normalize_record(raw: Any) -> Record:
    """
    Map a raw upstream catalog item to a Record.

    Args:
        raw: Decoded JSON body of ``GET /pokemon/{id}``

    Returns:
        The normalized Record

    Raises:
        MalformedRecordError: If the payload is not an object or lacks an integer id
    """
    if not isinstance(raw, dict):
        raise MalformedRecordError(f"Expected a JSON object, got {type(raw).__name__}")

    record_id = safe_int(raw.get("id"))
    if record_id is None:
        raise MalformedRecordError("Upstream payload has no integer id")

    numeric: Dict[str, Number] = {}
    for attribute in ("height", "weight"):
        value = safe_number(raw.get(attribute))
        if value is not None:
            numeric[attribute] = value
    for stat in safe_list(raw.get("stats")):
        stat_name = dig(stat, "stat", "name")
        base_stat = safe_number(dig(stat, "base_stat"))
        if stat_name is not None and base_stat is not None:
            numeric[safe_str(stat_name)] = base_stat

    sprites = safe_dict(raw.get("sprites"))
    images = {variant: dig(sprites, *path) for variant, path in IMAGE_VARIANTS.items()}

    record = Record(
        id=record_id,
        name=safe_str(raw.get("name")),
        categories=_names(raw.get("types"), "type"),
        numeric_attributes=numeric,
        named_attribute_groups={"abilities": _names(raw.get("abilities"), "ability")},
        images=images,
    )
    logger.debug(f"Normalized record {record.id} ({record.name})")
    return record
