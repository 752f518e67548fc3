"""Cleanup profile (v1) for msc-itemclean.

The profile is the static configuration of a cleanup run: which item groups get
renumbered (and which counter record holds each group's highest ID), which
items are never touched, and where the landfill is.

This module intentionally stays *small* and strict:
  - JSON only
  - explicit schema id
  - unknown keys are rejected
  - a loaded profile replaces the built-in one entirely (no implicit merge)
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Iterable, Mapping

from msc_itemclean.core.landfill import LANDFILL_POSITION, POSITION_LEN
from msc_itemclean.errors import ProfileError

PROFILE_ID_V1 = "msc-itemclean.profile.v1"

INSTANCE_SUFFIX_DEFAULT = "Transform"


@dataclass(frozen=True)
class ItemGroup:
    """A family of item instances sharing a tag prefix."""

    prefix: str
    counter_tag: str
    # Instance 0 ships with a fresh save and is not part of the counted range.
    default_zero_item: bool = False


@dataclass(frozen=True)
class CleanupProfile:
    name: str
    groups: tuple[ItemGroup, ...]
    protected_ids: frozenset[str] = frozenset()
    protected_prefixes: tuple[str, ...] = ()
    landfill_position: bytes = LANDFILL_POSITION
    # One record per instance carries this field; used to count instances.
    instance_suffix: str = INSTANCE_SUFFIX_DEFAULT
    counter_tags: frozenset[str] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        object.__setattr__(self, "counter_tags", frozenset(g.counter_tag for g in self.groups))

    def is_protected(self, tag: str) -> bool:
        return tag in self.protected_ids or self.has_protected_prefix(tag)

    def has_protected_prefix(self, tag: str) -> bool:
        return any(tag.startswith(p) for p in self.protected_prefixes)


def _g(prefix: str, counter_tag: str, default_zero_item: bool = False) -> ItemGroup:
    return ItemGroup(prefix=prefix, counter_tag=counter_tag, default_zero_item=default_zero_item)


_DEFAULT_GROUPS: tuple[ItemGroup, ...] = (
    _g("beercase", "BeerCaseID", True),
    _g("sausagesx", "SausagesxID", True),
    _g("milkx", "milkxID", True),
    _g("sugar", "sugarID"),
    _g("yeast", "yeastID"),
    _g("potatochips", "potatochipsID"),
    _g("pizzax", "pizzaxID", True),
    _g("macaronbox", "macaronboxxID"),
    _g("shoppingbagx", "shoppingbagxID"),
    _g("moosemeatx", "moosemeatxID"),
    _g("Booze", "BoozeID"),
    _g("pikex", "pikexID"),
    _g("juiceconcentrate", "juiceconcentrateID"),
    _g("motoroil", "motoroilID"),
    _g("brakefluid", "brakefluidID"),
    _g("coolant", "coolantID"),
    _g("twostroke", "twostrokeID"),
    _g("cigarettes", "cigarettesID"),
    _g("spark plug box", "sparkplugboxID"),
    _g("groundcoffee", "groundcoffeeID"),
    _g("grillcharcoal", "grillcharcoalID"),
    _g("light bulb box", "lightbulbboxID"),
    _g("fuse package", "fusepackageID"),
    _g("r20 battery box", "r20batteryboxID"),
    _g("mosquitospray", "mosquitosprayID"),
    # Spraycans are untested in-game.
    *(_g(f"spraycan{i:02d}", f"Spraycan{i:02d}ID") for i in range(1, 14)),
)

# Present on a fresh save; the game hardcodes them.
_DEFAULT_PROTECTED_IDS = frozenset(
    {
        "milkxTransform",
        "milkxCondition",
        "sausagesx0",
        "pizzaxTransform",
        "pizzaxCondition",
        "beercase0",
        "macaron boxxTransform",
        "macaron boxxCondition",
        "oilfilter0",
    }
)

# Can be mounted on the car, the house or the radio, so they are referenced by
# ID from elsewhere in the save.
_DEFAULT_PROTECTED_PREFIXES: tuple[str, ...] = (
    "fireextinguisher",
    "n2obottle",
    "battery",
    "oil filter",
    "spark plug",
    "alternator belt",
    "light bulb",
    "fuse",
    "r20 battery",
)

DEFAULT_PROFILE = CleanupProfile(
    name="default",
    groups=_DEFAULT_GROUPS,
    protected_ids=_DEFAULT_PROTECTED_IDS,
    protected_prefixes=_DEFAULT_PROTECTED_PREFIXES,
)


# -------------------
# JSON loading
# -------------------


def _load_json_arg(profile_arg: str) -> dict[str, Any]:
    s = profile_arg.strip()
    if not s:
        raise ProfileError("profile: empty argument")

    if s.startswith("@"):
        p = Path(s[1:]).expanduser()
        if not p.is_file():
            raise ProfileError(f"profile: file not found: {p}")
        raw = p.read_text(encoding="utf-8")
        where = str(p)
    else:
        raw = s
        where = "inline JSON"

    try:
        obj = json.loads(raw)
    except json.JSONDecodeError as e:
        raise ProfileError(f"profile: invalid JSON in {where}: {e}") from e
    if not isinstance(obj, dict):
        raise ProfileError(f"profile: {where} must be a JSON object")
    return obj


def _ensure_allowed_keys(obj_name: str, obj: Mapping[str, Any], allowed: Iterable[str]) -> None:
    extra = sorted(set(obj.keys()) - set(allowed))
    if extra:
        raise ProfileError(f"profile: unsupported keys in {obj_name}: {', '.join(extra)}")


def _require_str(obj: Mapping[str, Any], key: str, where: str) -> str:
    v = obj.get(key)
    if not isinstance(v, str) or not v:
        raise ProfileError(f"profile: {where}.{key} is required (non-empty string)")
    return v


def _str_list(obj: Mapping[str, Any], key: str) -> list[str]:
    v = obj.get(key, [])
    if not isinstance(v, list):
        raise ProfileError(f"profile: '{key}' must be a list of strings")
    for x in v:
        if not isinstance(x, str) or not x:
            raise ProfileError(f"profile: '{key}' must contain non-empty strings")
    return list(v)


def _parse_group(obj: Any, i: int) -> ItemGroup:
    where = f"groups[{i}]"
    if not isinstance(obj, dict):
        raise ProfileError(f"profile: {where} must be an object")
    _ensure_allowed_keys(where, obj, ["prefix", "counter_tag", "default_zero_item"])
    # Tags are not stripped: prefixes like "spark plug box" carry meaningful spaces.
    prefix = _require_str(obj, "prefix", where)
    counter_tag = _require_str(obj, "counter_tag", where)
    dz = obj.get("default_zero_item", False)
    if not isinstance(dz, bool):
        raise ProfileError(f"profile: {where}.default_zero_item must be boolean")
    return ItemGroup(prefix=prefix, counter_tag=counter_tag, default_zero_item=dz)


def _parse_position(v: Any) -> bytes:
    if v is None:
        return LANDFILL_POSITION
    if not isinstance(v, str):
        raise ProfileError("profile: 'landfill_position' must be a hex string")
    try:
        pos = bytes.fromhex(v)
    except ValueError as e:
        raise ProfileError(f"profile: 'landfill_position' is not valid hex: {e}") from e
    if len(pos) != POSITION_LEN:
        raise ProfileError(
            f"profile: 'landfill_position' must be {POSITION_LEN} bytes (got {len(pos)})"
        )
    return pos


def profile_from_dict(obj: Mapping[str, Any]) -> CleanupProfile:
    _ensure_allowed_keys(
        "root",
        obj,
        [
            "spec",
            "name",
            "groups",
            "protected_ids",
            "protected_prefixes",
            "landfill_position",
            "instance_suffix",
        ],
    )

    spec_id = obj.get("spec")
    if spec_id != PROFILE_ID_V1:
        raise ProfileError(f"profile: unsupported spec {spec_id!r} (expected {PROFILE_ID_V1!r})")

    name = obj.get("name", "profile")
    if not isinstance(name, str) or not name.strip():
        raise ProfileError("profile: 'name' must be a string")

    groups_raw = obj.get("groups")
    if not isinstance(groups_raw, list):
        raise ProfileError("profile: 'groups' is required (list)")
    groups = tuple(_parse_group(g, i) for i, g in enumerate(groups_raw))

    seen: set[str] = set()
    for g in groups:
        if g.counter_tag in seen:
            raise ProfileError(f"profile: duplicate counter_tag {g.counter_tag!r}")
        seen.add(g.counter_tag)

    suffix = obj.get("instance_suffix", INSTANCE_SUFFIX_DEFAULT)
    if not isinstance(suffix, str) or not suffix:
        raise ProfileError("profile: 'instance_suffix' must be a non-empty string")

    return CleanupProfile(
        name=name.strip(),
        groups=groups,
        protected_ids=frozenset(_str_list(obj, "protected_ids")),
        protected_prefixes=tuple(_str_list(obj, "protected_prefixes")),
        landfill_position=_parse_position(obj.get("landfill_position")),
        instance_suffix=suffix,
    )


def load_profile(profile_arg: str) -> CleanupProfile:
    """Load and validate a cleanup profile.

    profile_arg:
      - '@file.json'
      - inline JSON object
    """
    return profile_from_dict(_load_json_arg(profile_arg))


def profile_to_dict(profile: CleanupProfile) -> dict[str, Any]:
    """JSON-ready view of a profile; ``profile_from_dict`` accepts it back."""
    return {
        "spec": PROFILE_ID_V1,
        "name": profile.name,
        "groups": [
            {
                "prefix": g.prefix,
                "counter_tag": g.counter_tag,
                "default_zero_item": g.default_zero_item,
            }
            for g in profile.groups
        ],
        "protected_ids": sorted(profile.protected_ids),
        "protected_prefixes": list(profile.protected_prefixes),
        "landfill_position": profile.landfill_position.hex(),
        "instance_suffix": profile.instance_suffix,
    }
