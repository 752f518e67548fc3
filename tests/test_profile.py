from __future__ import annotations

import json
from pathlib import Path

import pytest

from msc_itemclean.core.landfill import LANDFILL_POSITION
from msc_itemclean.errors import ProfileError
from msc_itemclean.profile import (
    DEFAULT_PROFILE,
    PROFILE_ID_V1,
    ItemGroup,
    load_profile,
    profile_from_dict,
    profile_to_dict,
)


def _minimal(**extra: object) -> dict:
    obj = {
        "spec": PROFILE_ID_V1,
        "name": "pikes only",
        "groups": [{"prefix": "pikex", "counter_tag": "pikexID"}],
    }
    obj.update(extra)
    return obj


def test_default_profile_table() -> None:
    p = DEFAULT_PROFILE
    assert len(p.groups) == 38
    assert len(p.counter_tags) == 38
    assert ItemGroup("sausagesx", "SausagesxID", True) in p.groups
    assert ItemGroup("spraycan13", "Spraycan13ID", False) in p.groups
    assert {g.prefix for g in p.groups if g.default_zero_item} == {
        "beercase",
        "sausagesx",
        "milkx",
        "pizzax",
    }
    assert "sausagesx0" in p.protected_ids
    assert p.landfill_position == LANDFILL_POSITION
    assert p.instance_suffix == "Transform"


def test_is_protected() -> None:
    p = DEFAULT_PROFILE
    assert p.is_protected("milkxCondition")
    # allowlist entries match whole tags; "beercase0" is an identity, not a tag
    assert not p.is_protected("beercase0Transform")
    assert p.is_protected("spark plug3Transform")
    assert not p.is_protected("pikex1Transform")


def test_load_inline_minimal() -> None:
    p = load_profile(json.dumps(_minimal()))
    assert p.name == "pikes only"
    assert p.groups == (ItemGroup("pikex", "pikexID", False),)
    assert p.protected_ids == frozenset()
    assert p.protected_prefixes == ()
    assert p.landfill_position == LANDFILL_POSITION


def test_load_from_file(tmp_path: Path) -> None:
    f = tmp_path / "profile.json"
    f.write_text(
        json.dumps(
            _minimal(
                protected_ids=["pikex0"],
                protected_prefixes=["fuse"],
                landfill_position="000102030405060708090a0b",
            )
        ),
        encoding="utf-8",
    )
    p = load_profile("@" + str(f))
    assert p.protected_ids == frozenset({"pikex0"})
    assert p.protected_prefixes == ("fuse",)
    assert p.landfill_position == bytes(range(12))


def test_default_profile_dict_roundtrip() -> None:
    d = profile_to_dict(DEFAULT_PROFILE)
    assert d["spec"] == PROFILE_ID_V1
    assert profile_from_dict(json.loads(json.dumps(d))) == DEFAULT_PROFILE


@pytest.mark.parametrize(
    "obj,match",
    [
        (_minimal(wat=1), "unsupported keys"),
        (_minimal(spec="msc-itemclean.profile.v0"), "unsupported spec"),
        ({"spec": PROFILE_ID_V1}, "groups"),
        (_minimal(groups=[{"prefix": "pikex"}]), "counter_tag"),
        (_minimal(groups=[{"prefix": "a", "counter_tag": "X", "extra": 1}]), "unsupported keys"),
        (_minimal(groups=[{"prefix": "a", "counter_tag": "X", "default_zero_item": "yes"}]), "boolean"),
        (
            _minimal(
                groups=[
                    {"prefix": "a", "counter_tag": "X"},
                    {"prefix": "b", "counter_tag": "X"},
                ]
            ),
            "duplicate",
        ),
        (_minimal(protected_ids="pikex0"), "list"),
        (_minimal(landfill_position="zz"), "hex"),
        (_minimal(landfill_position="00"), "12 bytes"),
        (_minimal(instance_suffix=""), "instance_suffix"),
    ],
)
def test_invalid_profiles(obj: dict, match: str) -> None:
    with pytest.raises(ProfileError, match=match):
        load_profile(json.dumps(obj))


def test_invalid_json_and_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ProfileError, match="invalid JSON"):
        load_profile("{nope")
    with pytest.raises(ProfileError, match="JSON object"):
        load_profile("[]")
    with pytest.raises(ProfileError, match="not found"):
        load_profile("@" + str(tmp_path / "missing.json"))
    with pytest.raises(ProfileError, match="empty"):
        load_profile("   ")


def test_profile_error_is_value_error() -> None:
    with pytest.raises(ValueError):
        load_profile("{}")
