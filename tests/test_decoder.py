from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import httpx
import pytest

from quiver.decoder import JSONDecoder, populate
from quiver.errors import DecodeError


@dataclass
class Owner:
    login: str = ""


@dataclass
class Repo:
    id: int = 0
    full_name: str = field(default="", metadata={"json": "fullName"})
    owner: Owner = field(default_factory=Owner)
    topics: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Frozen:
    id: int = 0


@dataclass
class Settings:
    count: int = 0
    ratio: float = 0.0
    name: str = ""
    enabled: bool = False
    tags: List[str] = field(default_factory=list)
    limits: Dict[str, int] = field(default_factory=dict)
    note: Optional[str] = "default"
    owner: Optional[Owner] = None


class TestJSONDecoder:
    def test_decode_into_dict(self):
        target: dict = {}
        JSONDecoder().decode(httpx.Response(200, json={"a": 1}), target)
        assert target == {"a": 1}

    def test_decode_into_list(self):
        target: list = ["stale"]
        JSONDecoder().decode(httpx.Response(200, json=[1, 2]), target)
        assert target == [1, 2]

    def test_decode_into_dataclass(self):
        repo = Repo(topics=["keep"])
        JSONDecoder().decode(
            httpx.Response(
                200,
                json={"id": 7, "fullName": "octo/hello", "owner": {"login": "octo"}, "extra": True},
            ),
            repo,
        )
        assert repo.id == 7
        assert repo.full_name == "octo/hello"
        assert repo.owner.login == "octo"
        # absent keys leave fields untouched
        assert repo.topics == ["keep"]

    def test_malformed_json(self):
        response = httpx.Response(200, content=b"{nope")
        with pytest.raises(DecodeError) as excinfo:
            JSONDecoder().decode(response, {})
        assert excinfo.value.response is response

    def test_field_type_mismatch_keeps_response(self):
        response = httpx.Response(200, json={"id": "not-an-int"})
        with pytest.raises(DecodeError, match="Repo.id") as excinfo:
            JSONDecoder().decode(response, Repo())
        assert excinfo.value.response is response

    def test_shape_mismatch_keeps_response(self):
        response = httpx.Response(200, json=[1, 2])
        with pytest.raises(DecodeError) as excinfo:
            JSONDecoder().decode(response, {})
        assert excinfo.value.response is response


class TestPopulate:
    def test_load_json_hook(self):
        class Box:
            value: Optional[Any] = None

            def load_json(self, data: Any) -> None:
                self.value = data

        box = Box()
        populate(box, {"a": [1]})
        assert box.value == {"a": [1]}

    def test_nested_mismatch(self):
        with pytest.raises(DecodeError):
            populate(Repo(), {"owner": "octo"})

    def test_nested_null_is_ignored(self):
        repo = Repo(owner=Owner(login="kept"))
        populate(repo, {"owner": None})
        assert repo.owner.login == "kept"

    def test_frozen_dataclass(self):
        with pytest.raises(DecodeError, match="frozen"):
            populate(Frozen(), {"id": 1})

    def test_unsupported_target(self):
        with pytest.raises(DecodeError, match="unsupported"):
            populate("text", {"a": 1})


class TestFieldTypes:
    def test_matching_values(self):
        settings = Settings()
        populate(
            settings,
            {
                "count": 3,
                "ratio": 1,
                "name": "main",
                "enabled": True,
                "tags": ["a", "b"],
                "limits": {"x": 1},
                "note": None,
                "owner": {"login": "octo"},
            },
        )
        assert settings == Settings(
            count=3,
            ratio=1.0,
            name="main",
            enabled=True,
            tags=["a", "b"],
            limits={"x": 1},
            note=None,
            owner=Owner(login="octo"),
        )
        assert isinstance(settings.ratio, float)

    @pytest.mark.parametrize(
        "data",
        [
            {"count": "3"},
            {"count": True},
            {"count": 1.5},
            {"ratio": "1.5"},
            {"ratio": False},
            {"name": 5},
            {"enabled": 1},
            {"tags": {"a": 1}},
            {"tags": ["a", 2]},
            {"limits": [1]},
            {"limits": {"x": "1"}},
            {"note": 5},
            {"owner": "octo"},
            {"owner": {"login": 7}},
        ],
    )
    def test_mismatch_raises(self, data: dict):
        with pytest.raises(DecodeError, match="cannot unmarshal"):
            populate(Settings(), data)

    def test_null_leaves_required_field_untouched(self):
        settings = Settings(count=7)
        populate(settings, {"count": None})
        assert settings.count == 7

    def test_failed_field_is_not_assigned(self):
        settings = Settings(name="kept")
        with pytest.raises(DecodeError):
            populate(settings, {"name": ["list"]})
        assert settings.name == "kept"
