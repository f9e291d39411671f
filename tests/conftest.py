"""Shared fixtures building Tiled map documents."""

import pytest


def _layer(name: str, data: str) -> str:
    return '<layer id="1" name="{name}" width="2" height="2"><data encoding="csv">\n{data}\n</data></layer>'.format(
        name=name, data=data
    )


def _object(object_id: int, x: float, y: float, object_type: str = "", properties: dict | None = None) -> str:
    props = ""
    if properties:
        props = "<properties>" + "".join(
            '<property name="{0}" value="{1}"/>'.format(name, value) for name, value in properties.items()
        ) + "</properties>"
    return '<object id="{0}" type="{1}" x="{2}" y="{3}">{4}</object>'.format(object_id, object_type, x, y, props)


def _group(name: str, objects: list[str]) -> str:
    return '<objectgroup id="9" name="{0}">{1}</objectgroup>'.format(name, "".join(objects))


def _map(body: str, width: int = 2, height: int = 2, tile_width: int = 8, tile_height: int = 8) -> str:
    return (
        '<map version="1.10" orientation="orthogonal" renderorder="right-down" '
        'width="{0}" height="{1}" tilewidth="{2}" tileheight="{3}">{4}</map>'
    ).format(width, height, tile_width, tile_height, body)


class TmxBuilder:
    """Helpers assembling small *.tmx documents."""

    layer = staticmethod(_layer)
    object = staticmethod(_object)
    group = staticmethod(_group)
    map = staticmethod(_map)

    def minimal(self, enemies: list[str] | None = None, extra: str = "") -> str:
        """Return a 2x2 map with Floor, Ceiling, Spawn and Enemies."""
        return _map(
            _layer("Floor", "1,2,\n3,4")
            + _layer("Ceiling", "0,0,\n0,0")
            + _group("Spawn", [_object(1, 8, 8)])
            + _group("Enemies", enemies or [])
            + extra
        )


@pytest.fixture
def tmx() -> TmxBuilder:
    return TmxBuilder()
