"""Tests for parsing Tiled maps."""

import re

import pytest

from tmx import ParseError, load_map, parse_map


class TestParseMap:
    """Test decoding the map document into its elements."""

    def test_map_attributes(self, tmx) -> None:
        """Test the map dimensions bind to their attributes."""
        tmx_map = parse_map(tmx.map("", width=30, height=20, tile_width=16, tile_height=8))

        assert tmx_map.width == 30
        assert tmx_map.height == 20
        assert tmx_map.tile_width == 16
        assert tmx_map.tile_height == 8
        assert tmx_map.layers == []
        assert tmx_map.object_groups == []

    def test_layers_keep_document_order(self, tmx) -> None:
        """Test tile layers are parsed in order with their CSV content."""
        tmx_map = parse_map(tmx.map(tmx.layer("Floor", "1,2,3,4") + tmx.layer("Ceiling", "0,0,0,0")))

        assert [layer.name for layer in tmx_map.layers] == ["Floor", "Ceiling"]
        assert tmx_map.layers[0].data.encoding == "csv"
        assert tmx_map.layers[0].data.content.strip() == "1,2,3,4"
        assert tmx_map.layer("Ceiling") is tmx_map.layers[1]
        assert tmx_map.layer("ceiling") is None

    def test_empty_data_content(self, tmx) -> None:
        """Test empty tile data is kept as missing content."""
        tmx_map = parse_map(tmx.map('<layer name="Floor"><data encoding="csv">  \n </data></layer>'))

        assert tmx_map.layers[0].data.content is None

    def test_objects(self, tmx) -> None:
        """Test objects, their sizes and properties are decoded."""
        document = tmx.map(
            '<objectgroup name="Portals">'
            '<object id="4" name="door" type="portal" x="10.5" y="20.25" width="16" height="32">'
            '<properties><property name="zone" value="cave"/><property name="x" value="3"/></properties>'
            "</object>"
            '<object id="5" x="1" y="2"/>'
            "</objectgroup>"
        )
        group = parse_map(document).object_group("Portals")

        door, bare = group.objects
        assert door.id == 4
        assert door.name == "door"
        assert door.type == "portal"
        assert (door.x, door.y) == (10.5, 20.25)
        assert (door.width, door.height) == (16.0, 32.0)
        assert door.property("zone") == "cave"
        assert door.property("y") is None
        assert bare.type == ""
        assert bare.width is None
        assert bare.properties == []

    def test_class_attribute(self, tmx) -> None:
        """Test the class attribute of newer Tiled versions is read as type."""
        document = tmx.map('<objectgroup name="Enemies"><object id="1" class="cage" x="0" y="0"/></objectgroup>')

        assert parse_map(document).object_groups[0].objects[0].type == "cage"

    def test_tilesets(self, tmx) -> None:
        """Test external tilesets are listed with their first global ID."""
        tmx_map = parse_map(tmx.map('<tileset firstgid="1" source="a.tsx"/><tileset firstgid="17" source="b.tsx"/>'))

        assert [(t.first_gid, t.source) for t in tmx_map.tilesets] == [(1, "a.tsx"), (17, "b.tsx")]

    def test_bytes_input(self, tmx) -> None:
        """Test raw bytes with an XML declaration are accepted."""
        document = b'<?xml version="1.0" encoding="UTF-8"?>\n' + tmx.map("").encode("utf-8")

        assert parse_map(document).width == 2


class TestParseErrors:
    """Test malformed maps are rejected."""

    def test_invalid_xml(self) -> None:
        """Test unparsable XML carries the underlying cause."""
        with pytest.raises(ParseError) as excinfo:
            parse_map("<map width=")

        assert excinfo.value.__cause__ is not None

    def test_wrong_root(self) -> None:
        with pytest.raises(ParseError, match="expected <map>"):
            parse_map('<tileset name="tiles"/>')

    def test_invalid_integer_attribute(self, tmx) -> None:
        """Test a numeric attribute failing to parse names the attribute."""
        document = tmx.map("").replace('width="2"', 'width="two"', 1)

        with pytest.raises(ParseError, match="'width'"):
            parse_map(document)

    def test_missing_attribute(self) -> None:
        with pytest.raises(ParseError, match="'tilewidth'"):
            parse_map('<map width="2" height="2" tileheight="8"/>')

    def test_invalid_float_attribute(self, tmx) -> None:
        document = tmx.map('<objectgroup name="Spawn"><object id="1" x="left" y="0"/></objectgroup>')

        with pytest.raises(ParseError, match="'x'"):
            parse_map(document)

    @pytest.mark.parametrize("value", ["inf", "-inf", "nan"])
    def test_non_finite_float_attribute(self, tmx, value: str) -> None:
        """Test positions must be finite numbers."""
        document = tmx.map('<objectgroup name="Enemies"><object id="1" x="' + value + '" y="0"/></objectgroup>')

        with pytest.raises(ParseError, match="'x'"):
            parse_map(document)

    @pytest.mark.parametrize("attribute", ["width", "height", "tilewidth", "tileheight"])
    @pytest.mark.parametrize("value", ["0", "-4"])
    def test_non_positive_dimension(self, tmx, attribute: str, value: str) -> None:
        """Test map dimensions must be positive integers."""
        document = re.sub(" " + attribute + '="\\d+"', " " + attribute + '="' + value + '"', tmx.map(""), count=1)

        with pytest.raises(ParseError, match="'" + attribute + "'"):
            parse_map(document)

    def test_layer_without_data(self, tmx) -> None:
        with pytest.raises(ParseError, match="Missing <data>"):
            parse_map(tmx.map('<layer name="Floor"/>'))

    def test_unsupported_encoding(self, tmx) -> None:
        """Test only CSV-encoded layers are accepted."""
        document = tmx.map('<layer name="Floor"><data encoding="base64">AQAAAA==</data></layer>')

        with pytest.raises(ParseError, match="base64"):
            parse_map(document)


def test_load_map(tmp_path, tmx) -> None:
    """Test loading a map from a file."""
    filename = tmp_path / "forest.tmx"
    filename.write_text(tmx.minimal())

    tmx_map = load_map(str(filename))

    assert [group.name for group in tmx_map.object_groups] == ["Spawn", "Enemies"]
