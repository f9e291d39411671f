"""
Copyright (c) 2023 Adrien Plazas <kekun.plazas@laposte.net>
zlib License, see LICENSE file.
"""

import math
import xml.etree.ElementTree as ET

class ConversionError(Exception):
    """
    Base class of the errors raised while converting a map into a zone.
    """

class ParseError(ConversionError):
    """
    The map is malformed or incomplete, or one of its values can't be parsed.
    """

def _attribute(node: ET.Element, name: str, convert=str, default=None):
    """
    Return the value of an attribute, converted.

    :param node: the node holding the attribute
    :param name: the name of the attribute
    :param convert: the function converting the attribute's string value
    :param default: the value to return if the attribute is missing, if None
                    the attribute is required
    :returns: the converted value of the attribute
    """

    value = node.get(name)
    if value is None:
        if default is None:
            raise ParseError("<" + node.tag + ">: Missing attribute '" + name + "'")
        return default

    try:
        return convert(value)
    except ValueError as e:
        raise ParseError("<" + node.tag + ">: Invalid value for attribute '" + name + "': " + repr(value)) from e

def _finite_float(value: str) -> float:
    number = float(value)
    if not math.isfinite(number):
        raise ValueError("not a finite number")
    return number

def _positive_int(value: str) -> int:
    number = int(value)
    if number <= 0:
        raise ValueError("not a positive integer")
    return number

def _optional_attribute(node: ET.Element, name: str, convert=str):
    value = node.get(name)
    return None if value is None else _attribute(node, name, convert)

class PropertyElement:
    def __init__(self, name: str, value: str):
        self.name = name
        self.value = value

class ObjectElement:
    def __init__(self, id: int|None, name: str|None, type: str, x: float, y: float,
                 width: float|None = None, height: float|None = None,
                 properties: list[PropertyElement]|None = None):
        """
        :param id: the unique ID of the object in the map, if any
        :param name: the name of the object, if any
        :param type: the type tag (class) of the object, empty if unset
        :param x: the abscissa of the object in pixels, from the left
        :param y: the ordinate of the object in pixels, from the top
        :param width: the width of the object, if it's a rectangle
        :param height: the height of the object, if it's a rectangle
        :param properties: the custom properties of the object
        """

        self.id = id
        self.name = name
        self.type = type
        self.x = x
        self.y = y
        self.width = width
        self.height = height
        self.properties = [] if properties is None else properties

    def label(self) -> str:
        """
        Return a human readable label of the object for error messages.

        :returns: the label of the object
        """

        if self.name:
            return "object '" + self.name + "'"
        if self.id is not None:
            return "object " + str(self.id)
        return "object at " + str(self.x) + ":" + str(self.y)

    def property(self, name: str) -> str|None:
        """
        Return the value of the first property with the given name.

        :param name: the name of the property
        :returns: the value of the property, or None if it's missing
        """

        for prop in self.properties:
            if prop.name == name:
                return prop.value
        return None

class ObjectGroupElement:
    def __init__(self, name: str, objects: list[ObjectElement]|None = None):
        self.name = name
        self.objects = [] if objects is None else objects

class DataElement:
    def __init__(self, encoding: str|None, content: str|None):
        """
        :param encoding: the encoding of the data, None for XML
        :param content: the text content, None if empty or absent
        """

        self.encoding = encoding
        self.content = content

class LayerElement:
    def __init__(self, name: str, data: DataElement):
        self.name = name
        self.data = data

class TilesetElement:
    def __init__(self, first_gid: int, source: str|None):
        """
        :param first_gid: the global ID of the first tile of the set
        :param source: the path to the *.tsx file, relative to the map
        """

        self.first_gid = first_gid
        self.source = source

class MapElement:
    def __init__(self, width: int, height: int, tile_width: int, tile_height: int,
                 layers: list[LayerElement]|None = None,
                 object_groups: list[ObjectGroupElement]|None = None,
                 tilesets: list[TilesetElement]|None = None,
                 background_color: str|None = None):
        """
        :param width: the width of the map in tiles
        :param height: the height of the map in tiles
        :param tile_width: the width of each tile in pixels
        :param tile_height: the height of each tile in pixels
        :param layers: the tile layers, in document order
        :param object_groups: the object groups, in document order
        :param tilesets: the tilesets, in document order
        :param background_color: the background color hex code, with the # prefix
        """

        self.width = width
        self.height = height
        self.tile_width = tile_width
        self.tile_height = tile_height
        self.layers = [] if layers is None else layers
        self.object_groups = [] if object_groups is None else object_groups
        self.tilesets = [] if tilesets is None else tilesets
        self.background_color = background_color

    def layer(self, name: str) -> LayerElement|None:
        """
        Return the first tile layer with the given name.

        :param name: the exact name of the layer
        :returns: the layer, or None if there is none
        """

        return next((layer for layer in self.layers if layer.name == name), None)

    def object_group(self, name: str) -> ObjectGroupElement|None:
        """
        Return the first object group with the given name.

        :param name: the exact name of the object group
        :returns: the object group, or None if there is none
        """

        return next((group for group in self.object_groups if group.name == name), None)

def _parse_object(node: ET.Element) -> ObjectElement:
    properties = [
        PropertyElement(_attribute(prop, "name"), _attribute(prop, "value", default=""))
        for prop in node.findall("./properties/property")
    ]
    return ObjectElement(
        _optional_attribute(node, "id", int),
        node.get("name"),
        # Tiled 1.9 renamed the "type" attribute to "class".
        node.get("type", node.get("class", "")),
        _attribute(node, "x", _finite_float),
        _attribute(node, "y", _finite_float),
        _optional_attribute(node, "width", _finite_float),
        _optional_attribute(node, "height", _finite_float),
        properties)

def _parse_layer(node: ET.Element) -> LayerElement:
    name = _attribute(node, "name")
    data_node = node.find("./data")
    if data_node is None:
        raise ParseError("Layer '" + name + "': Missing <data> element")

    encoding = data_node.get("encoding")
    if encoding is not None and encoding != "csv":
        raise ParseError("Layer '" + name + "': Unsupported data encoding '" + encoding + "', expected CSV-encoded data")

    content = data_node.text
    if content is not None and content.strip() == "":
        content = None

    return LayerElement(name, DataElement(encoding, content))

def parse_map(text: str|bytes) -> MapElement:
    """
    Parse a *.tmx document.

    :param text: the XML document
    :returns: the parsed map
    """

    try:
        root = ET.fromstring(text)
    except ET.ParseError as e:
        raise ParseError("Invalid XML: " + str(e)) from e

    if root.tag != "map":
        raise ParseError("Invalid root element <" + root.tag + ">, expected <map>")

    return MapElement(
        _attribute(root, "width", _positive_int),
        _attribute(root, "height", _positive_int),
        _attribute(root, "tilewidth", _positive_int),
        _attribute(root, "tileheight", _positive_int),
        [_parse_layer(node) for node in root.findall("./layer")],
        [ObjectGroupElement(_attribute(node, "name"), [_parse_object(o) for o in node.findall("./object")])
         for node in root.findall("./objectgroup")],
        [TilesetElement(_attribute(node, "firstgid", int), node.get("source"))
         for node in root.findall("./tileset")],
        root.get("backgroundcolor"))

def load_map(filename: str) -> MapElement:
    """
    Parse a *.tmx file.

    :param filename: the filename of the *.tmx file to parse
    :returns: the parsed map
    """

    with open(filename, "rb") as f:
        return parse_map(f.read())
