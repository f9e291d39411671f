"""
Copyright (c) 2023 Adrien Plazas <kekun.plazas@laposte.net>
zlib License, see LICENSE file.
"""

from enum import Enum
from tmx import ConversionError, LayerElement, MapElement, ObjectElement, ObjectGroupElement, ParseError
from typing import NamedTuple
import math

# The size in pixels of the tiles of the game's backgrounds.
BASE_TILE_SIZE = 8
# Affine background maps store one byte per tile.
MAX_BASE_TILE = 255

PORTAL_WIDTH = 16
PORTAL_HEIGHT = 16

class SchemaError(ConversionError):
    """
    A required layer, object group or property is missing, or a value isn't
    one of the accepted ones.
    """

class ConsistencyError(ConversionError):
    """
    The decoded data doesn't match the declared dimensions of the map.
    """

class EnemyType(Enum):
    PLACEHOLDER = "placeholder"
    ZOMBIE = "zombie"
    TOOTH = "tooth"
    CAGE = "cage"
    CREEPER = "creeper"
    THROWER = "thrower"

    @classmethod
    def from_tag(cls, tag: str) -> "EnemyType":
        """
        Return the enemy type for the type tag of an object.

        :param tag: the type tag of the object
        :returns: the enemy type
        """

        try:
            return cls(tag)
        except ValueError:
            raise SchemaError("Unknown enemy type '" + tag + "', expected one of: " + ", ".join(t.value for t in cls)) from None

    def cpp_name(self) -> str:
        """
        Return the name of the enumerator in the game's sp::enemy_type.

        :returns: the C++ enumerator name
        """

        return "apple_thrower" if self is EnemyType.THROWER else self.value

class Point(NamedTuple):
    x: int
    y: int

class Enemy(NamedTuple):
    enemy_type: EnemyType
    spawn_point: Point

class Portal(NamedTuple):
    target_zone: str
    position: Point
    width: int
    height: int
    destination: Point

class Zone(NamedTuple):
    name: str
    width: int
    height: int
    metatile_factor: int
    floor: tuple[int, ...]
    ceiling: tuple[int, ...]
    player_spawn_point: Point
    enemies: tuple[Enemy, ...]
    portals: tuple[Portal, ...]

def decode_metatiles(tmx_map: MapElement, layer: LayerElement) -> list[int]:
    """
    Return the metatiles of a layer.

    :param tmx_map: the map the layer belongs to
    :param layer: the tile layer
    :returns: the metatile indices, in row-major order
    """

    if layer.data.content is None:
        raise ParseError("Missing tile data for layer '" + layer.name + "'")

    metatiles = []
    for token in layer.data.content.replace("\n", "").replace("\r", "").split(","):
        try:
            metatile = int(token)
        except ValueError:
            metatile = -1
        if metatile < 0:
            raise ParseError("Layer '" + layer.name + "': Failed to parse tile value: " + repr(token))
        metatiles.append(metatile)

    n_tiles = tmx_map.width * tmx_map.height
    if len(metatiles) != n_tiles:
        raise ConsistencyError("Incorrect '" + layer.name + "' layer size: " + str(len(metatiles)) + " vs " + str(n_tiles))

    return metatiles

def metatile_factor(tmx_map: MapElement) -> int:
    """
    Return how many base tiles fit in the width of a tile of the map.

    :param tmx_map: the map
    :returns: the metatile factor
    """

    if tmx_map.tile_width <= 0 or tmx_map.tile_width % BASE_TILE_SIZE != 0:
        raise SchemaError("Tile width must be a multiple of " + str(BASE_TILE_SIZE) + ", got " + str(tmx_map.tile_width))

    return tmx_map.tile_width // BASE_TILE_SIZE

def expand_metatiles(metatiles: list[int], factor: int) -> list[int]:
    """
    Return the base tiles of metatiles, each metatile being expanded into
    factor² consecutive base tiles.

    Tiled stores tile references 1-indexed with 0 meaning no tile, both 0 and
    1 are expanded from the first base tile.

    :param metatiles: the metatile indices
    :param factor: the metatile factor
    :returns: the base tile indices
    """

    size = factor * factor
    return [tile for metatile in metatiles for tile in range(max(metatile - 1, 0) * size, max(metatile - 1, 0) * size + size)]

def normalize(x: float, y: float, half_width: int, half_height: int) -> Point:
    """
    Return the world position of a map position. The origin of the map is its
    top-left corner with the Y axis going down, the origin of the world is the
    center of the map with the Y axis going up.

    :param x: the abscissa in the map
    :param y: the ordinate in the map
    :param half_width: half the width of the map in pixels
    :param half_height: half the height of the map in pixels
    :returns: the world position
    """

    return Point(math.floor(x) - half_width, half_height - math.floor(y))

def _layer_tiles(tmx_map: MapElement, layer_name: str, factor: int) -> tuple[int, ...]:
    layer = tmx_map.layer(layer_name)
    if layer is None:
        raise SchemaError("Missing tile layer '" + layer_name + "'")

    tiles = expand_metatiles(decode_metatiles(tmx_map, layer), factor)
    if tiles and max(tiles) > MAX_BASE_TILE:
        raise ConsistencyError("Layer '" + layer_name + "': Tile " + str(max(tiles)) + " exceeds the maximum of " + str(MAX_BASE_TILE))

    return tuple(tiles)

def _required_group(tmx_map: MapElement, group_name: str) -> ObjectGroupElement:
    group = tmx_map.object_group(group_name)
    if group is None:
        raise SchemaError("Missing object group '" + group_name + "'")
    return group

def _portal_property(group: ObjectGroupElement, map_object: ObjectElement, name: str, convert=str):
    value = map_object.property(name)
    if value is None:
        raise SchemaError(group.name + ": " + map_object.label() + ": Missing property '" + name + "'")

    try:
        return convert(value)
    except ValueError as e:
        raise ParseError(group.name + ": " + map_object.label() + ": Invalid value for property '" + name + "': " + repr(value)) from e

def build_zone(tmx_map: MapElement, name: str, use_tile_height: bool = False) -> Zone:
    """
    Build the zone of a map.

    :param tmx_map: the parsed map
    :param name: the name of the zone
    :param use_tile_height: center vertically using the tile height rather
                            than the tile width like legacy maps expect
    :returns: the zone
    """

    factor = metatile_factor(tmx_map)
    floor = _layer_tiles(tmx_map, "Floor", factor)
    ceiling = _layer_tiles(tmx_map, "Ceiling", factor)

    half_width = tmx_map.width * tmx_map.tile_width // 2
    half_height = tmx_map.height * (tmx_map.tile_height if use_tile_height else tmx_map.tile_width) // 2
    to_world = lambda x, y: normalize(x, y, half_width, half_height)

    spawn_group = _required_group(tmx_map, "Spawn")
    if len(spawn_group.objects) == 0:
        raise SchemaError("Missing player spawn point in object group 'Spawn'")
    spawn = spawn_group.objects[0]
    player_spawn_point = to_world(spawn.x, spawn.y)

    enemies = []
    enemies_group = _required_group(tmx_map, "Enemies")
    for map_object in enemies_group.objects:
        try:
            enemy_type = EnemyType.from_tag(map_object.type)
        except SchemaError as e:
            raise SchemaError(enemies_group.name + ": " + map_object.label() + ": " + str(e)) from None
        enemies.append(Enemy(enemy_type, to_world(map_object.x, map_object.y)))

    portals = []
    portals_group = tmx_map.object_group("Portals")
    for map_object in [] if portals_group is None else portals_group.objects:
        target_zone = _portal_property(portals_group, map_object, "zone")
        destination_x = _portal_property(portals_group, map_object, "x", int)
        destination_y = _portal_property(portals_group, map_object, "y", int)
        portals.append(Portal(
            target_zone,
            to_world(map_object.x, map_object.y),
            PORTAL_WIDTH,
            PORTAL_HEIGHT,
            to_world(destination_x, destination_y)))

    return Zone(
        name,
        tmx_map.width,
        tmx_map.height,
        factor,
        floor,
        ceiling,
        player_spawn_point,
        tuple(enemies),
        tuple(portals))
