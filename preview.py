"""
Copyright (c) 2023 Adrien Plazas <kekun.plazas@laposte.net>
zlib License, see LICENSE file.
"""

from PIL import Image
from tmx import MapElement, ParseError
from zone import decode_metatiles
import logging
import os
import PIL
import xml.etree.ElementTree as ET

# The layers composed in the preview, from bottom to top.
_preview_layers = ["Floor", "Ceiling"]

class TSX:
    def __init__(self, filename: str):
        """
        :param filename: the filename of the *.tsx file to parse
        """

        self._filename = os.path.realpath(filename)
        try:
            self._root = ET.parse(self._filename).getroot()
        except ET.ParseError as e:
            raise ParseError(self._filename + ": Invalid XML: " + str(e)) from e

        try:
            self._n_tiles = int(self._root.get("tilecount"))
            self._tile_width = int(self._root.get("tilewidth"))
            self._tile_height = int(self._root.get("tileheight"))
            self._columns = int(self._root.get("columns"))
        except (TypeError, ValueError) as e:
            raise ParseError(self._filename + ": Invalid tileset attributes") from e

        image_node = self._root.find("./image")
        if image_node is None:
            raise ParseError(self._filename + ": Missing <image> element")
        image_source = image_node.get("source")
        if image_source is None:
            raise ParseError(self._filename + ": Missing image source")
        self._image = Image.open(os.path.join(os.path.dirname(self._filename), image_source)).convert("RGBA")

    def n_tiles(self) -> int:
        return self._n_tiles

    def compose(self, dst_image: PIL.Image.Image, tile_id: int, x: int, y: int):
        """
        Compose a tile on an image.

        :param dst_image: the image to draw the tile on
        :param tile_id: the ID of the tile to draw, local to the set
        :param x: the abscissa of the top-left corner from which to draw
        :param y: the ordinate of the top-left corner from which to draw
        """

        src_x = (tile_id % self._columns) * self._tile_width
        src_y = (tile_id // self._columns) * self._tile_height
        dst_image.alpha_composite(self._image, (x, y), (src_x, src_y, src_x + self._tile_width, src_y + self._tile_height))

def load_tilesets(tmx_map: MapElement, directory: str) -> list[tuple[int,int,TSX]]:
    """
    Return the list of tilesets consisting of their first ID in the map, their
    last ID in the map, and their TSX object.

    :param tmx_map: the map
    :param directory: the directory of the map, tilesets are relative to it
    :returns: the tilesets
    """

    tilesets = []
    for tileset in tmx_map.tilesets:
        if tileset.source is None:
            logging.warning("Embedded tilesets aren't supported, skipping tileset at ID " + str(tileset.first_gid))
            continue

        tsx = TSX(os.path.join(directory, tileset.source))
        tilesets.append((tileset.first_gid, tileset.first_gid + tsx.n_tiles() - 1, tsx))
    return tilesets

def render_preview(tmx_map: MapElement, directory: str) -> PIL.Image.Image:
    """
    Return an image of the Floor layer with the Ceiling layer composed over it.

    :param tmx_map: the map
    :param directory: the directory of the map, tilesets are relative to it
    :returns: the preview image
    """

    tilesets = load_tilesets(tmx_map, directory)
    width, height = tmx_map.width * tmx_map.tile_width, tmx_map.height * tmx_map.tile_height
    background_color = tmx_map.background_color if tmx_map.background_color else (0, 0, 0, 0)
    image = Image.new("RGBA", (width, height), background_color)

    for layer_name in _preview_layers:
        layer = tmx_map.layer(layer_name)
        if layer is None:
            continue

        for i, tile_id in enumerate(decode_metatiles(tmx_map, layer)):
            if tile_id == 0:
                continue

            x = (i % tmx_map.width) * tmx_map.tile_width
            y = (i // tmx_map.width) * tmx_map.tile_height
            for first, last, tsx in tilesets:
                if tile_id >= first and tile_id <= last:
                    tsx.compose(image, tile_id - first, x, y)
                    break

    return image
