"""
Copyright (c) 2023 Adrien Plazas <kekun.plazas@laposte.net>
zlib License, see LICENSE file.
"""

from preview import render_preview
from tmx import ConversionError, load_map
from zone import Zone, build_zone
import argparse
import logging
import os
import re
import sptemplate
import sys

_indentation = "    "

# Identifiers zones can't be named after: the ones the generated sources
# declare in or use from the sp namespace, and C++ keywords.
_reserved_names = {
    "bn", "enemy_spawn", "enemy_type", "portal", "sp", "std", "world_zone", "world_zone_from_name", "zone",
    "zone_data",
    "alignas", "alignof", "and", "and_eq", "asm", "auto", "bitand", "bitor", "bool", "break", "case", "catch",
    "char", "char8_t", "char16_t", "char32_t", "class", "compl", "concept", "const", "consteval", "constexpr",
    "constinit", "const_cast", "continue", "co_await", "co_return", "co_yield", "decltype", "default", "delete",
    "do", "double", "dynamic_cast", "else", "enum", "explicit", "export", "extern", "false", "float", "for",
    "friend", "goto", "if", "inline", "int", "long", "mutable", "namespace", "new", "noexcept", "not", "not_eq",
    "nullptr", "operator", "or", "or_eq", "private", "protected", "public", "register", "reinterpret_cast",
    "requires", "return", "short", "signed", "sizeof", "static", "static_assert", "static_cast", "struct",
    "switch", "template", "this", "thread_local", "throw", "true", "try", "typedef", "typeid", "typename",
    "union", "unsigned", "using", "virtual", "void", "volatile", "wchar_t", "while", "xor", "xor_eq",
}

def write_to_file(filename: str, text: str, only_if_changed: bool = False) -> bool:
    """
    Write text to a file.

    :param filename: the filename of the file to write
    :param text: the text to write
    :param only_if_changed: leave the file untouched if it already contains the text
    :returns: whether the file was written
    """

    if only_if_changed and os.path.isfile(filename):
        with open(filename, "r") as f:
            if f.read() == text:
                return False

    logging.info("Writing " + filename)
    with open(filename, "w") as f:
        f.write(text)
    return True

def multiline_c_array(l: list, indentation: str, depth: int) -> str:
    """
    Return the multiline C or C++ literal array or struct for the elements in the list.

    :param l: the list of the array elements
    :param indentation: the characters to use for an indentation level
    :param depth: the depth of the indentation
    :returns: the multiline array literal
    """

    if len(l) == 0:
        return "{}"

    outer_indentation = indentation * depth
    inner_indentation = indentation * (depth + 1)
    splitter = ",\n" + inner_indentation

    return "{\n" + inner_indentation + splitter.join(map(str, l)) + "\n" + outer_indentation + "}"

def mangle(name: str) -> str:
    """
    Return the lowercase mangled C or C++ name for the given name.

    Names are mangled in the following way:
    - leading characters that aren't ASCII letters are trimmed
    - trailing characters that aren't ASCII letters or digits are trimmed
    - sequences of characters that aren't ASCII letters or digits are replaced
      by a single underscore character
    - letters are lowercased

    :param name: the name to mangle
    :returns: the lowercase mangled name
    """

    match = re.match('^[0-9_]*([a-z0-9_]+?)_*$', re.sub('[^a-z0-9]+', '_', name.lower()))
    return "" if match is None else match.group(1)

def header_filename(zone_name: str) -> str:
    return "sp_" + zone_name + ".h"

def _tiles_literal(tiles: tuple[int, ...], row_length: int) -> str:
    # One line per row of metatiles, each metatile being a block of
    # consecutive base tiles.
    rows = [",".join(map(str, tiles[i:i + row_length])) for i in range(0, len(tiles), row_length)]
    return multiline_c_array(rows, _indentation, 1)

def render_header(zone: Zone) -> str:
    """
    Return the C++ header defining the constant data of a zone.

    :param zone: the zone
    :returns: the header
    """

    width = zone.width * zone.metatile_factor
    height = zone.height * zone.metatile_factor

    if len(zone.enemies) == 0:
        enemy_spawns_definition = sptemplate.enemy_spawns_definition_empty
    else:
        enemy_spawns = [sptemplate.enemy_spawn.format(
                            x=enemy.spawn_point.x,
                            y=enemy.spawn_point.y,
                            type=enemy.enemy_type.cpp_name())
                        for enemy in zone.enemies]
        enemy_spawns_definition = sptemplate.enemy_spawns_definition.format(
            enemy_spawns=multiline_c_array(enemy_spawns, _indentation, 1))

    if len(zone.portals) == 0:
        portals_definition = sptemplate.portals_definition_empty
    else:
        portals = [sptemplate.portal.format(
                       target_zone=mangle(portal.target_zone),
                       x=portal.position.x,
                       y=portal.position.y,
                       width=portal.width,
                       height=portal.height,
                       destination_x=portal.destination.x,
                       destination_y=portal.destination.y)
                   for portal in zone.portals]
        portals_definition = sptemplate.portals_definition.format(
            portals=multiline_c_array(portals, _indentation, 1))

    return sptemplate.header.format(
        ceiling_tiles=_tiles_literal(zone.ceiling, zone.width * zone.metatile_factor * zone.metatile_factor),
        enemy_spawns_definition=enemy_spawns_definition,
        floor_tiles=_tiles_literal(zone.floor, zone.width * zone.metatile_factor * zone.metatile_factor),
        guard="SP_" + zone.name.upper() + "_H",
        height=height,
        portals_definition=portals_definition,
        size=width * height,
        spawn_point_x=zone.player_spawn_point.x,
        spawn_point_y=zone.player_spawn_point.y,
        width=width,
        zone_name=zone.name)

def render_include() -> str:
    """
    Return the C++ header defining the types shared by all zones.

    :returns: the header
    """

    return sptemplate.include

def render_manifest_header(zone_names: list[str]) -> str:
    """
    Return the C++ header declaring the world zones and how to look them up.

    :param zone_names: the names of the converted zones, in conversion order
    :returns: the header
    """

    return sptemplate.manifest_header.format(world_zones=multiline_c_array(zone_names, _indentation, 0))

def render_manifest_source(zone_names: list[str]) -> str:
    """
    Return the C++ source looking world zones up.

    :param zone_names: the names of the converted zones, in conversion order
    :returns: the source
    """

    return sptemplate.manifest_source.format(
        zone_includes="\n".join('#include "' + header_filename(zone_name) + '"' for zone_name in zone_names),
        name_lookups="".join(sptemplate.manifest_name_lookup.format(zone_name=zone_name) for zone_name in zone_names),
        zone_cases="".join(sptemplate.manifest_zone_case.format(zone_name=zone_name) for zone_name in zone_names))

class ZoneConverter:
    def __init__(self, tmx_filename: str, use_tile_height: bool = False):
        """
        :param tmx_filename: the filename of the *.tmx file to convert
        :param use_tile_height: center vertically using the tile height
        """

        self._filename = tmx_filename
        self._basename = os.path.splitext(os.path.basename(tmx_filename))[0]
        self._name = mangle(self._basename)
        if self._name == "":
            raise ConversionError("Can't derive a zone name from '" + self._basename + "'")
        if self._name in _reserved_names:
            raise ConversionError("Zone name '" + self._name + "' is reserved, rename " + os.path.basename(tmx_filename))
        self._use_tile_height = use_tile_height
        self._map = None
        self._zone = None

    def name(self) -> str:
        return self._name

    def zone(self) -> Zone:
        # Parse and build lazily so up to date zones are never parsed.
        if self._zone is None:
            self._map = load_map(self._filename)
            self._zone = build_zone(self._map, self._name, self._use_tile_height)
        return self._zone

    def header(self) -> str:
        return render_header(self.zone())

    def preview(self):
        self.zone()
        return render_preview(self._map, os.path.dirname(self._filename))

def _mtime(filename: str) -> float:
    return os.path.getmtime(filename) if os.path.isfile(filename) else 0

def process(maps_dirs: list[str], build_dir: str, fail_fast: bool = False, force: bool = False,
            preview: bool = False, use_tile_height: bool = False) -> tuple[list[str], list[str]]:
    """
    Convert the maps of directories into zones.

    :param maps_dirs: the directories containing *.tmx files
    :param build_dir: the directory to write the output to
    :param fail_fast: stop at the first map failing to convert
    :param force: convert maps even if their output is up to date
    :param preview: also export a preview image of each zone
    :param use_tile_height: center vertically using the tile height
    :returns: the names of the converted zones and the filenames of the maps
              that failed to convert
    """

    build_include_dir = os.path.join(build_dir, "include")
    build_src_dir = os.path.join(build_dir, "src")
    build_preview_dir = os.path.join(build_dir, "preview")

    os.makedirs(build_include_dir, exist_ok=True)
    os.makedirs(build_src_dir, exist_ok=True)
    if preview:
        os.makedirs(build_preview_dir, exist_ok=True)

    # Export the shared header
    write_to_file(os.path.join(build_include_dir, "sp_zone.h"), render_include(), only_if_changed=True)

    zone_names = []
    zone_filenames = {}
    failures = []
    for maps_dir in maps_dirs:
        for map_file in sorted(os.listdir(maps_dir)):
            tmx_filename = os.path.join(maps_dir, map_file)
            if not map_file.endswith('.tmx') or not os.path.isfile(tmx_filename):
                continue

            try:
                converter = ZoneConverter(tmx_filename, use_tile_height)
                zone_name = converter.name()
                if zone_name in zone_filenames:
                    raise ConversionError("Zone '" + zone_name + "' is already defined by " + zone_filenames[zone_name])

                zone_header_filename = os.path.join(build_include_dir, header_filename(zone_name))
                preview_filename = os.path.join(build_preview_dir, zone_name + ".png")
                output_filenames = [zone_header_filename] + ([preview_filename] if preview else [])

                # Don't rebuild unchanged files
                if force or _mtime(tmx_filename) >= min(map(_mtime, output_filenames)):
                    write_to_file(zone_header_filename, converter.header())

                    if preview:
                        try:
                            logging.info("Writing " + preview_filename)
                            converter.preview().save(preview_filename, "PNG")
                        except (ConversionError, OSError, ValueError) as e:
                            logging.warning(tmx_filename + ": Can't export the preview: " + str(e))
                else:
                    logging.debug(tmx_filename + ": Up to date")
            except (ConversionError, OSError) as e:
                logging.error(tmx_filename + ": " + str(e))
                failures.append(tmx_filename)
                if fail_fast:
                    return zone_names, failures
                continue

            zone_names.append(zone_name)
            zone_filenames[zone_name] = tmx_filename

    # Export the manifest
    write_to_file(os.path.join(build_include_dir, "sp_world_zone.h"), render_manifest_header(zone_names), only_if_changed=True)
    write_to_file(os.path.join(build_src_dir, "sp_world_zone.cpp"), render_manifest_source(zone_names), only_if_changed=True)

    return zone_names, failures

def main(argv: list[str]|None = None) -> int:
    parser = argparse.ArgumentParser(description='Compile Tiled maps into zone data usable by the game engine.')
    parser.add_argument('--build', required=True, help='build directory path')
    parser.add_argument('--fail-fast', action='store_true', help='stop at the first map failing to convert')
    parser.add_argument('--force', action='store_true', help='convert maps even if their output is up to date')
    parser.add_argument('--preview', action='store_true', help='also export a preview image of each zone')
    parser.add_argument('--use-tile-height', action='store_true',
                        help='center zones vertically using the tile height instead of the tile width')
    parser.add_argument('--verbose', action='store_true', help='log debug messages')
    parser.add_argument('mapsdirs', metavar='mapsdir', nargs='+',
                        help='maps directories paths')
    args = parser.parse_args(argv)

    logging.basicConfig(format="%(levelname)s: %(message)s", level=logging.DEBUG if args.verbose else logging.INFO)

    _, failures = process(args.mapsdirs, args.build, args.fail_fast, args.force, args.preview, args.use_tile_height)
    if len(failures) > 0:
        logging.error("Failed to convert " + str(len(failures)) + " map(s)")
        return 1
    return 0

if __name__ == "__main__":
    sys.exit(main())
