"""
Copyright (c) 2023 Adrien Plazas <kekun.plazas@laposte.net>
zlib License, see LICENSE file.
"""

include = '''\
/*
 * Copyright (c) 2023 Adrien Plazas <kekun.plazas@laposte.net>
 * zlib License, see LICENSE file.
 */

#ifndef SP_ZONE_H
#define SP_ZONE_H

#include <bn_affine_bg_map_item.h>
#include <bn_span.h>

#include "enemy_type.h"
#include "sp_world_zone.h"

namespace sp
{

struct enemy_spawn
{
    int16_t x;
    int16_t y;
    sp::enemy_type type;

    constexpr enemy_spawn(int16_t _x, int16_t _y, sp::enemy_type _type) : x(_x), y(_y), type(_type) {}
};

struct portal
{
    sp::world_zone target_zone;
    int16_t x;
    int16_t y;
    uint16_t width;
    uint16_t height;
    int16_t destination_x;
    int16_t destination_y;

    constexpr portal(sp::world_zone _target_zone, int16_t _x, int16_t _y, uint16_t _width, uint16_t _height,
                     int16_t _destination_x, int16_t _destination_y) :
        target_zone(_target_zone), x(_x), y(_y), width(_width), height(_height),
        destination_x(_destination_x), destination_y(_destination_y) {}
};

struct zone
{
    const bn::affine_bg_map_item& floor_map;
    const bn::affine_bg_map_item& ceiling_map;
    int16_t spawn_point_x;
    int16_t spawn_point_y;
    bn::span<const sp::enemy_spawn> enemy_spawns;
    bn::span<const sp::portal> portals;

    constexpr zone(const bn::affine_bg_map_item& _floor_map, const bn::affine_bg_map_item& _ceiling_map,
                   int16_t _spawn_point_x, int16_t _spawn_point_y,
                   const bn::span<const sp::enemy_spawn>& _enemy_spawns, const bn::span<const sp::portal>& _portals) :
        floor_map(_floor_map), ceiling_map(_ceiling_map), spawn_point_x(_spawn_point_x), spawn_point_y(_spawn_point_y),
        enemy_spawns(_enemy_spawns), portals(_portals) {}
};

}

#endif
'''

enemy_spawn = 'sp::enemy_spawn({x}, {y}, sp::enemy_type::{type})'

enemy_spawns_definition = '''\
    constexpr sp::enemy_spawn _enemy_spawns[] = {enemy_spawns};
    constexpr bn::span<const sp::enemy_spawn> enemy_spawns(_enemy_spawns);
'''

# We can't have empty constexpr arrays, so empty collections are empty spans.
enemy_spawns_definition_empty = '''\
    // There are no enemies in this zone.
    constexpr bn::span<const sp::enemy_spawn> enemy_spawns;
'''

portal = 'sp::portal(sp::world_zone::{target_zone}, {x}, {y}, {width}, {height}, {destination_x}, {destination_y})'

portals_definition = '''\
    constexpr sp::portal _portals[] = {portals};
    constexpr bn::span<const sp::portal> portals(_portals);
'''

portals_definition_empty = '''\
    // There are no portals in this zone.
    constexpr bn::span<const sp::portal> portals;
'''

header = '''\
#ifndef {guard}
#define {guard}

#include "sp_zone.h"

namespace sp::{zone_name}
{{
    constexpr int width() {{ return {width}; }}
    constexpr int height() {{ return {height}; }}

    constexpr int16_t spawn_point_x() {{ return {spawn_point_x}; }}
    constexpr int16_t spawn_point_y() {{ return {spawn_point_y}; }}

    constexpr uint8_t floor_tiles[{size}] = {floor_tiles};
    constexpr bn::affine_bg_map_item floor_map(*floor_tiles, bn::size(width(), height()));

    constexpr uint8_t ceiling_tiles[{size}] = {ceiling_tiles};
    constexpr bn::affine_bg_map_item ceiling_map(*ceiling_tiles, bn::size(width(), height()));

{enemy_spawns_definition}
{portals_definition}
    constexpr sp::zone zone(floor_map, ceiling_map, spawn_point_x(), spawn_point_y(), enemy_spawns, portals);
}}

#endif
'''

manifest_header = '''\
#ifndef SP_WORLD_ZONE_H
#define SP_WORLD_ZONE_H

#include <bn_string_view.h>

namespace sp
{{

struct zone;

enum class world_zone {world_zones};

/**
 * @brief Returns the world zone with the given name.
 * @param name Mangled name of the zone, as derived from its map file name.
 */
sp::world_zone world_zone_from_name(const bn::string_view& name);

/**
 * @brief Returns the data of the given world zone.
 * @param world_zone The world zone.
 */
const sp::zone& zone_data(sp::world_zone world_zone);

}}

#endif
'''

manifest_name_lookup = '''\
    if(name == "{zone_name}")
    {{
        return sp::world_zone::{zone_name};
    }}
'''

manifest_zone_case = '''\
        case sp::world_zone::{zone_name}:
            return sp::{zone_name}::zone;
'''

manifest_source = '''\
#include "sp_world_zone.h"

#include <bn_assert.h>

{zone_includes}

namespace sp
{{

sp::world_zone world_zone_from_name(const bn::string_view& name)
{{
{name_lookups}
    BN_ERROR("Unknown world zone: ", name);
}}

const sp::zone& zone_data(sp::world_zone world_zone)
{{
    switch(world_zone)
    {{
{zone_cases}
        default:
            BN_ERROR("Invalid world zone: ", int(world_zone));
    }}
}}

}}
'''
