"""Tests for tileset parsing: atlas slicing, explicit tiles, external files."""

import pytest

from tmx_loader.errors import TmxParseError, TmxResolveError
from tmx_loader.events import EventStream
from tmx_loader.resolver import FileResolver
from tmx_loader.tileset import Frame, Tileset


def parse(xml: str, resolver) -> Tileset:
    stream = EventStream(xml.encode('utf-8'))
    tag = stream.find_root('tileset')
    return Tileset.parse(tag, stream, resolver)


class TestAtlasSlicing:

    def test_grid(self, write_png, resolver):
        write_png("atlas.png", 64, 32)
        tileset = parse(
            '<tileset firstgid="1" name="terrain" tilewidth="16" tileheight="16">'
            '<image source="atlas.png" width="64" height="32"/>'
            '</tileset>',
            resolver,
        )
        assert len(tileset.tiles) == 8
        assert tileset.tile_size == (16.0, 16.0)
        tile = tileset.tiles[5]
        assert tile.top_left == (0.25, 0.5)
        assert tile.bottom_right == (0.5, 1.0)
        assert (tile.width, tile.height) == (16, 16)
        assert tile.image is tileset.image

    def test_margin_and_spacing(self, write_png, resolver):
        write_png("atlas.png", 54, 36)
        tileset = parse(
            '<tileset firstgid="1" tilewidth="16" tileheight="16" margin="1" spacing="2">'
            '<image source="atlas.png"/>'
            '</tileset>',
            resolver,
        )
        assert len(tileset.tiles) == 6
        tile = tileset.tiles[4]
        assert tile.top_left == pytest.approx((19 / 54, 19 / 36))
        assert tile.bottom_right == pytest.approx((35 / 54, 35 / 36))

    def test_tilecount_stops_slicing(self, write_png, resolver):
        write_png("atlas.png", 64, 32)
        tileset = parse(
            '<tileset firstgid="1" tilewidth="16" tileheight="16" tilecount="5" columns="4">'
            '<image source="atlas.png"/>'
            '</tileset>',
            resolver,
        )
        assert len(tileset.tiles) == 5

    def test_explicit_columns(self, write_png, resolver):
        write_png("atlas.png", 64, 32)
        tileset = parse(
            '<tileset firstgid="1" tilewidth="16" tileheight="16" columns="2">'
            '<image source="atlas.png"/>'
            '</tileset>',
            resolver,
        )
        assert len(tileset.tiles) == 4
        assert tileset.tiles[2].top_left == (0.0, 0.5)

    def test_embedded_source_label(self, write_png, resolver):
        write_png("atlas.png", 16, 16)
        tileset = parse(
            '<tileset firstgid="3" name="items" tilewidth="16" tileheight="16">'
            '<image source="atlas.png"/></tileset>',
            resolver,
        )
        assert tileset.first_gid == 3
        assert tileset.name == "items"
        assert tileset.source == "embedded#items"


class TestExplicitTiles:

    def test_merge_into_atlas_tile(self, write_png, resolver):
        write_png("atlas.png", 32, 16)
        tileset = parse(
            '<tileset firstgid="1" tilewidth="16" tileheight="16">'
            '<image source="atlas.png"/>'
            '<tile id="1">'
            '<properties><property name="kind" value="wall"/></properties>'
            '<animation>'
            '<frame tileid="0" duration="100"/>'
            '<frame tileid="1" duration="200"/>'
            '</animation>'
            '<objectgroup draworder="index">'
            '<object id="1" x="2" y="3"><polygon points="0,0 4,0 4,4"/></object>'
            '<object id="2" x="0" y="0" width="4" height="4"/>'
            '</objectgroup>'
            '</tile>'
            '</tileset>',
            resolver,
        )
        tile = tileset.tiles[1]
        assert len(tileset.tiles) == 2
        assert tile.top_left == (0.5, 0.0)
        assert tile.image is tileset.image
        assert tile.properties["kind"].as_str() == "wall"
        assert tile.animation == [Frame(0, 100), Frame(1, 200)]
        assert len(tile.shapes) == 1
        assert tile.shapes[0].points == [(2.0, 3.0), (6.0, 3.0), (6.0, 7.0)]
        assert tile.shapes[0].closed is True

    def test_own_image_replaces_atlas_region(self, write_png, resolver):
        write_png("atlas.png", 32, 16)
        write_png("big.png", 24, 40)
        tileset = parse(
            '<tileset firstgid="1" tilewidth="16" tileheight="16">'
            '<image source="atlas.png"/>'
            '<tile id="0"><image source="big.png"/></tile>'
            '</tileset>',
            resolver,
        )
        tile = tileset.tiles[0]
        assert tile.image is not tileset.image
        assert (tile.width, tile.height) == (24, 40)
        assert (tile.top_left, tile.bottom_right) == ((0.0, 0.0), (1.0, 1.0))

    def test_image_collection_pads_gaps(self, write_png, resolver):
        write_png("a.png", 8, 8)
        write_png("b.png", 16, 8)
        tileset = parse(
            '<tileset firstgid="1" name="props" tilewidth="16" tileheight="8">'
            '<tile id="2"><image source="a.png"/></tile>'
            '<tile id="5"><image source="b.png"/></tile>'
            '<tile id="0"/>'
            '</tileset>',
            resolver,
        )
        assert len(tileset.tiles) == 6
        assert [tile is None for tile in tileset.tiles] == [False, True, False, True, True, False]
        assert tileset.tiles[0].image is None
        assert (tileset.tiles[5].width, tileset.tiles[5].height) == (16, 8)
        assert tileset.image is None

    def test_unknown_children_are_skipped(self, resolver):
        tileset = parse(
            '<tileset firstgid="1" tilewidth="16" tileheight="16">'
            '<tileoffset x="0" y="4"/>'
            '<grid orientation="orthogonal" width="1" height="1"/>'
            '<wangsets><wangset name="w"><wangtile tileid="0"/></wangset></wangsets>'
            '<properties><property name="biome" value="snow"/></properties>'
            '</tileset>',
            resolver,
        )
        assert tileset.tiles == []
        assert tileset.properties["biome"].as_str() == "snow"


class TestExternalTileset:

    TSX = (
        '<?xml version="1.0" encoding="UTF-8"?>\n'
        '<tileset version="1.10" name="terrain" tilewidth="16" tileheight="16" '
        'tilecount="8" columns="4">\n'
        ' <image source="images/terrain.png" width="64" height="32"/>\n'
        '</tileset>\n'
    )

    def test_paths_are_relative_to_the_tsx(self, tmp_path, write_file, write_png):
        write_file("tilesets/terrain.tsx", self.TSX)
        write_png("tilesets/images/terrain.png", 64, 32)
        resolver = FileResolver(tmp_path / "maps")

        tileset = parse('<tileset firstgid="5" source="../tilesets/terrain.tsx"/>', resolver)

        assert tileset.first_gid == 5
        assert tileset.name == "terrain"
        assert tileset.source == (tmp_path / "tilesets" / "terrain.tsx").as_posix()
        assert tileset.image.label == (tmp_path / "tilesets" / "images" / "terrain.png").as_posix()
        assert len(tileset.tiles) == 8

    def test_missing_file(self, resolver):
        with pytest.raises(TmxResolveError):
            parse('<tileset firstgid="1" source="missing.tsx"/>', resolver)

    def test_errors_name_the_tsx(self, write_file, resolver):
        write_file("bad.tsx", '<tileset tilewidth="wide" tileheight="16"/>')
        with pytest.raises(TmxParseError) as info:
            parse('<tileset firstgid="1" source="bad.tsx"/>', resolver)
        assert str(info.value) == \
            "tileset 'bad.tsx': <tileset> attribute tilewidth='wide' is not a valid integer"
