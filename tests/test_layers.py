"""Tests for layer parsing and group propagation."""

import pytest

from tmx_loader.errors import TmxParseError
from tmx_loader.events import EventStream
from tmx_loader.layers import ImageLayer, LayerGroup, ObjectGroup, TileLayer, parse_layer


def parse(xml: str, resolver):
    stream = EventStream(xml.encode('utf-8'))
    tag = stream.next()
    return parse_layer(tag, stream, resolver)


class TestTileLayer:

    def test_attributes_and_data(self, resolver):
        layer = parse(
            '<layer name="ground" x="1" y="2" width="3" height="2" opacity="0.25" '
            'tintcolor="#80ffffff" offsetx="4" offsety="-8" parallaxx="2">'
            '<properties><property name="z" type="int" value="1"/></properties>'
            '<data encoding="csv">1,2,3,\n4,5,6</data>'
            '</layer>',
            resolver,
        )
        assert isinstance(layer, TileLayer)
        assert layer.name == "ground"
        assert layer.size == (3, 2)
        assert layer.position == (1, 2)
        assert layer.offset == (4.0, -8.0)
        assert layer.parallax == (2.0, 1.0)
        assert layer.color[:3] == (1.0, 1.0, 1.0)
        assert layer.color[3] == pytest.approx(0.25 * 128 / 255)
        assert layer.properties["z"].as_int() == 1
        assert layer.data.tolist() == [1, 2, 3, 4, 5, 6]

    def test_get_tile_gid(self, resolver):
        layer = parse(
            '<layer width="3" height="2"><data encoding="csv">1,2,3,4,5,6</data></layer>',
            resolver,
        )
        assert layer.get_tile_gid(2, 1) == 6
        assert layer.get_tile_gid(0, 1) == 4
        assert layer.get_tile_gid(3, 0) == 0
        assert layer.get_tile_gid(-1, 0) == 0

    @pytest.mark.parametrize("value, expected", [("1", True), ("true", True), ("0", False)])
    def test_visible(self, resolver, value, expected):
        layer = parse(f'<layer visible="{value}"/>', resolver)
        assert layer.visible is expected

    def test_unsupported_encoding(self, resolver):
        with pytest.raises(TmxParseError, match="inline non-csv/base64"):
            parse('<layer width="1" height="1"><data><tile gid="1"/></data></layer>', resolver)


class TestObjectGroup:

    def test_objects_in_order(self, resolver):
        layer = parse(
            '<objectgroup name="things" draworder="index">'
            '<object id="1" x="1" y="2"/>'
            '<object id="2" x="3" y="4" visible="0"/>'
            '</objectgroup>',
            resolver,
        )
        assert isinstance(layer, ObjectGroup)
        assert layer.draworder_index is True
        assert [obj.id for obj in layer.objects] == [1, 2]
        assert layer.objects[1].visible is False

    def test_topdown_draw_order(self, resolver):
        layer = parse('<objectgroup draworder="topdown"/>', resolver)
        assert layer.draworder_index is False

    def test_object_error_has_context(self, resolver):
        with pytest.raises(TmxParseError) as info:
            parse(
                '<objectgroup><object id="1"/><object id="x"/></objectgroup>',
                resolver,
            )
        assert str(info.value).startswith("object #1: <object> attribute id='x'")


class TestImageLayer:

    def test_image(self, write_png, resolver):
        write_png("sky.png", 20, 10)
        layer = parse('<imagelayer name="sky"><image source="sky.png"/></imagelayer>', resolver)
        assert isinstance(layer, ImageLayer)
        assert (layer.image.width, layer.image.height) == (20, 10)

    def test_missing_image(self, resolver):
        with pytest.raises(TmxParseError, match="<imagelayer> has no <image>"):
            parse('<imagelayer name="sky"/>', resolver)

    def test_two_images(self, write_png, resolver):
        write_png("sky.png", 20, 10)
        with pytest.raises(TmxParseError, match="more than one"):
            parse(
                '<imagelayer><image source="sky.png"/><image source="sky.png"/></imagelayer>',
                resolver,
            )


class TestGroup:

    GROUP = (
        '<group name="outer" offsetx="10" offsety="20" parallaxx="0.5" opacity="0.5" visible="0">'
        ' <layer name="a" width="2" height="1" offsetx="1" offsety="1">'
        '  <data encoding="csv">1,2</data>'
        ' </layer>'
        ' <group name="inner" offsetx="5" tintcolor="#ff0000">'
        '  <imagelayer name="b"><image source="bg.png"/></imagelayer>'
        ' </group>'
        ' <objectgroup name="c" visible="0"/>'
        '</group>'
    )

    @pytest.fixture
    def group(self, write_png, resolver):
        write_png("bg.png", 4, 4)
        return parse(self.GROUP, resolver)

    def test_tree_is_kept(self, group):
        assert isinstance(group, LayerGroup)
        assert [layer.name for layer in group.layers] == ["a", "inner", "c"]
        assert isinstance(group.layers[1], LayerGroup)

    def test_offset_and_parallax_reach_leaves(self, group):
        a = group.layers[0]
        b = group.layers[1].layers[0]
        assert a.offset == (11.0, 21.0)
        assert a.parallax == (0.5, 1.0)
        assert b.offset == (15.0, 20.0)
        assert b.parallax == (0.5, 1.0)

    def test_color_is_multiplied(self, group):
        a = group.layers[0]
        b = group.layers[1].layers[0]
        assert a.color == (1.0, 1.0, 1.0, 0.5)
        assert b.color == (1.0, 0.0, 0.0, 0.5)

    def test_group_visibility_is_not_propagated(self, group):
        assert group.layers[0].visible is True
        assert group.layers[1].layers[0].visible is True
        assert group.layers[2].visible is False

    def test_nested_error_context(self, resolver):
        with pytest.raises(TmxParseError) as info:
            parse(
                '<group><layer/><group><layer><data encoding="xml"/></layer></group></group>',
                resolver,
            )
        assert str(info.value).startswith(
            "group depth 0, layer #1: group depth 1, layer #0: <data> encoding 'xml'"
        )

    def test_two_tile_layers_carry_combined_transform(self, resolver):
        group = parse(
            '<group offsetx="10" offsety="20" parallaxx="0.5" parallaxy="1.0" opacity="0.5">'
            '<layer name="l1" width="1" height="1"><data encoding="csv">1</data></layer>'
            '<layer name="l2" width="1" height="1" offsetx="2"><data encoding="csv">2</data></layer>'
            '</group>',
            resolver,
        )
        first, second = group.layers
        assert (first.offset, first.parallax, first.color) == \
            ((10.0, 20.0), (0.5, 1.0), (1.0, 1.0, 1.0, 0.5))
        assert (second.offset, second.parallax, second.color) == \
            ((12.0, 20.0), (0.5, 1.0), (1.0, 1.0, 1.0, 0.5))
