"""
Layers: tile layers, object layers, image layers and groups

=============================================================================
LAYER KINDS
=============================================================================

    <layer>        TileLayer    dense grid of gids
    <objectgroup>  ObjectGroup  free-floating objects
    <imagelayer>   ImageLayer   one big image (backgrounds)
    <group>        LayerGroup   folder of layers, may nest

Every non-group layer carries:

    offset     pixel offset (x, y)
    parallax   scroll factor (x, y), 1.0 = moves with the world
    color      RGBA multiplier; opacity is folded into alpha, tintcolor
               multiplies all four channels
    visible

=============================================================================
GROUP PROPAGATION
=============================================================================

A group's own offset, parallax and tint apply to everything inside it.
Instead of making every consumer walk the tree and accumulate them, the
parser pushes them down into the leaves when the group is parsed:

    group  offset (10,20)  parallax (0.5,1)  opacity 0.5
    ├── layer A  offset (1,1)   ->  offset (11,21) parallax (0.5,1) alpha 0.5
    └── group    offset (5,0)
        └── layer B             ->  offset (15,20) parallax (0.5,1) alpha 0.5

    offset    added
    parallax  multiplied
    color     multiplied

The LayerGroup node itself stays in the tree, so consumers still iterate
groups as containers; they just never need to look at group attributes.

Group visibility is NOT read and NOT pushed down: a hidden group leaves
its children's visible flags untouched.

=============================================================================
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, Union, TYPE_CHECKING

import numpy as np

from .constants import DEFAULT_COLOR, DEFAULT_PARALLAX
from .data import parse_data
from .errors import TmxError, TmxParseError
from .events import EventStream, StartTag, attr_bool, attr_float, attr_int
from .objects import MapObject, parse_object
from .properties import Property, Tint, parse_properties, parse_tint
from .texture import Texture, parse_image

if TYPE_CHECKING:
    from .resolver import FileResolver

Vec2 = Tuple[float, float]

LAYER_ELEMENTS = ('layer', 'objectgroup', 'imagelayer', 'group')


# =============================================================================
# LAYER CLASSES
# =============================================================================

@dataclass
class Layer:
    """Attributes shared by the three leaf layer kinds."""
    name: str = ""                                   # Layer name
    offset: Vec2 = (0.0, 0.0)                        # Pixel offset
    parallax: Vec2 = DEFAULT_PARALLAX                # Parallax factor
    color: Tint = DEFAULT_COLOR                      # RGBA multiplier
    visible: bool = True                             # Is layer rendered?
    properties: Dict[str, Property] = field(default_factory=dict)

    def apply_group(self, offset: Vec2, parallax: Vec2, color: Tint):
        """Fold an enclosing group's transform into this layer."""
        self.offset = (self.offset[0] + offset[0], self.offset[1] + offset[1])
        self.parallax = (self.parallax[0] * parallax[0], self.parallax[1] * parallax[1])
        self.color = tuple(a * b for a, b in zip(self.color, color))


@dataclass
class TileLayer(Layer):
    """
    Grid of gids, stored row-major:  data[y * width + x]

    position is the layer's own offset measured in tiles.
    """
    size: Tuple[int, int] = (0, 0)                   # Width, height (tiles)
    position: Tuple[int, int] = (0, 0)               # X, y (tiles)
    data: np.ndarray = field(default_factory=lambda: np.zeros(0, dtype=np.uint32))

    @property
    def width(self) -> int:
        return self.size[0]

    @property
    def height(self) -> int:
        return self.size[1]

    def get_tile_gid(self, x: int, y: int) -> int:
        """GID at column x, row y; 0 (empty) when out of bounds."""
        if 0 <= x < self.width and 0 <= y < self.height:
            index = y * self.width + x
            if index < len(self.data):
                return int(self.data[index])
        return 0


@dataclass
class ObjectGroup(Layer):
    """
    Object layer.

    draworder_index=True means draw in document order; otherwise consumers
    are expected to sort by y themselves.
    """
    objects: List[MapObject] = field(default_factory=list)
    draworder_index: bool = False


@dataclass
class ImageLayer(Layer):
    image: Optional[Texture] = None


@dataclass
class LayerGroup:
    """Folder of layers. Its own transform is already in its leaves."""
    name: str = ""
    properties: Dict[str, Property] = field(default_factory=dict)
    # Recursive type: can contain any layer kind, including more groups
    layers: List['AnyLayer'] = field(default_factory=list)

    def apply_group(self, offset: Vec2, parallax: Vec2, color: Tint):
        for layer in self.layers:
            layer.apply_group(offset, parallax, color)


AnyLayer = Union[TileLayer, ObjectGroup, ImageLayer, LayerGroup]


# =============================================================================
# PARSING
# =============================================================================

def _parse_transform(tag: StartTag) -> Tuple[Vec2, Vec2, Tint]:
    """offset, parallax and color of a layer or group start tag."""
    offset = (attr_float(tag, 'offsetx'), attr_float(tag, 'offsety'))
    parallax = (attr_float(tag, 'parallaxx', DEFAULT_PARALLAX[0]),
                attr_float(tag, 'parallaxy', DEFAULT_PARALLAX[1]))

    r, g, b, a = DEFAULT_COLOR
    a *= attr_float(tag, 'opacity', 1.0)
    tint = tag.attributes.get('tintcolor')
    if tint is not None:
        tr, tg, tb, ta = parse_tint(tint)
        r, g, b, a = r * tr, g * tg, b * tb, a * ta
    return offset, parallax, (r, g, b, a)


def _leaf_attributes(tag: StartTag) -> dict:
    offset, parallax, color = _parse_transform(tag)
    return dict(
        name=tag.attributes.get('name', ''),
        offset=offset,
        parallax=parallax,
        color=color,
        visible=attr_bool(tag, 'visible'),
    )


def parse_tile_layer(tag: StartTag, stream: EventStream) -> TileLayer:
    layer = TileLayer(
        size=(attr_int(tag, 'width'), attr_int(tag, 'height')),
        position=(attr_int(tag, 'x'), attr_int(tag, 'y')),
        **_leaf_attributes(tag)
    )

    for event in stream.children():
        if not isinstance(event, StartTag):
            continue
        if event.name == 'data':
            layer.data = parse_data(event, stream).as_tile_ids()
        elif event.name == 'properties':
            layer.properties = parse_properties(stream)
        else:
            stream.skip()

    return layer


def parse_object_group(tag: StartTag, stream: EventStream, resolver: 'FileResolver') -> ObjectGroup:
    layer = ObjectGroup(
        draworder_index=tag.attributes.get('draworder') == 'index',
        **_leaf_attributes(tag)
    )

    for event in stream.children():
        if not isinstance(event, StartTag):
            continue
        if event.name == 'object':
            try:
                layer.objects.append(parse_object(event, stream, resolver))
            except TmxError as exc:
                raise exc.add_context(f"object #{len(layer.objects)}")
        elif event.name == 'properties':
            layer.properties = parse_properties(stream)
        else:
            stream.skip()

    return layer


def parse_image_layer(tag: StartTag, stream: EventStream, resolver: 'FileResolver') -> ImageLayer:
    layer = ImageLayer(**_leaf_attributes(tag))

    for event in stream.children():
        if not isinstance(event, StartTag):
            continue
        if event.name == 'image':
            if layer.image is not None:
                raise TmxParseError("<imagelayer> has more than one <image>")
            layer.image = parse_image(event, stream, resolver)
        elif event.name == 'properties':
            layer.properties = parse_properties(stream)
        else:
            stream.skip()

    if layer.image is None:
        raise TmxParseError("<imagelayer> has no <image>")
    return layer


def parse_group(tag: StartTag, stream: EventStream, resolver: 'FileResolver',
                depth: int = 0) -> LayerGroup:
    """
    Parse a <group>, recursively, then push its transform into the leaves.

    `depth` is the nesting level of this group (0 for a top-level group),
    used only for error context.
    """
    offset, parallax, color = _parse_transform(tag)
    group = LayerGroup(name=tag.attributes.get('name', ''))

    for event in stream.children():
        if not isinstance(event, StartTag):
            continue
        if event.name in LAYER_ELEMENTS:
            index = len(group.layers)
            try:
                group.layers.append(parse_layer(event, stream, resolver, depth + 1))
            except TmxError as exc:
                raise exc.add_context(f"group depth {depth}, layer #{index}")
        elif event.name == 'properties':
            group.properties = parse_properties(stream)
        else:
            stream.skip()

    group.apply_group(offset, parallax, color)
    return group


def parse_layer(tag: StartTag, stream: EventStream, resolver: 'FileResolver',
                depth: int = 0) -> AnyLayer:
    """Dispatch on the element name; tag.name must be in LAYER_ELEMENTS."""
    if tag.name == 'layer':
        return parse_tile_layer(tag, stream)
    if tag.name == 'objectgroup':
        return parse_object_group(tag, stream, resolver)
    if tag.name == 'imagelayer':
        return parse_image_layer(tag, stream, resolver)
    if tag.name == 'group':
        return parse_group(tag, stream, resolver, depth)
    raise TmxParseError(f"<{tag.name}> is not a layer element")
