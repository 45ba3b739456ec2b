"""
Tiled maps: the <map> document and the load entry points

=============================================================================
TMX FILE STRUCTURE
=============================================================================

    <map width="50" height="50" tilewidth="32" tileheight="32"
         orientation="orthogonal" renderorder="right-down">
        <properties>...</properties>
        <tileset firstgid="1" source="terrain.tsx"/>
        <tileset firstgid="257" name="items" ...>...</tileset>
        <layer name="Ground">...</layer>
        <objectgroup name="Objects">...</objectgroup>
        <group name="Decor">...</group>
    </map>

Tilesets must come before the layers that use them. Tiled always writes
them first, and the template tileset pass below relies on it: a template
can only point at a tileset the map has already declared.

=============================================================================
GID LOOKUP
=============================================================================

Tilesets are stored in document order (ascending firstgid). The tileset
owning a gid is the LAST one whose firstgid <= gid:

    tilesets: [firstgid=1, firstgid=101, firstgid=201]

    gid 0    -> None         (empty cell)
    gid 50   -> tileset[0]   local id 49
    gid 150  -> tileset[1]   local id 49
    gid 250  -> tileset[2]   local id 49

The top four bits of a gid are flip flags and are masked off first.

=============================================================================
USAGE
=============================================================================

    from tmx_loader import load_from_file

    tiled_map = load_from_file("maps/level1.tmx")
    for tileset in tiled_map.tilesets:
        print(tileset.source, len(tileset.tiles))

    tile = tiled_map.get_tile(gid)
    px, py = tiled_map.tile_type.coord_to_pos(tiled_map.height, x, y)

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Dict, Iterator, List, Optional, Tuple, Union

from .constants import DEFAULT_STAGGER_AXIS, DEFAULT_STAGGER_INDEX, GID_FLIP_MASK, \
    INCLUDE_TILESET_PROPERTY
from .errors import TmxError, TmxParseError
from .events import EventStream, StartTag, attr_enum, attr_int
from .layers import LAYER_ELEMENTS, AnyLayer, LayerGroup, ObjectGroup, parse_layer
from .objects import MapObject
from .properties import Color, Property, parse_color, parse_properties
from .resolver import FileResolver
from .texture import TextureCache
from .tile_type import Orientation, RenderOrder, StaggerAxis, StaggerIndex, TileType, \
    tile_type_from_attributes
from .tileset import Tile, Tileset

logger = logging.getLogger(__name__)


@dataclass
class TiledMap:
    """
    A parsed map.

    layers is a forest: LayerGroup nodes hold their children, every other
    layer is a leaf. Group offset, parallax and tint are already folded
    into the leaves.
    """
    width: int = 0                                   # Map width in tiles
    height: int = 0                                  # Map height in tiles
    tile_type: Optional[TileType] = None             # Geometry of the grid
    background: Color = (0, 0, 0, 0)                # (a, r, g, b)
    properties: Dict[str, Property] = field(default_factory=dict)
    tilesets: List[Tileset] = field(default_factory=list)
    layers: List[AnyLayer] = field(default_factory=list)

    # =========================================================================
    # LOOKUPS
    # =========================================================================

    def get_tileset(self, gid: int) -> Optional[Tileset]:
        """Tileset owning `gid`, or None when the gid is below every firstgid."""
        gid &= ~GID_FLIP_MASK
        for tileset in reversed(self.tilesets):
            if tileset.first_gid <= gid:
                return tileset
        return None

    def get_tile(self, gid: int) -> Optional[Tile]:
        """
        Tile metadata for `gid`.

        Only the owning tileset is consulted: a gid past the end of its
        tileset (or a gap in a sparse one) gives None rather than a tile of
        some other tileset.
        """
        gid &= ~GID_FLIP_MASK
        tileset = self.get_tileset(gid)
        if tileset is None:
            return None
        return tileset.get_tile(gid - tileset.first_gid)

    def objects(self) -> Iterator[Tuple[int, MapObject]]:
        """
        Yield (z, object) for every object in the map, groups included.

        z counts layers in document order (one per leaf layer, a group
        takes its children plus one), so it can be used as a draw depth.
        """
        yield from _walk_objects(self.layers, 0)

    def leaf_layers(self) -> List[AnyLayer]:
        """All non-group layers, depth-first in document order."""
        result = []

        def collect(layers):
            for layer in layers:
                if isinstance(layer, LayerGroup):
                    collect(layer.layers)
                else:
                    result.append(layer)

        collect(self.layers)
        return result

    def get_layer_by_name(self, name: str) -> Optional[AnyLayer]:
        """Find a layer (or group) by name, searching into groups."""
        def search(layers):
            for layer in layers:
                if layer.name == name:
                    return layer
                if isinstance(layer, LayerGroup):
                    found = search(layer.layers)
                    if found is not None:
                        return found
            return None

        return search(self.layers)

    # =========================================================================
    # PARSING
    # =========================================================================

    @classmethod
    def parse(cls, stream: EventStream, resolver: FileResolver) -> 'TiledMap':
        """Parse a whole TMX document from `stream`."""
        tag = stream.find_root('map')

        tile_width = attr_int(tag, 'tilewidth')
        tile_height = attr_int(tag, 'tileheight')
        tile_type = tile_type_from_attributes(
            attr_enum(tag, 'orientation', Orientation, Orientation.ORTHOGONAL),
            tile_width,
            tile_height,
            render_order=attr_enum(tag, 'renderorder', RenderOrder, RenderOrder.RIGHT_DOWN),
            stagger_axis=attr_enum(tag, 'staggeraxis', StaggerAxis,
                                   StaggerAxis(DEFAULT_STAGGER_AXIS)),
            stagger_index=attr_enum(tag, 'staggerindex', StaggerIndex,
                                    StaggerIndex(DEFAULT_STAGGER_INDEX)),
            side_length=attr_int(tag, 'hexsidelength'),
        )

        tiled_map = cls(
            width=attr_int(tag, 'width'),
            height=attr_int(tag, 'height'),
            tile_type=tile_type,
        )
        background = tag.attributes.get('backgroundcolor')
        if background:
            tiled_map.background = parse_color(background)

        for event in stream.children():
            if not isinstance(event, StartTag):
                continue

            if event.name == 'properties':
                tiled_map.properties = parse_properties(stream)

            elif event.name == 'tileset':
                tiled_map.tilesets.append(Tileset.parse(event, stream, resolver))

            elif event.name in LAYER_ELEMENTS:
                index = len(tiled_map.layers)
                try:
                    layer = parse_layer(event, stream, resolver)
                    if isinstance(layer, (ObjectGroup, LayerGroup)):
                        resolve_template_tilesets(layer, tiled_map.tilesets)
                except TmxError as exc:
                    raise exc.add_context(f"layer #{index}")
                tiled_map.layers.append(layer)

            else:
                logger.debug("Skipping unsupported <%s> element", event.name)
                stream.skip()

        return tiled_map


def _walk_objects(layers: List[AnyLayer], z: int):
    for layer in layers:
        if isinstance(layer, LayerGroup):
            z = (yield from _walk_objects(layer.layers, z)) + 1
        else:
            if isinstance(layer, ObjectGroup):
                for obj in layer.objects:
                    yield z, obj
            z += 1
    return z


def resolve_template_tilesets(layer: Union[ObjectGroup, LayerGroup], tilesets: List[Tileset]):
    """
    Turn template-local tile ids into map gids.

    Objects instanced from a template that references a tileset carry the
    tileset's unique name in INCLUDE_TILESET_PROPERTY and a tile id local
    to it. The map tileset with the same source supplies the firstgid.
    """
    if isinstance(layer, LayerGroup):
        for child in layer.layers:
            if isinstance(child, (ObjectGroup, LayerGroup)):
                resolve_template_tilesets(child, tilesets)
        return

    for obj in layer.objects:
        marker = obj.properties.pop(INCLUDE_TILESET_PROPERTY, None)
        if marker is None:
            continue
        tileset = next((t for t in tilesets if t.source == marker.value), None)
        if tileset is None:
            raise TmxParseError(
                f"object {obj.id}: template tileset '{marker.value}' is not "
                f"a tileset of this map"
            )
        obj.gid += tileset.first_gid


# =============================================================================
# ENTRY POINTS
# =============================================================================

def load_from_bytes(data: bytes, resolver: Optional[FileResolver] = None,
                    textures: Optional[TextureCache] = None) -> TiledMap:
    """
    Parse a TMX document held in memory.

    Relative references are resolved by `resolver`, which defaults to one
    anchored at the current directory and using `textures`. A resolver
    already owns its cache, so passing both is an error.
    """
    if resolver is None:
        resolver = FileResolver(".", textures)
    elif textures is not None:
        raise ValueError("pass textures to the FileResolver, not alongside it")
    return TiledMap.parse(EventStream(data), resolver)


def load_from_file(path: Union[str, Path], textures: Optional[TextureCache] = None) -> TiledMap:
    """
    Load a TMX file; references inside it are resolved relative to it.

    Pass the same `textures` cache to several loads to share decoded
    images between maps.
    """
    logger.info("Loading map %s", path)
    resolver = FileResolver.for_file(path, textures)
    tiled_map = TiledMap.parse(EventStream(resolver.load(Path(path).name)), resolver)
    logger.info(
        "Loaded map %s: %dx%d tiles, %d tilesets, %d layers",
        path, tiled_map.width, tiled_map.height,
        len(tiled_map.tilesets), len(tiled_map.layers),
    )
    return tiled_map
