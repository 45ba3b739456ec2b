"""
Objects and object templates

=============================================================================
OBJECTS
=============================================================================

Objects are free-floating shapes placed in object layers:

    <object id="7" name="door" type="portal" x="64" y="96" width="32" height="32">
        <properties>
            <property name="target" value="level2.tmx"/>
        </properties>
    </object>

    <object id="8" x="10" y="10">
        <polygon points="0,0 32,0 32,16"/>       closed shape
    </object>

    <object id="9" gid="42" x="128" y="64"/>     tile object (sprite)

=============================================================================
TEMPLATES
=============================================================================

An object may inherit from a template file (.tx):

    <object id="10" template="templates/chest.tx" x="200"/>

    templates/chest.tx:
    <template>
        <tileset firstgid="1" source="../tilesets/items.tsx"/>
        <object gid="3" width="16" height="16" y="48">
            <properties><property name="loot" value="gold"/></properties>
        </object>
    </template>

Layering, last one wins:

    1. the template's object
    2. the instance's attributes (x=200 above)
    3. the instance's nested <properties>, <polygon>, <polyline>

The template's gid is relative to ITS tileset reference, not to the map.
parse_template() turns it into a tile id local to that tileset and marks
the object with the tileset's unique name; the map parser later adds the
firstgid of the matching map tileset (see tiled_map.py).

=============================================================================
"""

import logging
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Tuple, TYPE_CHECKING

from .constants import INCLUDE_TILESET_PROPERTY
from .errors import TmxError, TmxParseError
from .events import EventStream, StartTag, attr_bool, attr_float, attr_int
from .properties import Property, PropertyType, parse_properties

if TYPE_CHECKING:
    from .resolver import FileResolver

logger = logging.getLogger(__name__)

Point = Tuple[float, float]


@dataclass
class Shape:
    """Polygon (closed=True) or polyline (closed=False)."""
    points: List[Point] = field(default_factory=list)
    closed: bool = False

    @classmethod
    def parse(cls, tag: StartTag) -> 'Shape':
        """Parse a <polygon> or <polyline> start tag."""
        points = []
        for pair in tag.attributes.get('points', '').split():
            parts = pair.split(',')
            try:
                if len(parts) != 2:
                    raise ValueError(pair)
                points.append((float(parts[0]), float(parts[1])))
            except ValueError:
                raise TmxParseError(f"<{tag.name}> invalid point {pair!r}") from None
        return cls(points=points, closed=tag.name == 'polygon')

    def translated(self, dx: float, dy: float) -> 'Shape':
        return Shape([(x + dx, y + dy) for x, y in self.points], self.closed)


@dataclass
class MapObject:
    """
    Object in an object layer.

    x, y is the object's position in pixels with y measured from the top
    of the map. For tile objects Tiled anchors the sprite at its
    bottom-left corner.
    """
    id: int = 0                                      # Unique object ID
    name: str = ""                                   # Object name
    type: str = ""                                   # Object type/class
    x: float = 0                                     # X position
    y: float = 0                                     # Y position
    width: float = 0                                 # Width (0 for points)
    height: float = 0                                # Height (0 for points)
    rotation: float = 0                              # Rotation in degrees
    gid: Optional[int] = None                        # Tile GID (for tile objects)
    visible: bool = True                             # Is object visible?
    shape: Optional[Shape] = None                    # Polygon / polyline
    properties: Dict[str, Property] = field(default_factory=dict)


def _apply_attributes(obj: MapObject, tag: StartTag):
    attributes = tag.attributes
    if 'id' in attributes:
        obj.id = attr_int(tag, 'id')
    if 'gid' in attributes:
        obj.gid = attr_int(tag, 'gid')
        # A gid written on the instance is already map-global
        obj.properties.pop(INCLUDE_TILESET_PROPERTY, None)
    if 'name' in attributes:
        obj.name = attributes['name']
    if 'type' in attributes:
        obj.type = attributes['type']
    for name in ('x', 'y', 'width', 'height', 'rotation'):
        if name in attributes:
            setattr(obj, name, attr_float(tag, name))
    if 'visible' in attributes:
        obj.visible = attr_bool(tag, 'visible')


def parse_object(tag: StartTag, stream: EventStream, resolver: 'FileResolver') -> MapObject:
    """Parse an <object> element whose start tag has just been read."""
    template = tag.attributes.get('template')
    obj = load_template(template, resolver) if template else MapObject()

    _apply_attributes(obj, tag)

    for event in stream.children():
        if not isinstance(event, StartTag):
            continue
        if event.name == 'properties':
            obj.properties.update(parse_properties(stream))
        elif event.name in ('polygon', 'polyline'):
            obj.shape = Shape.parse(event)
            stream.skip()
        else:
            # <ellipse/>, <point/>, <text> carry no shape we model
            stream.skip()

    return obj


def load_template(path: str, resolver: 'FileResolver') -> MapObject:
    """Load a .tx file and return the object it defines."""
    logger.debug("Loading template %s", resolver.file_path(path))
    try:
        stream = EventStream(resolver.load(path))
        stream.find_root('template')
        return parse_template(stream, resolver.rebase(path))
    except TmxError as exc:
        raise exc.add_context(f"template {path!r}")


def parse_template(stream: EventStream, resolver: 'FileResolver') -> MapObject:
    """
    Parse the children of a <template> element.

    `resolver` is anchored at the template's own directory.
    """
    tileset: Optional[Tuple[int, str]] = None
    obj: Optional[MapObject] = None

    for event in stream.children():
        if not isinstance(event, StartTag):
            continue
        if event.name == 'tileset':
            source = event.attributes.get('source', '')
            tileset = (attr_int(event, 'firstgid'), resolver.unique_name(source))
            stream.skip()
        elif event.name == 'object':
            obj = parse_object(event, stream, resolver)
        else:
            stream.skip()

    if obj is None:
        raise TmxParseError("<template> has no <object>")

    if obj.gid is not None:
        if tileset is None:
            raise TmxParseError("<template> tile object has no <tileset>")
        first_gid, source = tileset
        obj.gid -= first_gid
        obj.properties[INCLUDE_TILESET_PROPERTY] = Property(PropertyType.FILE, source)

    return obj
