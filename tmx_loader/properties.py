"""
Custom properties and color values

Tiled lets users attach typed key/value pairs to maps, tilesets, tiles,
layers and objects:

    <properties>
        <property name="solid" type="bool" value="true"/>
        <property name="health" type="int" value="100"/>
        <property name="glow" type="color" value="#80ff0000"/>
        <property name="script" type="file" value="../scripts/door.py"/>
        <property name="description" value="A wooden door"/>
    </properties>

The type defaults to string. File values are kept as written (relative to
the document that declared them) and never resolved eagerly.
"""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from .errors import TmxParseError
from .events import EventStream, StartTag, attr_enum

Color = Tuple[int, int, int, int]                    # (alpha, red, green, blue)
Tint = Tuple[float, float, float, float]             # (red, green, blue, alpha), 0..1


class PropertyType(Enum):
    STRING = "string"
    INT = "int"
    FLOAT = "float"
    BOOL = "bool"
    COLOR = "color"
    FILE = "file"


# =============================================================================
# COLORS
# =============================================================================

def _nibble(c: str) -> int:
    return int(c, 16) if c in '0123456789abcdef' else 0


def parse_color(text: str) -> Color:
    """
    Parse a Tiled color into (alpha, red, green, blue) bytes.

    Accepted forms, with or without a leading '#':

        rrggbb      alpha is 255
        aarrggbb

    Non-hex digits read as 0; any other length is an error.
    """
    digits = text.replace('#', '').lower()
    if len(digits) not in (6, 8):
        raise TmxParseError(f"invalid color {text!r}")

    channels = [_nibble(digits[i]) << 4 | _nibble(digits[i + 1])
                for i in range(0, len(digits), 2)]
    if len(channels) == 3:
        channels.insert(0, 255)
    a, r, g, b = channels
    return (a, r, g, b)


def parse_tint(text: str) -> Tint:
    """Parse a Tiled color into normalized (red, green, blue, alpha) floats."""
    a, r, g, b = parse_color(text)
    return (r / 255.0, g / 255.0, b / 255.0, a / 255.0)


# =============================================================================
# PROPERTY CLASS
# =============================================================================

@dataclass
class Property:
    """
    One typed custom property value.

    ==========================================================================
    VALUE TYPES
    ==========================================================================

    string -> str
    int    -> int
    float  -> float
    bool   -> bool     ("true" is True, anything else False)
    color  -> (a, r, g, b) tuple of ints
    file   -> str      (relative path, unresolved)

    The as_*() accessors return None when the property holds another type,
    so game code can write `props["speed"].as_float() or 1.0`.
    ==========================================================================
    """
    type: PropertyType = PropertyType.STRING
    value: Any = ""

    @classmethod
    def parse(cls, tag: StartTag) -> Tuple[str, 'Property']:
        """Build a (name, Property) pair from a <property> start tag."""
        name = tag.attributes.get('name', '')
        prop_type = attr_enum(tag, 'type', PropertyType, PropertyType.STRING)
        text = tag.attributes.get('value', '')

        # -----------------------------------------------------------------
        # TYPE CONVERSION
        # -----------------------------------------------------------------
        try:
            if prop_type is PropertyType.INT:
                value = int(text)
            elif prop_type is PropertyType.FLOAT:
                value = float(text)
            elif prop_type is PropertyType.BOOL:
                value = text == 'true'
            elif prop_type is PropertyType.COLOR:
                value = parse_color(text)
            else:
                value = text
        except ValueError:
            raise TmxParseError(
                f"<property> {name!r} value {text!r} is not a valid {prop_type.value}"
            ) from None

        return name, cls(prop_type, value)

    def as_str(self) -> Optional[str]:
        return self.value if self.type is PropertyType.STRING else None

    def as_int(self) -> Optional[int]:
        if self.type is PropertyType.INT:
            return self.value
        if self.type is PropertyType.FLOAT:
            return int(self.value)
        return None

    def as_float(self) -> Optional[float]:
        if self.type in (PropertyType.FLOAT, PropertyType.INT):
            return float(self.value)
        return None

    def as_bool(self) -> Optional[bool]:
        return self.value if self.type is PropertyType.BOOL else None

    def as_color(self) -> Optional[Color]:
        return self.value if self.type is PropertyType.COLOR else None

    def as_file(self) -> Optional[Path]:
        return Path(self.value) if self.type is PropertyType.FILE else None


def parse_properties(stream: EventStream) -> Dict[str, Property]:
    """Parse the children of a <properties> element."""
    result: Dict[str, Property] = {}
    for event in stream.children():
        if isinstance(event, StartTag):
            if event.name == 'property':
                name, prop = Property.parse(event)
                result[name] = prop
            # <property> may carry a multi-line value as text; not used
            stream.skip()
    return result
