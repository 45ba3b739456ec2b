"""Shared constants for the TMX loader"""

# Property injected into objects whose tile comes from a template's tileset.
# Its value is the unique name of that tileset; the map parser swaps the
# template-local tile id for a map-global gid once the tileset is known.
INCLUDE_TILESET_PROPERTY = "__include_tileset__"

# Prefix of the label given to tilesets and images embedded in a document
EMBEDDED_PREFIX = "embedded#"

# Tiled stores flip/rotation flags in the top four bits of a gid
GID_FLIP_MASK = 0xF0000000

# Bytes fed to the XML pull parser per read
READ_CHUNK_SIZE = 64 * 1024

# Layer defaults (absent attributes)
DEFAULT_PARALLAX = (1.0, 1.0)
DEFAULT_COLOR = (1.0, 1.0, 1.0, 1.0)

# Stagger defaults used when a <map> omits staggeraxis/staggerindex
DEFAULT_STAGGER_AXIS = "x"
DEFAULT_STAGGER_INDEX = "odd"
