"""
Relative file resolution for TMX documents

=============================================================================
WHY A RESOLVER?
=============================================================================

Every file reference inside a TMX document is RELATIVE to the file that
contains it - not to the map, and not to the working directory:

    maps/level1.tmx           <tileset source="../tilesets/terrain.tsx"/>
    tilesets/terrain.tsx      <image source="images/terrain.png"/>
    tilesets/images/terrain.png

The image path in terrain.tsx must be resolved against tilesets/, even
though the chain started in maps/. A FileResolver is anchored at one
directory; rebase() produces a new resolver anchored at the directory of
a referenced file, and that resolver is handed down to whatever parses
the referenced file.

=============================================================================
UNIQUE NAMES
=============================================================================

unique_name() gives a stable, normalized label for a referenced file.
Two references that reach the same file through different relative paths
("tilesets/a.tsx" from maps/, "../maps/tilesets/a.tsx" from templates/)
get the same label, which is how template tilesets are matched back to the
tilesets of the map.

=============================================================================
"""

import logging
import os
from pathlib import Path
from typing import Optional, Union, TYPE_CHECKING

from .errors import TmxResolveError

if TYPE_CHECKING:
    from .texture import TextureCache

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


class FileResolver:
    """
    Loads files relative to a directory.

    The texture cache is shared by every resolver derived from the same
    root, so an image referenced from several tilesets is decoded once.
    """

    def __init__(self, directory: PathLike = ".", textures: Optional['TextureCache'] = None):
        self.directory = Path(directory)
        if textures is None:
            # Imported here: texture.py needs the resolver at parse time
            from .texture import TextureCache
            textures = TextureCache()
        self.textures = textures

    def __repr__(self) -> str:
        return f"FileResolver({str(self.directory)!r})"

    @classmethod
    def for_file(cls, path: PathLike, textures: Optional['TextureCache'] = None) -> 'FileResolver':
        """Resolver anchored at the directory containing `path`."""
        return cls(Path(path).parent, textures)

    def file_path(self, path: PathLike) -> Path:
        """
        Join `path` onto the anchor directory and normalize it.

        '..' components remove the previous component and '.' components
        are dropped, so equivalent references produce identical paths.
        """
        return Path(os.path.normpath(self.directory / Path(path)))

    def load(self, path: PathLike) -> bytes:
        """Read a file relative to the anchor directory."""
        full_path = self.file_path(path)
        logger.debug("Loading %s", full_path)
        try:
            return full_path.read_bytes()
        except OSError as exc:
            raise TmxResolveError(f"could not read '{full_path}': {exc.strerror or exc}") from exc

    def rebase(self, path: PathLike) -> 'FileResolver':
        """
        Resolver anchored at the parent directory of `path`.

        A bare file name has no parent, so the current anchor is kept.
        """
        return FileResolver(self.directory / Path(path).parent, self.textures)

    def unique_name(self, path: PathLike) -> str:
        """Stable label for a referenced file (normalized, '/' separated)."""
        return self.file_path(path).as_posix()
