"""Per-directory metadata for Zas.

Any directory may hold a ``.zas.yml`` file providing default context for the
files in it and in its descendants, until a nested directory provides its own.
Lookups walk upward toward the project root and are cached per directory.
"""

from __future__ import annotations

from pathlib import Path

from .config import DIRECTORY_CONFIG_FILE, Config, load_yaml_mapping

_ROOT = Path(".")


class DirectoryConfigCache:
    """Lazily populated cache of directory metadata files.

    The cache is owned by one build and is never invalidated during it. It is
    not safe for concurrent population.

    Attributes:
        root: Project root directory.
        filename: Name of the metadata file looked up in each directory.
    """

    def __init__(self, root: Path, filename: str = DIRECTORY_CONFIG_FILE):
        self.root = root
        self.filename = filename
        self._cache: dict[Path, tuple[Config, bool]] = {}

    def resolve(self, file_path: Path | str) -> tuple[Config, bool]:
        """Resolve the metadata that applies to a file.

        Args:
            file_path: Path of the file, relative to the project root.

        Returns:
            Tuple of (config, found). When no directory from the file's
            directory up to the root has a metadata file, config is empty
            and found is False.

        Raises:
            ConfigError: If a metadata file exists but is malformed.
        """
        directory = Path(file_path).parent
        return self._lookup(_ROOT if directory == Path("") else directory)

    def _lookup(self, directory: Path) -> tuple[Config, bool]:
        cached = self._cache.get(directory)
        if cached is not None:
            return cached
        candidate = self.root / directory / self.filename
        if candidate.is_file():
            result = (Config(self._read(candidate)), True)
        elif directory == _ROOT:
            result = (Config(), False)
        else:
            result = self._lookup(directory.parent)
        self._cache[directory] = result
        return result

    def _read(self, path: Path) -> dict:
        return load_yaml_mapping(path.read_text(encoding="utf-8"), path)

    def __contains__(self, directory) -> bool:
        return Path(directory) in self._cache

    def __len__(self) -> int:
        return len(self._cache)
