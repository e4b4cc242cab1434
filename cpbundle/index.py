"""
Module index: one scan of the library root, done once per run.
"""
import os
from pathlib import Path

from .log import debug_log

SOURCE_SUFFIX = ".py"
PACKAGE_FILE = "__init__.py"
SKIPPED_DIRS = {"__pycache__"}


class ModuleIndex:
    """
    Maps library-relative POSIX paths (``algorithms/exponential.py``) to
    canonical absolute paths.

    A missing library root yields an empty index. The mapping is never
    modified after construction.
    """

    def __init__(self, lib_root):
        self.lib_root = Path(lib_root)
        self._files = {}
        self._build()

    def _build(self):
        if not self.lib_root.is_dir():
            debug_log(f"Library root {self.lib_root} not found, module index is empty")
            return

        # dirpath -> (st_dev, st_ino) of the directory and all its ancestors
        ancestors = {str(self.lib_root): (_dir_identity(self.lib_root),)}
        for dirpath, dirnames, filenames in os.walk(str(self.lib_root), followlinks=True):
            kept = []
            for d in sorted(dirnames):
                if d in SKIPPED_DIRS:
                    continue
                child = os.path.join(dirpath, d)
                identity = _dir_identity(child)
                if identity in ancestors[dirpath]:
                    debug_log(f"Skipping {child}: symlink loop back to an enclosing directory")
                    continue
                ancestors[child] = ancestors[dirpath] + (identity,)
                kept.append(d)
            dirnames[:] = kept
            for filename in sorted(filenames):
                if not filename.endswith(SOURCE_SUFFIX):
                    continue
                path = Path(dirpath) / filename
                key = path.relative_to(self.lib_root).as_posix()
                self._files[key] = path.resolve()

        debug_log(f"Indexed {len(self._files)} module file(s) under {self.lib_root}")

    def __len__(self):
        return len(self._files)

    def __contains__(self, relative_path):
        return self._key(relative_path) in self._files

    def get(self, relative_path):
        """Return the canonical path for a relative path, or None."""
        return self._files.get(self._key(relative_path))

    def files(self):
        return list(self._files.values())

    def items(self):
        return list(self._files.items())

    def module_names(self):
        """
        Dotted names of every module and package in the index, relative to
        the library root: ``algorithms``, ``algorithms.exponential``, ...
        """
        names = set()
        for key in self._files:
            parts = key[:-len(SOURCE_SUFFIX)].split("/")
            if parts[-1] == PACKAGE_FILE[:-len(SOURCE_SUFFIX)]:
                parts = parts[:-1]
            # Every enclosing directory is a namespace too
            for i in range(1, len(parts) + 1):
                names.add(".".join(parts[:i]))
        names.discard("")
        return frozenset(names)

    @staticmethod
    def _key(relative_path):
        return Path(relative_path).as_posix()


def _dir_identity(path):
    st = os.stat(path)
    return st.st_dev, st.st_ino
