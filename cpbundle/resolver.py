"""
Module resolver: namespaced import path -> library file.
"""
from pathlib import PurePosixPath

from .index import PACKAGE_FILE, SOURCE_SUFFIX
from .log import debug_log
from .paths import WILDCARD


class ModuleResolver:
    """
    Resolves ``cp_lib.a.b`` style paths against a ModuleIndex.

    For ``cp_lib.io.scanner.Scanner`` the candidates are, in order,
    ``io/scanner/Scanner.py``, ``io/scanner/Scanner/__init__.py``,
    ``io/scanner.py`` and ``io/scanner/__init__.py``.
    """

    def __init__(self, index, namespace_root):
        self.index = index
        self.namespace_root = namespace_root

    def candidate_patterns(self, import_path):
        """Relative file patterns to try for an import path, in priority order."""
        parts = list(import_path.segments)
        if parts and parts[-1] == WILDCARD:
            parts.pop()
        if len(parts) < 2 or parts[0] != self.namespace_root:
            return []

        module_candidate = "/".join(parts[1:])
        patterns = [
            f"{module_candidate}{SOURCE_SUFFIX}",
            f"{module_candidate}/{PACKAGE_FILE}",
        ]

        # The last segment may be a symbol defined inside the module
        if len(parts) >= 3:
            symbol_module_candidate = "/".join(parts[1:-1])
            patterns.append(f"{symbol_module_candidate}{SOURCE_SUFFIX}")
            patterns.append(f"{symbol_module_candidate}/{PACKAGE_FILE}")

        return patterns

    def resolve(self, import_path):
        """Return the canonical path of the first matching file, or None."""
        for pattern in self.candidate_patterns(import_path):
            found = self.resolve_module_file(pattern)
            if found is not None:
                debug_log(f"Resolved {import_path} -> {found}")
                return found
        debug_log(f"Unresolved library reference {import_path}")
        return None

    def resolves_to_module(self, import_path):
        """True when the whole path names a module file or package (no symbol part)."""
        parts = list(import_path.segments)
        if len(parts) < 2 or parts[0] != self.namespace_root:
            return False
        module_candidate = "/".join(parts[1:])
        return any(
            self.resolve_module_file(p) is not None
            for p in (f"{module_candidate}{SOURCE_SUFFIX}", f"{module_candidate}/{PACKAGE_FILE}")
        )

    def resolve_module_file(self, pattern):
        """Look a relative pattern up in the index, then on disk with variations."""
        cached = self.index.get(pattern)
        if cached is not None:
            return cached

        path = PurePosixPath(pattern)
        variations = [path]
        if not path.suffix:
            variations.append(path.with_suffix(SOURCE_SUFFIX))
        variations.append(path.parent / path.stem / PACKAGE_FILE)

        lib_root = self.index.lib_root
        for variation in variations:
            full_path = lib_root / variation
            if full_path.is_file():
                return full_path.resolve()

            cached = self.index.get(variation)
            if cached is not None:
                return cached

        return None
