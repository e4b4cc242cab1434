"""
Declaration collector and recursive inliner.

Walks the declarations of a source unit in order. Library imports and
library references embedded anywhere inside a declaration trigger
resolution and depth-first inlining of the target module; everything
else is accumulated for the rewriter. Each library file is parsed and
inlined at most once per run.
"""
import ast
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, List, Set

from .index import ModuleIndex
from .log import debug_log, warn
from .paths import (
    ImportPath,
    LibraryReferenceCollector,
    binding_statements,
    import_entries,
    is_module_alias,
    split_import,
)
from .resolver import ModuleResolver
from .source import (
    Declaration,
    DeclarationKind,
    classify,
    imported_names,
    is_docstring,
    is_main_guard,
    load_library_unit,
    top_level_names,
)

FUTURE_MODULE = "__future__"


@dataclass
class BundleContext:
    """Mutable state of one bundle run, shared by every recursive call."""
    index: ModuleIndex
    resolver: ModuleResolver
    namespace_root: str
    metadata_names: Set[str] = field(default_factory=set)
    baseline_imports: List[str] = field(default_factory=list)
    alias_predicate: Callable[[str], bool] = is_module_alias
    visited: Set[str] = field(default_factory=set)
    declarations: List[Declaration] = field(default_factory=list)
    external_imports: Dict[str, ast.stmt] = field(default_factory=dict)
    future_imports: Dict[str, ast.stmt] = field(default_factory=dict)
    aliases: Dict[str, ImportPath] = field(default_factory=dict)
    module_symbols: Dict[str, Set[str]] = field(default_factory=dict)

    def __post_init__(self):
        self.module_names = self.index.module_names()
        self._baseline_plain, self._baseline_from = _baseline_names(self.baseline_imports)
        self.baseline_bound = {asname or name.split(".")[0] for name, asname in self._baseline_plain}
        self.baseline_bound.update(asname or name for _, name, asname in self._baseline_from)

    def covered_by_baseline(self, node):
        """True when every name an import binds is already imported by the header."""
        if isinstance(node, ast.Import):
            return all((a.name, a.asname) in self._baseline_plain for a in node.names)
        if isinstance(node, ast.ImportFrom) and not node.level:
            return all((node.module, a.name, a.asname) in self._baseline_from for a in node.names)
        return False

    def imported_bound_names(self):
        """Names bound by the header imports and every retained external import."""
        names = set(self.baseline_bound)
        for node in self.external_imports.values():
            names.update(imported_names(node))
        return names


def _baseline_names(baseline_imports):
    plain, from_names = set(), set()
    for line in baseline_imports:
        for node in ast.parse(line).body:
            if isinstance(node, ast.Import):
                plain.update((a.name, a.asname) for a in node.names)
            elif isinstance(node, ast.ImportFrom):
                from_names.update((node.module, a.name, a.asname) for a in node.names)
    return plain, from_names


def create_context(config, alias_predicate=is_module_alias):
    """Build the index, resolver and empty accumulators for a run."""
    index = ModuleIndex(config.lib_root)
    return BundleContext(
        index=index,
        resolver=ModuleResolver(index, config.namespace_root),
        namespace_root=config.namespace_root,
        metadata_names=set(config.metadata_names),
        baseline_imports=list(config.baseline_imports),
        alias_predicate=alias_predicate,
    )


class Inliner:
    """Collects declarations from the entry unit and every library module it reaches."""

    def __init__(self, context):
        self.ctx = context

    def run(self, entry_unit):
        """Collect the entry unit; returns the filled context."""
        self.ctx.visited.add(str(Path(entry_unit.path).resolve()))
        self.collect(entry_unit)
        self.warn_alias_collisions()
        debug_log(
            f"Collected {len(self.ctx.declarations)} declaration(s) from "
            f"{len(self.ctx.visited)} file(s)"
        )
        return self.ctx

    def collect(self, unit):
        for position, decl in enumerate(unit.declarations):
            if decl.kind == DeclarationKind.IMPORT:
                self.process_import(decl.node, unit)
                continue

            if decl.kind == DeclarationKind.CONSTANT and decl.name in self.ctx.metadata_names:
                debug_log(f"Skipping metadata constant {decl.name} in {unit.path}")
                continue

            if not unit.is_entry and self._is_module_metadata(decl, position):
                continue

            self.inline_embedded_references(decl.node)
            self.ctx.declarations.append(decl.clone())

    def warn_alias_collisions(self):
        """Aliases that share a name with a standard or third-party import."""
        clashing = sorted(set(self.ctx.aliases) & self.ctx.imported_bound_names())
        for name in clashing:
            warn(
                f"Library alias '{name}' shadows the imported module '{name}'; "
                f"only {name}.<symbol> references naming a symbol of {self.ctx.aliases[name]} are rewritten"
            )

    def _is_module_metadata(self, decl, position):
        """Docstring, ``__all__`` and self-test blocks of a library module."""
        node = decl.node
        if position == 0 and is_docstring(node):
            return True
        if decl.kind == DeclarationKind.CONSTANT and decl.name == "__all__":
            return True
        return is_main_guard(node)

    # ==========================================
    # IMPORTS
    # ==========================================

    def process_import(self, node, unit):
        library, other = split_import(node, self.ctx.namespace_root)
        if library is not None:
            self.process_library_import(library)
            is_module = self.ctx.resolver.resolves_to_module
            for binding in binding_statements(library, self.ctx.module_names, is_module):
                self.ctx.declarations.append(classify(binding, unit.path, unit.is_entry))
        if other is not None:
            self.keep_external_import(other)

    def process_library_import(self, node):
        """Register aliases and inline every module an import statement names."""
        for entry in import_entries(node):
            path = entry.path
            bound = entry.bound_name
            if (
                len(path) >= 2
                and not path.is_wildcard
                and bound != self.ctx.namespace_root
                and self.ctx.alias_predicate(bound)
            ):
                self.ctx.aliases[bound] = path
                debug_log(f"Registered alias {bound} -> {path}")
            self.inline(path.without_wildcard())

    def keep_external_import(self, node):
        """Keep a standard or third-party import once, unless the header already has it."""
        for single in _split_plain_import(node):
            text = ast.unparse(single)
            if isinstance(single, ast.ImportFrom) and single.module == FUTURE_MODULE:
                self.ctx.future_imports.setdefault(text, single)
                continue
            if self.ctx.covered_by_baseline(single):
                debug_log(f"Import '{text}' already provided by the baseline imports")
                continue
            if text in self.ctx.external_imports:
                continue
            self.ctx.external_imports[text] = single
            module = _top_module(single)
            if module and module not in sys.stdlib_module_names:
                warn(f"'{text}' is not part of the standard library; the judge may not have it")

    # ==========================================
    # INLINING
    # ==========================================

    def inline_embedded_references(self, node):
        """Inline every library module referenced anywhere inside a declaration."""
        collector = LibraryReferenceCollector(self.ctx.namespace_root, self.ctx.module_names)
        paths = collector.collect(node)
        for nested in collector.nested_imports:
            library, _ = split_import(nested, self.ctx.namespace_root)
            if library is not None:
                self.process_library_import(library)
        for path in paths:
            self.inline(path)

    def inline(self, import_path):
        """Resolve an import path and, the first time its file is seen, collect that file."""
        resolved = self.ctx.resolver.resolve(import_path)
        if resolved is None:
            return
        key = str(resolved)
        if key in self.ctx.visited:
            debug_log(f"{import_path} already inlined from {key}")
            return
        self.ctx.visited.add(key)

        unit = load_library_unit(resolved, self._relative_path(resolved), self.ctx.namespace_root)
        self.ctx.module_symbols[unit.module_name] = top_level_names(unit.tree)
        self.collect(unit)

    def _relative_path(self, resolved):
        lib_root = self.ctx.index.lib_root.resolve()
        try:
            return Path(resolved).relative_to(lib_root)
        except ValueError:
            # Reached through a symlink pointing outside the root
            for key, path in self.ctx.index.items():
                if str(path) == str(resolved):
                    return Path(key)
            return Path(Path(resolved).name)


def _split_plain_import(node):
    """``import a, b`` -> ``import a`` and ``import b`` so each can be deduplicated."""
    if isinstance(node, ast.Import) and len(node.names) > 1:
        return [ast.copy_location(ast.Import(names=[alias]), node) for alias in node.names]
    return [node]


def _top_module(node):
    if isinstance(node, ast.Import):
        return node.names[0].name.split(".")[0]
    if isinstance(node, ast.ImportFrom) and not node.level and node.module:
        return node.module.split(".")[0]
    return None
