"""
Import paths and qualified references.

A qualified reference in Python source is a dotted chain such as
``cp_lib.algorithms.exponential.pow_mod``: an ``ast.Attribute`` chain
rooted at an ``ast.Name``.
"""
import ast
from dataclasses import dataclass
from typing import Optional, Tuple

WILDCARD = "*"


@dataclass(frozen=True)
class ImportPath:
    """Ordered namespace segments; the first one is the namespace root."""
    segments: Tuple[str, ...]

    @classmethod
    def parse(cls, dotted):
        return cls(tuple(p for p in dotted.split(".") if p))

    @property
    def root(self):
        return self.segments[0] if self.segments else None

    @property
    def is_wildcard(self):
        return bool(self.segments) and self.segments[-1] == WILDCARD

    def without_wildcard(self):
        if self.is_wildcard:
            return ImportPath(self.segments[:-1])
        return self

    def __len__(self):
        return len(self.segments)

    def __str__(self):
        return ".".join(self.segments)


@dataclass(frozen=True)
class ImportEntry:
    """One imported name of an import statement."""
    path: ImportPath
    name: str
    asname: Optional[str]
    from_import: bool

    @property
    def bound_name(self):
        """The local name the statement binds."""
        if self.asname:
            return self.asname
        if self.from_import:
            return self.name
        return self.path.root


def is_module_alias(name):
    """
    Default alias predicate: lowercase-led names are treated as module aliases.

    Keeps ``Scanner.from_string`` from being rewritten when ``Scanner`` was
    imported from the library.
    """
    return bool(name) and name[0].islower()


def import_entries(node):
    """List the ImportEntry records of an absolute Import/ImportFrom node."""
    entries = []
    if isinstance(node, ast.Import):
        for alias in node.names:
            entries.append(ImportEntry(ImportPath.parse(alias.name), alias.name.split(".")[-1], alias.asname, False))
    elif isinstance(node, ast.ImportFrom) and not node.level and node.module:
        base = node.module
        for alias in node.names:
            entries.append(ImportEntry(ImportPath.parse(f"{base}.{alias.name}"), alias.name, alias.asname, True))
    return entries


def import_roots(node):
    """Top-level packages an import statement refers to (empty for relative imports)."""
    if isinstance(node, ast.Import):
        return {alias.name.split(".")[0] for alias in node.names}
    if isinstance(node, ast.ImportFrom) and not node.level and node.module:
        return {node.module.split(".")[0]}
    return set()


def split_import(node, namespace_root):
    """
    Split a plain ``import`` statement into its library part and the rest.

    ``import cp_lib.algorithms.exponential, heapq`` -> (library node, ``import heapq``).
    Either part is None when empty. ``from`` imports have a single root.
    """
    if isinstance(node, ast.ImportFrom):
        if namespace_root in import_roots(node):
            return node, None
        return None, node
    library = [a for a in node.names if a.name.split(".")[0] == namespace_root]
    other = [a for a in node.names if a.name.split(".")[0] != namespace_root]
    library_node = ast.copy_location(ast.Import(names=library), node) if library else None
    other_node = ast.copy_location(ast.Import(names=other), node) if other else None
    return library_node, other_node


def attribute_chain(node):
    """Return ``['a', 'b', 'c']`` for ``a.b.c``, or None if the chain is not rooted at a name."""
    parts = []
    while isinstance(node, ast.Attribute):
        parts.append(node.attr)
        node = node.value
    if not isinstance(node, ast.Name):
        return None
    parts.append(node.id)
    parts.reverse()
    return parts


def string_annotation(node):
    """Parse a quoted annotation such as ``"cp_lib.io.scanner.Scanner"``; None if it is not one."""
    if not (isinstance(node, ast.Constant) and isinstance(node.value, str)):
        return None
    try:
        return ast.parse(node.value.strip(), mode="eval").body
    except SyntaxError:
        return None


def module_prefix_length(segments, module_names):
    """
    Number of leading segments (root included) that name a library module.

    ``cp_lib.io.scanner.Scanner.from_string`` -> 3 when ``io.scanner`` is
    a known module. Returns 0 when no prefix is known.
    """
    best = 0
    for i in range(2, len(segments) + 1):
        if ".".join(segments[1:i]) in module_names:
            best = i
    return best


def symbol_reference(segments, module_names):
    """Trim a qualified chain to the module path plus the symbol it names."""
    k = module_prefix_length(segments, module_names)
    if 0 < k < len(segments):
        return segments[:k + 1]
    return segments


def binding_statements(node, module_names, is_module=None):
    """
    ``name = symbol`` assignments needed to keep renamed library imports
    working after flattening: ``from cp_lib.io.scanner import Scanner as Sc``
    becomes ``Sc = Scanner``. Renamed modules get no binding.
    """
    if not isinstance(node, ast.ImportFrom):
        return []
    bindings = []
    for entry in import_entries(node):
        if not entry.asname or entry.asname == entry.name or entry.name == WILDCARD:
            continue
        dotted = ".".join(entry.path.segments[1:])
        if is_module is not None:
            module = is_module(entry.path)
        else:
            module = dotted in module_names
        if module:
            continue
        assign = ast.Assign(
            targets=[ast.Name(id=entry.asname, ctx=ast.Store())],
            value=ast.Name(id=entry.name, ctx=ast.Load()),
        )
        bindings.append(ast.fix_missing_locations(ast.copy_location(assign, node)))
    return bindings


class LibraryReferenceCollector(ast.NodeVisitor):
    """
    Finds every library reference inside a subtree: root-led attribute chains
    and import statements nested in bodies.
    """

    def __init__(self, namespace_root, module_names=frozenset()):
        self.namespace_root = namespace_root
        self.module_names = module_names
        self.paths = []
        self.nested_imports = []
        self._seen = set()

    def collect(self, node):
        self.visit(node)
        return self.paths

    def visit_Attribute(self, node):
        chain = attribute_chain(node)
        if chain is not None and chain[0] == self.namespace_root:
            path = ImportPath(tuple(symbol_reference(chain, self.module_names)))
            if path not in self._seen:
                self._seen.add(path)
                self.paths.append(path)
            return
        self.generic_visit(node)

    # Quoted annotations hide references inside string constants

    def visit_arg(self, node):
        self._visit_string_annotation(node.annotation)
        self.generic_visit(node)

    def visit_FunctionDef(self, node):
        self._visit_string_annotation(node.returns)
        self.generic_visit(node)

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_AnnAssign(self, node):
        self._visit_string_annotation(node.annotation)
        self.generic_visit(node)

    def _visit_string_annotation(self, annotation):
        expr = string_annotation(annotation)
        if expr is not None:
            self.visit(expr)

    def visit_Import(self, node):
        if self.namespace_root in import_roots(node):
            self.nested_imports.append(node)

    def visit_ImportFrom(self, node):
        if self.namespace_root in import_roots(node):
            self.nested_imports.append(node)
