"""
Source units: reading, parsing and classifying one Python file.
"""
import ast
import copy
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import List, Optional

from .errors import BundleIOError, parse_error_from_syntax_error
from .log import debug_log, warn


class DeclarationKind(str, Enum):
    """Classifies top-level statements."""
    FUNCTION = "function"
    CLASS = "class"
    CONSTANT = "constant"
    IMPORT = "import"
    OTHER = "other"


@dataclass
class Declaration:
    """A top-level statement together with where it came from."""
    node: ast.stmt
    kind: DeclarationKind
    name: Optional[str]
    origin: Path
    from_entry: bool = False

    def clone(self):
        return Declaration(copy.deepcopy(self.node), self.kind, self.name, self.origin, self.from_entry)


@dataclass
class SourceUnit:
    """A parsed file: the entry program or one library module."""
    path: Path
    tree: ast.Module
    module_name: str = ""
    is_package: bool = False
    is_entry: bool = False
    declarations: List[Declaration] = field(default_factory=list)

    def __post_init__(self):
        if not self.declarations:
            self.declarations = [classify(node, self.path, self.is_entry) for node in self.tree.body]

    @property
    def package_segments(self):
        """Segments of the package relative imports of this unit are anchored to."""
        parts = self.module_name.split(".") if self.module_name else []
        return parts if self.is_package else parts[:-1]


def classify(node, origin, from_entry=False):
    """Wrap a top-level statement into a Declaration."""
    if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef)):
        return Declaration(node, DeclarationKind.FUNCTION, node.name, origin, from_entry)
    if isinstance(node, ast.ClassDef):
        return Declaration(node, DeclarationKind.CLASS, node.name, origin, from_entry)
    if isinstance(node, (ast.Import, ast.ImportFrom)):
        return Declaration(node, DeclarationKind.IMPORT, None, origin, from_entry)
    if isinstance(node, ast.Assign) and len(node.targets) == 1 and isinstance(node.targets[0], ast.Name):
        return Declaration(node, DeclarationKind.CONSTANT, node.targets[0].id, origin, from_entry)
    if isinstance(node, ast.AnnAssign) and isinstance(node.target, ast.Name):
        return Declaration(node, DeclarationKind.CONSTANT, node.target.id, origin, from_entry)
    return Declaration(node, DeclarationKind.OTHER, None, origin, from_entry)


def is_main_guard(node):
    """True for ``if __name__ == "__main__":`` blocks."""
    if not isinstance(node, ast.If) or not isinstance(node.test, ast.Compare):
        return False
    test = node.test
    if len(test.ops) != 1 or not isinstance(test.ops[0], ast.Eq):
        return False
    sides = [test.left, test.comparators[0]]
    has_name = any(isinstance(s, ast.Name) and s.id == "__name__" for s in sides)
    has_main = any(isinstance(s, ast.Constant) and s.value == "__main__" for s in sides)
    return has_name and has_main


def is_docstring(node):
    return (
        isinstance(node, ast.Expr)
        and isinstance(node.value, ast.Constant)
        and isinstance(node.value.value, str)
    )


def constant_value(tree, name):
    """Return the string value of a top-level ``NAME = "..."`` constant, or None."""
    for node in tree.body:
        decl = classify(node, None)
        if decl.kind != DeclarationKind.CONSTANT or decl.name != name:
            continue
        value = node.value
        if isinstance(value, ast.Constant) and isinstance(value.value, str):
            return value.value
    return None


def top_level_names(tree):
    """Names a module binds at top level: definitions, assignments and imports."""
    names = set()
    for node in tree.body:
        if isinstance(node, (ast.FunctionDef, ast.AsyncFunctionDef, ast.ClassDef)):
            names.add(node.name)
        elif isinstance(node, (ast.Assign, ast.AnnAssign, ast.AugAssign)):
            targets = node.targets if isinstance(node, ast.Assign) else [node.target]
            for target in targets:
                names.update(n.id for n in ast.walk(target) if isinstance(n, ast.Name))
        elif isinstance(node, (ast.Import, ast.ImportFrom)):
            names.update(imported_names(node))
    return names


def imported_names(node):
    """Local names an import statement binds."""
    if isinstance(node, ast.Import):
        return {a.asname or a.name.split(".")[0] for a in node.names}
    return {a.asname or a.name for a in node.names if a.name != "*"}


def read_source(path):
    """Read a file, wrapping OS failures into BundleIOError."""
    try:
        with open(path, "r", encoding="utf-8") as f:
            return f.read()
    except OSError as e:
        raise BundleIOError(message=f"Cannot read source file: {e.strerror or e}", path=path)
    except UnicodeDecodeError as e:
        raise BundleIOError(message=f"Source file is not valid UTF-8: {e.reason}", path=path)


def parse_source(path, source_code):
    try:
        return ast.parse(source_code, filename=str(path))
    except SyntaxError as e:
        raise parse_error_from_syntax_error(path, source_code, e)


def load_entry_unit(path, source_code=None):
    """Parse the entry program. ``source_code`` replaces reading the file (stdin)."""
    path = Path(path)
    if source_code is None:
        source_code = read_source(path)
    debug_log(f"Parsing entry file {path}")
    return SourceUnit(path=path, tree=parse_source(path, source_code), is_entry=True)


def load_library_unit(path, relative_path, namespace_root):
    """Parse a library module and make its relative imports absolute."""
    path = Path(path)
    module_name, is_package = module_name_for(relative_path, namespace_root)
    debug_log(f"Parsing library module {module_name} ({path})")
    tree = parse_source(path, read_source(path))
    unit = SourceUnit(path=path, tree=tree, module_name=module_name, is_package=is_package)
    tree = RelativeImportRewriter(unit.package_segments, namespace_root, path).visit(tree)
    unit.tree = ast.fix_missing_locations(tree)
    unit.declarations = [classify(node, path) for node in unit.tree.body]
    return unit


def module_name_for(relative_path, namespace_root):
    """``algorithms/exponential.py`` -> (``cp_lib.algorithms.exponential``, False)."""
    parts = list(Path(relative_path).with_suffix("").parts)
    is_package = bool(parts) and parts[-1] == "__init__"
    if is_package:
        parts = parts[:-1]
    return ".".join([namespace_root] + parts), is_package


class RelativeImportRewriter(ast.NodeTransformer):
    """Turns ``from .x import y`` inside a library module into ``from cp_lib.pkg.x import y``."""

    def __init__(self, package_segments, namespace_root, path):
        self.package_segments = package_segments
        self.namespace_root = namespace_root
        self.path = path

    def visit_ImportFrom(self, node):
        if not node.level:
            return node
        keep = len(self.package_segments) - (node.level - 1)
        if keep < 1 or self.package_segments[0] != self.namespace_root:
            warn(f"Relative import beyond the library root left as is in {self.path}, line {node.lineno}")
            return node
        base = self.package_segments[:keep]
        if node.module:
            base = base + node.module.split(".")
        absolute = ast.ImportFrom(module=".".join(base), names=node.names, level=0)
        return ast.copy_location(absolute, node)
