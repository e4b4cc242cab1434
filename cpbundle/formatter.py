"""
Output formatter: lays the rewritten declarations out as one Python file.
"""
import ast
import time
from collections import Counter

from .log import warn
from .source import DeclarationKind

TOOL_NAME = "cp-bundler"
LIBRARY_MARKER = "# ==================== Library Code ===================="
ENTRY_MARKER = "# ==================== Main Code ===================="


def partition(declarations, entry_function):
    """
    Split declarations into (library, entry).

    The entry section starts at the entry function of the entry file and holds
    it plus every later entry-file declaration (usually the ``__main__``
    trigger). Everything else is library code, in discovery order.
    """
    start = None
    for i, decl in enumerate(declarations):
        if decl.from_entry and decl.kind == DeclarationKind.FUNCTION and decl.name == entry_function:
            start = i
            break

    if start is None:
        return list(declarations), []

    library, entry = [], []
    for i, decl in enumerate(declarations):
        if i >= start and decl.from_entry:
            entry.append(decl)
        else:
            library.append(decl)
    return library, entry


def needs_entry_guard(entry, entry_function):
    """True when nothing after the entry function refers to it."""
    for decl in entry[1:]:
        for node in ast.walk(decl.node):
            if isinstance(node, ast.Name) and node.id == entry_function:
                return False
    return bool(entry)


def entry_guard(entry_function):
    return f"if __name__ == '__main__':\n    {entry_function}()"


def header_lines(generated_at):
    return [
        "# Code bundled for competitive programming",
        f"# Generated automatically by {TOOL_NAME} (AST-based bundler)",
        f"# Generated at: {generated_at}",
    ]


def warn_duplicate_names(library):
    counts = Counter(
        d.name for d in library
        if d.kind in (DeclarationKind.FUNCTION, DeclarationKind.CLASS) and d.name
    )
    for name, count in sorted(counts.items()):
        if count > 1:
            warn(f"'{name}' is defined {count} times in the library code; the last definition wins")


def format_bundle(context, config, generated_at=None):
    """
    Render the bundle text.

    Args:
        context: BundleContext after collection and rewriting
        config: BundlerConfig of the run
        generated_at: Timestamp for the banner (defaults to the current epoch seconds)
    """
    if generated_at is None:
        generated_at = int(time.time())

    library, entry = partition(context.declarations, config.entry_function)
    warn_duplicate_names(library)

    parts = ["\n".join(header_lines(generated_at))]

    if context.future_imports:
        parts.append("\n".join(context.future_imports))

    parts.append("\n".join(config.baseline_imports))

    if context.external_imports:
        parts.append("\n".join(context.external_imports))

    sections = [LIBRARY_MARKER]
    sections.extend(ast.unparse(d.node) for d in library)
    parts.append("\n\n".join(sections))

    sections = [ENTRY_MARKER]
    sections.extend(ast.unparse(d.node) for d in entry)
    if config.add_entry_guard and needs_entry_guard(entry, config.entry_function):
        sections.append(entry_guard(config.entry_function))
    parts.append("\n\n".join(sections))

    return "\n\n".join(parts) + "\n"
