"""
Path rewriter: flattens qualified library references after collection.

Runs once over the complete declaration list with the final alias table,
so an alias registered by a module inlined late still applies to
references collected earlier.
"""
import ast

from .log import debug_log
from .paths import (
    attribute_chain,
    binding_statements,
    module_prefix_length,
    split_import,
    string_annotation,
)

TRY_NODES = (ast.Try, ast.TryStar) if hasattr(ast, "TryStar") else (ast.Try,)


class PathRewriter(ast.NodeTransformer):
    """
    Rewrites ``cp_lib.algorithms.exponential.pow_mod`` to ``pow_mod`` and
    ``exponential.pow`` to ``pow`` when ``exponential`` is a module alias.

    The dropped prefix is the longest one naming a known library module,
    so ``scanner.Scanner.from_string`` keeps ``Scanner.from_string``.
    Without a known module prefix only the final segment is kept.

    With ``module_symbols`` (top-level names per inlined module), an alias
    chain is only rewritten when it names a symbol of the aliased module, so
    ``io.StringIO`` survives where ``io`` is also the standard module.
    """

    def __init__(self, namespace_root, aliases, module_names=frozenset(), is_module=None, module_symbols=None):
        self.namespace_root = namespace_root
        self.aliases = aliases
        self.module_names = module_names
        self.is_module = is_module
        self.module_symbols = module_symbols
        self.rewritten = 0

    def rewrite(self, declarations):
        """Rewrite every declaration in place; returns the same list."""
        for decl in declarations:
            decl.node = fill_empty_bodies(self.visit(decl.node))
        debug_log(f"Rewrote {self.rewritten} qualified reference(s)")
        return declarations

    def qualified_segments(self, chain):
        """Full library path for a chain, or None when it is not a library reference."""
        if len(chain) < 2:
            return None
        head = chain[0]
        if head == self.namespace_root:
            return chain
        if head in self.aliases:
            segments = list(self.aliases[head].segments) + chain[1:]
            if not self.names_library_symbol(segments):
                debug_log(f"Leaving {'.'.join(chain)}: not a symbol of {self.aliases[head]}")
                return None
            return segments
        return None

    def names_library_symbol(self, segments):
        """False when the segment after the module prefix is not defined in that inlined module."""
        if self.module_symbols is None:
            return True
        k = module_prefix_length(segments, self.module_names)
        if not 0 < k < len(segments):
            return True
        symbols = self.module_symbols.get(".".join(segments[:k]))
        return symbols is None or segments[k] in symbols

    def flatten(self, segments):
        k = module_prefix_length(segments, self.module_names)
        if 0 < k < len(segments):
            return segments[k:]
        return segments[-1:]

    def visit_Attribute(self, node):
        chain = attribute_chain(node)
        segments = self.qualified_segments(chain) if chain is not None else None
        if segments is None:
            return self.generic_visit(node)

        kept = self.flatten(segments)
        new = ast.Name(id=kept[0], ctx=ast.Load() if len(kept) > 1 else node.ctx)
        for i, attr in enumerate(kept[1:], start=2):
            new = ast.Attribute(value=new, attr=attr, ctx=node.ctx if i == len(kept) else ast.Load())
        self.rewritten += 1
        return ast.fix_missing_locations(ast.copy_location(new, node))

    def rewrite_string_annotation(self, annotation):
        """Rewrite a quoted annotation; anything else is returned unchanged."""
        expr = string_annotation(annotation)
        if expr is None:
            return annotation
        before = self.rewritten
        expr = self.visit(expr)
        if self.rewritten == before:
            return annotation
        return ast.copy_location(ast.Constant(value=ast.unparse(expr)), annotation)

    def visit_arg(self, node):
        self.generic_visit(node)
        node.annotation = self.rewrite_string_annotation(node.annotation)
        return node

    def visit_FunctionDef(self, node):
        self.generic_visit(node)
        node.returns = self.rewrite_string_annotation(node.returns)
        return node

    visit_AsyncFunctionDef = visit_FunctionDef

    def visit_AnnAssign(self, node):
        self.generic_visit(node)
        node.annotation = self.rewrite_string_annotation(node.annotation)
        return node

    def _replace_import(self, node):
        library, other = split_import(node, self.namespace_root)
        if library is None:
            return node
        replacement = binding_statements(library, self.module_names, self.is_module)
        if other is not None:
            replacement.append(other)
        return replacement

    def visit_Import(self, node):
        return self._replace_import(node)

    def visit_ImportFrom(self, node):
        return self._replace_import(node)


def fill_empty_bodies(tree):
    """Put ``pass`` into blocks left empty by removed imports."""
    for node in ast.walk(tree):
        if isinstance(node, ast.Module):
            continue
        body = getattr(node, "body", None)
        if isinstance(body, list) and not body:
            node.body = [ast.copy_location(ast.Pass(), node)]
        # A try keeps at least a handler or a finally block
        if isinstance(node, TRY_NODES) and not node.handlers and not node.finalbody:
            node.finalbody = [ast.copy_location(ast.Pass(), node)]
    return tree
