"""
Unit tests for import paths, qualified references and the alias predicate.
"""
import ast

from cpbundle.paths import (
    ImportPath,
    LibraryReferenceCollector,
    attribute_chain,
    binding_statements,
    import_entries,
    is_module_alias,
    module_prefix_length,
    split_import,
    symbol_reference,
)

MODULES = frozenset({'algorithms', 'algorithms.exponential', 'io', 'io.scanner'})


def stmt(source):
    return ast.parse(source).body[0]


def expr(source):
    return ast.parse(source, mode='eval').body


class TestImportPath:
    """Tests for the ImportPath value type."""

    def test_parse(self):
        path = ImportPath.parse('cp_lib.algorithms.exponential')
        assert path.segments == ('cp_lib', 'algorithms', 'exponential')
        assert path.root == 'cp_lib'
        assert len(path) == 3
        assert str(path) == 'cp_lib.algorithms.exponential'

    def test_wildcard(self):
        path = ImportPath.parse('cp_lib.io.*')
        assert path.is_wildcard
        assert path.without_wildcard() == ImportPath.parse('cp_lib.io')
        assert not ImportPath.parse('cp_lib.io').is_wildcard


class TestImportEntries:
    """Tests for reading import statements into entries."""

    def test_plain_import_binds_root(self):
        """import a.b.c binds the name a."""
        (entry,) = import_entries(stmt('import cp_lib.algorithms.exponential'))
        assert entry.path == ImportPath.parse('cp_lib.algorithms.exponential')
        assert entry.bound_name == 'cp_lib'

    def test_plain_import_with_alias(self):
        (entry,) = import_entries(stmt('import cp_lib.algorithms.exponential as ex'))
        assert entry.bound_name == 'ex'

    def test_from_import(self):
        """Every imported name becomes its own path."""
        entries = import_entries(stmt('from cp_lib.algorithms.exponential import pow_mod, binpow as bp'))
        assert [str(e.path) for e in entries] == [
            'cp_lib.algorithms.exponential.pow_mod',
            'cp_lib.algorithms.exponential.binpow',
        ]
        assert [e.bound_name for e in entries] == ['pow_mod', 'bp']

    def test_star_import(self):
        (entry,) = import_entries(stmt('from cp_lib.io.scanner import *'))
        assert entry.path.is_wildcard

    def test_relative_import_has_no_entries(self):
        assert import_entries(stmt('from . import exponential')) == []


class TestAliasPredicate:
    """Tests for the default module-alias heuristic."""

    def test_lowercase_is_alias(self):
        assert is_module_alias('exponential')

    def test_uppercase_is_not_alias(self):
        assert not is_module_alias('Scanner')

    def test_empty_name(self):
        assert not is_module_alias('')


class TestChains:
    """Tests for attribute chains and module prefixes."""

    def test_attribute_chain(self):
        assert attribute_chain(expr('a.b.c')) == ['a', 'b', 'c']

    def test_chain_not_rooted_at_name(self):
        """Chains through calls or subscripts are not references."""
        assert attribute_chain(expr('f().b')) is None
        assert attribute_chain(expr('x[0].b')) is None

    def test_module_prefix_length(self):
        segments = ['cp_lib', 'io', 'scanner', 'Scanner', 'from_string']
        assert module_prefix_length(segments, MODULES) == 3

    def test_unknown_prefix(self):
        assert module_prefix_length(['cp_lib', 'x', 'y'], MODULES) == 0

    def test_symbol_reference_trims_attribute_access(self):
        segments = ['cp_lib', 'io', 'scanner', 'Scanner', 'from_string']
        assert symbol_reference(segments, MODULES) == ['cp_lib', 'io', 'scanner', 'Scanner']

    def test_symbol_reference_without_known_modules(self):
        segments = ['cp_lib', 'x', 'y', 'z']
        assert symbol_reference(segments, frozenset()) == segments


class TestSplitImport:
    """Tests for separating library imports from the rest."""

    def test_mixed_plain_import(self):
        library, other = split_import(stmt('import cp_lib.io.scanner, heapq'), 'cp_lib')
        assert ast.unparse(library) == 'import cp_lib.io.scanner'
        assert ast.unparse(other) == 'import heapq'

    def test_external_from_import(self):
        node = stmt('from collections import deque')
        library, other = split_import(node, 'cp_lib')
        assert library is None
        assert other is node

    def test_library_from_import(self):
        node = stmt('from cp_lib.io.scanner import Scanner')
        library, other = split_import(node, 'cp_lib')
        assert library is node
        assert other is None


class TestBindingStatements:
    """Tests for bindings that keep renamed symbol imports alive."""

    def test_renamed_symbol(self):
        bindings = binding_statements(stmt('from cp_lib.io.scanner import Scanner as Sc'), MODULES)
        assert [ast.unparse(b) for b in bindings] == ['Sc = Scanner']

    def test_renamed_module_has_no_binding(self):
        bindings = binding_statements(stmt('from cp_lib.algorithms import exponential as ex'), MODULES)
        assert bindings == []

    def test_plain_names_have_no_binding(self):
        bindings = binding_statements(stmt('from cp_lib.io.scanner import Scanner'), MODULES)
        assert bindings == []


class TestLibraryReferenceCollector:
    """Tests for finding library references inside declaration bodies."""

    def test_finds_distinct_references(self):
        node = stmt(
            'def solve():\n'
            '    a = cp_lib.algorithms.exponential.pow_mod(2, 3, 5)\n'
            '    b = cp_lib.algorithms.exponential.pow_mod(3, 3, 5)\n'
            '    return cp_lib.io.scanner.Scanner.from_string("1")\n'
        )
        paths = LibraryReferenceCollector('cp_lib', MODULES).collect(node)
        assert [str(p) for p in paths] == [
            'cp_lib.algorithms.exponential.pow_mod',
            'cp_lib.io.scanner.Scanner',
        ]

    def test_ignores_other_roots(self):
        node = stmt('def f():\n    return collections.deque()\n')
        assert LibraryReferenceCollector('cp_lib', MODULES).collect(node) == []

    def test_finds_references_in_annotations(self):
        node = stmt('def f(sc: cp_lib.io.scanner.Scanner) -> int:\n    return 0\n')
        paths = LibraryReferenceCollector('cp_lib', MODULES).collect(node)
        assert [str(p) for p in paths] == ['cp_lib.io.scanner.Scanner']

    def test_collects_nested_imports(self):
        node = stmt(
            'def f():\n'
            '    import heapq\n'
            '    from cp_lib.io.scanner import Scanner\n'
            '    return Scanner\n'
        )
        collector = LibraryReferenceCollector('cp_lib', MODULES)
        collector.collect(node)
        assert len(collector.nested_imports) == 1
        assert isinstance(collector.nested_imports[0], ast.ImportFrom)
