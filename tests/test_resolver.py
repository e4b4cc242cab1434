"""
Unit tests for the module index and the module resolver.
"""
import os
import tempfile

import pytest

from cpbundle.index import ModuleIndex
from cpbundle.paths import ImportPath
from cpbundle.resolver import ModuleResolver


def write_tree(root, files):
    for relative, content in files.items():
        path = os.path.join(root, relative)
        os.makedirs(os.path.dirname(path), exist_ok=True)
        with open(path, 'w') as f:
            f.write(content)


@pytest.fixture
def lib_root():
    """A small library tree with both module conventions."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = os.path.join(tmpdir, 'cp_lib')
        write_tree(root, {
            '__init__.py': '',
            'io/__init__.py': '',
            'io/scanner.py': 'class Scanner: pass\n',
            'algorithms/exponential.py': 'def pow_mod(a, b, m): return 1\n',
            'graph/__init__.py': 'def bfs(): pass\n',
            'both.py': 'X = 1\n',
            'both/__init__.py': 'X = 2\n',
            'notes.txt': 'not python',
            '__pycache__/stale.py': '',
        })
        yield root


class TestModuleIndex:
    """Tests for the one-time library scan."""

    def test_indexes_python_files(self, lib_root):
        """Every .py file is keyed by its POSIX relative path."""
        index = ModuleIndex(lib_root)
        assert 'io/scanner.py' in index
        assert 'algorithms/exponential.py' in index
        assert 'graph/__init__.py' in index
        assert 'notes.txt' not in index

    def test_skips_pycache(self, lib_root):
        """Bytecode cache directories are ignored."""
        index = ModuleIndex(lib_root)
        assert '__pycache__/stale.py' not in index

    def test_values_are_canonical(self, lib_root):
        """Looked-up paths are absolute and exist."""
        index = ModuleIndex(lib_root)
        found = index.get('io/scanner.py')
        assert found.is_absolute()
        assert found.is_file()

    def test_missing_root_gives_empty_index(self):
        """A library root that does not exist is not an error."""
        index = ModuleIndex('/nonexistent/cp_lib')
        assert len(index) == 0
        assert index.get('io/scanner.py') is None
        assert index.module_names() == frozenset()

    def test_symlink_loop_is_cut(self, lib_root):
        """A directory link back to an ancestor is indexed once, not until ELOOP."""
        os.symlink(lib_root, os.path.join(lib_root, 'io', 'back'))
        index = ModuleIndex(lib_root)
        assert 'io/scanner.py' in index
        assert not any(key.startswith('io/back/') for key, _ in index.items())

    def test_symlinked_sibling_is_indexed(self, lib_root):
        """Links to non-enclosing directories are still followed."""
        os.symlink(os.path.join(lib_root, 'algorithms'), os.path.join(lib_root, 'algos'))
        index = ModuleIndex(lib_root)
        assert 'algos/exponential.py' in index
        assert index.get('algos/exponential.py') == index.get('algorithms/exponential.py')

    def test_module_names(self, lib_root):
        """Dotted names cover modules, packages and plain directories."""
        names = ModuleIndex(lib_root).module_names()
        assert 'io' in names
        assert 'io.scanner' in names
        assert 'algorithms' in names
        assert 'algorithms.exponential' in names
        assert 'graph' in names
        assert '__init__' not in names


class TestCandidatePatterns:
    """Tests for the ordered file patterns tried for an import path."""

    @pytest.fixture
    def resolver(self, lib_root):
        return ModuleResolver(ModuleIndex(lib_root), 'cp_lib')

    def test_symbol_path_patterns(self, resolver):
        """Module patterns come first, then the patterns without the last segment."""
        patterns = resolver.candidate_patterns(ImportPath.parse('cp_lib.io.scanner.Scanner'))
        assert patterns == [
            'io/scanner/Scanner.py',
            'io/scanner/Scanner/__init__.py',
            'io/scanner.py',
            'io/scanner/__init__.py',
        ]

    def test_two_segment_path(self, resolver):
        """Two segments only produce the module patterns."""
        patterns = resolver.candidate_patterns(ImportPath.parse('cp_lib.graph'))
        assert patterns == ['graph.py', 'graph/__init__.py']

    def test_wildcard_is_stripped(self, resolver):
        """A trailing * is treated as the module itself."""
        with_star = resolver.candidate_patterns(ImportPath.parse('cp_lib.io.scanner.*'))
        without = resolver.candidate_patterns(ImportPath.parse('cp_lib.io.scanner'))
        assert with_star == without

    def test_other_roots_have_no_patterns(self, resolver):
        """Paths outside the library namespace are never resolved."""
        assert resolver.candidate_patterns(ImportPath.parse('collections.deque')) == []
        assert resolver.candidate_patterns(ImportPath.parse('cp_lib')) == []


class TestResolve:
    """Tests for ModuleResolver.resolve."""

    @pytest.fixture
    def resolver(self, lib_root):
        return ModuleResolver(ModuleIndex(lib_root), 'cp_lib')

    def test_module_import(self, resolver, lib_root):
        """cp_lib.algorithms.exponential resolves to the module file."""
        found = resolver.resolve(ImportPath.parse('cp_lib.algorithms.exponential'))
        assert found is not None
        assert found.name == 'exponential.py'

    def test_symbol_import(self, resolver):
        """A trailing symbol falls back to its defining module."""
        found = resolver.resolve(ImportPath.parse('cp_lib.algorithms.exponential.pow_mod'))
        assert found.name == 'exponential.py'

    def test_directory_module(self, resolver):
        """A package resolves to its __init__.py."""
        found = resolver.resolve(ImportPath.parse('cp_lib.graph'))
        assert found.name == '__init__.py'
        assert found.parent.name == 'graph'

    def test_file_wins_over_directory(self, resolver):
        """When both conventions match, the module file is preferred."""
        found = resolver.resolve(ImportPath.parse('cp_lib.both'))
        assert found.name == 'both.py'

    def test_unresolved_returns_none(self, resolver):
        """No match is not an error."""
        assert resolver.resolve(ImportPath.parse('cp_lib.missing.thing')) is None

    def test_file_added_after_indexing(self, resolver, lib_root):
        """The filesystem check finds files the index does not know about."""
        write_tree(lib_root, {'late/added.py': 'Y = 1\n'})
        found = resolver.resolve(ImportPath.parse('cp_lib.late.added'))
        assert found is not None
        assert found.name == 'added.py'

    def test_pattern_without_extension(self, resolver):
        """Module file lookup adds the .py extension when missing."""
        found = resolver.resolve_module_file('algorithms/exponential')
        assert found is not None
        assert found.name == 'exponential.py'

    def test_resolves_to_module(self, resolver):
        """Only whole-module paths count as modules."""
        assert resolver.resolves_to_module(ImportPath.parse('cp_lib.io.scanner'))
        assert resolver.resolves_to_module(ImportPath.parse('cp_lib.graph'))
        assert not resolver.resolves_to_module(ImportPath.parse('cp_lib.io.scanner.Scanner'))
