# cp-bundler - Core Components
"""
Core modules of the bundler:
- errors: Fatal error taxonomy
- config: Pydantic settings model and loader
- index: One-time scan of the library root
- resolver: Import path -> library file
- source: Parsing and classifying source files
- paths: Import paths, qualified references, alias predicate
- inliner: Recursive declaration collector
- rewriter: Flattening of qualified references
- formatter: Output layout
- naming: Output filename from problem metadata
"""

from .errors import BundleError, BundleIOError, BundleParseError, BundleConfigError
from .config import BundlerConfig, load_config
from .index import ModuleIndex
from .resolver import ModuleResolver
from .paths import ImportPath, is_module_alias
from .inliner import BundleContext, Inliner, create_context
from .rewriter import PathRewriter
from .formatter import format_bundle
from .naming import derive_output_filename, format_problem_name

__all__ = [
    'BundleError',
    'BundleIOError',
    'BundleParseError',
    'BundleConfigError',
    'BundlerConfig',
    'load_config',
    'ModuleIndex',
    'ModuleResolver',
    'ImportPath',
    'is_module_alias',
    'BundleContext',
    'Inliner',
    'create_context',
    'PathRewriter',
    'format_bundle',
    'derive_output_filename',
    'format_problem_name',
]
