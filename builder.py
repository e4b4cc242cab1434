import os
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from cpbundle.config import BundlerConfig
from cpbundle.errors import BundleIOError
from cpbundle.formatter import format_bundle
from cpbundle.inliner import Inliner, create_context
from cpbundle.log import debug_log
from cpbundle.naming import GENERIC_NAME, derive_output_filename, problem_title
from cpbundle.paths import is_module_alias
from cpbundle.rewriter import PathRewriter
from cpbundle.source import load_entry_unit


@dataclass
class BundleOutcome:
    """What a bundle run wrote to disk."""
    output_path: Optional[Path]
    generic_path: Path
    size: int
    problem: Optional[str]


def bundle_unit(entry_unit, config, generated_at=None, alias_predicate=is_module_alias):
    """Collect, rewrite and format an already parsed entry unit."""
    # STEP 1: COLLECT AND INLINE
    context = create_context(config, alias_predicate)
    Inliner(context).run(entry_unit)

    # STEP 2: REWRITE QUALIFIED REFERENCES
    rewriter = PathRewriter(
        context.namespace_root,
        context.aliases,
        context.module_names,
        context.resolver.resolves_to_module,
        context.module_symbols,
    )
    rewriter.rewrite(context.declarations)

    # STEP 3: FORMAT
    return format_bundle(context, config, generated_at)


def bundle_source(file_path=None, config=None, source_code=None, generated_at=None):
    """
    Bundle an entry program and its library dependencies into one source text.

    Args:
        file_path: Entry file (defaults to config.main_file)
        config: BundlerConfig, defaults used when omitted
        source_code: Entry source to use instead of reading file_path (stdin)
        generated_at: Banner timestamp override

    Raises:
        BundleIOError: If a file cannot be read
        BundleParseError: If the entry file or a reached library module is not valid Python
    """
    config = config or BundlerConfig()
    file_path = Path(file_path) if file_path is not None else config.main_file
    debug_log(f"Bundling {file_path} against library {config.lib_root}")
    entry_unit = load_entry_unit(file_path, source_code)
    return bundle_unit(entry_unit, config, generated_at)


def write_output(path, text):
    try:
        with open(path, "w", encoding="utf-8") as f:
            f.write(text)
    except OSError as e:
        raise BundleIOError(message=f"Cannot write output: {e.strerror or e}", path=path)


def bundle_to_disk(config=None, generated_at=None):
    """
    Bundle config.main_file and write the result into config.output_dir.

    Writes ``<name>.py`` derived from the problem metadata (when versioned
    copies are enabled) and always the generic ``solution.py``.
    """
    config = config or BundlerConfig()
    if generated_at is None:
        generated_at = int(time.time())

    entry_unit = load_entry_unit(config.main_file)
    bundled_code = bundle_unit(entry_unit, config, generated_at)

    try:
        os.makedirs(config.output_dir, exist_ok=True)
    except OSError as e:
        raise BundleIOError(message=f"Cannot create output directory: {e.strerror or e}", path=config.output_dir)

    output_path = None
    if config.create_versioned_copy:
        output_path = Path(config.output_dir) / derive_output_filename(entry_unit, config, generated_at)
        write_output(output_path, bundled_code)

    generic_path = Path(config.output_dir) / GENERIC_NAME
    write_output(generic_path, bundled_code)

    return BundleOutcome(
        output_path=output_path,
        generic_path=generic_path,
        size=len(bundled_code.encode("utf-8")),
        problem=problem_title(entry_unit, config),
    )
