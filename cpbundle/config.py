# ==========================================
# CONFIGURATION
# ==========================================
"""
Bundler settings.

Values come from the first config file found (``cpbundle.json`` in the
working directory, then ``~/.cpbundle/config.json``) and fall back to the
defaults below. The CLI overrides individual fields with its flags.
"""
import ast
import json
import os
from pathlib import Path
from typing import List, Optional

from pydantic import BaseModel, ValidationError, field_validator

from .errors import BundleConfigError

CONFIG_FILE = "cpbundle.json"
USER_CONFIG_FILE = os.path.join("~", ".cpbundle", "config.json")

DEFAULT_BASELINE_IMPORTS = [
    "import sys",
    "import io",
    "import math",
    "from collections import Counter, defaultdict, deque",
]


class BundlerConfig(BaseModel):
    """Settings for a single bundle run."""
    main_file: Path = Path("main.py")
    lib_root: Path = Path("cp_lib")
    output_dir: Path = Path("bundled")
    namespace_root: str = "cp_lib"
    entry_function: str = "main"
    metadata_names: List[str] = ["_PROBLEM", "_PROBLEM_ID"]
    baseline_imports: List[str] = list(DEFAULT_BASELINE_IMPORTS)
    create_versioned_copy: bool = True
    add_entry_guard: bool = True

    @field_validator("namespace_root", "entry_function")
    @classmethod
    def _must_be_identifier(cls, value):
        if not value.isidentifier():
            raise ValueError(f"'{value}' is not a valid Python identifier")
        return value

    @field_validator("baseline_imports")
    @classmethod
    def _must_be_imports(cls, value):
        for line in value:
            try:
                body = ast.parse(line).body
            except SyntaxError as e:
                raise ValueError(f"Baseline import '{line}' is not valid Python: {e.msg}")
            if not body or not all(isinstance(node, (ast.Import, ast.ImportFrom)) for node in body):
                raise ValueError(f"Baseline entry '{line}' is not an import statement")
            if any(isinstance(node, ast.ImportFrom) and node.level for node in body):
                raise ValueError(f"Baseline import '{line}' must be absolute")
        return value

    @property
    def title_constant(self):
        """Name of the constant holding the human-readable problem title."""
        return self.metadata_names[0] if self.metadata_names else None

    @property
    def identifier_constant(self):
        """Name of the constant holding an explicit output identifier."""
        return self.metadata_names[1] if len(self.metadata_names) > 1 else None


def find_config_file(paths=None) -> Optional[str]:
    """Return the first existing config file among the search paths."""
    candidates = paths or [CONFIG_FILE, os.path.expanduser(USER_CONFIG_FILE)]
    for p in candidates:
        if os.path.exists(p):
            return p
    return None


def load_config(path=None, **overrides) -> BundlerConfig:
    """
    Load bundler settings.

    Args:
        path: Explicit config file. When omitted the default search paths are used.
        **overrides: Field values that win over the file (None values are ignored).

    Raises:
        BundleConfigError: If the file is not valid JSON or holds invalid values.
    """
    source = path or find_config_file()
    data = {}
    if source is not None:
        try:
            with open(source, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise BundleConfigError(
                message=f"Invalid JSON: {e.msg}",
                path=source,
                line_number=e.lineno,
                column=e.colno,
            )
        except OSError as e:
            raise BundleConfigError(message=f"Cannot read config file: {e.strerror}", path=source)
        if not isinstance(data, dict):
            raise BundleConfigError(message="Config file must contain a JSON object", path=source)

    data.update({k: v for k, v in overrides.items() if v is not None})
    try:
        return BundlerConfig.model_validate(data)
    except ValidationError as e:
        raise BundleConfigError(
            message=f"Invalid configuration: {e.error_count()} error(s)",
            path=source,
            context=str(e).splitlines()[1] if len(str(e).splitlines()) > 1 else None,
            suggestion="Check field names and types against BundlerConfig",
        )
