"""
Output file naming from the entry program's metadata constants.
"""
import re
import time

from .source import constant_value

OUTPUT_SUFFIX = ".py"
GENERIC_NAME = "solution.py"

_UNDERSCORE_RUNS = re.compile(r"_+")
_NON_ALNUM_RUNS = re.compile(r"[^0-9A-Za-z]+")


def format_problem_name(problem_name):
    """
    Normalize a problem title.

    Letters are lowercased, a period is kept and always followed by ``_``
    (spaces after it are skipped), every other character that is not
    alphanumeric becomes ``_``; runs of ``_`` collapse and trailing ones go.

    >>> format_problem_name("F1. Tree Cutting (Easy Version)")
    'f1._tree_cutting_easy_version'
    """
    out = []
    i = 0
    while i < len(problem_name):
        ch = problem_name[i]
        if ch.isalnum():
            out.append(ch.lower())
        elif ch == ".":
            out.append("._")
            while i + 1 < len(problem_name) and problem_name[i + 1].isspace():
                i += 1
        else:
            out.append("_")
        i += 1

    filename = "".join(out).rstrip("_")
    return _UNDERSCORE_RUNS.sub("_", filename)


def sanitize_identifier(identifier):
    """``"CF 1234-A"`` -> ``"CF_1234_A"``: alphanumerics only, separators collapsed."""
    return _NON_ALNUM_RUNS.sub("_", identifier).strip("_")


def generate_filename(problem_name, timestamp=None):
    if timestamp is None:
        timestamp = int(time.time())
    return f"{format_problem_name(problem_name)}_{timestamp}{OUTPUT_SUFFIX}"


def derive_output_filename(unit, config, timestamp=None):
    """
    Pick the output filename for an entry unit.

    An explicit identifier constant wins, then the problem title, then a
    timestamped ``solution_<epoch>.py``.
    """
    if timestamp is None:
        timestamp = int(time.time())

    if config.identifier_constant:
        identifier = constant_value(unit.tree, config.identifier_constant)
        if identifier and sanitize_identifier(identifier):
            return f"{sanitize_identifier(identifier)}{OUTPUT_SUFFIX}"

    if config.title_constant:
        title = constant_value(unit.tree, config.title_constant)
        if title and format_problem_name(title):
            return generate_filename(title, timestamp)

    return f"solution_{timestamp}{OUTPUT_SUFFIX}"


def problem_title(unit, config):
    if not config.title_constant:
        return None
    return constant_value(unit.tree, config.title_constant)
