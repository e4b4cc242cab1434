"""
Error handling utilities for the bundler.

Every fatal condition of a bundle run is raised as a BundleError subclass.
A library import that matches no file is not an error: it is logged and
dropped from inlining.
"""


class BundleError(Exception):
    """Base exception for bundling failures, formatted like a compiler diagnostic."""
    def __init__(self, message, path=None, line_number=None, column=None, context=None, suggestion=None):
        self.message = message
        self.path = str(path) if path is not None else None
        self.line_number = line_number
        self.column = column
        self.context = context  # The offending line
        self.suggestion = suggestion  # How to fix it
        super().__init__(self._format_error())

    def _format_error(self):
        """Format the error message with location, context and suggestion."""
        lines = ["\n❌ Bundle Error"]
        if self.path:
            lines.append(f" in {self.path}")
        if self.line_number:
            lines.append(f" at line {self.line_number}")
            if self.column:
                lines.append(f", column {self.column}")
        lines.append(":\n")

        lines.append(f"   {self.message}\n")

        if self.context:
            lines.append(f"   > {self.context}\n")

        if self.suggestion:
            lines.append(f"   💡 {self.suggestion}\n")

        return "".join(lines)


class BundleIOError(BundleError):
    """Reading the entry file or a library module, or writing the output, failed."""


class BundleParseError(BundleError):
    """A visited source file is not valid Python."""


class BundleConfigError(BundleError):
    """The configuration file is malformed or holds invalid values."""


def get_line_context(source_code, line_number):
    """Extract the line of code from source by line number (1-based)."""
    if not source_code or line_number is None:
        return None
    source_lines = source_code.split('\n')
    if 0 < line_number <= len(source_lines):
        return source_lines[line_number - 1].strip()
    return None


def parse_error_from_syntax_error(path, source_code, exc):
    """Wrap a SyntaxError raised by ast.parse into a BundleParseError."""
    line_number = exc.lineno
    context = get_line_context(source_code, line_number) if line_number else None
    return BundleParseError(
        message=f"Syntax error: {exc.msg}",
        path=path,
        line_number=line_number,
        column=exc.offset,
        context=context,
        suggestion="Fix the syntax of this file; every module reached from the entry file must parse",
    )
