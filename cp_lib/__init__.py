"""
Personal competitive programming library.

Solutions import from here while developing; ``cpb bundle`` inlines the
modules they use into a single submission file.
"""
