"""
Binary exponentiation.

``pow`` shadows the builtin inside bundled programs, so nothing here
calls the builtin.
"""


def binpow(base, exp):
    """Generic binary exponentiation: base ** exp with exp >= 0, no modulo."""
    res = 1
    while exp > 0:
        if exp & 1:
            res = res * base
        base = base * base
        exp >>= 1
    return res


def pow(base, exp):
    return binpow(base, exp)


def pow_mod(base, exp, mod):
    """base ** exp % mod for exp >= 0."""
    if mod == 1:
        return 0
    res = 1
    base %= mod
    while exp > 0:
        if exp & 1:
            res = res * base % mod
        base = base * base % mod
        exp >>= 1
    return res


def mod_inverse(a, p):
    # Fermat, p must be prime
    return pow_mod(a, p - 2, p)
