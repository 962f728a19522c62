"""IPv4 CIDR arithmetic for network placement checks.

Blocks are parsed non-strictly: host bits beyond the prefix are cleared, so
``192.168.1.50/28`` is treated as ``192.168.1.48/28``. Every helper accepts
either text or an already-parsed :class:`ipaddress.IPv4Network`.

Examples
--------
>>> contains("10.5.0.0/16", "10.5.11.0/24")
True
>>> overlaps("10.5.2.0/28", "10.5.2.0/24")
True
"""

from __future__ import annotations

from ipaddress import IPv4Address, IPv4Network

from kube_stack._preflight_errors import InvalidNetworkFormatError

type CIDRLike = str | IPv4Network


def parse_cidr(value: CIDRLike) -> IPv4Network:
    """Parse *value* into a canonical IPv4 network.

    Parameters
    ----------
    value : str | IPv4Network
        CIDR text such as ``10.0.0.0/16``.

    Returns
    -------
    IPv4Network
        The network with host bits cleared.

    Raises
    ------
    InvalidNetworkFormatError
        If *value* is not an IPv4 CIDR block.

    Examples
    --------
    >>> str(parse_cidr("192.168.1.50/28"))
    '192.168.1.48/28'
    """
    if isinstance(value, IPv4Network):
        return value
    text = str(value).strip()
    if "/" not in text:
        msg = f"invalid CIDR block (missing prefix length): {value!r}"
        raise InvalidNetworkFormatError(msg)
    try:
        return IPv4Network(text, strict=False)
    except ValueError as exc:
        msg = f"invalid CIDR block: {value!r}"
        raise InvalidNetworkFormatError(msg) from exc


def parse_ip(value: str | IPv4Address) -> IPv4Address:
    """Parse a single IPv4 address.

    Examples
    --------
    >>> parse_ip("10.0.0.50")
    IPv4Address('10.0.0.50')
    """
    if isinstance(value, IPv4Address):
        return value
    try:
        return IPv4Address(str(value).strip())
    except ValueError as exc:
        msg = f"invalid IPv4 address: {value!r}"
        raise InvalidNetworkFormatError(msg) from exc


def contains(outer: CIDRLike, inner: CIDRLike) -> bool:
    """Return whether every address of *inner* lies inside *outer*.

    Examples
    --------
    >>> contains("10.0.0.0/16", "10.0.0.0/16")
    True
    >>> contains("10.0.0.0/24", "10.0.0.0/16")
    False
    """
    return parse_cidr(inner).subnet_of(parse_cidr(outer))


def overlaps(a: CIDRLike, b: CIDRLike) -> bool:
    """Return whether *a* and *b* share at least one address.

    Examples
    --------
    >>> overlaps("192.168.1.100/26", "192.168.1.100/28")
    True
    >>> overlaps("10.5.11.0/24", "10.5.10.100/29")
    False
    """
    return parse_cidr(a).overlaps(parse_cidr(b))


def contains_address(network: CIDRLike, address: str | IPv4Address) -> bool:
    """Return whether *address* falls inside *network*."""
    return parse_ip(address) in parse_cidr(network)


__all__ = [
    "CIDRLike",
    "contains",
    "contains_address",
    "overlaps",
    "parse_cidr",
    "parse_ip",
]
