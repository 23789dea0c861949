"""
Address classification and pre-flight option checks.

Every range entry is matched once against a fixed set of patterns and
tagged with an AddressCategory; later stages switch on the tag instead of
re-running the patterns.
"""
import enum
import ipaddress
import os
import re
import shutil
from typing import List

from .errors import (
    BinaryPathError,
    BlockSizeError,
    HostValidationError,
    PortSpecError,
    RangeError,
    ScanError,
)

MAX_BLOCKSIZE = 128

_OCTET = r"(?:25[0-5]|2[0-4][0-9]|1[0-9]{2}|[1-9][0-9]|[0-9])"
_LABEL = r"(?:[A-Za-z]|[A-Za-z][A-Za-z0-9\-]*[A-Za-z0-9])"

HOSTNAME_RE = re.compile(rf"(?:{_LABEL}\.)*{_LABEL}")
IPV4_RE = re.compile(rf"{_OCTET}(?:\.{_OCTET}){{3}}")
IPV4_CIDR_RE = re.compile(rf"{_OCTET}(?:\.{_OCTET}){{3}}/(?:[1-2][0-9]|3[0-2]|[0-9])")
IPV4_RANGE_RE = re.compile(rf"{_OCTET}(?:\.{_OCTET}){{3}}-{_OCTET}")
IPV6_PREFIX_RE = re.compile(r"(?:12[0-8]|1[0-1][0-9]|[0-9]{1,2})")

# 1-65535, optionally as a comma separated list of ports and dash ranges
PORTS_RE = re.compile(
    r"(?:(?:^|[-,])(?:[1-9][0-9]{0,3}|[1-5][0-9]{4}|"
    r"6(?:[0-4][0-9]{3}|5(?:[0-4][0-9]{2}|5(?:[0-2][0-9]|3[0-5])))))+"
)


class AddressCategory(enum.Enum):
    HOSTNAME = "hostname"
    IPV4 = "ipv4"
    IPV6 = "ipv6"
    IPV4_CIDR = "ipv4_cidr"
    IPV6_CIDR = "ipv6_cidr"
    IPV4_RANGE = "ipv4_range"
    INVALID = "invalid"


def _is_ipv6_address(text: str) -> bool:
    address = text.strip().split("%", 1)[0]
    if ":" not in address:
        return False
    try:
        ipaddress.IPv6Address(address)
    except ValueError:
        return False
    return True


def _is_ipv6_cidr(text: str) -> bool:
    address, sep, prefix = text.strip().rpartition("/")
    if not sep or not IPV6_PREFIX_RE.fullmatch(prefix):
        return False
    return _is_ipv6_address(address)


def classify(raw: str) -> AddressCategory:
    """
    Tags a raw range entry. Single hosts are tried first, then IPv4 CIDR,
    IPv4 dash-range and IPv6 CIDR; the first matching pattern wins.
    """
    if not isinstance(raw, str):
        return AddressCategory.INVALID

    if HOSTNAME_RE.fullmatch(raw):
        return AddressCategory.HOSTNAME
    if IPV4_RE.fullmatch(raw):
        return AddressCategory.IPV4
    if _is_ipv6_address(raw):
        return AddressCategory.IPV6
    if IPV4_CIDR_RE.fullmatch(raw):
        return AddressCategory.IPV4_CIDR
    if IPV4_RANGE_RE.fullmatch(raw):
        return AddressCategory.IPV4_RANGE
    if _is_ipv6_cidr(raw):
        return AddressCategory.IPV6_CIDR
    return AddressCategory.INVALID


def is_ipv6_target(block: str) -> bool:
    """True when the first target of a block is an IPv6 address or network."""
    tokens = block.split()
    if not tokens:
        return False
    return _is_ipv6_address(tokens[0]) or _is_ipv6_cidr(tokens[0])


def verify_host(host: str) -> None:
    if classify(host) is AddressCategory.INVALID:
        raise HostValidationError(host)


def validate_ports(ports: str) -> None:
    if not PORTS_RE.fullmatch(ports):
        raise PortSpecError(ports)


def binary_exists(path: str) -> bool:
    if shutil.which(path):
        return True
    return os.path.isfile(path) and os.access(path, os.X_OK)


def validate_options(opts, discover: bool = False) -> List[ScanError]:
    """
    Runs every pre-flight check and returns the collected errors.
    An empty list means the options are usable.
    """
    errors: List[ScanError] = []

    if not binary_exists(opts.nmap):
        errors.append(BinaryPathError(opts.nmap))

    if opts.blocksize > MAX_BLOCKSIZE:
        errors.append(BlockSizeError(opts.blocksize))

    if not discover:
        if not isinstance(opts.range, (list, tuple)) or len(opts.range) == 0:
            errors.append(RangeError())
        else:
            for host in opts.range:
                try:
                    verify_host(host)
                except HostValidationError as e:
                    errors.append(e)

    if opts.ports:
        try:
            validate_ports(opts.ports)
        except PortSpecError as e:
            errors.append(e)

    return errors
