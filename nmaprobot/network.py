"""
Range partitioning and classification.

Turns the mixed list of user supplied targets (or the local adapters in
discover mode) into the flat list of target blocks handed to the executable,
one block per process.
"""
import ipaddress
import math
import socket
from dataclasses import dataclass
from typing import Iterable, List, Optional

import psutil

from .errors import RangeError
from .validator import AddressCategory, classify

# Above this many groups the CIDR is regrouped so the unit count stays sane
MAX_GROUPS = 256
REGROUP_DIVISOR = 255


@dataclass
class Adapter:
    """A local network interface address as reported by the OS."""
    address: str
    netmask: Optional[str]
    internal: bool = False
    family: int = socket.AF_INET


def _round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def expand_cidr(cidr: str) -> List[str]:
    """
    Lists the usable hosts of an IPv4 network in order.
    Network and broadcast addresses are left out except for /31 and /32.
    """
    network = ipaddress.IPv4Network(cidr, strict=False)
    return [str(host) for host in network.hosts()]


def group_count(address_count: int, blocksize: int) -> int:
    groups = _round_half_up(address_count / blocksize)
    if groups > MAX_GROUPS:
        groups = _round_half_up(groups / REGROUP_DIVISOR)
    return groups


def partition(cidr: str, blocksize: int) -> List[str]:
    """
    Splits an IPv4 CIDR into contiguous, space joined target blocks.

    The number of blocks is round(hosts / blocksize), regrouped by 255 when
    that exceeds 256. Every block holds hosts // groups addresses and the
    last one also takes the remainder.
    """
    hosts = expand_cidr(cidr)
    groups = group_count(len(hosts), blocksize)

    if groups <= 1:
        return [" ".join(hosts)]

    size = len(hosts) // groups
    blocks = []
    for i in range(groups):
        start = i * size
        end = start + size if i < groups - 1 else len(hosts)
        blocks.append(" ".join(hosts[start:end]))
    return blocks


def calculate(ranges: Iterable[str], blocksize: int) -> List[str]:
    """
    Builds the ordered list of target blocks for a range list.

    Hostnames, single addresses, IPv4 dash ranges and IPv6 networks pass
    through untouched, IPv4 networks are replaced by their partition and
    anything unrecognised is dropped.
    """
    blocks: List[str] = []
    for host in ranges:
        category = classify(host)
        if category is AddressCategory.INVALID:
            continue
        if category is AddressCategory.IPV4_CIDR:
            blocks.extend(partition(host, blocksize))
        else:
            # IPv6 networks are scanned as one expression, never split
            blocks.append(host)

    if not blocks:
        raise RangeError("Range of hosts could not be created")
    return blocks


def _ipv6_prefixlen(netmask: str) -> int:
    if ":" in netmask:
        return bin(int(ipaddress.IPv6Address(netmask))).count("1")
    return int(netmask.lstrip("/"))


def adapter_cidr(adapter: Adapter) -> str:
    """Renders an adapter as network/prefix with the host bits cleared."""
    address = adapter.address.split("%", 1)[0]
    if adapter.family == socket.AF_INET6 or ":" in address:
        prefix = _ipv6_prefixlen(adapter.netmask)
        network = ipaddress.IPv6Network(f"{address}/{prefix}", strict=False)
    else:
        network = ipaddress.IPv4Network(f"{address}/{adapter.netmask}", strict=False)
    return f"{network.network_address}/{network.prefixlen}"


def adapter_ranges(adapters: Iterable[Adapter]) -> List[str]:
    ranges = []
    for adapter in adapters:
        if adapter.internal or not adapter.netmask:
            continue
        try:
            ranges.append(adapter_cidr(adapter))
        except ValueError as e:
            raise RangeError(f"Adapter {adapter.address} has an unusable netmask {adapter.netmask!r}: {e}") from e
    if not ranges:
        raise RangeError("No external network adapters with a netmask were found")
    return ranges


def local_adapters() -> List[Adapter]:
    """Enumerates IPv4/IPv6 interface addresses through psutil."""
    try:
        interfaces = psutil.net_if_addrs()
    except (psutil.Error, OSError) as e:
        raise RangeError(f"Could not enumerate network adapters: {e}") from e

    adapters = []
    for addrs in interfaces.values():
        for addr in addrs:
            if addr.family not in (socket.AF_INET, socket.AF_INET6):
                continue
            try:
                internal = ipaddress.ip_address(addr.address.split("%", 1)[0]).is_loopback
            except ValueError:
                continue
            adapters.append(Adapter(
                address=addr.address,
                netmask=addr.netmask,
                internal=internal,
                family=addr.family,
            ))
    return adapters
