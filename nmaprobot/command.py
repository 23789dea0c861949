from typing import Dict, List

from .config import ScanOptions
from .validator import is_ipv6_target


def build_command(opts: ScanOptions, block: str) -> str:
    """
    Renders one executable invocation:
    <nmap> [-sU] --host-timeout=<t>s <flags> [-6] [-p<ports>] <block>
    """
    parts: List[str] = [opts.nmap]
    if opts.udp:
        parts.append("-sU")
    parts.append(f"--host-timeout={opts.timeout}s")
    parts.extend(opts.flags)
    if is_ipv6_target(block):
        parts.append("-6")
    if opts.ports:
        parts.append(f"-p{opts.ports}")
    parts.append(block)
    return " ".join(parts)


def build_commands(opts: ScanOptions, blocks: List[str]) -> Dict[str, str]:
    return {block: build_command(opts, block) for block in blocks}
