from typing import List, Optional

RANGE_HELP = ("Range must be an array of host(s). Examples: "
              "192.168.2.10 (single), 10.0.2.0/24 (CIDR), 10.0.10.5-20 (range)")


class ScanError(Exception):
    """Base class for every error raised by nmaprobot."""


class BinaryPathError(ScanError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Supplied path for nmap binary is invalid: {path}")


class BlockSizeError(ScanError):
    def __init__(self, blocksize: int):
        self.blocksize = blocksize
        super().__init__(f"Supplied blocksize must not exceed 128 (got {blocksize})")


class RangeError(ScanError):
    def __init__(self, message: str = RANGE_HELP):
        super().__init__(message)


class PortSpecError(ScanError):
    def __init__(self, ports: str):
        self.ports = ports
        super().__init__(
            f"Port(s) '{ports}' must match one of the following examples: "
            "512 (single) | 1-65535 (range) | 10-30,80,443,3306-10000 (multiple)"
        )


class HostValidationError(ScanError):
    def __init__(self, host: str):
        self.host = host
        super().__init__(f"Supplied host ({host}) did not pass validation. {RANGE_HELP}")


class OptionsError(ScanError):
    """
    Every pre-flight validation failure, reported together.
    """
    def __init__(self, errors: List[ScanError]):
        self.errors = list(errors)
        lines = "; ".join(str(e) for e in self.errors)
        super().__init__(f"{len(self.errors)} option error(s): {lines}")


class ExecutionError(ScanError):
    def __init__(self, command: str, returncode: Optional[int] = None, reason: str = ""):
        self.command = command
        self.returncode = returncode
        if returncode is not None:
            msg = f"Command exited with status {returncode}: {command}"
        else:
            msg = f"Command could not be started ({reason}): {command}"
        super().__init__(msg)


class EmptyOutputError(ScanError):
    def __init__(self, block: str):
        self.block = block
        super().__init__(f"Scan of '{block}' produced no output")


class ParseError(ScanError):
    pass
