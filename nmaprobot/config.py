import os
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .errors import OptionsError, ScanError

XML_STDOUT_FLAG = "-oX -"

# Host presence sweep only: no DNS, ping scan, ARP ping
DISCOVER_FLAGS = ["-n", XML_STDOUT_FLAG, "-sn", "-PR"]


def default_threshold() -> int:
    return (os.cpu_count() or 1) * 4


def ensure_xml_flag(flags: List[str]) -> List[str]:
    """Appends the XML-to-stdout flag once if the caller did not pass it."""
    flags = list(flags)
    if XML_STDOUT_FLAG not in flags:
        flags.append(XML_STDOUT_FLAG)
    return flags


class ScanOptions(BaseModel):
    """
    Immutable scan configuration.
    Built once from user overrides, validated, then passed to every stage.
    """
    model_config = ConfigDict(frozen=True, extra="forbid", populate_by_name=True)

    nmap: str = "nmap"
    verbose: bool = False
    ports: str = "1-1024"
    range: List[str] = Field(default_factory=list)
    timeout: int = Field(120, gt=0)
    blocksize: int = Field(16, ge=1)
    threshold: int = Field(default_factory=default_threshold, ge=1)
    flags: List[str] = Field(default_factory=lambda: ["-T4"])
    udp: bool = False
    json_output: bool = Field(True, alias="json")

    @field_validator("ports", mode="before")
    @classmethod
    def normalize_ports(cls, v):
        if v is None:
            return ""
        return str(v).strip()

    @field_validator("flags")
    @classmethod
    def inject_xml_flag(cls, v):
        return ensure_xml_flag(v)

    @classmethod
    def build(cls, overrides: Optional[Dict[str, Any]] = None) -> "ScanOptions":
        """
        Merges user overrides onto the defaults. A supplied flags list
        replaces the default one instead of being merged into it.
        """
        try:
            return cls(**(overrides or {}))
        except ValidationError as e:
            raise OptionsError([
                ScanError(f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}")
                for err in e.errors()
            ]) from e

    def with_discover_preset(self, ranges: List[str]) -> "ScanOptions":
        return self.model_copy(update={
            "range": list(ranges),
            "ports": "",
            "flags": list(DISCOVER_FLAGS),
        })

