"""
Report assembly.

Concatenates the raw output of a scan unit and, when structured output is
requested, converts the XML into nested dicts:

    <nmaprun scanner="nmap"><host><status state="up"/></host></nmaprun>

becomes

    {"nmaprun": {"item": {"scanner": "nmap"},
                 "host": [{"status": [{"item": {"state": "up"}}]}]}}

Attributes live under `attr_key`, children are always lists, text of mixed
elements lives under `char_key` and leaf elements collapse to their text.
"""
import xml.etree.ElementTree as ET
from typing import Any, Dict, List, Union

from .errors import ParseError

ATTR_KEY = "item"
CHAR_KEY = "_"
ROOT_TAG = "nmaprun"


def _element_to_value(elem: ET.Element, attr_key: str, char_key: str) -> Any:
    node: Dict[str, Any] = {}
    if elem.attrib:
        node[attr_key] = dict(elem.attrib)

    text = elem.text or ""
    for child in elem:
        node.setdefault(child.tag, []).append(_element_to_value(child, attr_key, char_key))
        text += child.tail or ""

    if text.strip():
        if not node:
            return text
        node[char_key] = text
    elif not node:
        return ""
    return node


def xml_to_dict(xml: Union[str, bytes], attr_key: str = ATTR_KEY, char_key: str = CHAR_KEY) -> Dict[str, Any]:
    try:
        root = ET.fromstring(xml)
    except ET.ParseError as e:
        raise ParseError(f"Could not parse scan output: {e}") from e
    return {root.tag: _element_to_value(root, attr_key, char_key)}


def assemble(opts, output: Union[List[bytes], Exception]):
    """
    Builds the report of one unit: raw XML text, or the nmaprun node when
    structured output is enabled.
    """
    if isinstance(output, Exception):
        raise output

    raw = b"".join(output)
    if not opts.json_output:
        # surrogateescape keeps undecodable bytes, so encoding back is lossless
        return raw.decode("utf-8", errors="surrogateescape")

    parsed = xml_to_dict(raw)
    if ROOT_TAG not in parsed:
        raise ParseError(f"Scan output has no <{ROOT_TAG}> root element")
    return parsed[ROOT_TAG]
