"""
Unit tests for report assembly.
Run with: pytest tests/test_report.py -v
"""
import pytest

from nmaprobot.config import ScanOptions
from nmaprobot.errors import ExecutionError, ParseError
from nmaprobot.report import assemble, xml_to_dict

SAMPLE = (
    b'<?xml version="1.0" encoding="UTF-8"?>\n'
    b'<nmaprun scanner="nmap" args="nmap -oX - 10.0.0.1">\n'
    b'<host><status state="up" reason="arp-response"/>'
    b'<address addr="10.0.0.1" addrtype="ipv4"/>'
    b'<hostnames/></host>\n'
    b'<runstats><finished exit="success"/><hosts up="1" down="0" total="1"/></runstats>\n'
    b'</nmaprun>\n'
)


class TestAssemble:
    """Test raw and structured report assembly"""

    def test_raw_output_unchanged(self):
        """With json off the bytes come back as text, untouched"""
        opts = ScanOptions.build({"json": False})
        chunks = [SAMPLE[:40], SAMPLE[40:100], SAMPLE[100:]]
        assert assemble(opts, chunks) == SAMPLE.decode()

    def test_structured_output(self):
        opts = ScanOptions.build()
        report = assemble(opts, [SAMPLE])
        assert report["item"]["scanner"] == "nmap"
        host = report["host"][0]
        assert host["status"][0]["item"]["state"] == "up"
        assert host["address"][0]["item"]["addr"] == "10.0.0.1"
        assert host["hostnames"] == [""]
        assert report["runstats"][0]["hosts"][0]["item"]["up"] == "1"

    def test_error_passed_through(self):
        """An engine error is raised without parsing"""
        err = ExecutionError("nmap 10.0.0.1", returncode=1)
        with pytest.raises(ExecutionError):
            assemble(ScanOptions.build(), err)

    def test_malformed_xml(self):
        with pytest.raises(ParseError):
            assemble(ScanOptions.build(), [b"<nmaprun><host></nmaprun>"])

    def test_wrong_root(self):
        with pytest.raises(ParseError):
            assemble(ScanOptions.build(), [b"<other/>"])

    def test_malformed_xml_ignored_in_raw_mode(self):
        opts = ScanOptions.build({"json": False})
        assert assemble(opts, [b"not xml"]) == "not xml"

    def test_undecodable_bytes_preserved(self):
        """Invalid UTF-8 survives the trip to text and back"""
        raw = b"<nmaprun>\xff\xfe</nmaprun>"
        result = assemble(ScanOptions.build({"json": False}), [raw[:10], raw[10:]])
        assert result.encode("utf-8", "surrogateescape") == raw


class TestXmlToDict:
    """Test the XML to dict mapping"""

    def test_leaf_text(self):
        assert xml_to_dict("<a><b>hi</b></a>") == {"a": {"b": ["hi"]}}

    def test_mixed_text_and_attributes(self):
        assert xml_to_dict('<a x="1">hi</a>') == {"a": {"item": {"x": "1"}, "_": "hi"}}

    def test_repeated_children(self):
        result = xml_to_dict("<a><b/><b/><c/></a>")
        assert result == {"a": {"b": ["", ""], "c": [""]}}

    def test_custom_keys(self):
        result = xml_to_dict('<a x="1">hi</a>', attr_key="$", char_key="text")
        assert result == {"a": {"$": {"x": "1"}, "text": "hi"}}
