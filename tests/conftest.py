import os
import stat
import sys

import pytest

FAKE_NMAP = '''#!{python}
"""Stands in for nmap: echoes its targets back as nmap-style XML."""
import os
import sys
import time
from xml.sax.saxutils import quoteattr

args = sys.argv[1:]
targets = [a for a in args if not a.startswith("-")]

sys.stderr.write("Starting fake nmap\\n" * 50)

if "fail.example" in targets:
    sys.exit(2)
if "empty.example" in targets:
    sys.exit(0)
if "slow.example" in targets:
    time.sleep(0.6)
    with open(os.path.join(os.path.dirname(os.path.abspath(__file__)), "slow.done"), "w") as f:
        f.write("done")

out = ['<?xml version="1.0" encoding="UTF-8"?>']
out.append("<nmaprun scanner=\\"nmap\\" args=%s>" % quoteattr(" ".join(args)))
for t in targets:
    out.append('<host><status state="up" reason="arp-response"/>'
               '<address addr=%s addrtype="ipv4"/></host>' % quoteattr(t))
out.append('<runstats><finished exit="success"/></runstats>')
out.append("</nmaprun>")
sys.stdout.write("\\n".join(out))
'''


@pytest.fixture
def fake_nmap(tmp_path):
    """Path to an executable script that behaves like nmap -oX -."""
    path = tmp_path / "nmap"
    path.write_text(FAKE_NMAP.format(python=sys.executable))
    path.chmod(path.stat().st_mode | stat.S_IXUSR | stat.S_IXGRP | stat.S_IXOTH)
    return str(path)


@pytest.fixture
def python_bin():
    """An executable guaranteed to pass the binary check."""
    return os.path.realpath(sys.executable)
