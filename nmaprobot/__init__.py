"""
nmaprobot - validates, partitions and runs nmap scans in parallel.
"""
from .robot import Robot, discover, scan

__version__ = "0.1.0"
