"""
Logrelay - relays appended log content to D-Bus subscribers.

This package watches a log file for modifications, reads its current
content under a shared advisory lock and broadcasts it as a D-Bus signal
that any number of dashboard processes can receive.
"""

__version__ = "0.1.0"
