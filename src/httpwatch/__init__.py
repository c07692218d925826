"""httpwatch -- a browser-based analog of the terminal ``watch`` utility.

Runs a command on a fixed schedule and serves its latest output through
a small auto-refreshing web page.
"""

__version__ = "0.1.0"


class HttpWatchError(Exception):
    """Base class for httpwatch errors that abort startup."""
