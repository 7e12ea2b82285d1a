"""Session sharing for a forum behind a parent site.

Logs visitors into local accounts from a signed token cookie issued by the
parent site, mapping external ids to local account ids.
"""

__version__ = "0.1.0"
