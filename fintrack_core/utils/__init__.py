"""Utility functions for FinTrack Core.

Import convention: use module-level imports for clarity.

    from ..utils import isodatetime, uid
    timestamp = isodatetime.now()
    expires = isodatetime.from_unix(isodatetime.now_unix() + 900)
    token_id = uid.generate_uuid()
"""

from . import isodatetime, uid

__all__ = ["isodatetime", "uid"]
