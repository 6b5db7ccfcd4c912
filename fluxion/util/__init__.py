"""
Fluxion Utils
=============

Helpers shared by the store and the binding layer:

- get_key / assoc_key / dissoc_key: structural read and copy-on-write update
- ABSENT / DELETE: sentinels
"""

from .keys import assoc_key, dissoc_key, get_key, has_key
from .sentinels import ABSENT, DELETE

__all__ = [
    "get_key",
    "has_key",
    "assoc_key",
    "dissoc_key",
    "ABSENT",
    "DELETE",
]
