"""
Resource identifiers for feeds and entries.

Ids are random v4 UUIDs in URN form: `urn:uuid:<uuid>`.
"""

from __future__ import annotations

from uuid import uuid4

URN_UUID_PREFIX = "urn:uuid:"


def new_id() -> str:
    return f"{URN_UUID_PREFIX}{uuid4()}"
