"""Identifier generation for requests and receipts."""

from __future__ import annotations

import time
from uuid import uuid4

REQUEST_ID_PREFIX = "attreq"
RECEIPT_ID_PREFIX = "att"


def new_id(prefix: str) -> str:
    """Return ``<prefix>_<epoch-ms>_<random hex>``.

    The millisecond component keeps ids roughly sortable by creation time;
    the uuid4 suffix makes collisions between concurrent writers negligible.
    """
    return f"{prefix}_{int(time.time() * 1000)}_{uuid4().hex}"


def new_request_id() -> str:
    return new_id(REQUEST_ID_PREFIX)


def new_receipt_id() -> str:
    return new_id(RECEIPT_ID_PREFIX)
