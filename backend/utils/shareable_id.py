"""Reversible encoding of bank account ids for use in URLs.

This is an encoding, not encryption: anyone holding a shareable id can
recover the account id. It only keeps raw account ids out of links and
form fields.
"""

import base64
import binascii


def encode_shareable_id(account_id: str) -> str:
    """Encode an account id as URL-safe base64 with the padding stripped.

    Raises:
        ValueError: If ``account_id`` is empty.
    """
    if not account_id:
        raise ValueError("Cannot encode an empty account id")
    encoded = base64.urlsafe_b64encode(account_id.encode("utf-8")).decode("ascii")
    return encoded.rstrip("=")


def decode_shareable_id(shareable_id: str) -> str:
    """Recover the account id from a shareable id.

    Only the canonical form is accepted, with or without its padding, so
    each account id has exactly one shareable id.

    Raises:
        ValueError: If ``shareable_id`` is empty, not valid encoded text or
            not in canonical form.
    """
    if not shareable_id:
        raise ValueError("Cannot decode an empty shareable id")
    padded = shareable_id + "=" * (-len(shareable_id) % 4)
    try:
        account_id = base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeError) as exc:
        raise ValueError(f"Invalid shareable id: {shareable_id!r}") from exc

    # urlsafe_b64decode drops stray characters and ignores trailing bits
    if not account_id:
        raise ValueError(f"Invalid shareable id: {shareable_id!r}")
    canonical = encode_shareable_id(account_id)
    if shareable_id not in (canonical, canonical + "=" * (-len(canonical) % 4)):
        raise ValueError(f"Invalid shareable id: {shareable_id!r}")
    return account_id
