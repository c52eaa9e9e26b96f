"""Instance tag lookup and DNS label normalization.

Tags drive everything the registrar does with an instance:
- HostedZone assigns the instance to a zone (and gates processing entirely)
- HostName, falling back to Name, provides the human-readable CNAME label
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from .config import HOST_NAME_TAG, NAME_TAG
from .models import Tag

# Full stop and its ideographic / fullwidth / halfwidth variants
_LABEL_SEPARATORS = re.compile("[.\u3002\uff0e\uff61]")
_NON_ASCII = re.compile(r"[^\x00-\x7f]")
_NOT_PRINTABLE_ASCII = re.compile(r"[^!-~]")

IDNA_ACE_PREFIX = "xn--"


def get_tag_value(tags: Iterable[Tag] | None, key: str) -> str | None:
    """Return the value of the first tag with the given key.

    Args:
        tags: Instance tags, possibly None or empty.
        key: Tag key to look up.

    Returns:
        The tag value, or None if no tag has this key.
    """
    if not tags:
        return None

    for tag in tags:
        if tag.key == key:
            return tag.value
    return None


def resolve_label(tags: Iterable[Tag] | None) -> str | None:
    """Pick the CNAME label for an instance, HostName taking precedence over Name.

    Empty tag values count as absent.
    """
    tags = list(tags or [])
    return get_tag_value(tags, HOST_NAME_TAG) or get_tag_value(tags, NAME_TAG) or None


def to_ascii(domain: str) -> str:
    """IDNA ToASCII without nameprep.

    Each label containing non-ASCII characters is punycode-encoded behind the
    ACE prefix; ASCII labels pass through untouched (case included). For an
    email-like value only the part after the last '@' is encoded.
    """
    local, at, domain = domain.rpartition("@")
    labels = _LABEL_SEPARATORS.sub(".", domain).split(".")
    return local + at + ".".join(
        IDNA_ACE_PREFIX + label.encode("punycode").decode("ascii")
        if _NON_ASCII.search(label)
        else label
        for label in labels
    )


def normalize_label(label: str) -> str:
    """Make a tag value usable as a DNS label.

    Applies IDNA encoding, then replaces anything outside '!'..'~'
    (spaces, control characters) with an underscore.

    Examples:
        "bücher" -> "xn--bcher-kva"
        "web server" -> "web_server"
    """
    return _NOT_PRINTABLE_ASCII.sub("_", to_ascii(label))
