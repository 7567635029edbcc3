from __future__ import annotations

import logging
import re

from practice_orgs.repos.org_repo import OrgRepo

logger = logging.getLogger(__name__)

_WHITESPACE = re.compile(r"\s+")
_DISALLOWED = re.compile(r"[^a-z0-9-]")

# Used when a name has no slug-safe characters at all (e.g. "ÁÉ").
FALLBACK_SLUG = "org"


def slugify(name: str) -> str:
    """Lowercase, trim, turn whitespace runs into '-', drop everything else."""
    slug = _WHITESPACE.sub("-", name.lower().strip())
    return _DISALLOWED.sub("", slug)


async def unique_slug(name: str, orgs: OrgRepo) -> str:
    """Probe ``base``, ``base-1``, ``base-2``... until no organization holds it.

    Not safe under concurrent creation of the same name; the storage
    layer's unique constraint is the backstop.
    """
    base = slugify(name) or FALLBACK_SLUG
    suffix = 0
    while True:
        candidate = base if suffix == 0 else f"{base}-{suffix}"
        if await orgs.get_by_slug(candidate) is None:
            if suffix:
                logger.debug("Slug %r taken, using %r", base, candidate)
            return candidate
        suffix += 1
