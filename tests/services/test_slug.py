from __future__ import annotations

import asyncio

import pytest

from practice_orgs.models.organization import Organization
from practice_orgs.repos.org_repo import InMemoryOrgRepo
from practice_orgs.services.slug import FALLBACK_SLUG, slugify, unique_slug


@pytest.mark.parametrize(
    "name,expected",
    [
        ("Acme", "acme"),
        ("  Clínica Sorriso  ", "clnica-sorriso"),
        ("Dr. João & Filhos", "dr-joo--filhos"),
        ("Multiple   spaces\there", "multiple-spaces-here"),
        ("already-slugged-42", "already-slugged-42"),
        ("ÁÉÍ", ""),
    ],
)
def test_slugify(name: str, expected: str) -> None:
    assert slugify(name) == expected


def test_unique_slug_returns_base_when_free() -> None:
    repo = InMemoryOrgRepo()
    assert asyncio.run(unique_slug("Acme", repo)) == "acme"


def test_unique_slug_appends_first_free_suffix() -> None:
    repo = InMemoryOrgRepo()
    asyncio.run(repo.add(Organization.new(name="Acme", slug="acme")))
    asyncio.run(repo.add(Organization.new(name="Acme", slug="acme-1")))

    assert asyncio.run(unique_slug("ACME", repo)) == "acme-2"


def test_unique_slug_falls_back_when_name_has_no_usable_chars() -> None:
    repo = InMemoryOrgRepo()
    assert asyncio.run(unique_slug("ÁÉ", repo)) == FALLBACK_SLUG

    asyncio.run(repo.add(Organization.new(name="ÁÉ", slug=FALLBACK_SLUG)))
    assert asyncio.run(unique_slug("ÓÚ", repo)) == f"{FALLBACK_SLUG}-1"
