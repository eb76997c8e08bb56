"""URL-safe tenant slugs with Cyrillic transliteration."""

import re

from sqlalchemy.orm import Session

from ..models.generated import Tenants

_TRANSLIT = str.maketrans(
    "абвгдеёжзийклмнопрстуфхцчшщъыьэюя",
    "abvgdeejziyklmnoprstufhccss_y_eua",
)


def slugify(text: str) -> str:
    """'Мойка №1 & Detailing' → 'moyka-1-detailing'"""
    s = text.lower().translate(_TRANSLIT)
    s = re.sub(r"[^a-z0-9]+", "-", s).strip("-")
    return s or "car-wash"


def unique_slug(db: Session, name: str) -> str:
    """slugify(name), then name-1, name-2, ... until unused."""
    base = slugify(name)
    slug = base
    counter = 1
    while db.query(Tenants.id).filter(Tenants.slug == slug).first() is not None:
        slug = f"{base}-{counter}"
        counter += 1
    return slug
