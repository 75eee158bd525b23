"""Find-or-create of the person an import row refers to."""

from __future__ import annotations

import base64
import hashlib
import logging
import os
from dataclasses import dataclass
from typing import Any, Dict, Optional, Tuple

from .domain import Person
from .errors import IdentityConflictError, MissingIdentityError
from .identity import email_local_part, normalize_email
from .stores.base import PersonStore

logger = logging.getLogger(__name__)

PBKDF2_ITERATIONS = 120_000


def initial_password(email: str) -> str:
    """Initial credential handed to imported students: ``<local part>123``."""
    return f"{email_local_part(email)}123"


def hash_password(password: str, *, salt: Optional[bytes] = None) -> str:
    salt = salt or os.urandom(16)
    digest = hashlib.pbkdf2_hmac("sha256", password.encode("utf-8"), salt, PBKDF2_ITERATIONS)
    encoded_salt = base64.b64encode(salt).decode("ascii")
    encoded_digest = base64.b64encode(digest).decode("ascii")
    return f"pbkdf2_sha256${PBKDF2_ITERATIONS}${encoded_salt}${encoded_digest}"


def verify_password(password: str, stored: str) -> bool:
    try:
        algorithm, iterations, encoded_salt, encoded_digest = stored.split("$")
    except ValueError:
        return False
    if algorithm != "pbkdf2_sha256":
        return False
    digest = hashlib.pbkdf2_hmac(
        "sha256", password.encode("utf-8"), base64.b64decode(encoded_salt), int(iterations)
    )
    return base64.b64encode(digest).decode("ascii") == encoded_digest


@dataclass(frozen=True)
class IdentityCandidate:
    """Identity facts of one row; ``phone`` is already normalised and valid."""

    phone: Optional[str] = None
    email: Optional[str] = None
    name: Optional[str] = None

    @property
    def email_normalized(self) -> Optional[str]:
        return normalize_email(self.email) or None

    def partition_keys(self) -> Tuple[str, ...]:
        keys = []
        if self.phone:
            keys.append(f"phone:{self.phone}")
        if self.email_normalized:
            keys.append(f"email:{self.email_normalized}")
        return tuple(keys)


@dataclass(frozen=True)
class Resolution:
    person: Person
    created: bool
    updated_fields: Tuple[str, ...] = ()


class IdentityResolver:
    """Looks a person up by phone, then email, creating one when both miss."""

    def __init__(self, placeholder_email_domain: str = "students.local") -> None:
        self.placeholder_email_domain = placeholder_email_domain

    def resolve(self, people: PersonStore, candidate: IdentityCandidate) -> Resolution:
        if not candidate.phone and not candidate.email_normalized:
            raise MissingIdentityError()

        person: Optional[Person] = None
        if candidate.phone:
            person = people.find_by_phone(candidate.phone)
        if person is None and candidate.email_normalized:
            person = people.find_by_email(candidate.email_normalized)

        if person is None:
            return Resolution(person=self._create(people, candidate), created=True)
        return self._update(people, person, candidate)

    def _create(self, people: PersonStore, candidate: IdentityCandidate) -> Person:
        email = candidate.email or f"student_{candidate.phone}@{self.placeholder_email_domain}"
        fallback = candidate.phone or email_local_part(normalize_email(email))
        name = candidate.name or f"Student_{fallback}"
        person = people.create(
            Person(
                name=name,
                email=email,
                email_normalized=normalize_email(email),
                phone=candidate.phone,
                password_hash=hash_password(initial_password(email)),
            )
        )
        logger.info("Created student id=%s name=%s phone=%s", person.id, person.name, person.phone)
        return person

    def _update(self, people: PersonStore, person: Person, candidate: IdentityCandidate) -> Resolution:
        changes: Dict[str, Any] = {}
        if candidate.name and candidate.name != person.name:
            changes["name"] = candidate.name
        if candidate.email and candidate.email != person.email:
            email_normalized = normalize_email(candidate.email)
            if email_normalized != person.email_normalized:
                owner = people.find_by_email(email_normalized)
                if owner is not None and owner.id != person.id:
                    raise IdentityConflictError("Email", candidate.email)
            changes["email"] = candidate.email
            changes["email_normalized"] = email_normalized
        if candidate.phone and candidate.phone != person.phone:
            owner = people.find_by_phone(candidate.phone)
            if owner is not None and owner.id != person.id:
                raise IdentityConflictError("Phone", candidate.phone)
            changes["phone"] = candidate.phone

        if not changes:
            return Resolution(person=person, created=False)
        assert person.id is not None
        updated = people.update(person.id, changes)
        logger.debug("Updated student id=%s fields=%s", person.id, sorted(changes))
        return Resolution(person=updated, created=False, updated_fields=tuple(sorted(changes)))


__all__ = [
    "IdentityCandidate",
    "IdentityResolver",
    "Resolution",
    "hash_password",
    "initial_password",
    "verify_password",
]
