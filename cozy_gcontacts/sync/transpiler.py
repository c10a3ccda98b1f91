"""
Field mapping between Google People API contacts and Cozy contacts.

Cozy stores emails as ``address``, phones as ``number`` and a single
``company``/``jobTitle`` pair, while Google keeps lists of ``value`` entries
and organizations. Birthdays are "YYYY-MM-DD" strings on the Cozy side and
``{year, month, day}`` dates on the Google side.
"""

import logging
from typing import Any, Optional

from cozy_gcontacts.sync.contact import (
    CONTACTS_DOCTYPE_VERSION,
    ContactName,
    CozyContact,
    CozyMetadata,
    GooglePerson,
)

logger = logging.getLogger(__name__)

# People API address keys -> io.cozy.contacts address keys
ADDRESS_FIELDS = {
    "streetAddress": "street",
    "extendedAddress": "extendedAddress",
    "poBox": "pobox",
    "city": "city",
    "region": "region",
    "postalCode": "code",
    "country": "country",
    "countryCode": "countryCode",
    "formattedValue": "formattedAddress",
    "type": "type",
}


def birthday_to_cozy(date: Optional[dict[str, int]]) -> Optional[str]:
    """
    Convert a People API date to a Cozy birthday string.

    Dates without a year (allowed by Google) are dropped, as are partial
    dates missing the month or day.
    """
    if not date:
        return None
    year, month, day = date.get("year"), date.get("month"), date.get("day")
    if not (year and month and day):
        logger.debug(f"Ignoring incomplete birthday: {date}")
        return None
    return f"{year:04d}-{month:02d}-{day:02d}"


def birthday_to_google(birthday: Optional[str]) -> Optional[dict[str, int]]:
    """Convert a Cozy "YYYY-MM-DD" birthday to a People API date."""
    if not birthday:
        return None
    try:
        year, month, day = (int(part) for part in birthday[:10].split("-"))
    except ValueError:
        logger.warning(f"Ignoring malformed birthday: {birthday!r}")
        return None
    return {"year": year, "month": month, "day": day}


def _compact(entry: dict[str, Any]) -> dict[str, Any]:
    return {key: value for key, value in entry.items() if value is not None}


def _address_to_cozy(address: dict[str, Any]) -> dict[str, Any]:
    return {
        cozy_key: address[google_key]
        for google_key, cozy_key in ADDRESS_FIELDS.items()
        if address.get(google_key)
    }


def _address_to_google(address: dict[str, Any]) -> dict[str, Any]:
    return {
        google_key: address[cozy_key]
        for google_key, cozy_key in ADDRESS_FIELDS.items()
        if address.get(cozy_key)
    }


def to_cozy(person: GooglePerson) -> CozyContact:
    """
    Map a Google person to a new Cozy contact.

    The returned contact has no id and no sync entry; the caller attaches
    the sync entry for its account scope.
    """
    organization = person.organizations[0] if person.organizations else {}

    return CozyContact(
        name=ContactName(
            given_name=person.given_name,
            family_name=person.family_name,
            additional_name=person.middle_name,
            name_prefix=person.honorific_prefix,
            name_suffix=person.honorific_suffix,
        ),
        fullname=person.display_name or None,
        emails=[
            _compact(
                {"address": e["value"], "type": e.get("type"), "primary": e["primary"]}
            )
            for e in person.emails
        ],
        phones=[
            _compact(
                {"number": p["value"], "type": p.get("type"), "primary": p["primary"]}
            )
            for p in person.phones
        ],
        addresses=[a for a in map(_address_to_cozy, person.addresses) if a],
        company=organization.get("name"),
        job_title=organization.get("title"),
        birthday=birthday_to_cozy(person.birthday),
        note=person.biography,
        metadata=CozyMetadata(doctype_version=CONTACTS_DOCTYPE_VERSION),
    )


def to_google(contact: CozyContact) -> dict[str, Any]:
    """Map a Cozy contact to a People API ``Person`` body for creation."""
    organizations = []
    if contact.company or contact.job_title:
        organizations.append({"name": contact.company, "title": contact.job_title})

    person = GooglePerson(
        resource_name="",
        given_name=contact.name.given_name,
        family_name=contact.name.family_name,
        middle_name=contact.name.additional_name,
        honorific_prefix=contact.name.name_prefix,
        honorific_suffix=contact.name.name_suffix,
        display_name=contact.display_name,
        emails=[
            {
                "value": e["address"],
                "type": e.get("type"),
                "primary": bool(e.get("primary")),
            }
            for e in contact.emails
            if e.get("address")
        ],
        phones=[
            {
                "value": p["number"],
                "type": p.get("type"),
                "primary": bool(p.get("primary")),
            }
            for p in contact.phones
            if p.get("number")
        ],
        addresses=[a for a in map(_address_to_google, contact.addresses) if a],
        organizations=organizations,
        birthday=birthday_to_google(contact.birthday),
        biography=contact.note,
    )
    return person.to_api_format()
