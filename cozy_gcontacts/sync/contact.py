"""
Contact data models for Cozy / Google Contacts synchronization.

Provides the two shapes the sync engine compares:
- CozyContact: the canonical contact stored in the Cozy ``io.cozy.contacts``
  doctype, carrying per-account sync metadata
- GooglePerson: a contact as returned by the Google People API

The sync metadata of a CozyContact maps a source-account identifier to the
remote identifier last known for that account. It is the only join key
between the two stores.
"""

from __future__ import annotations

import copy
from dataclasses import dataclass, field, replace
from typing import Any, Optional

# Doctype of the canonical contacts in the Cozy store
CONTACTS_DOCTYPE = "io.cozy.contacts"

# Version of the io.cozy.contacts schema written by this package
CONTACTS_DOCTYPE_VERSION = 2


@dataclass
class ContactName:
    """Structured name of a Cozy contact."""

    given_name: Optional[str] = None
    family_name: Optional[str] = None
    additional_name: Optional[str] = None
    name_prefix: Optional[str] = None
    name_suffix: Optional[str] = None

    @classmethod
    def from_doc(cls, data: Optional[dict[str, Any]]) -> ContactName:
        data = data or {}
        return cls(
            given_name=data.get("givenName"),
            family_name=data.get("familyName"),
            additional_name=data.get("additionalName"),
            name_prefix=data.get("namePrefix"),
            name_suffix=data.get("nameSuffix"),
        )

    def to_doc(self) -> dict[str, Any]:
        doc = {
            "givenName": self.given_name,
            "familyName": self.family_name,
            "additionalName": self.additional_name,
            "namePrefix": self.name_prefix,
            "nameSuffix": self.name_suffix,
        }
        return {key: value for key, value in doc.items() if value}

    def is_empty(self) -> bool:
        return not self.to_doc()


@dataclass
class SyncEntry:
    """
    Sync state of a contact for one source account.

    Attributes:
        id: Remote identifier of the contact (e.g. "people/c12345")
        remote_rev: Remote version tag (etag) seen at the last sync
        last_sync: ISO-8601 UTC timestamp of the last sync
        konnector: Slug of the connector that wrote the entry
    """

    id: str
    remote_rev: Optional[str] = None
    last_sync: Optional[str] = None
    konnector: Optional[str] = None

    @classmethod
    def from_doc(cls, data: dict[str, Any]) -> SyncEntry:
        return cls(
            id=data.get("id", ""),
            remote_rev=data.get("remoteRev"),
            last_sync=data.get("lastSync"),
            konnector=data.get("konnector"),
        )

    def to_doc(self) -> dict[str, Any]:
        doc: dict[str, Any] = {"id": self.id}
        if self.remote_rev is not None:
            doc["remoteRev"] = self.remote_rev
        if self.last_sync is not None:
            doc["lastSync"] = self.last_sync
        if self.konnector is not None:
            doc["konnector"] = self.konnector
        return doc


@dataclass
class CozyMetadata:
    """
    The ``cozyMetadata`` block of a Cozy document.

    Only ``sync`` is interpreted; other keys are kept as-is so that a
    contact read from the store is written back unchanged.
    """

    sync: dict[str, SyncEntry] = field(default_factory=dict)
    updated_by_apps: list[str] = field(default_factory=list)
    doctype_version: Optional[int] = None
    extra: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def from_doc(cls, data: Optional[dict[str, Any]]) -> CozyMetadata:
        data = dict(data or {})
        sync = {
            account_id: SyncEntry.from_doc(entry)
            for account_id, entry in (data.pop("sync", None) or {}).items()
            if isinstance(entry, dict)
        }
        return cls(
            sync=sync,
            updated_by_apps=list(data.pop("updatedByApps", None) or []),
            doctype_version=data.pop("doctypeVersion", None),
            extra=data,
        )

    def to_doc(self) -> dict[str, Any]:
        doc: dict[str, Any] = copy.deepcopy(self.extra)
        if self.doctype_version is not None:
            doc["doctypeVersion"] = self.doctype_version
        if self.updated_by_apps:
            doc["updatedByApps"] = list(self.updated_by_apps)
        if self.sync:
            doc["sync"] = {
                account_id: entry.to_doc() for account_id, entry in self.sync.items()
            }
        return doc


@dataclass
class CozyContact:
    """
    Canonical contact as stored in the Cozy ``io.cozy.contacts`` doctype.

    Attributes:
        id: Document id assigned by the Cozy store (None before first save)
        rev: Document revision, required to update an existing document
        name: Structured name
        fullname: Display name
        emails: ``[{"address", "type", "primary"}]`` entries
        phones: ``[{"number", "type", "primary"}]`` entries
        addresses: ``[{"street", "city", "region", "code", "country",
                   "type", "formattedAddress"}]`` entries
        company: Organization name
        job_title: Job title within the organization
        birthday: Birthday as "YYYY-MM-DD"
        note: Free text note
        metadata: Cozy metadata including per-account sync entries

    Usage:
        contact = CozyContact.from_doc(doc)

        entry = contact.sync_entry(account_id)
        if entry is None:
            # never synced with this account
            ...

        synced = contact.with_sync_entry(account_id, SyncEntry(id="people/1"))
        doc = synced.to_doc()
    """

    id: Optional[str] = None
    rev: Optional[str] = None
    name: ContactName = field(default_factory=ContactName)
    fullname: Optional[str] = None
    emails: list[dict[str, Any]] = field(default_factory=list)
    phones: list[dict[str, Any]] = field(default_factory=list)
    addresses: list[dict[str, Any]] = field(default_factory=list)
    company: Optional[str] = None
    job_title: Optional[str] = None
    birthday: Optional[str] = None
    note: Optional[str] = None
    metadata: CozyMetadata = field(default_factory=CozyMetadata)

    @classmethod
    def from_doc(cls, doc: dict[str, Any]) -> CozyContact:
        """
        Create a CozyContact from an ``io.cozy.contacts`` document.

        Both ``_id`` (CouchDB) and ``id`` (JSON-API) are accepted.
        """
        return cls(
            id=doc.get("_id") or doc.get("id"),
            rev=doc.get("_rev"),
            name=ContactName.from_doc(doc.get("name")),
            fullname=doc.get("fullname"),
            emails=list(doc.get("email") or []),
            phones=list(doc.get("phone") or []),
            addresses=list(doc.get("address") or []),
            company=doc.get("company"),
            job_title=doc.get("jobTitle"),
            birthday=doc.get("birthday"),
            note=doc.get("note"),
            metadata=CozyMetadata.from_doc(doc.get("cozyMetadata")),
        )

    def to_doc(self) -> dict[str, Any]:
        """
        Convert the contact to an ``io.cozy.contacts`` document.

        Empty fields are omitted. ``_id``/``_rev`` are only present once
        the contact has been saved.
        """
        doc: dict[str, Any] = {}
        if self.id:
            doc["_id"] = self.id
        if self.rev:
            doc["_rev"] = self.rev
        if not self.name.is_empty():
            doc["name"] = self.name.to_doc()
        if self.display_name:
            doc["fullname"] = self.display_name
        if self.emails:
            doc["email"] = [dict(e) for e in self.emails]
        if self.phones:
            doc["phone"] = [dict(p) for p in self.phones]
        if self.addresses:
            doc["address"] = [dict(a) for a in self.addresses]
        if self.company:
            doc["company"] = self.company
        if self.job_title:
            doc["jobTitle"] = self.job_title
        if self.birthday:
            doc["birthday"] = self.birthday
        if self.note:
            doc["note"] = self.note
        metadata = self.metadata.to_doc()
        if metadata:
            doc["cozyMetadata"] = metadata
        return doc

    @property
    def display_name(self) -> str:
        """Full name, or given and family names joined."""
        if self.fullname:
            return self.fullname
        parts = [p for p in (self.name.given_name, self.name.family_name) if p]
        return " ".join(parts)

    def sync_entry(self, account_id: str) -> Optional[SyncEntry]:
        """Return the sync entry recorded for ``account_id``, if any."""
        return self.metadata.sync.get(account_id)

    def with_sync_entry(self, account_id: str, entry: SyncEntry) -> CozyContact:
        """
        Return a copy of the contact with the sync entry for ``account_id``
        set to ``entry``.

        Entries for other accounts are kept. The original contact is not
        modified.
        """
        sync = dict(self.metadata.sync)
        sync[account_id] = entry
        metadata = replace(self.metadata, sync=sync)
        return replace(self, metadata=metadata)

    def __repr__(self) -> str:
        return (
            f"CozyContact(id={self.id!r}, "
            f"display_name={self.display_name!r}, "
            f"synced_accounts={sorted(self.metadata.sync)!r})"
        )


def _primary_value(entries: list[dict[str, Any]]) -> dict[str, Any]:
    """Return the entry flagged primary in its metadata, else the first one."""
    for entry in entries:
        if entry.get("metadata", {}).get("primary"):
            return entry
    return entries[0] if entries else {}


@dataclass
class GooglePerson:
    """
    A contact from the Google People API.

    Attributes:
        resource_name: Google's unique ID (e.g., "people/c12345")
        etag: Version tag used to detect remote-side changes
        given_name, family_name, middle_name: Name parts
        honorific_prefix, honorific_suffix: Name decorations
        display_name: Full display name
        emails: ``[{"value", "type", "primary"}]`` entries
        phones: ``[{"value", "type", "primary"}]`` entries
        addresses: People API address entries (streetAddress, city, ...)
        organizations: ``[{"name", "title"}]`` entries
        birthday: ``{"year", "month", "day"}`` date, parts may be missing
        biography: Contact notes
    """

    resource_name: str
    etag: str = ""
    given_name: Optional[str] = None
    family_name: Optional[str] = None
    middle_name: Optional[str] = None
    honorific_prefix: Optional[str] = None
    honorific_suffix: Optional[str] = None
    display_name: str = ""
    emails: list[dict[str, Any]] = field(default_factory=list)
    phones: list[dict[str, Any]] = field(default_factory=list)
    addresses: list[dict[str, Any]] = field(default_factory=list)
    organizations: list[dict[str, Any]] = field(default_factory=list)
    birthday: Optional[dict[str, int]] = None
    biography: Optional[str] = None

    @classmethod
    def from_api_response(cls, person: dict[str, Any]) -> GooglePerson:
        """
        Create a GooglePerson from a People API ``Person`` resource.

        Example API response structure::

            {
                'resourceName': 'people/c12345',
                'etag': 'abc123',
                'names': [{'displayName': 'John Doe', 'givenName': 'John'}],
                'emailAddresses': [{'value': 'john@example.com', 'type': 'home'}],
                'phoneNumbers': [{'value': '+1234567890'}],
                'birthdays': [{'date': {'year': 1980, 'month': 5, 'day': 2}}],
                'biographies': [{'value': 'Some notes'}]
            }
        """
        primary_name = _primary_value(person.get("names", []))

        given_name = primary_name.get("givenName")
        family_name = primary_name.get("familyName")
        display_name = primary_name.get("displayName", "")
        if not display_name and (given_name or family_name):
            display_name = " ".join(p for p in (given_name, family_name) if p)

        emails = [
            {
                "value": e["value"],
                "type": e.get("type"),
                "primary": bool(e.get("metadata", {}).get("primary")),
            }
            for e in person.get("emailAddresses", [])
            if e.get("value")
        ]
        phones = [
            {
                "value": p["value"],
                "type": p.get("type"),
                "primary": bool(p.get("metadata", {}).get("primary")),
            }
            for p in person.get("phoneNumbers", [])
            if p.get("value")
        ]
        addresses = [
            {k: v for k, v in a.items() if k != "metadata"}
            for a in person.get("addresses", [])
        ]
        organizations = [
            {"name": o.get("name"), "title": o.get("title")}
            for o in person.get("organizations", [])
            if o.get("name") or o.get("title")
        ]

        birthday = None
        for entry in person.get("birthdays", []):
            if entry.get("date"):
                birthday = dict(entry["date"])
                break

        biographies = person.get("biographies", [])
        biography = biographies[0].get("value") if biographies else None

        return cls(
            resource_name=person.get("resourceName", ""),
            etag=person.get("etag", ""),
            given_name=given_name,
            family_name=family_name,
            middle_name=primary_name.get("middleName"),
            honorific_prefix=primary_name.get("honorificPrefix"),
            honorific_suffix=primary_name.get("honorificSuffix"),
            display_name=display_name,
            emails=emails,
            phones=phones,
            addresses=addresses,
            organizations=organizations,
            birthday=birthday,
            biography=biography,
        )

    def to_api_format(self) -> dict[str, Any]:
        """
        Convert to a People API ``Person`` body for createContact.

        Note:
            resourceName and etag are not included; Google assigns them.
        """
        person: dict[str, Any] = {}

        name_entry = {
            "givenName": self.given_name,
            "familyName": self.family_name,
            "middleName": self.middle_name,
            "honorificPrefix": self.honorific_prefix,
            "honorificSuffix": self.honorific_suffix,
        }
        name_entry = {k: v for k, v in name_entry.items() if v}
        if not name_entry and self.display_name:
            name_entry["unstructuredName"] = self.display_name
        if name_entry:
            person["names"] = [name_entry]

        if self.emails:
            person["emailAddresses"] = [_api_value_entry(e) for e in self.emails]
        if self.phones:
            person["phoneNumbers"] = [_api_value_entry(p) for p in self.phones]
        if self.addresses:
            person["addresses"] = [dict(a) for a in self.addresses]
        if self.organizations:
            person["organizations"] = [
                {k: v for k, v in o.items() if v} for o in self.organizations
            ]
        if self.birthday:
            person["birthdays"] = [{"date": dict(self.birthday)}]
        if self.biography:
            person["biographies"] = [
                {"value": self.biography, "contentType": "TEXT_PLAIN"}
            ]

        return person


def _api_value_entry(entry: dict[str, Any]) -> dict[str, Any]:
    api_entry: dict[str, Any] = {"value": entry["value"]}
    if entry.get("type"):
        api_entry["type"] = entry["type"]
    if entry.get("primary"):
        api_entry["metadata"] = {"primary": True}
    return api_entry
