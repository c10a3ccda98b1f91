"""
Unit tests for source-scoped contact matching.
"""

import pytest

from cozy_gcontacts.sync.contact import CozyContact, GooglePerson, SyncEntry
from cozy_gcontacts.sync.matcher import find_duplicate_keys, find_match, sync_key

ACCOUNT = "account-a"
OTHER_ACCOUNT = "account-b"


def linked(contact_id, remote_id, account=ACCOUNT):
    return CozyContact(id=contact_id).with_sync_entry(account, SyncEntry(id=remote_id))


@pytest.fixture
def people():
    return [
        GooglePerson(resource_name="people/1", etag="e1"),
        GooglePerson(resource_name="people/2", etag="e2"),
    ]


class TestSyncKey:
    """Tests for join key extraction."""

    def test_google_person_key_is_resource_name(self):
        assert sync_key(GooglePerson(resource_name="people/1"), ACCOUNT) == "people/1"

    def test_google_person_without_resource_name(self):
        assert sync_key(GooglePerson(resource_name=""), ACCOUNT) is None

    def test_cozy_contact_key_is_scoped_sync_id(self):
        assert sync_key(linked("c1", "people/1"), ACCOUNT) == "people/1"

    def test_cozy_contact_without_entry_for_account(self):
        assert sync_key(linked("c1", "people/1", OTHER_ACCOUNT), ACCOUNT) is None

    def test_cozy_contact_without_metadata(self):
        assert sync_key(CozyContact(id="c1"), ACCOUNT) is None

    def test_cozy_contact_with_empty_sync_id(self):
        assert sync_key(linked("c1", ""), ACCOUNT) is None


class TestFindMatch:
    """Tests for find_match in both directions."""

    def test_cozy_contact_matches_google_person(self, people):
        match = find_match(linked("c1", "people/2"), people, ACCOUNT)

        assert match is people[1]

    def test_google_person_matches_cozy_contact(self):
        cozy = [linked("c1", "people/1"), linked("c2", "people/2")]

        match = find_match(GooglePerson(resource_name="people/2"), cozy, ACCOUNT)

        assert match is cozy[1]

    def test_unlinked_contact_is_unmatched(self, people):
        assert find_match(CozyContact(id="c1"), people, ACCOUNT) is None

    def test_entry_for_other_account_is_ignored(self, people):
        """Remote ids recorded for another account never match."""
        contact = linked("c1", "people/1", OTHER_ACCOUNT)

        assert find_match(contact, people, ACCOUNT) is None

    def test_google_person_ignores_cozy_entries_of_other_account(self):
        cozy = [linked("c1", "people/1", OTHER_ACCOUNT)]

        assert find_match(GooglePerson(resource_name="people/1"), cozy, ACCOUNT) is None

    def test_no_candidate_with_recorded_id(self, people):
        assert find_match(linked("c1", "people/404"), people, ACCOUNT) is None

    def test_empty_candidates(self):
        assert find_match(linked("c1", "people/1"), [], ACCOUNT) is None

    def test_first_match_wins_on_duplicates(self):
        duplicates = [
            GooglePerson(resource_name="people/1", etag="first"),
            GooglePerson(resource_name="people/1", etag="second"),
        ]

        match = find_match(linked("c1", "people/1"), duplicates, ACCOUNT)

        assert match.etag == "first"

    def test_match_is_exact(self, people):
        assert find_match(linked("c1", "PEOPLE/1"), people, ACCOUNT) is None


class TestFindDuplicateKeys:
    """Tests for duplicate join key reporting."""

    def test_no_duplicates(self, people):
        assert find_duplicate_keys(people, ACCOUNT) == {}

    def test_reports_duplicated_keys(self):
        cozy = [
            linked("c1", "people/1"),
            linked("c2", "people/1"),
            linked("c3", "people/3"),
            CozyContact(id="c4"),
        ]

        assert find_duplicate_keys(cozy, ACCOUNT) == {"people/1": 2}
