"""
Unit tests for the directional sync strategies.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from cozy_gcontacts.sync.contact import CozyContact, GooglePerson, SyncEntry
from cozy_gcontacts.sync.strategy import (
    KONNECTOR_SLUG,
    CozyToGoogleStrategy,
    GoogleToCozyStrategy,
    SyncOutcome,
    format_timestamp,
    get_cozy_to_google_strategy,
    get_google_to_cozy_strategy,
)

ACCOUNT = "45c49c15-4b00-48e8-8bfd-29f8177b89ff"
NOW = datetime(2024, 6, 15, 10, 30, 0, 250000, tzinfo=timezone.utc)


@pytest.fixture
def cozy_client():
    client = MagicMock()
    client.save = AsyncMock(
        return_value=CozyContact(id="saved-id", rev="1-abc")
    )
    return client


@pytest.fixture
def google_client():
    client = MagicMock()
    client.create_contact = AsyncMock(
        return_value=GooglePerson(resource_name="people/c42", etag="etag-42")
    )
    return client


@pytest.fixture
def unlinked_contact():
    return CozyContact.from_doc(
        {
            "_id": "alice",
            "_rev": "3-xyz",
            "name": {"givenName": "Alice", "familyName": "Martin"},
            "email": [{"address": "alice@example.com", "primary": True}],
        }
    )


class TestFormatTimestamp:
    """Tests for lastSync formatting."""

    def test_milliseconds_and_z_suffix(self):
        assert format_timestamp(NOW) == "2024-06-15T10:30:00.250Z"

    def test_converts_to_utc(self):
        paris = timezone(timedelta(hours=2))
        value = datetime(2024, 6, 15, 12, 30, 0, tzinfo=paris)

        assert format_timestamp(value) == "2024-06-15T10:30:00.000Z"


class TestSyncOutcome:
    """Tests for outcome equality."""

    def test_record_is_ignored_by_equality(self):
        outcome = SyncOutcome(created=True, id="x", record=object())

        assert outcome == SyncOutcome(created=True, id="x")

    def test_different_ids_are_not_equal(self):
        assert SyncOutcome(created=True, id="x") != SyncOutcome(created=True, id="y")


class TestFactories:
    """Tests for the strategy factories."""

    def test_cozy_to_google_factory_binds_account(self, cozy_client, google_client):
        strategy = get_cozy_to_google_strategy(cozy_client, google_client, ACCOUNT)

        assert isinstance(strategy, CozyToGoogleStrategy)
        assert strategy.source_account_id == ACCOUNT
        assert strategy.cozy_client is cozy_client
        assert strategy.google_client is google_client

    def test_google_to_cozy_factory_binds_account(self, cozy_client):
        strategy = get_google_to_cozy_strategy(cozy_client, ACCOUNT)

        assert isinstance(strategy, GoogleToCozyStrategy)
        assert strategy.source_account_id == ACCOUNT

    def test_account_id_is_required(self, cozy_client):
        with pytest.raises(ValueError, match="source_account_id"):
            get_google_to_cozy_strategy(cozy_client, "")

    def test_repr(self, cozy_client):
        strategy = get_google_to_cozy_strategy(cozy_client, ACCOUNT)

        assert repr(strategy) == f"GoogleToCozyStrategy(source_account_id='{ACCOUNT}')"


class TestCozyToGoogleStrategy:
    """Tests for CozyToGoogleStrategy.decide."""

    @pytest.fixture
    def strategy(self, cozy_client, google_client):
        return get_cozy_to_google_strategy(
            cozy_client, google_client, ACCOUNT, clock=lambda: NOW
        )

    @pytest.mark.asyncio
    async def test_matched_contact_is_skipped(
        self, strategy, cozy_client, google_client
    ):
        contact = CozyContact(id="bob").with_sync_entry(
            ACCOUNT, SyncEntry(id="people/c1")
        )
        google = [GooglePerson(resource_name="people/c1")]

        outcome = await strategy.decide(contact, google)

        assert outcome is None
        google_client.create_contact.assert_not_awaited()
        cozy_client.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unmatched_contact_is_created_then_linked(
        self, strategy, unlinked_contact, cozy_client, google_client
    ):
        outcome = await strategy.decide(unlinked_contact, [])

        assert outcome == SyncOutcome(created=True, id="saved-id")
        assert outcome.record == GooglePerson(resource_name="people/c42", etag="etag-42")

        body = google_client.create_contact.await_args.args[0]
        assert body["emailAddresses"] == [
            {"value": "alice@example.com", "metadata": {"primary": True}}
        ]

        saved = cozy_client.save.await_args.args[0]
        assert saved.id == "alice"
        assert saved.rev == "3-xyz"
        assert saved.sync_entry(ACCOUNT) == SyncEntry(
            id="people/c42",
            remote_rev="etag-42",
            last_sync="2024-06-15T10:30:00.250Z",
            konnector=KONNECTOR_SLUG,
        )

    @pytest.mark.asyncio
    async def test_google_failure_skips_cozy_save(
        self, strategy, unlinked_contact, cozy_client, google_client
    ):
        error = RuntimeError("network down")
        google_client.create_contact.side_effect = error

        with pytest.raises(RuntimeError) as exc_info:
            await strategy.decide(unlinked_contact, [])

        assert exc_info.value is error
        cozy_client.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_uses_injected_matcher(self, cozy_client, google_client):
        matcher = MagicMock(return_value="anything")
        strategy = CozyToGoogleStrategy(
            cozy_client, google_client, ACCOUNT, matcher=matcher
        )
        contact = CozyContact(id="c1")

        outcome = await strategy.decide(contact, ["candidate"])

        assert outcome is None
        matcher.assert_called_once_with(contact, ["candidate"], ACCOUNT)


class TestGoogleToCozyStrategy:
    """Tests for GoogleToCozyStrategy.decide."""

    @pytest.fixture
    def strategy(self, cozy_client):
        return get_google_to_cozy_strategy(cozy_client, ACCOUNT, clock=lambda: NOW)

    @pytest.fixture
    def person(self):
        return GooglePerson.from_api_response(
            {
                "resourceName": "people/c7",
                "etag": "etag-7",
                "names": [{"givenName": "Kayleigh", "familyName": "Yundt"}],
                "phoneNumbers": [{"value": "+33 6 12 34 56 78", "type": "mobile"}],
            }
        )

    @pytest.mark.asyncio
    async def test_matched_person_is_skipped(self, strategy, person, cozy_client):
        cozy = [CozyContact(id="k").with_sync_entry(ACCOUNT, SyncEntry(id="people/c7"))]

        assert await strategy.decide(person, cozy) is None
        cozy_client.save.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unmatched_person_is_saved_in_cozy(
        self, strategy, person, cozy_client
    ):
        outcome = await strategy.decide(person, [])

        assert outcome == SyncOutcome(created=True, id="saved-id")
        assert outcome.record.id == "saved-id"

        saved = cozy_client.save.await_args.args[0]
        assert saved.id is None
        assert saved.display_name == "Kayleigh Yundt"
        assert saved.phones == [{"number": "+33 6 12 34 56 78", "type": "mobile",
                                 "primary": False}]
        assert saved.sync_entry(ACCOUNT).id == "people/c7"
        assert saved.sync_entry(ACCOUNT).remote_rev == "etag-7"

    @pytest.mark.asyncio
    async def test_person_without_etag_has_no_remote_rev(self, strategy, cozy_client):
        await strategy.decide(GooglePerson(resource_name="people/c8"), [])

        saved = cozy_client.save.await_args.args[0]
        assert saved.sync_entry(ACCOUNT).remote_rev is None

    @pytest.mark.asyncio
    async def test_cozy_failure_propagates(self, strategy, person, cozy_client):
        error = ValueError("Unable to save contact in cozy")
        cozy_client.save.side_effect = error

        with pytest.raises(ValueError) as exc_info:
            await strategy.decide(person, [])

        assert exc_info.value is error
