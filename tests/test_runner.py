"""
Tests for ContactSyncRunner and SyncReport.
"""

from dataclasses import replace
from datetime import datetime, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from cozy_gcontacts.sync.contact import CozyContact, GooglePerson, SyncEntry
from cozy_gcontacts.sync.runner import ContactSyncRunner, SyncDirection, SyncReport
from cozy_gcontacts.sync.strategy import SyncOutcome

ACCOUNT = "acct-1"
NOW = datetime(2018, 5, 5, 9, 9, 0, 115000, tzinfo=timezone.utc)


def linked(contact_id, remote_id):
    return CozyContact(id=contact_id, fullname=contact_id).with_sync_entry(
        ACCOUNT, SyncEntry(id=remote_id)
    )


@pytest.fixture
def google_people():
    return [
        GooglePerson(resource_name="people/1", etag="e1", display_name="Linked"),
        GooglePerson(resource_name="people/2", etag="e2", display_name="New"),
    ]


@pytest.fixture
def cozy_contacts():
    return [linked("c1", "people/1"), CozyContact(id="c2", rev="1-a", fullname="Solo")]


@pytest.fixture
def cozy_client(cozy_contacts):
    client = MagicMock()

    async def save(contact):
        return replace(contact, id=contact.id or "c3", rev="9-z")

    client.save = AsyncMock(side_effect=save)
    client.list_contacts = AsyncMock(
        side_effect=[cozy_contacts, cozy_contacts + [linked("c3", "people/2")]]
    )
    return client


@pytest.fixture
def google_client(google_people):
    client = MagicMock()
    client.list_contacts = AsyncMock(return_value=google_people)
    client.create_contact = AsyncMock(
        return_value=GooglePerson(resource_name="people/3", etag="e3")
    )
    return client


@pytest.fixture
def runner(cozy_client, google_client):
    return ContactSyncRunner(cozy_client, google_client, ACCOUNT, clock=lambda: NOW)


class TestContactSyncRunner:
    """Tests for ContactSyncRunner.run."""

    @pytest.mark.asyncio
    async def test_both_directions(self, runner, cozy_client, google_client):
        """Test that Google -> Cozy runs first and Cozy is reloaded after it."""
        report = await runner.run(SyncDirection.BOTH)

        assert list(report.outcomes) == [
            SyncDirection.GOOGLE_TO_COZY,
            SyncDirection.COZY_TO_GOOGLE,
        ]
        assert report.outcomes[SyncDirection.GOOGLE_TO_COZY] == [
            None,
            SyncOutcome(created=True, id="c3"),
        ]
        assert report.outcomes[SyncDirection.COZY_TO_GOOGLE] == [
            None,
            SyncOutcome(created=True, id="c2"),
            None,
        ]
        assert cozy_client.list_contacts.await_count == 2
        google_client.create_contact.assert_awaited_once()
        assert report.total_created == 2

    @pytest.mark.asyncio
    async def test_google_to_cozy_only(self, runner, cozy_client, google_client):
        report = await runner.run(SyncDirection.GOOGLE_TO_COZY)

        assert list(report.outcomes) == [SyncDirection.GOOGLE_TO_COZY]
        assert cozy_client.list_contacts.await_count == 1
        google_client.create_contact.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_cozy_to_google_only(self, runner, cozy_client):
        report = await runner.run("cozy_to_google")

        assert report.outcomes == {
            SyncDirection.COZY_TO_GOOGLE: [None, SyncOutcome(created=True, id="c2")]
        }
        saved = cozy_client.save.await_args.args[0]
        assert saved.sync_entry(ACCOUNT).id == "people/3"
        assert saved.sync_entry(ACCOUNT).last_sync == "2018-05-05T09:09:00.115Z"

    @pytest.mark.asyncio
    async def test_no_reload_when_nothing_created(
        self, cozy_client, google_client, cozy_contacts
    ):
        google_client.list_contacts.return_value = [
            GooglePerson(resource_name="people/1")
        ]
        runner = ContactSyncRunner(cozy_client, google_client, ACCOUNT)

        await runner.run(SyncDirection.BOTH)

        assert cozy_client.list_contacts.await_count == 1

    @pytest.mark.asyncio
    async def test_error_stops_run(self, runner, cozy_client, google_client):
        """Test that a store error aborts the remaining directions."""
        cozy_client.save.side_effect = RuntimeError("cozy down")

        with pytest.raises(RuntimeError, match="cozy down"):
            await runner.run(SyncDirection.BOTH)

        google_client.create_contact.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_listing_error_propagates(self, runner, google_client):
        google_client.list_contacts.side_effect = RuntimeError("google down")

        with pytest.raises(RuntimeError, match="google down"):
            await runner.run()


class TestSyncReport:
    """Tests for SyncReport.summary."""

    def test_summary_lines(self):
        report = SyncReport(
            source_account_id=ACCOUNT,
            outcomes={
                SyncDirection.GOOGLE_TO_COZY: [None, SyncOutcome(True, "a")],
                SyncDirection.COZY_TO_GOOGLE: [None, None],
            },
        )

        assert report.summary() == (
            "Sync Summary (account acct-1):\n"
            "  google to cozy: 2 processed, 1 created, 1 already in sync\n"
            "  cozy to google: 2 processed, 0 created, 2 already in sync"
        )
        assert report.total_created == 1

    def test_empty_report(self):
        assert SyncReport(source_account_id=ACCOUNT).summary() == (
            "Sync Summary (account acct-1):\n  Nothing to do"
        )
