import unittest
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import taskflow.models  # noqa: F401
from fakes import FakeAsyncSession
from taskflow.errors import BadRequestError, ConflictError, ExpiredError, ForbiddenError, InternalError, NotFoundError
from taskflow.models.enums import InvitationStatus, TeamRole
from taskflow.models.team_invitation import TeamInvitation
from taskflow.models.team_member import TeamMember
from taskflow.services.email import EmailResult
from taskflow.services.invitations import (
    cancel_invitation,
    create_invitation,
    effective_status,
    get_invitation_detail,
    list_invitations,
    resend_invitation,
    respond_to_invitation,
)


NOW = datetime(2026, 5, 10, 12, 0, tzinfo=timezone.utc)


def _invitation(status=InvitationStatus.pending, expires_in=timedelta(days=3), email="dana@example.com"):
    return SimpleNamespace(
        id=uuid.uuid4(),
        team_id=uuid.uuid4(),
        invited_email=email,
        invited_by=uuid.uuid4(),
        token="a" * 64,
        status=status,
        expires_at=NOW + expires_in,
        updated_at=None,
    )


class RecordingSender:
    def __init__(self, result: EmailResult | None = None, error: Exception | None = None) -> None:
        self.calls = []
        self.result = result or EmailResult(success=True, message_id="id-1")
        self.error = error

    async def __call__(self, **kwargs) -> EmailResult:
        self.calls.append(kwargs)
        if self.error is not None:
            raise self.error
        return self.result


class TestEffectiveStatus(unittest.TestCase):
    def test_pending_before_expiry(self) -> None:
        self.assertEqual(effective_status(_invitation(), NOW), InvitationStatus.pending)

    def test_pending_past_expiry_reads_as_expired(self) -> None:
        invitation = _invitation(expires_in=timedelta(seconds=-1))
        self.assertEqual(effective_status(invitation, NOW), InvitationStatus.expired)

    def test_answered_invitations_keep_stored_status_after_expiry(self) -> None:
        for stored in (InvitationStatus.accepted, InvitationStatus.declined, InvitationStatus.cancelled):
            invitation = _invitation(status=stored, expires_in=timedelta(days=-1))
            self.assertEqual(effective_status(invitation, NOW), stored)

    def test_naive_expiry_is_treated_as_utc(self) -> None:
        invitation = _invitation()
        invitation.expires_at = (NOW - timedelta(minutes=1)).replace(tzinfo=None)
        self.assertEqual(effective_status(invitation, NOW), InvitationStatus.expired)


class TestCreateInvitation(unittest.IsolatedAsyncioTestCase):
    async def test_admin_invites_and_email_is_sent(self) -> None:
        admin = SimpleNamespace(id=uuid.uuid4(), name="Ana", email="ana@example.com")
        team = SimpleNamespace(id=uuid.uuid4(), name="Platform")
        db = FakeAsyncSession(SimpleNamespace(role=TeamRole.admin), team, None)
        sender = RecordingSender()

        invitation = await create_invitation(
            db, actor=admin, team_id=team.id, email="  Dana@Example.COM ", send=sender, now=NOW
        )

        self.assertIsInstance(invitation, TeamInvitation)
        self.assertEqual(invitation.invited_email, "dana@example.com")
        self.assertEqual(invitation.status, InvitationStatus.pending)
        self.assertEqual(invitation.expires_at, NOW + timedelta(days=7))
        self.assertEqual(len(invitation.token), 64)
        self.assertEqual(db.commits, 1)
        self.assertEqual(len(sender.calls), 1)
        self.assertEqual(sender.calls[0]["to"], "dana@example.com")
        self.assertTrue(sender.calls[0]["invitation_url"].endswith(f"/invitations/{invitation.token}"))
        self.assertEqual(sender.calls[0]["inviter_name"], "Ana")

    async def test_failed_delivery_keeps_invitation(self) -> None:
        admin = SimpleNamespace(id=uuid.uuid4(), name=None, email="ana@example.com")
        team = SimpleNamespace(id=uuid.uuid4(), name="Platform")
        db = FakeAsyncSession(SimpleNamespace(role=TeamRole.owner), team, None)
        sender = RecordingSender(error=RuntimeError("smtp down"))

        with self.assertLogs("taskflow.services.invitations", level="ERROR"):
            invitation = await create_invitation(
                db, actor=admin, team_id=team.id, email="dana@example.com", send=sender, now=NOW
            )

        self.assertEqual(invitation.status, InvitationStatus.pending)
        self.assertEqual(db.commits, 1)

    async def test_plain_member_cannot_invite(self) -> None:
        db = FakeAsyncSession(SimpleNamespace(role=TeamRole.member))
        sender = RecordingSender()

        with self.assertRaises(ForbiddenError):
            await create_invitation(
                db, actor=SimpleNamespace(id=uuid.uuid4()), team_id=uuid.uuid4(), email="x@example.com", send=sender
            )
        self.assertEqual(sender.calls, [])

    async def test_pending_duplicate_conflicts(self) -> None:
        team = SimpleNamespace(id=uuid.uuid4(), name="Platform")
        db = FakeAsyncSession(SimpleNamespace(role=TeamRole.owner), team, uuid.uuid4())

        with self.assertRaises(ConflictError):
            await create_invitation(
                db, actor=SimpleNamespace(id=uuid.uuid4()), team_id=team.id, email="x@example.com", send=RecordingSender()
            )
        self.assertEqual(db.added, [])

    async def test_invalid_email_is_rejected_before_any_query(self) -> None:
        db = FakeAsyncSession()
        with self.assertRaises(BadRequestError):
            await create_invitation(db, actor=SimpleNamespace(id=uuid.uuid4()), team_id=uuid.uuid4(), email="nope")
        self.assertEqual(db.executed, [])


class TestRespondToInvitation(unittest.IsolatedAsyncioTestCase):
    async def test_accept_adds_member_and_marks_accepted(self) -> None:
        invitation = _invitation()
        user = SimpleNamespace(id=uuid.uuid4(), email="dana@example.com")
        db = FakeAsyncSession(invitation, None)

        await respond_to_invitation(db, user=user, token=invitation.token, action="accept", now=NOW)

        self.assertEqual(invitation.status, InvitationStatus.accepted)
        members = db.added_of(TeamMember)
        self.assertEqual(len(members), 1)
        self.assertEqual(members[0].team_id, invitation.team_id)
        self.assertEqual(members[0].user_id, user.id)
        self.assertEqual(members[0].role, TeamRole.member)
        self.assertEqual(db.commits, 1)

    async def test_decline(self) -> None:
        invitation = _invitation()
        db = FakeAsyncSession(invitation)

        await respond_to_invitation(
            db, user=SimpleNamespace(id=uuid.uuid4(), email="dana@example.com"), token="t", action="decline", now=NOW
        )

        self.assertEqual(invitation.status, InvitationStatus.declined)
        self.assertEqual(db.added, [])

    async def test_already_member_conflicts_and_nothing_changes(self) -> None:
        invitation = _invitation()
        db = FakeAsyncSession(invitation, SimpleNamespace(role=TeamRole.member))

        with self.assertRaises(ConflictError):
            await respond_to_invitation(
                db, user=SimpleNamespace(id=uuid.uuid4(), email="dana@example.com"), token="t", action="accept", now=NOW
            )
        self.assertEqual(invitation.status, InvitationStatus.pending)
        self.assertEqual(db.added, [])
        self.assertEqual(db.commits, 0)

    async def test_expired_wins_over_pending_check(self) -> None:
        invitation = _invitation(status=InvitationStatus.declined, expires_in=timedelta(days=-1))
        db = FakeAsyncSession(invitation)

        with self.assertRaises(ExpiredError) as err:
            await respond_to_invitation(
                db, user=SimpleNamespace(id=uuid.uuid4(), email="dana@example.com"), token="t", action="accept", now=NOW
            )
        self.assertEqual(err.exception.status_code, 400)
        self.assertEqual(invitation.status, InvitationStatus.declined)

    async def test_expired_pending_cannot_be_declined(self) -> None:
        invitation = _invitation(expires_in=timedelta(seconds=-1))
        db = FakeAsyncSession(invitation)

        with self.assertRaises(ExpiredError):
            await respond_to_invitation(
                db, user=SimpleNamespace(id=uuid.uuid4(), email="dana@example.com"), token="t", action="decline", now=NOW
            )
        self.assertEqual(invitation.status, InvitationStatus.pending)

    async def test_answered_invitation_reports_its_status(self) -> None:
        invitation = _invitation(status=InvitationStatus.cancelled)
        db = FakeAsyncSession(invitation)

        with self.assertRaises(BadRequestError) as err:
            await respond_to_invitation(
                db, user=SimpleNamespace(id=uuid.uuid4(), email="dana@example.com"), token="t", action="accept", now=NOW
            )
        self.assertEqual(err.exception.message, "Invitation has already been cancelled")

    async def test_other_address_is_forbidden(self) -> None:
        db = FakeAsyncSession(_invitation())

        with self.assertRaises(ForbiddenError):
            await respond_to_invitation(
                db, user=SimpleNamespace(id=uuid.uuid4(), email="eve@example.com"), token="t", action="accept", now=NOW
            )

    async def test_unknown_action_and_token(self) -> None:
        user = SimpleNamespace(id=uuid.uuid4(), email="dana@example.com")
        with self.assertRaises(BadRequestError):
            await respond_to_invitation(FakeAsyncSession(), user=user, token="t", action="maybe")
        with self.assertRaises(NotFoundError):
            await respond_to_invitation(FakeAsyncSession(None), user=user, token="t", action="accept")


class TestInvitationLookup(unittest.IsolatedAsyncioTestCase):
    async def test_open_invitation_details(self) -> None:
        invitation = _invitation()
        db = FakeAsyncSession((invitation, "Platform", "Infra people", "Ana", "ana@example.com"))

        detail = await get_invitation_detail(db, token=invitation.token, now=NOW)

        self.assertIs(detail.invitation, invitation)
        self.assertEqual(detail.team_name, "Platform")
        self.assertEqual(detail.inviter_email, "ana@example.com")

    async def test_expired_lookup(self) -> None:
        invitation = _invitation(expires_in=timedelta(days=-2))
        db = FakeAsyncSession((invitation, "Platform", None, "Ana", "ana@example.com"))

        with self.assertRaises(ExpiredError):
            await get_invitation_detail(db, token=invitation.token, now=NOW)


class TestResendAndCancel(unittest.IsolatedAsyncioTestCase):
    async def test_resend_keeps_token_and_expiry(self) -> None:
        invitation = _invitation()
        token, expires_at = invitation.token, invitation.expires_at
        team = SimpleNamespace(id=invitation.team_id, name="Platform")
        db = FakeAsyncSession(SimpleNamespace(role=TeamRole.admin), invitation, team)
        sender = RecordingSender()

        await resend_invitation(
            db, actor=SimpleNamespace(id=uuid.uuid4(), name="Ana"), team_id=team.id, invitation_id=invitation.id, send=sender
        )

        self.assertEqual((invitation.token, invitation.expires_at), (token, expires_at))
        self.assertEqual(len(sender.calls), 1)
        self.assertEqual(db.commits, 0)

    async def test_resend_delivery_failure_is_internal_error(self) -> None:
        invitation = _invitation()
        team = SimpleNamespace(id=invitation.team_id, name="Platform")
        db = FakeAsyncSession(SimpleNamespace(role=TeamRole.owner), invitation, team)
        sender = RecordingSender(result=EmailResult(success=False, error="rejected"))

        with self.assertLogs("taskflow.services.invitations", level="ERROR"):
            with self.assertRaises(InternalError) as err:
                await resend_invitation(
                    db, actor=SimpleNamespace(id=uuid.uuid4()), team_id=team.id, invitation_id=invitation.id, send=sender
                )
        self.assertEqual(err.exception.status_code, 500)
        self.assertEqual(err.exception.message, "Failed to send email")

    async def test_resend_requires_pending(self) -> None:
        invitation = _invitation(status=InvitationStatus.accepted)
        db = FakeAsyncSession(SimpleNamespace(role=TeamRole.owner), invitation)

        with self.assertRaises(BadRequestError) as err:
            await resend_invitation(
                db, actor=SimpleNamespace(id=uuid.uuid4()), team_id=uuid.uuid4(), invitation_id=invitation.id,
                send=RecordingSender(),
            )
        self.assertEqual(err.exception.message, "Invitation is not pending")

    async def test_cancel(self) -> None:
        invitation = _invitation()
        db = FakeAsyncSession(SimpleNamespace(role=TeamRole.admin), invitation)

        await cancel_invitation(
            db, actor=SimpleNamespace(id=uuid.uuid4()), team_id=invitation.team_id, invitation_id=invitation.id, now=NOW
        )

        self.assertEqual(invitation.status, InvitationStatus.cancelled)
        self.assertEqual(db.commits, 1)

    async def test_member_cannot_cancel(self) -> None:
        db = FakeAsyncSession(SimpleNamespace(role=TeamRole.member))

        with self.assertRaises(ForbiddenError) as err:
            await cancel_invitation(
                db, actor=SimpleNamespace(id=uuid.uuid4()), team_id=uuid.uuid4(), invitation_id=uuid.uuid4()
            )
        self.assertEqual(err.exception.message, "Not authorized to cancel invitations")


class TestListInvitations(unittest.IsolatedAsyncioTestCase):
    async def test_member_lists_team_invitations(self) -> None:
        team = SimpleNamespace(id=uuid.uuid4(), name="Platform")
        rows = [_invitation(), _invitation(status=InvitationStatus.accepted)]
        db = FakeAsyncSession(SimpleNamespace(role=TeamRole.member), team, rows)

        listed_team, invitations = await list_invitations(db, actor=SimpleNamespace(id=uuid.uuid4()), team_id=team.id)

        self.assertIs(listed_team, team)
        self.assertEqual(invitations, rows)
        self.assertIn("ORDER BY team_invitations.created_at", str(db.executed[2]))

    async def test_non_member_is_forbidden(self) -> None:
        db = FakeAsyncSession(None)

        with self.assertRaises(ForbiddenError):
            await list_invitations(db, actor=SimpleNamespace(id=uuid.uuid4()), team_id=uuid.uuid4())


class TestAcceptTwice(unittest.IsolatedAsyncioTestCase):
    async def test_second_accept_reports_already_accepted(self) -> None:
        invitation = _invitation()
        user = SimpleNamespace(id=uuid.uuid4(), email="dana@example.com")
        db = FakeAsyncSession(invitation, None, invitation)

        await respond_to_invitation(db, user=user, token=invitation.token, action="accept", now=NOW)
        self.assertEqual(invitation.status, InvitationStatus.accepted)

        with self.assertRaises(BadRequestError) as err:
            await respond_to_invitation(db, user=user, token=invitation.token, action="accept", now=NOW)
        self.assertEqual(err.exception.message, "Invitation has already been accepted")
        self.assertEqual(len(db.added_of(TeamMember)), 1)
        self.assertEqual(db.commits, 1)


if __name__ == "__main__":
    unittest.main()
