import unittest
import uuid
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import taskflow.models  # noqa: F401
from fakes import FakeAsyncSession
from taskflow.errors import NotFoundError
from taskflow.models.checklist_instance import ChecklistInstance, ChecklistInstanceStep
from taskflow.models.enums import InstanceStatus
from taskflow.services.instances import complete_instance, list_instances, set_step_completion, start_instance


NOW = datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc)


def _template(user_id, order_indexes):
    return SimpleNamespace(
        id=uuid.uuid4(),
        user_id=user_id,
        title="Onboarding",
        steps=[SimpleNamespace(id=uuid.uuid4(), order_index=i) for i in order_indexes],
    )


class TestStartInstance(unittest.IsolatedAsyncioTestCase):
    async def test_creates_one_incomplete_step_per_template_step(self) -> None:
        user = SimpleNamespace(id=uuid.uuid4())
        template = _template(user.id, [2, 0, 1])
        db = FakeAsyncSession(template)

        instance = await start_instance(db, user=user, template_id=template.id, now=NOW)

        self.assertIsInstance(instance, ChecklistInstance)
        self.assertEqual(instance.status, InstanceStatus.in_progress)
        self.assertEqual(instance.started_at, NOW)
        self.assertIsNone(instance.completed_at)
        self.assertIsNotNone(instance.id)

        rows = db.added_of(ChecklistInstanceStep)
        self.assertEqual(len(rows), 3)
        self.assertTrue(all(row.instance_id == instance.id for row in rows))
        self.assertTrue(all(row.is_completed is False and row.completed_at is None for row in rows))
        by_order = sorted(template.steps, key=lambda s: s.order_index)
        self.assertEqual([row.step_id for row in rows], [s.id for s in by_order])
        self.assertEqual(db.commits, 1)

    async def test_template_without_steps_gives_empty_instance(self) -> None:
        user = SimpleNamespace(id=uuid.uuid4())
        template = _template(user.id, [])
        db = FakeAsyncSession(template)

        await start_instance(db, user=user, template_id=template.id, now=NOW)

        self.assertEqual(len(db.added_of(ChecklistInstance)), 1)
        self.assertEqual(db.added_of(ChecklistInstanceStep), [])

    async def test_template_of_another_user_is_not_found(self) -> None:
        user = SimpleNamespace(id=uuid.uuid4())
        db = FakeAsyncSession(None)

        with self.assertRaises(NotFoundError) as err:
            await start_instance(db, user=user, template_id=uuid.uuid4(), now=NOW)
        self.assertEqual(err.exception.status_code, 404)
        self.assertEqual(db.added, [])
        self.assertEqual(db.commits, 0)


class TestStepCompletion(unittest.IsolatedAsyncioTestCase):
    async def test_toggle_on_then_off_clears_timestamp(self) -> None:
        user = SimpleNamespace(id=uuid.uuid4())
        instance = SimpleNamespace(id=uuid.uuid4(), user_id=user.id)
        row = SimpleNamespace(is_completed=False, completed_at=None)
        db = FakeAsyncSession(instance, row, instance, row)

        await set_step_completion(
            db, user=user, instance_id=instance.id, step_id=uuid.uuid4(), is_completed=True, now=NOW
        )
        self.assertTrue(row.is_completed)
        self.assertEqual(row.completed_at, NOW)

        await set_step_completion(db, user=user, instance_id=instance.id, step_id=uuid.uuid4(), is_completed=False)
        self.assertFalse(row.is_completed)
        self.assertIsNone(row.completed_at)
        self.assertEqual(db.commits, 2)

    async def test_rewriting_true_refreshes_timestamp(self) -> None:
        user = SimpleNamespace(id=uuid.uuid4())
        instance = SimpleNamespace(id=uuid.uuid4(), user_id=user.id)
        row = SimpleNamespace(is_completed=True, completed_at=NOW)
        later = NOW + timedelta(minutes=5)
        db = FakeAsyncSession(instance, row)

        await set_step_completion(
            db, user=user, instance_id=instance.id, step_id=uuid.uuid4(), is_completed=True, now=later
        )
        self.assertEqual(row.completed_at, later)

    async def test_unknown_step_is_not_found(self) -> None:
        user = SimpleNamespace(id=uuid.uuid4())
        instance = SimpleNamespace(id=uuid.uuid4(), user_id=user.id)
        db = FakeAsyncSession(instance, None)

        with self.assertRaises(NotFoundError) as err:
            await set_step_completion(db, user=user, instance_id=instance.id, step_id=uuid.uuid4(), is_completed=True)
        self.assertEqual(err.exception.message, "Step not found")
        self.assertEqual(db.commits, 0)

    async def test_instance_of_another_user_is_not_found(self) -> None:
        db = FakeAsyncSession(None)
        with self.assertRaises(NotFoundError) as err:
            await set_step_completion(
                db,
                user=SimpleNamespace(id=uuid.uuid4()),
                instance_id=uuid.uuid4(),
                step_id=uuid.uuid4(),
                is_completed=True,
            )
        self.assertEqual(err.exception.message, "Checklist instance not found")


class TestCompleteInstance(unittest.IsolatedAsyncioTestCase):
    async def test_completing_twice_refreshes_completed_at(self) -> None:
        user = SimpleNamespace(id=uuid.uuid4())
        instance = SimpleNamespace(id=uuid.uuid4(), status=InstanceStatus.in_progress, completed_at=None)
        later = NOW + timedelta(hours=1)
        db = FakeAsyncSession(instance, instance)

        await complete_instance(db, user=user, instance_id=instance.id, now=NOW)
        self.assertEqual(instance.status, InstanceStatus.completed)
        self.assertEqual(instance.completed_at, NOW)

        await complete_instance(db, user=user, instance_id=instance.id, now=later)
        self.assertEqual(instance.status, InstanceStatus.completed)
        self.assertEqual(instance.completed_at, later)


class TestListInstances(unittest.IsolatedAsyncioTestCase):
    async def test_newest_first_for_the_caller(self) -> None:
        user = SimpleNamespace(id=uuid.uuid4())
        newer = SimpleNamespace(id=uuid.uuid4(), started_at=NOW)
        older = SimpleNamespace(id=uuid.uuid4(), started_at=NOW - timedelta(days=1))
        db = FakeAsyncSession([newer, older])

        instances = await list_instances(db, user=user)

        self.assertEqual(instances, [newer, older])
        sql = str(db.executed[0])
        self.assertIn("checklist_instances.user_id", sql)
        self.assertIn("ORDER BY checklist_instances.started_at DESC", sql)


if __name__ == "__main__":
    unittest.main()
