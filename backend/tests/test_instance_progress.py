import unittest
import uuid
from datetime import datetime, timezone
from types import SimpleNamespace

from taskflow.api.routers.checklists import _detail_out
from taskflow.models.enums import InstanceStatus
from taskflow.services.instances import compute_progress, ordered_steps, percent


def _row(order_index: int, is_completed: bool, text: str | None = None):
    step_id = uuid.uuid4()
    return SimpleNamespace(
        id=uuid.uuid4(),
        instance_id=uuid.uuid4(),
        step_id=step_id,
        is_completed=is_completed,
        completed_at=datetime(2026, 1, 1, tzinfo=timezone.utc) if is_completed else None,
        step=SimpleNamespace(id=step_id, step_text=text or f"Step {order_index + 1}", order_index=order_index),
    )


class TestPercent(unittest.TestCase):
    def test_empty_checklist_is_zero(self) -> None:
        self.assertEqual(percent(0, 0), 0)

    def test_whole_numbers(self) -> None:
        self.assertEqual(percent(2, 4), 50)
        self.assertEqual(percent(4, 4), 100)
        self.assertEqual(percent(0, 7), 0)

    def test_rounds_to_nearest(self) -> None:
        self.assertEqual(percent(1, 3), 33)
        self.assertEqual(percent(2, 3), 67)

    def test_halves_round_up(self) -> None:
        self.assertEqual(percent(1, 8), 13)
        self.assertEqual(percent(1, 200), 1)
        self.assertEqual(percent(3, 8), 38)


class TestComputeProgress(unittest.TestCase):
    def test_counts_completed_steps(self) -> None:
        steps = [_row(0, True), _row(1, False), _row(2, True)]
        progress = compute_progress(steps)
        self.assertEqual(progress.total_steps, 3)
        self.assertEqual(progress.completed_steps, 2)
        self.assertEqual(progress.progress, 67)

    def test_no_steps(self) -> None:
        progress = compute_progress([])
        self.assertEqual((progress.progress, progress.completed_steps, progress.total_steps), (0, 0, 0))


class TestInstanceDetail(unittest.TestCase):
    def test_four_steps_two_done_is_half_way(self) -> None:
        rows = [_row(2, False), _row(0, True), _row(3, False), _row(1, True)]
        instance = SimpleNamespace(
            id=uuid.uuid4(),
            template_id=uuid.uuid4(),
            user_id=uuid.uuid4(),
            status=InstanceStatus.in_progress,
            started_at=datetime(2026, 1, 1, tzinfo=timezone.utc),
            completed_at=None,
            template=SimpleNamespace(title="Release"),
            steps=rows,
        )

        detail = _detail_out(instance)

        self.assertEqual(detail.progress, 50)
        self.assertEqual(detail.completed_steps, 2)
        self.assertEqual(detail.total_steps, 4)
        self.assertEqual(detail.template_title, "Release")
        self.assertEqual([s.order_index for s in detail.steps], [0, 1, 2, 3])
        self.assertEqual([s.is_completed for s in detail.steps], [True, True, False, False])

    def test_ordered_steps_follows_template_order(self) -> None:
        rows = [_row(1, False, "b"), _row(0, False, "a")]
        instance = SimpleNamespace(steps=rows)
        self.assertEqual([r.step.step_text for r in ordered_steps(instance)], ["a", "b"])


if __name__ == "__main__":
    unittest.main()
