"""Tests for the Reconciler — new-action extraction, resets, idempotence."""

from dicepoker.core.models import Action
from dicepoker.core.reconciler import (
    AnnouncementItem,
    AnnouncementType,
    Reconciler,
    classify,
    new_actions,
    reconcile,
)

TURN_ANA = {"id": 6, "message": "Turno de Ana"}
ROLL_ANA = {"id": 7, "message": "Ana obtuvo Full House", "dice": [3, 3, 3, 5, 5]}


class TestClassify:
    def test_turn_prefix_is_turn(self):
        item = classify(Action(1, "Turno de Beto"))
        assert item.type is AnnouncementType.TURN
        assert item.dice is None

    def test_turn_never_carries_dice(self):
        item = classify(Action(1, "Turno de Beto", (1, 1, 1, 1, 1)))
        assert item.type is AnnouncementType.TURN
        assert item.dice is None

    def test_other_message_is_roll_with_dice(self):
        item = classify(Action(2, "Beto obtuvo Un par", (5, 5, 2, 3, 6)))
        assert item == AnnouncementItem(2, "Beto obtuvo Un par", AnnouncementType.ROLL, (5, 5, 2, 3, 6))

    def test_roll_without_dice(self):
        item = classify(Action(3, "Ronda para Ana"))
        assert item.type is AnnouncementType.ROLL
        assert item.dice is None

    def test_prefix_must_lead(self):
        assert classify(Action(4, "Fin del Turno de Ana")).type is AnnouncementType.ROLL

    def test_custom_prefix(self):
        assert classify(Action(5, "Turn of Ana"), turn_prefix="Turn of ").type is AnnouncementType.TURN


class TestNewActions:
    def test_filters_and_sorts(self):
        actions = [Action(9, "c"), Action(4, "old"), Action(7, "a"), Action(8, "b")]
        assert [a.id for a in new_actions(5, actions)] == [7, 8, 9]

    def test_collapses_duplicate_ids(self):
        actions = [Action(6, "x"), Action(6, "x"), Action(7, "y")]
        assert [a.id for a in new_actions(5, actions)] == [6, 7]

    def test_nothing_new(self):
        assert new_actions(10, [Action(9, "x"), Action(10, "y")]) == []


class TestReconcile:
    def test_new_turn_and_roll_enqueued_in_order(self, make_snapshot):
        snap = make_snapshot(actions=[TURN_ANA, ROLL_ANA], last_action_id=7)
        result = reconcile(5, snap)
        assert not result.reset
        assert result.baseline == 7
        assert [(i.id, i.type) for i in result.items] == [
            (6, AnnouncementType.TURN),
            (7, AnnouncementType.ROLL),
        ]
        assert result.items[1].dice == (3, 3, 3, 5, 5)

    def test_unsorted_log_is_sorted(self, make_snapshot):
        snap = make_snapshot(actions=[ROLL_ANA, TURN_ANA], last_action_id=7)
        assert [i.id for i in reconcile(5, snap).items] == [6, 7]

    def test_reset_when_last_action_id_drops(self, make_snapshot):
        snap = make_snapshot(actions=[{"id": 1, "message": "Turno de Ana"}], last_action_id=1)
        result = reconcile(7, snap)
        assert result.reset
        assert result.baseline == 1
        assert result.items == ()

    def test_equal_last_action_id_is_not_reset(self, make_snapshot):
        snap = make_snapshot(actions=[TURN_ANA, ROLL_ANA], last_action_id=7)
        result = reconcile(7, snap)
        assert not result.reset
        assert result.items == ()
        assert result.baseline == 7

    def test_missing_last_action_id_skips_reset_check(self, make_snapshot):
        snap = make_snapshot(actions=[{"id": 9, "message": "x"}], last_action_id=None)
        result = reconcile(7, snap)
        assert not result.reset
        assert [i.id for i in result.items] == [9]

    def test_baseline_unchanged_when_nothing_new(self, make_snapshot):
        result = reconcile(4, make_snapshot(actions=[{"id": 3, "message": "x"}], last_action_id=4))
        assert result.baseline == 4
        assert result.items == ()


class TestReconciler:
    def test_duplicate_delivery_is_noop(self, make_snapshot):
        rec = Reconciler(baseline=5)
        snap = make_snapshot(actions=[TURN_ANA, ROLL_ANA], last_action_id=7)
        first = rec.reconcile(snap)
        second = rec.reconcile(snap)
        assert len(first.items) == 2
        assert second.items == ()
        assert rec.baseline == 7

    def test_each_id_enqueued_once_across_overlapping_logs(self, make_snapshot):
        rec = Reconciler()
        seen = []
        logs = [
            [{"id": 1, "message": "Turno de Ana"}],
            [{"id": 1, "message": "Turno de Ana"}, {"id": 2, "message": "Ana obtuvo Trío"}],
            [{"id": 2, "message": "Ana obtuvo Trío"}, {"id": 3, "message": "Turno de Beto"}],
        ]
        for i, log in enumerate(logs, 1):
            seen.extend(item.id for item in rec.reconcile(
                make_snapshot(actions=log, last_action_id=i)
            ).items)
        assert seen == [1, 2, 3]

    def test_baseline_monotonic_without_reset(self, make_snapshot):
        rec = Reconciler()
        previous = rec.baseline
        for last in [2, 2, 5, 5, 9]:
            actions = [{"id": i, "message": f"a{i}"} for i in range(max(1, last - 2), last + 1)]
            rec.reconcile(make_snapshot(actions=actions, last_action_id=last))
            assert rec.baseline >= previous
            previous = rec.baseline

    def test_reset_lowers_baseline(self, make_snapshot):
        rec = Reconciler(baseline=7)
        result = rec.reconcile(make_snapshot(actions=[], last_action_id=1))
        assert result.reset
        assert rec.baseline == 1

    def test_rebase(self):
        rec = Reconciler(baseline=12)
        rec.rebase(3)
        assert rec.baseline == 3
        rec.rebase(None)
        assert rec.baseline == 0

    def test_uses_configured_prefix(self, make_snapshot):
        rec = Reconciler(turn_prefix="Turn of ")
        result = rec.reconcile(make_snapshot(
            actions=[{"id": 1, "message": "Turn of Ana"}], last_action_id=1,
        ))
        assert result.items[0].type is AnnouncementType.TURN
