import copy

import pytest

from wcrpbkt import RandomSource
from wcrpbkt.constants import UNASSIGNED
from wcrpbkt.data import WCRPDataset
from wcrpbkt.ledger import PartitionLedger
from wcrpbkt.params import BKTParams


def test_seating_merges_trials_in_order(ledger):
    ledger.check_invariants()
    assert ledger.active_skill_count == 2
    assert ledger.trials(0) == {0: [0, 1, 3, 5], 1: [3, 4, 5], 2: [0, 1, 2, 6], 3: [1, 3]}
    assert ledger.trials(1) == {0: [2, 4, 6, 7], 1: [0, 1, 2], 2: [3, 4, 5], 3: [0, 2, 4]}
    assert ledger.size(0) == 2
    assert dict(ledger.label_counts(1)) == {1: 2}


def test_unassign_then_assign_round_trip(ledger):
    before = copy.deepcopy(ledger.skills[0].trials)
    params = ledger.params(0)

    deleted = ledger.unassign(1, 0)
    assert not deleted
    assert ledger.seating[1] == UNASSIGNED
    assert ledger.trials(0) == {0: [0, 3], 1: [3, 5], 2: [2, 6], 3: [1]}

    ledger.assign(1, 0, False)
    assert ledger.trials(0) == before
    assert ledger.params(0) is params
    ledger.check_invariants()


def test_removing_last_item_destroys_skill(ledger):
    assert not ledger.unassign(0, 0)
    assert ledger.unassign(1, 0)
    assert 0 not in ledger.skills
    assert ledger.active_skill_count == 1
    ledger.check_invariants()


def test_new_skill_ids_are_never_reused(ledger):
    ledger.unassign(0, 0)
    ledger.unassign(1, 0)
    skill = ledger.new_skill_id()
    assert skill == 2
    ledger.assign(1, skill, True)
    assert ledger.new_skill_id() == 3


def test_new_skill_is_seeded_from_item_history(ledger):
    params = BKTParams(0.2, 0.3, 0.9, 0.5)
    ledger.unassign(3, 1)
    skill = ledger.new_skill_id()
    ledger.assign(3, skill, True, params=params)
    assert ledger.params(skill) is params
    assert ledger.trials(skill) == {0: [4, 7], 1: [1], 2: [3], 3: [0, 4]}
    assert ledger.trials(1) == {0: [2, 6], 1: [0, 2], 2: [4, 5], 3: [2]}
    ledger.check_invariants()


def test_new_skill_draws_parameters_from_prior(ledger):
    ledger.unassign(3, 1)
    skill = ledger.new_skill_id()
    ledger.assign(3, skill, True)
    params = ledger.params(skill)
    for value in (params.psi, params.mu, params.pi1, params.prop0):
        assert 0 < value < 1


def test_students_without_remaining_trials_are_dropped():
    # student 1 only practices item 1
    dataset = WCRPDataset([0, 1], [[True, False, True], [True, True]], [[0, 1, 0], [1, 1]],
                          [0, 0], num_students=2, num_items=2)
    ledger = PartitionLedger(dataset, RandomSource(0))
    skill = ledger.new_skill_id()
    ledger.assign(0, skill, True)
    ledger.assign(1, skill, False)
    assert ledger.trials(skill) == {0: [0, 1, 2], 1: [0, 1]}

    ledger.unassign(1, skill)
    assert ledger.trials(skill) == {0: [0, 2]}
    ledger.check_invariants()


def test_held_out_students_are_not_tracked():
    dataset = WCRPDataset([0], [[True], [False]], [[0], [0]], [0], num_students=2, num_items=1)
    ledger = PartitionLedger(dataset, RandomSource(0))
    ledger.assign(0, ledger.new_skill_id(), True)
    assert ledger.trials(0) == {0: [0]}


def test_invalid_moves_raise(ledger):
    with pytest.raises(ValueError):
        ledger.assign(0, 1, False)
    with pytest.raises(ValueError):
        ledger.unassign(0, 1)
    ledger.unassign(0, 0)
    with pytest.raises(ValueError):
        ledger.assign(0, 1, True)


def test_items_of(ledger):
    assert ledger.items_of(1).tolist() == [2, 3]


def test_interleaved_trials_merge_in_order():
    # items 0 and 1 alternate, so merging has to interleave the two trial lists
    dataset = WCRPDataset([0], [[True] * 6], [[0, 1, 1, 0, 1, 0]], [0, 0], num_students=1, num_items=2)
    ledger = PartitionLedger(dataset, RandomSource(0))
    skill = ledger.new_skill_id()
    ledger.assign(1, skill, True)
    ledger.assign(0, skill, False)
    assert ledger.trials(skill) == {0: [0, 1, 2, 3, 4, 5]}


def test_corrupted_ledger_is_reported(ledger):
    ledger.skills[0].size = 5
    with pytest.raises(RuntimeError):
        ledger.check_invariants()


def test_unsorted_trials_are_reported(ledger):
    ledger.skills[1].trials[0] = [4, 2]
    with pytest.raises(RuntimeError):
        ledger.check_invariants()


def test_unknown_seated_skill_is_reported(ledger):
    ledger.seating[3] = 42
    with pytest.raises(RuntimeError):
        ledger.check_invariants()
