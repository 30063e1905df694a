import matplotlib

matplotlib.use("Agg")

import pandas as pd
import pytest

from wcrpbkt import MixtureWCRP, RandomSource
from wcrpbkt.data import WCRPDataset
from wcrpbkt.ledger import PartitionLedger


@pytest.fixture
def practice_data():
    """Four students practicing four items; items 0, 1 carry expert label 0 and items 2, 3 label 1."""
    item_sequences = [
        [0, 1, 2, 0, 3, 1, 2, 3],
        [2, 3, 2, 0, 1, 0],
        [1, 1, 0, 3, 2, 2, 0],
        [3, 0, 2, 1, 3],
    ]
    recall_sequences = [
        [False, False, True, True, False, True, True, True],
        [True, False, True, False, True, True],
        [False, True, True, False, False, True, True],
        [True, True, False, True, True],
    ]
    expert_labels = [0, 0, 1, 1]
    return {
        "train_students": [0, 1, 2, 3],
        "recall_sequences": recall_sequences,
        "item_sequences": item_sequences,
        "expert_labels": expert_labels,
    }


@pytest.fixture
def practice_frame(practice_data):
    """The practice data in the layout of a dataset file."""
    rows = []
    labels = practice_data["expert_labels"]
    for student, (items, recalls) in enumerate(zip(practice_data["item_sequences"],
                                                   practice_data["recall_sequences"])):
        for item, correct in zip(items, recalls):
            rows.append((student, item, labels[item], int(correct)))
    return pd.DataFrame(rows, columns=["user_id", "item_id", "skill_id", "correct"])


@pytest.fixture
def dataset(practice_data):
    return WCRPDataset(practice_data["train_students"], practice_data["recall_sequences"],
                       practice_data["item_sequences"], practice_data["expert_labels"],
                       num_students=4, num_items=4)


@pytest.fixture
def ledger(dataset):
    """A ledger seated at the expert labels: skill 0 holds items 0, 1 and skill 1 holds items 2, 3."""
    ledger = PartitionLedger(dataset, RandomSource(7))
    first, second = ledger.new_skill_id(), ledger.new_skill_id()
    ledger.assign(0, first, True)
    ledger.assign(1, first, False)
    ledger.assign(2, second, True)
    ledger.assign(3, second, False)
    return ledger


@pytest.fixture
def make_model(practice_data):
    def _make_model(beta=0.5, seed=0, num_subsamples=50, train_students=None, **kwargs):
        if train_students is None:
            train_students = practice_data["train_students"]
        return MixtureWCRP(train_students, practice_data["recall_sequences"],
                           practice_data["item_sequences"], practice_data["expert_labels"], beta,
                           num_subsamples=num_subsamples, generator=RandomSource(seed), **kwargs)
    return _make_model
