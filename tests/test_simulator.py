import numpy as np
import pytest

from simulator import Simulator


def test_sample_students_layout():
    sim = Simulator([0, 0, 1], l0=0.2, transition=[0.1, 0.3], slip=0.1, guess=0.2, min_id=5, random_state=0)
    df, learning = sim.sample_students(4, 12)
    assert list(df.columns) == ["user_id", "item_id", "skill_id", "correct"]
    assert len(df) == 48
    assert sorted(df["user_id"].unique()) == [5, 6, 7, 8]
    assert df["item_id"].between(0, 2).all()
    assert df["correct"].isin([0, 1]).all()
    assert (df["skill_id"] == np.array([0, 0, 1])[df["item_id"]]).all()
    assert learning.shape == (4, 2)


def test_noisy_expert_labels_are_written():
    sim = Simulator([0, 1], 0.5, 0.1, 0.1, 0.2, expert_labels=[1, 1], random_state=1)
    df, _ = sim.sample_students(2, 5)
    assert (df["skill_id"] == 1).all()


def test_learned_students_never_fail():
    sim = Simulator([0], l0=1.0, transition=0.0, slip=0.0, guess=0.0, random_state=2)
    df, learning = sim.sample_students(3, 10)
    assert df["correct"].all()
    assert (learning == 0).all()


def test_invalid_simulator():
    with pytest.raises(ValueError):
        Simulator([0, 1], 0.5, 0.1, 0.1, 0.2, expert_labels=[0])
    with pytest.raises(ValueError):
        Simulator([0, 1], 0.5, 0.1, slip=0.6, guess=0.5)
