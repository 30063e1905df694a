import numpy as np
import pytest

from wcrpbkt import MixtureWCRP, RandomSource


def all_correct_after_first_try(num_trials=20):
    """Two students alternating between two items that share an expert label."""
    items = [[t % 2 for t in range(num_trials)], [(t + 1) % 2 for t in range(num_trials)]]
    recalls = [[t > 0 for t in range(num_trials)] for _ in range(2)]
    return items, recalls


@pytest.mark.parametrize("kwargs", [
    {"beta": -0.1},
    {"beta": 1.5},
    {"num_subsamples": 0},
    {"init_alpha_prime": 0.0},
])
def test_invalid_configuration(make_model, kwargs):
    with pytest.raises(ValueError):
        make_model(**kwargs)


def test_invalid_burn(make_model):
    model = make_model()
    with pytest.raises(ValueError):
        model.run_mcmc(10, 10)
    with pytest.raises(ValueError):
        model.run_mcmc(10, -1)


def test_queries_before_sampling_raise(make_model):
    model = make_model()
    with pytest.raises(RuntimeError):
        model.get_estimated_recall_prob(0, 0)
    with pytest.raises(RuntimeError):
        model.get_sampled_skill_labels()
    with pytest.raises(RuntimeError):
        model.get_most_likely_skill_labels()
    with pytest.raises(RuntimeError):
        model.get_sampled_skill_parameters()


def test_initial_state_follows_expert_labels(make_model):
    model = make_model()
    model.check_state()
    assert model.num_skills == 2
    assert model.ledger.seating[0] == model.ledger.seating[1]
    assert model.ledger.seating[2] == model.ledger.seating[3]
    assert model.ledger.seating[0] != model.ledger.seating[2]
    assert model.singleton_skill_data_lp.shape == (4, 50)
    assert np.all(model.singleton_skill_data_lp <= 0)


def test_expert_labels_are_kept_when_beta_is_one():
    items, recalls = all_correct_after_first_try()
    model = MixtureWCRP([0, 1], recalls, items, [0, 0], beta=1.0, generator=RandomSource(4))
    assert model.use_expert_labels
    assert model.singleton_skill_data_lp is None

    model.run_mcmc(100, 20)
    for labels in model.get_sampled_skill_labels():
        assert labels.tolist() == [0, 0]
    params = model.get_sampled_skill_parameters()
    assert len(params) == 80
    assert params["pi1"].mean() > 0.9
    assert np.all(params["guess"] <= 1 - params["slip"])

    with pytest.raises(RuntimeError):
        model.gibbs_resample_skill(0)


def test_gibbs_step_keeps_state_consistent(make_model):
    model = make_model()
    for _ in range(5):
        for item in range(4):
            model.gibbs_resample_skill(item)
            model.check_state()
    assert 1 <= model.num_skills <= 4


def test_unassigned_item_is_reported(make_model):
    model = make_model()
    model.ledger.unassign(3, model.ledger.seating[3])
    with pytest.raises(RuntimeError):
        model.check_state()


def test_run_records_samples(make_model):
    model = make_model(verbose=True)
    model.run_mcmc(30, 10)
    model.check_state()

    trace = model.trace_
    assert len(trace) == 30
    assert trace["iteration"].tolist() == list(range(1, 31))
    assert list(trace.columns) == ["iteration", "seconds", "beta", "alpha_prime", "num_skills",
                                   "train_ll", "cross_entropy"]
    assert np.all(trace["train_ll"] <= 0)
    assert trace["beta"].iloc[-1] == pytest.approx(0.5)

    samples = model.get_sampled_skill_labels()
    assert len(samples) == 20
    for labels in samples:
        # dense ids in order of first occurrence
        assert labels[0] == 0
        assert set(labels.tolist()) == set(range(labels.max() + 1))
        assert np.all(np.diff(np.maximum.accumulate(labels)) <= 1)

    for student, sequence in enumerate(model.dataset.item_sequences):
        for trial in range(len(sequence)):
            assert 0 < model.get_estimated_recall_prob(student, trial) < 1


def test_most_likely_skill_labels(make_model):
    model = make_model()
    model.run_mcmc(20, 5)
    best = model.get_most_likely_skill_labels()
    assert best.tolist() == model.get_most_likely_skill_labels().tolist()

    index = int(np.argmax(model.recorder.train_ll_samples))
    assert best.tolist() == model.get_sampled_skill_labels()[index].tolist()

    best[:] = 99
    assert not np.any(model.get_most_likely_skill_labels() == 99)
    model.get_sampled_skill_labels()[0][:] = 99
    assert not np.any(model.get_sampled_skill_labels()[0] == 99)


def test_same_seed_same_chain(make_model):
    first, second = make_model(seed=21), make_model(seed=21)
    first.run_mcmc(15, 5)
    second.run_mcmc(15, 5)
    assert first.trace_["train_ll"].tolist() == second.trace_["train_ll"].tolist()
    assert first.trace_["num_skills"].tolist() == second.trace_["num_skills"].tolist()
    for a, b in zip(first.get_sampled_skill_labels(), second.get_sampled_skill_labels()):
        assert a.tolist() == b.tolist()


def test_fixed_alpha_prime_is_kept(make_model):
    model = make_model(init_alpha_prime=2.5)
    model.run_mcmc(5, 0, infer_alpha_prime=False)
    assert np.allclose(model.trace_["alpha_prime"], 2.5)


def test_beta_is_inferred_within_bounds(make_model):
    model = make_model(beta=0.3)
    model.run_mcmc(20, 0, infer_gamma=True)
    assert np.all((model.trace_["beta"] >= 0) & (model.trace_["beta"] <= 1 - np.exp(-8.0) + 1e-12))


def test_partition_moves_without_expert_bias(make_model):
    model = make_model(beta=0.0, seed=3)
    model.run_mcmc(200, 20)
    partitions = {tuple(labels) for labels in model.get_sampled_skill_labels()}
    assert len(partitions) > 1


def test_unrelated_items_can_be_split():
    # item 0 is always answered correctly, item 1 never, and no student practices both
    items = [[0] * 10, [1] * 10]
    recalls = [[True] * 10, [False] * 10]
    model = MixtureWCRP([0, 1], recalls, items, [0, 0], beta=0.0, num_subsamples=100, generator=RandomSource(9))
    model.run_mcmc(520, 20)
    assert any(labels.tolist() == [0, 1] for labels in model.get_sampled_skill_labels())


def test_held_out_students_do_not_enter_the_state(make_model):
    model = make_model(train_students=[0, 1, 2])
    assert model.dataset.students_who_studied[0] == [0, 1, 2]
    model.run_mcmc(10, 2)
    ll, n = model.full_data_log_likelihood(is_training=False)
    assert n == 5
    assert 0 < model.get_estimated_recall_prob(3, 4) < 1


@pytest.mark.slow
def test_stronger_expert_bias_favours_expert_partition(make_model):
    expert = [0, 0, 1, 1]

    def expert_fraction(beta, seed):
        model = make_model(beta=beta, seed=seed, init_alpha_prime=1.0)
        model.run_mcmc(600, 100, infer_alpha_prime=False)
        return np.mean([labels.tolist() == expert for labels in model.get_sampled_skill_labels()])

    seeds = [8, 17, 26, 35]
    biased = np.mean([expert_fraction(0.99, seed) for seed in seeds])
    unbiased = np.mean([expert_fraction(0.0, seed) for seed in seeds])
    assert biased > unbiased
