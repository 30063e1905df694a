"""
Contains the MixtureWCRP class, a Markov chain jointly clustering items into skills and
estimating the knowledge tracing parameters of every skill.

One iteration of the chain, in this order:
    1. slice sampling of the WCRP hyperparameters alpha' and gamma,
    2. slice sampling of the four BKT parameters of every skill,
    3. a collapsed Gibbs resweep of the skill of every item (Neal's algorithm 8),
    4. after burn-in, recording of a posterior sample.
"""
import time

import numpy as np
import pandas as pd
from tqdm import tqdm

from .constants import (TOL, UNASSIGNED, HYPER_AP1, HYPER_AP2, LOG_ALPHA_PRIME_BOUNDS, LOG_GAMMA_BOUNDS,
                        HYPER_BRACKET_WIDTH, BKT_PARAMETER_NAMES)
from .data import WCRPDataset
from .generator import RandomSource
from .ledger import PartitionLedger
from .likelihood import LikelihoodEngine
from .params import BKTParams, stack_params
from .recorder import SampleRecorder
from .seating import compute_k, log_old_table_probability, log_new_table_probability, log_seating_prob
from .slice import slice_sample_bkt_parameter, slice_sample_hyperparameter


def log_loggamma_prior_density(log_gamma):
    """Log of a density proportional to a uniform prior on log(gamma) <= 0."""
    if log_gamma > 0:
        raise ValueError('log_gamma must not be positive')
    return 0.0


def log_logalphaprime_prior_density(log_alpha_prime):
    """Log of a density proportional to a gamma prior on alpha', expressed in log(alpha')."""
    return (HYPER_AP1 - 1.0) * log_alpha_prime - np.exp(log_alpha_prime) / HYPER_AP2


class MixtureWCRP:
    """Bayesian nonparametric mixture of knowledge tracing models with a WCRP prior on the item partition.

    Every instance is one freestanding chain; independent chains (replications, folds) can be
    run in parallel by the caller as long as each gets its own generator.

    Attributes
    ----------
    dataset : WCRPDataset
    generator : RandomSource
    num_subsamples : int
        Size of the pool of auxiliary prior draws approximating the new-skill option.
    use_expert_labels : bool
        True if beta == 1, i.e. the expert labels are used verbatim and neither
        the partition nor the hyperparameters are inferred.
    log_gamma : float
        log(1 - beta).
    log_alpha_prime : float
    ledger : PartitionLedger
    engine : LikelihoodEngine
    recorder : SampleRecorder
    prior_samples : list of BKTParams
        The auxiliary prior draws. Empty if use_expert_labels.
    singleton_skill_data_lp : (num_items, num_subsamples) ndarray or None
        Log-likelihood of each item as a singleton skill under each auxiliary draw.
    """

    def __init__(self, train_students, recall_sequences, item_sequences, expert_labels, beta,
                 init_alpha_prime=None, num_students=None, num_items=None, num_subsamples=2000,
                 generator=None, verbose=False):
        """Inits the chain: seats every item at its expert-provided skill and precomputes the singleton likelihoods.

        Arguments
        ---------
        train_students : iterable
            Ids of the training students.
        recall_sequences : list of lists
            recall_sequences[student][trial] is True for a correct answer.
        item_sequences : list of lists
            item_sequences[student][trial] is the item practiced.
        expert_labels : array-like
            Expert-provided skill of every item, dense integers starting at 0.
        beta : float
            In [0, 1]. 0 is purely data-driven clustering, 1 uses the expert labels verbatim.
        init_alpha_prime : float (default=None)
            Initial alpha'. Drawn from its prior if None.
        num_students : int (default=None)
            Defaults to len(recall_sequences).
        num_items : int (default=None)
            Defaults to len(expert_labels).
        num_subsamples : int (default=2000)
        generator : RandomSource (default=None)
            A fresh unseeded RandomSource is created if None.
        verbose : bool (default=False)
            Should progress information be printed?
        """
        if not 0.0 <= beta <= 1.0:
            raise ValueError(f'beta has to lie in [0, 1], got {beta}')
        if num_subsamples < 1:
            raise ValueError('num_subsamples must be positive')
        if init_alpha_prime is not None and init_alpha_prime <= 0:
            raise ValueError('A fixed alpha\' must be positive')
        num_students = len(recall_sequences) if num_students is None else num_students
        num_items = len(expert_labels) if num_items is None else num_items

        self.dataset = WCRPDataset(train_students, recall_sequences, item_sequences, expert_labels,
                                   num_students, num_items)
        self.generator = generator if generator is not None else RandomSource()
        self.num_subsamples = num_subsamples
        self.verbose = verbose
        # for legacy reasons gamma = 1 - beta and inference is done on log(gamma)
        self.use_expert_labels = abs(1.0 - beta) <= TOL
        self.log_gamma = np.log(1.0 - beta) if not self.use_expert_labels else -np.inf
        if init_alpha_prime is None:
            self.log_alpha_prime = np.log(self.generator.sample_gamma(HYPER_AP1, HYPER_AP2))
        else:
            self.log_alpha_prime = np.log(init_alpha_prime)

        self.ledger = PartitionLedger(self.dataset, self.generator)
        self.engine = LikelihoodEngine(self.dataset, self.ledger)
        self.recorder = SampleRecorder(self.dataset, self.ledger)
        self.trace = []

        self._seat_expert_labels()
        missing = self.dataset.items_without_training_data
        if missing and verbose:
            print(f'warning: {len(missing)} of {num_items} items have no training data')

        self.prior_samples = []
        self.singleton_skill_data_lp = None
        if not self.use_expert_labels:
            self._precompute_singletons()

    def _seat_expert_labels(self):
        """Initializes the seating arrangement to the expert-provided skills."""
        skill_of_label = {}
        for item, label in enumerate(self.dataset.expert_labels):
            if label in skill_of_label:
                self.ledger.assign(item, skill_of_label[label], False)
            else:
                skill_of_label[label] = self.ledger.new_skill_id()
                self.ledger.assign(item, skill_of_label[label], True)

    def _precompute_singletons(self):
        """Draws the auxiliary prior samples and the log-likelihood of every item as a singleton skill under each."""
        self.prior_samples = [BKTParams.draw_prior(self.generator) for _ in range(self.num_subsamples)]
        pool = stack_params(self.prior_samples)
        self.singleton_skill_data_lp = np.zeros((self.dataset.num_items, self.num_subsamples))
        for item in tqdm(range(self.dataset.num_items), disable=not self.verbose, desc='singleton skills'):
            self.singleton_skill_data_lp[item] = self.engine.singleton_log_likelihoods(item, pool)
        self.singleton_skill_data_lp.setflags(write=False)

    def run_mcmc(self, num_iterations, burn, infer_gamma=False, infer_alpha_prime=True):
        """Runs the chain, recording a sample after every iteration past burn-in.

        Arguments
        ---------
        num_iterations : int
        burn : int
            Number of initial iterations to discard. Must be smaller than num_iterations.
        infer_gamma : bool (default=False)
            Should gamma (i.e. beta) be resampled?
        infer_alpha_prime : bool (default=True)
            Should alpha' be resampled?
        """
        if burn < 0 or num_iterations <= burn:
            raise ValueError(f'Need 0 <= burn < num_iterations, got burn={burn} and num_iterations={num_iterations}')

        for it in range(num_iterations):
            begin = time.perf_counter()
            if not self.use_expert_labels:
                self._resample_hyperparameters(infer_gamma, infer_alpha_prime)
            self._resample_skill_parameters()
            if not self.use_expert_labels:
                self._resample_partition()
            elapsed = time.perf_counter() - begin

            train_ll, train_n = self.engine.full_data_log_likelihood(is_training=True)
            self._update_trace(it, elapsed, train_ll, train_n)
            if it >= burn:
                self.recorder.record(train_ll)

    def _resample_hyperparameters(self, infer_gamma, infer_alpha_prime):
        cur_seating_lp = self.log_seating_prob()
        if infer_alpha_prime:
            def score_alpha_prime(value):
                self.log_alpha_prime = value
                return self.log_seating_prob()
            self.log_alpha_prime, cur_seating_lp = slice_sample_hyperparameter(
                self.log_alpha_prime, cur_seating_lp, score_alpha_prime, log_logalphaprime_prior_density,
                self.generator, *LOG_ALPHA_PRIME_BOUNDS, HYPER_BRACKET_WIDTH)
        if infer_gamma:
            def score_gamma(value):
                self.log_gamma = value
                return self.log_seating_prob()
            self.log_gamma, cur_seating_lp = slice_sample_hyperparameter(
                self.log_gamma, cur_seating_lp, score_gamma, log_loggamma_prior_density,
                self.generator, *LOG_GAMMA_BOUNDS, HYPER_BRACKET_WIDTH)

    def _resample_skill_parameters(self):
        """Updates the BKT parameters of every skill in random order."""
        for skill in self.ledger.active_skills:
            # training students affected by the skill and the first trial where they practiced it
            trials = self.ledger.trials(skill)
            students = sorted(trials)
            first_exposures = [trials[student][0] for student in students]
            params = self.ledger.params(skill)

            names = list(BKT_PARAMETER_NAMES)
            self.generator.shuffle(names)
            cur_ll = self.engine.skill_log_likelihood(skill, students, first_exposures)
            for name in names:
                def score(value, name=name):
                    setattr(params, name, value)
                    return self.engine.skill_log_likelihood(skill, students, first_exposures)
                value, cur_ll = slice_sample_bkt_parameter(getattr(params, name), cur_ll, score, self.generator)
                setattr(params, name, value)

    def _resample_partition(self):
        items = list(range(self.dataset.num_items))
        self.generator.shuffle(items)
        for item in items:
            self.gibbs_resample_skill(item)

    def gibbs_resample_skill(self, item):
        """Resamples the skill (table) of one item (customer) with Neal's algorithm 8.

        The new-skill option is approximated by the pool of auxiliary prior draws whose
        singleton likelihoods were precomputed at construction.
        """
        if self.use_expert_labels:
            raise RuntimeError('The partition is fixed to the expert labels when beta == 1')
        cur_skill = self.ledger.seating[item]
        students = self.dataset.students_who_studied[item]
        first_exposures = self.dataset.all_first_encounters[item]
        label = int(self.dataset.expert_labels[item])
        num_expert_skills = self.dataset.num_expert_skills

        self.ledger.unassign(item, cur_skill)

        # each student's belief state right before the first encounter of item
        p_hat = [self.engine.cache_p_hat(s, f) for s, f in zip(students, first_exposures)]

        skills = self.ledger.active_skills
        data_lp_with_item = np.empty(len(skills))
        data_lp_without_item = np.empty(len(skills))
        seating_lp = np.empty(len(skills))
        for k, skill in enumerate(skills):
            self.ledger.assign(item, skill, False)
            data_lp_with_item[k] = self.engine.skill_log_likelihood(skill, students, first_exposures, p_hat)
            self.ledger.unassign(item, skill)
            data_lp_without_item[k] = self.engine.skill_log_likelihood(skill, students, first_exposures, p_hat)
            K = compute_k(self.ledger.label_counts(skill), label, self.log_gamma, num_expert_skills)
            seating_lp[k] = log_old_table_probability(self.ledger.size(skill), K, self.log_gamma, num_expert_skills)

        log_new = log_new_table_probability(self.log_alpha_prime, self.log_gamma, num_expert_skills) - \
            np.log(self.num_subsamples)
        proportional_log_probs = np.concatenate([
            seating_lp + data_lp_with_item - data_lp_without_item,
            log_new + self.singleton_skill_data_lp[item],
        ])

        drawn = self.generator.sample_unnormalized_discrete(proportional_log_probs)
        if drawn >= len(skills):
            subsample = drawn - len(skills)
            self.ledger.assign(item, self.ledger.new_skill_id(), True, params=self.prior_samples[subsample].copy())
        else:
            self.ledger.assign(item, skills[drawn], False)

    def log_seating_prob(self):
        """Joint log-probability of the current seating arrangement under the WCRP."""
        return log_seating_prob(self.ledger.seating, self.dataset.expert_labels, self.log_alpha_prime,
                                self.log_gamma, self.dataset.num_expert_skills)

    def full_data_log_likelihood(self, is_training=True):
        """Log-likelihood and number of trials of the training (or held-out) students under the current state."""
        return self.engine.full_data_log_likelihood(is_training)

    def _update_trace(self, it, elapsed, train_ll, train_n):
        row = {
            'iteration': it + 1,
            'seconds': elapsed,
            'beta': 1.0 - np.exp(self.log_gamma),
            'alpha_prime': np.exp(self.log_alpha_prime),
            'num_skills': self.ledger.active_skill_count,
            'train_ll': train_ll,
            'cross_entropy': -train_ll / train_n if train_n > 0 else np.nan,
        }
        self.trace.append(row)
        if self.verbose:
            print(f'Iteration: {row["iteration"]} ... sec: {elapsed:.2f} ... beta: {row["beta"]:.4f} '
                  f'... skills: {row["num_skills"]} ... train ll: {train_ll:.2f} '
                  f'... cross entropy: {row["cross_entropy"]:.4f}')

    @property
    def trace_(self):
        """Neatly returns the per-iteration chain status in a pd.DataFrame."""
        return pd.DataFrame(self.trace, columns=['iteration', 'seconds', 'beta', 'alpha_prime', 'num_skills',
                                                 'train_ll', 'cross_entropy'])

    @property
    def num_skills(self):
        return self.ledger.active_skill_count

    def get_estimated_recall_prob(self, student, trial):
        """Posterior mean probability that the student answers the trial correctly."""
        return self.recorder.estimated_recall_prob(student, trial)

    def get_sampled_skill_labels(self):
        """Skill id of every item in every retained sample; ids are sample-specific."""
        return self.recorder.sampled_skill_labels()

    def get_most_likely_skill_labels(self):
        """Skill labels of the retained sample with the highest training data log-likelihood."""
        return self.recorder.most_likely_skill_labels()

    def get_sampled_skill_parameters(self):
        """One row per (retained sample, skill) with the skill's BKT parameters and size."""
        return self.recorder.parameters_frame()

    def check_state(self):
        """Raises a RuntimeError if the chain state violates an invariant."""
        self.ledger.check_invariants()
        if np.any(self.ledger.seating == UNASSIGNED):
            raise RuntimeError(f'Items {np.flatnonzero(self.ledger.seating == UNASSIGNED).tolist()} are unassigned')
