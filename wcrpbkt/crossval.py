"""
Provides a cross-validation driver running one independent MixtureWCRP chain per (replication, test fold).
"""
import pickle

import numpy as np
import pandas as pd
from tqdm import tqdm

from datahelper.importer import to_sequences
from datahelper.postprocess import predictions_frame, skill_labels_frame, evaluate_predictions
from datahelper.preprocess import split_students
from .generator import RandomSource
from .mixture import MixtureWCRP


class WCRPCrossValidator:
    """Class to fit and evaluate the model across replications and folds.

    Every (replication, fold) pair gets a freestanding chain with its own RandomSource,
    spawned from one base seed, so the chains share no mutable state.

    Attributes
    ----------
    beta : float
        Initial value of beta in [0, 1].
    init_alpha_prime : float or None
        Fixed value of alpha'. If None, alpha' is drawn from its prior and inferred.
    infer_beta : bool (default=False)
    num_iterations : int (default=200)
    burn : int (default=100)
    num_subsamples : int (default=2000)
    dump_skills : bool (default=False)
        Whether the sampled skill labels of every chain should be kept.
    seed : int (default=None)
    predictions_ : pd.DataFrame (init=None)
        Posterior mean predictions for the held-out trials of every chain.
    skill_labels_ : pd.DataFrame (init=None)
        Sampled skill labels of every chain, only filled if dump_skills.
    most_likely_skill_labels : list (init=[])
        The most likely skill labels of every chain.
    traces : list (init=[])
        The trace_ DataFrame of every chain.
    """

    def __init__(self, beta, init_alpha_prime=None, infer_beta=False, num_iterations=200, burn=100,
                 num_subsamples=2000, dump_skills=False, seed=None):
        """Inits the WCRPCrossValidator with the chain settings."""
        if burn < 0 or num_iterations <= burn:
            raise ValueError('Need 0 <= burn < num_iterations')
        self.beta = beta
        self.init_alpha_prime = init_alpha_prime
        self.infer_beta = infer_beta
        self.num_iterations = num_iterations
        self.burn = burn
        self.num_subsamples = num_subsamples
        self.dump_skills = dump_skills
        self.seed = seed
        self.predictions_ = None
        self.skill_labels_ = None
        self.most_likely_skill_labels = []
        self.traces = []

    @property
    def infer_alpha_prime(self):
        return self.init_alpha_prime is None

    def cross_validate(self, df, fold_nums, num_folds, verbose=True):
        """Runs one chain per (replication, test fold).

        Arguments
        ---------
        df : pd.DataFrame
            Dataset as returned by WCRPImporter.
        fold_nums : (n_replications, num_students) ndarray
            As returned by FoldImporter or make_folds.
        num_folds : int
        verbose : bool (default=True)
            Should per-iteration chain information be printed?
        """
        recall_sequences, item_sequences, expert_labels, num_students, num_items = to_sequences(df)
        fold_nums = np.atleast_2d(fold_nums)
        if fold_nums.shape[1] != num_students:
            raise ValueError('fold_nums needs one column per student')

        runs = [(r, f) for r in range(fold_nums.shape[0]) for f in range(num_folds)]
        seeds = np.random.SeedSequence(self.seed).spawn(len(runs))
        predictions, skill_labels = [], []
        for (replication, test_fold), seed in tqdm(zip(runs, seeds), total=len(runs)):
            train_students, test_students = split_students(fold_nums[replication], test_fold, num_folds)
            model = MixtureWCRP(train_students, recall_sequences, item_sequences, expert_labels, self.beta,
                                init_alpha_prime=self.init_alpha_prime, num_students=num_students,
                                num_items=num_items, num_subsamples=self.num_subsamples,
                                generator=RandomSource(seed), verbose=verbose)
            model.run_mcmc(self.num_iterations, self.burn, self.infer_beta, self.infer_alpha_prime)

            # a single fold has no held-out students, so report the training fit
            students = test_students if num_folds > 1 else train_students
            predictions.append(predictions_frame(model, students, replication, test_fold))
            if self.dump_skills:
                skill_labels.append(skill_labels_frame(model.get_sampled_skill_labels(), replication, test_fold))
            self.most_likely_skill_labels.append(model.get_most_likely_skill_labels())
            trace = model.trace_
            trace.insert(0, 'fold', test_fold)
            trace.insert(0, 'replication', replication)
            self.traces.append(trace)

        self.predictions_ = pd.concat(predictions, ignore_index=True)
        if self.dump_skills:
            self.skill_labels_ = pd.concat(skill_labels, ignore_index=True)

    def evaluate(self):
        """Evaluation metrics per (replication, fold) and over all held-out trials.

        Returns
        -------
        pd.DataFrame
            One row per (replication, fold) plus a final row with replication = fold = 'all'.
        """
        if self.predictions_ is None:
            raise RuntimeError('Call cross_validate first')
        rows = []
        for (replication, fold), group in self.predictions_.groupby(['replication', 'fold']):
            rows.append({'replication': replication, 'fold': fold, **evaluate_predictions(group)})
        rows.append({'replication': 'all', 'fold': 'all', **evaluate_predictions(self.predictions_)})
        return pd.DataFrame(rows)

    def save(self, filename):
        """Saves the instance as pickle file."""
        with open(filename, 'wb') as out:
            pickle.dump(self, out)
