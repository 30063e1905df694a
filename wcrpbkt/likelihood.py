"""
Contains the likelihood engine evaluating the knowledge tracing observation model.

Each skill is a two-state HMM. Per student and skill, the belief p_hat of being in the learned
state starts at psi, predicts a correct answer with probability pi0*(1-p_hat) + pi1*p_hat and
is updated by exact filtering after every trial of that skill (see params.update_belief).
"""
import numpy as np

from .constants import TOL
from .params import predict_correct, update_belief


class LikelihoodEngine:
    """Evaluates data log-likelihoods under the current chain state.

    Holds no mutable state of its own; it only reads the dataset and the ledger.

    Attributes
    ----------
    dataset : WCRPDataset
    ledger : PartitionLedger
    """

    def __init__(self, dataset, ledger):
        """Inits the LikelihoodEngine with dataset and ledger."""
        self.dataset = dataset
        self.ledger = ledger

    def skill_log_likelihood(self, skill, students, start_trials, init_p_hat=None):
        """Log-likelihood of the trials of one skill for a set of students.

        For every student only trials at or after its start trial contribute.
        Without init_p_hat the belief is replayed from psi over all of the student's trials
        of the skill (evaluation from scratch).
        With init_p_hat the belief at the start trial is taken from the cache and earlier
        trials are skipped (evaluation from a cached belief, see cache_p_hat). In this mode
        an inactive skill contributes 0 and so does a student without trials of the skill.

        Arguments
        ---------
        skill : int
        students : list
            Training students who ever practiced an item of the skill.
        start_trials : list
            start_trials[k] is the first trial of students[k] to include.
        init_p_hat : list of dicts (default=None)
            init_p_hat[k][skill] is the belief of students[k] right before start_trials[k].

        Returns
        -------
        log_likelihood : float
        """
        if init_p_hat is not None and skill not in self.ledger.skills:
            return 0.0
        record = self.ledger.skills[skill]
        params = record.params
        pi0, pi1, mu = params.pi0, params.pi1, params.mu
        recalls = self.dataset.recall_sequences

        log_lik = 0.0
        for k, student in enumerate(students):
            trials = record.trials.get(student)
            if trials is None:
                if init_p_hat is None:
                    raise KeyError(f'Student {student} has no trials of skill {skill}')
                # we likely unassigned the only item the student had at this skill
                continue
            start = start_trials[k]
            p_hat = params.psi if init_p_hat is None else init_p_hat[k].get(skill, params.psi)
            student_log_lik = 0.0
            for trial in trials:
                if trial < start:
                    if init_p_hat is not None:
                        continue
                    p_hat = update_belief(pi0, pi1, mu, p_hat, recalls[student][trial])
                    continue
                correct = recalls[student][trial]
                p_correct = predict_correct(pi0, pi1, p_hat)
                student_log_lik += np.log(p_correct if correct else 1.0 - p_correct)
                p_hat = update_belief(pi0, pi1, mu, p_hat, correct)
            log_lik += _clamp_student(student_log_lik)
        return _clamp_total(log_lik)

    def singleton_log_likelihoods(self, item, pool):
        """Log-likelihood of an item forming a skill on its own, under every parameterization in a pool.

        Arguments
        ---------
        item : int
        pool : BKTParams
            Stacked parameters holding (n,) arrays (see params.stack_params).

        Returns
        -------
        log_likelihoods : (n,) ndarray
        """
        pi0, pi1, mu = pool.pi0, pool.pi1, pool.mu
        log_lik = np.zeros_like(pool.psi)
        for student in self.dataset.students_who_studied[item]:
            recalls = self.dataset.recall_sequences[student]
            p_hat = pool.psi
            student_log_lik = np.zeros_like(pool.psi)
            for trial in self.dataset.trials_studied[student][item]:
                correct = recalls[trial]
                p_correct = predict_correct(pi0, pi1, p_hat)
                student_log_lik += np.log(p_correct if correct else 1.0 - p_correct)
                p_hat = update_belief(pi0, pi1, mu, p_hat, correct)
            if not np.all(np.isfinite(student_log_lik)):
                raise FloatingPointError(f'Non-finite singleton log-likelihood for item {item}')
            log_lik += np.minimum(student_log_lik, 0.0)
        return log_lik

    def cache_p_hat(self, student, end_trial):
        """Replays trials 0, ..., end_trial-1 of a student and returns the belief per skill at that point.

        Skills the student has not practiced yet are absent from the returned dict; their belief is psi.
        """
        recalls = self.dataset.recall_sequences[student]
        items = self.dataset.item_sequences[student]
        seating = self.ledger.seating
        p_hat = {}
        for trial in range(end_trial):
            skill = seating[items[trial]]
            params = self.ledger.skills[skill].params
            current = p_hat.get(skill, params.psi)
            p_hat[skill] = update_belief(params.pi0, params.pi1, params.mu, current, recalls[trial])
        return p_hat

    def data_log_likelihood(self, student, start_trial=0):
        """Log-likelihood of a student's trials at or after start_trial, replaying the full history over all skills.

        Returns
        -------
        log_likelihood : float
        num_trials : int
            The length of the student's history.
        """
        recalls = self.dataset.recall_sequences[student]
        items = self.dataset.item_sequences[student]
        seating = self.ledger.seating
        p_hat = {}
        log_lik = 0.0
        for trial, (item, correct) in enumerate(zip(items, recalls)):
            skill = seating[item]
            params = self.ledger.skills[skill].params
            current = p_hat.get(skill, params.psi)
            if trial >= start_trial:
                p_correct = predict_correct(params.pi0, params.pi1, current)
                log_lik += np.log(p_correct if correct else 1.0 - p_correct)
            p_hat[skill] = update_belief(params.pi0, params.pi1, params.mu, current, correct)
        return _clamp_total(log_lik), len(items)

    def full_data_log_likelihood(self, is_training=True):
        """Log-likelihood of all training (or all held-out) students and the number of trials involved."""
        log_lik = 0.0
        num_trials = 0
        for student in range(self.dataset.num_students):
            if (student in self.dataset.train_students) != is_training:
                continue
            student_log_lik, n = self.data_log_likelihood(student)
            log_lik += student_log_lik
            num_trials += n
        return log_lik, num_trials


def _clamp_student(log_lik):
    """Clamps the small positive values the cached belief occasionally produces."""
    if not np.isfinite(log_lik):
        raise FloatingPointError('Non-finite student log-likelihood')
    return min(log_lik, 0.0)


def _clamp_total(log_lik):
    if not np.isfinite(log_lik):
        raise FloatingPointError('Non-finite log-likelihood')
    if log_lik > TOL:
        raise FloatingPointError(f'Positive log-likelihood {log_lik}')
    return min(log_lik, 0.0)
