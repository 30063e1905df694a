"""
Contains the knowledge tracing parameter record of a single skill and the closed-form
two-state filtering equations shared by the likelihood engine and the sample recorder.
"""
import numpy as np

from .constants import TOL, ONE_MINUS_TOL, BKT_PARAMETER_NAMES


class BKTParams:
    """Parameters of the two-state HMM (knowledge tracing) of one skill.

    Attributes
    ----------
    psi : float
        P(L0=1), the probability of knowing the skill before the first practice opportunity.
    mu : float
        P(T), the probability of a transition from unlearned to learned after a trial.
    pi1 : float
        The probability of a correct answer in the learned state, i.e. 1-p(S).
    prop0 : float
        Ratio defining the guess probability p(G) = pi1 * prop0.
        This guarantees p(G) <= 1-p(S) without an explicit ordering constraint.
    """

    def __init__(self, psi, mu, pi1, prop0):
        """Inits the BKTParams class with psi, mu, pi1 and prop0."""
        self.psi = psi
        self.mu = mu
        self.pi1 = pi1
        self.prop0 = prop0

    @classmethod
    def draw_prior(cls, generator):
        """Draws each parameter uniformly at random on [TOL, 1-TOL]."""
        return cls(*(TOL + (ONE_MINUS_TOL - TOL) * generator.sample_uniform01()
                     for _ in BKT_PARAMETER_NAMES))

    @property
    def pi0(self):
        """The guess probability p(G)."""
        return self.pi1 * self.prop0

    def copy(self):
        return BKTParams(self.psi, self.mu, self.pi1, self.prop0)

    def to_array(self):
        return np.array([self.psi, self.mu, self.pi1, self.prop0])

    def __eq__(self, other):
        if not isinstance(other, BKTParams):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name) for name in BKT_PARAMETER_NAMES)

    def __repr__(self):
        return f'BKTParams(psi={self.psi:.4f}, mu={self.mu:.4f}, pi1={self.pi1:.4f}, prop0={self.prop0:.4f})'


def stack_params(params_list):
    """Stacks a list of BKTParams into one BKTParams holding (n,) arrays.

    The filtering functions below are written elementwise, so the stacked record
    evaluates all n parameterizations at once.
    """
    values = np.array([p.to_array() for p in params_list]).reshape(-1, len(BKT_PARAMETER_NAMES))
    return BKTParams(*values.T)


def predict_correct(pi0, pi1, p_hat):
    """Probability of a correct answer given the current belief p_hat of being in the learned state."""
    return pi0 * (1.0 - p_hat) + pi1 * p_hat


def update_belief(pi0, pi1, mu, p_hat, correct):
    """Exact Bayesian filtering update of the belief after observing one outcome.

    The posterior of the learned state given the outcome is combined with the
    unlearned -> learned transition in a single closed-form step.

    Arguments
    ---------
    pi0, pi1, mu : float or ndarray
    p_hat : float or ndarray
        Belief in the learned state before the trial.
    correct : bool
        Outcome of the trial.

    Returns
    -------
    p_hat : float or ndarray
        Belief in the learned state before the next trial of the same skill.
    """
    if correct:
        return (pi1 * p_hat + mu * pi0 * (1.0 - p_hat)) / (pi1 * p_hat + pi0 * (1.0 - p_hat))
    return ((1.0 - pi1) * p_hat + mu * (1.0 - pi0) * (1.0 - p_hat)) / \
        ((1.0 - pi1) * p_hat + (1.0 - pi0) * (1.0 - p_hat))
