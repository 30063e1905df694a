"""
Random number service for a single Markov chain.
Every chain owns its own RandomSource so independent chains never share state.
"""
import numpy as np


class RandomSource:
    """Thin wrapper around numpy's Generator offering the draws the sampler needs.

    Attributes
    ----------
    rng : np.random.Generator
    """

    def __init__(self, seed=None):
        """Inits the RandomSource with an optional seed (int, SeedSequence or None)."""
        self.rng = np.random.default_rng(seed)

    def sample_uniform01(self):
        return self.rng.random()

    def sample_gamma(self, shape, scale):
        return self.rng.gamma(shape, scale)

    def shuffle(self, sequence):
        """Permutes a list or 1-d array in place."""
        self.rng.shuffle(sequence)

    def sample_unnormalized_discrete(self, log_weights):
        """Draws an index from a categorical distribution given by unnormalized log-weights.

        Arguments
        ---------
        log_weights : (n,) array-like
            Log of the (unnormalized) probability of every outcome.

        Returns
        -------
        index : int
        """
        log_weights = np.asarray(log_weights, dtype=float)
        max_weight = np.max(log_weights)
        if not np.isfinite(max_weight):
            raise FloatingPointError('no outcome has a finite log-weight')
        cdf = np.cumsum(np.exp(log_weights - max_weight))
        index = np.searchsorted(cdf, self.sample_uniform01() * cdf[-1], side='right')
        return int(min(index, len(cdf) - 1))
