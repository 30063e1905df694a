"""
Univariate slice samplers (stepping out and shrinkage, Neal 2003).

Both samplers take a rescoring function: setting the parameter to a trial value and
re-evaluating the target is the caller's business, so the same routine serves the BKT
parameters (rescored by the likelihood engine) and the WCRP hyperparameters (rescored
by the seating probability).
"""
import numpy as np

from .constants import TOL, ONE_MINUS_TOL, BKT_BRACKET_WIDTH, MAX_SLICE_STEPS


def slice_sample_bkt_parameter(cur_val, cur_ll, log_likelihood, generator,
                               lower=TOL, upper=ONE_MINUS_TOL, width=BKT_BRACKET_WIDTH):
    """Slice sampling update of a bounded parameter under a uniform prior on [lower, upper].

    Arguments
    ---------
    cur_val : float
        Current value of the parameter.
    cur_ll : float
        Log-likelihood at cur_val.
    log_likelihood : callable
        Maps a value of the parameter to the log-likelihood.
    generator : RandomSource
    lower, upper : float
    width : float
        Initial bracket width.

    Returns
    -------
    (value, log_likelihood) : (float, float) tuple
        The accepted value and its log-likelihood.
    """
    return _slice_sample(cur_val, cur_ll, log_likelihood, generator, lower, upper, width)


def slice_sample_hyperparameter(cur_val, cur_lp, log_prob, prior_log_density, generator, lower, upper, width):
    """Slice sampling update of an unbounded hyperparameter clamped to [lower, upper].

    The target is log_prob(x) + prior_log_density(x).

    Returns
    -------
    (value, log_prob) : (float, float) tuple
        The accepted value and log_prob (without the prior) at that value.
    """
    value, log_target = _slice_sample(cur_val, cur_lp + prior_log_density(cur_val),
                                      lambda x: log_prob(x) + prior_log_density(x),
                                      generator, lower, upper, width)
    return value, log_target - prior_log_density(value)


def _slice_sample(cur_val, cur_lp, log_target, generator, lower, upper, width):
    # exponential(1) jitter of the current log-density
    threshold = cur_lp + np.log(generator.sample_uniform01())
    split = generator.sample_uniform01()
    x_l = max(lower, cur_val - split * width)
    x_r = min(upper, cur_val + (1.0 - split) * width)

    steps = 0
    while x_l >= lower and log_target(x_l) > threshold:
        x_l -= width
        steps = _count_step(steps, 'stepping out')
    x_l = max(x_l, lower)

    while x_r <= upper and log_target(x_r) > threshold:
        x_r += width
        steps = _count_step(steps, 'stepping out')
    x_r = min(x_r, upper)

    steps = 0
    while True:
        proposal = x_l + (x_r - x_l) * generator.sample_uniform01()
        proposal_lp = log_target(proposal)
        if proposal_lp > threshold or proposal == cur_val:
            return proposal, proposal_lp
        if proposal > cur_val:
            x_r = proposal
        else:
            x_l = proposal
        steps = _count_step(steps, 'shrinkage')


def _count_step(steps, phase):
    steps += 1
    if steps >= MAX_SLICE_STEPS:
        raise FloatingPointError(f'Slice sampler exhausted {MAX_SLICE_STEPS} steps during {phase}')
    return steps
