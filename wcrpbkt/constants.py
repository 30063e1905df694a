"""
Numerical constants shared by the sampler.
"""

# BKT breaks down if a parameter is ever exactly 0 or 1
TOL = 1e-6
ONE_MINUS_TOL = 1.0 - TOL

# marks an item whose skill is being resampled
UNASSIGNED = -1

# gamma prior (shape, scale) on alpha'
HYPER_AP1 = 1.0
HYPER_AP2 = 1.0

# slice sampling bounds and initial bracket widths
LOG_ALPHA_PRIME_BOUNDS = (-10.0, 11.0)
LOG_GAMMA_BOUNDS = (-8.0, 0.0)
HYPER_BRACKET_WIDTH = 0.25
BKT_BRACKET_WIDTH = (ONE_MINUS_TOL - TOL) / 10.0
MAX_SLICE_STEPS = 1000

BKT_PARAMETER_NAMES = ('psi', 'mu', 'pi1', 'prop0')
