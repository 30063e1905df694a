"""
WCRP-BKT
========

Bayesian nonparametric discovery of skills for Bayesian Knowledge Tracing.

Items are clustered into latent skills with a weighted Chinese restaurant process (WCRP)
that is biased towards expert-provided skill labels, while every skill carries its own
two-state HMM (knowledge tracing). Both are inferred jointly with Markov chain Monte Carlo.

The implementation includes
    - The MixtureWCRP chain with its collapsed Gibbs resweep of the partition.
    - The partition ledger, the incremental likelihood engine and the WCRP seating probabilities.
    - Slice samplers for the BKT parameters and the WCRP hyperparameters.
    - A cross-validation driver running one independent chain per replication and fold.
"""

from .params import BKTParams
from .generator import RandomSource
from .data import WCRPDataset
from .ledger import PartitionLedger
from .likelihood import LikelihoodEngine
from .mixture import MixtureWCRP
from .crossval import WCRPCrossValidator
