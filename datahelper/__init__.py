"""
Datahelper
==========

Loading, splitting and postprocessing package for practice datasets fitted with wcrpbkt.

Contains functions and classes for ...
    ... importing a whitespace-delimited practice dataset and a fold assignment file.
    ... generating and applying training / test splits of the students.
    ... postprocessing fitted chains (predictions, sampled skill labels, evaluation metrics).
"""

from .importer import WCRPImporter, FoldImporter, to_sequences
from .preprocess import make_folds, save_folds, split_students
from .postprocess import predictions_frame, skill_labels_frame, evaluate_predictions, coassignment_matrix
