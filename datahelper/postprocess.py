"""
Postprocesses fitted chains: prediction tables, sampled skill labels and evaluation metrics.
"""
import numpy as np
import pandas as pd
from sklearn.metrics import log_loss, roc_auc_score


def predictions_frame(model, students, replication=0, fold=0):
    """Collects the posterior mean predictions of a fitted MixtureWCRP for every trial of the given students.

    Arguments
    ---------
    model : MixtureWCRP
        A chain on which run_mcmc has been called.
    students : list
        Students to include, typically the held-out ones.
    replication : int (default=0)
    fold : int (default=0)

    Returns
    -------
    df : pd.DataFrame
        Columns: replication, fold, user_id, trial, item_id, correct, p_correct.
    """
    rows = []
    dataset = model.dataset
    for student in students:
        for trial, (item, correct) in enumerate(zip(dataset.item_sequences[student],
                                                    dataset.recall_sequences[student])):
            rows.append((replication, fold, student, trial, item, int(correct),
                         model.get_estimated_recall_prob(student, trial)))
    columns = ['replication', 'fold', 'user_id', 'trial', 'item_id', 'correct', 'p_correct']
    return pd.DataFrame(rows, columns=columns)


def skill_labels_frame(skill_label_samples, replication=0, fold=0):
    """Long format of sampled skill labels, one row per (sample, item)."""
    samples = np.asarray(skill_label_samples)
    num_samples, num_items = samples.shape
    return pd.DataFrame({
        'replication': replication,
        'fold': fold,
        'sample': np.repeat(np.arange(num_samples), num_items),
        'item_id': np.tile(np.arange(num_items), num_samples),
        'skill': samples.ravel(),
    })


def evaluate_predictions(df):
    """Scores predicted probabilities of correct answers.

    Arguments
    ---------
    df : pd.DataFrame
        Containing the columns correct and p_correct.

    Returns
    -------
    dict
        n_trials, cross_entropy, auc (NaN if only one outcome occurs) and accuracy.
    """
    if df.empty:
        return {'n_trials': 0, 'cross_entropy': np.nan, 'auc': np.nan, 'accuracy': np.nan}
    y = df['correct'].values
    p = df['p_correct'].values
    auc = roc_auc_score(y, p) if len(np.unique(y)) > 1 else np.nan
    return {
        'n_trials': len(df),
        'cross_entropy': log_loss(y, p, labels=[0, 1]),
        'auc': auc,
        'accuracy': np.mean((p >= 0.5) == y),
    }


def coassignment_matrix(skill_label_samples):
    """Posterior probability that two items belong to the same skill.

    Arguments
    ---------
    skill_label_samples : list of (num_items,) array-likes

    Returns
    -------
    (num_items, num_items) ndarray
    """
    samples = np.asarray(skill_label_samples)
    if samples.ndim != 2 or samples.shape[0] == 0:
        raise ValueError('Need at least one sample of skill labels')
    same = samples[:, :, None] == samples[:, None, :]
    return same.mean(axis=0)
