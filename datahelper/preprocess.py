"""
Contains functions to create and apply training / test splits of the students.
"""
import numpy as np
from sklearn.model_selection import KFold


def make_folds(num_students, num_folds=5, num_replications=1, random_state=None):
    """Randomly assigns every student to a fold, independently for every replication.

    Arguments
    ---------
    num_students : int
    num_folds : int (default=5)
    num_replications : int (default=1)
    random_state : int (default=None)

    Returns
    -------
    fold_nums : (num_replications, num_students) ndarray
    """
    if num_folds < 1 or num_folds > num_students:
        raise ValueError('Need 1 <= num_folds <= num_students')
    if num_folds == 1:
        return np.zeros((num_replications, num_students), dtype=int)
    rng = np.random.RandomState(random_state)
    fold_nums = np.zeros((num_replications, num_students), dtype=int)
    for replication in range(num_replications):
        kfold = KFold(num_folds, shuffle=True, random_state=rng)
        for (fold, (_, test_idx)) in enumerate(kfold.split(np.arange(num_students))):
            fold_nums[replication, test_idx] = fold
    return fold_nums


def save_folds(fold_nums, path):
    """Writes fold numbers in the whitespace-delimited format read by FoldImporter."""
    np.savetxt(path, np.atleast_2d(fold_nums), fmt='%d', delimiter=' ')


def split_students(fold_row, test_fold, num_folds):
    """Splits the students of one replication into training and held-out students.

    Arguments
    ---------
    fold_row : (num_students,) array-like
        Fold number of every student.
    test_fold : int
    num_folds : int
        With a single fold all students are used for training.

    Returns
    -------
    (train_students, test_students) : (list, list) tuple
    """
    fold_row = np.asarray(fold_row)
    if num_folds > 1:
        is_test = fold_row == test_fold
    else:
        is_test = np.zeros(len(fold_row), dtype=bool)
    train_students = np.flatnonzero(~is_test).tolist()
    test_students = np.flatnonzero(is_test).tolist()
    if not train_students:
        raise ValueError(f'Fold {test_fold} leaves no training students')
    if num_folds > 1 and not test_students:
        raise ValueError(f'Fold {test_fold} contains no students')
    return train_students, test_students
