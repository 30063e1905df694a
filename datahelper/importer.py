"""
Contains callables to load a practice dataset and a fold assignment file.
"""
import numpy as np
import pandas as pd


DATASET_COLUMNS = ['user_id', 'item_id', 'skill_id', 'correct']


class WCRPImporter:
    """Class returning a callable for importing a practice dataset.

    The __call__ method reads a whitespace-delimited file with the columns
    student id, item id, expert-provided skill id and correctness (0/1).
    All ids are assumed to start at 0 and be contiguous. Rows are in temporal order within each student.

    Arguments
    ---------
    path : str or Path
        Path to the data file.
    verbose : bool (default=True)
        Should a summary of the dataset be printed?

    Returns
    -------
    df : pd.DataFrame
        DataFrame with the columns user_id, item_id, skill_id and correct.
    """

    def __call__(self, path, verbose=True):
        df = pd.read_csv(path, sep=r'\s+', header=None, names=DATASET_COLUMNS, dtype='int64')
        if (df[DATASET_COLUMNS] < 0).any().any():
            raise ValueError(f'{path} contains negative ids')
        if not df['correct'].isin([0, 1]).all():
            raise ValueError(f'{path} contains correctness values other than 0 and 1')
        if verbose:
            num_students, num_items, num_skills = (df[col].max() + 1 for col in DATASET_COLUMNS[:3])
            print(f'dataset has {num_students} students, {num_items} items, '
                  f'and {num_skills} expert-provided skills')
        return df


def to_sequences(df):
    """Converts a dataset DataFrame into the sequences the sampler consumes.

    Arguments
    ---------
    df : pd.DataFrame
        Output of WCRPImporter, rows ordered in time within each student.

    Returns
    -------
    recall_sequences : list of lists
        recall_sequences[student][trial] is True for a correct answer.
    item_sequences : list of lists
        item_sequences[student][trial] is the item practiced.
    expert_labels : (num_items,) ndarray
        The expert-provided skill of every item (the last occurrence wins).
    num_students : int
    num_items : int
    """
    num_students = int(df['user_id'].max()) + 1
    num_items = int(df['item_id'].max()) + 1
    recall_sequences = [[] for _ in range(num_students)]
    item_sequences = [[] for _ in range(num_students)]
    for student, group in df.groupby('user_id', sort=True):
        recall_sequences[student] = group['correct'].astype(bool).tolist()
        item_sequences[student] = group['item_id'].tolist()

    expert_labels = np.full(num_items, -1, dtype=int)
    last = df.drop_duplicates('item_id', keep='last')
    expert_labels[last['item_id'].values] = last['skill_id'].values
    if (expert_labels < 0).any():
        missing = np.flatnonzero(expert_labels < 0).tolist()
        raise ValueError(f'Item ids are not contiguous, missing: {missing}')
    return recall_sequences, item_sequences, expert_labels, num_students, num_items


class FoldImporter:
    """Class returning a callable for importing the training / test splits.

    Each line of the file is one replication and holds one whitespace-separated fold number per student.

    Arguments
    ---------
    path : str or Path
    num_students : int
    verbose : bool (default=True)

    Returns
    -------
    fold_nums : (n_replications, num_students) ndarray
    num_folds : int
    """

    def __call__(self, path, num_students, verbose=True):
        # an empty file raises pandas' EmptyDataError, a ValueError
        df = pd.read_csv(path, sep=r'\s+', header=None, dtype='int64', skip_blank_lines=True)
        if df.empty:
            raise ValueError(f'{path} contains no replications')
        if df.shape[1] != num_students:
            raise ValueError(f'Expected {num_students} fold numbers per line, got {df.shape[1]}')
        fold_nums = df.values
        if (fold_nums < 0).any():
            raise ValueError('Fold numbers must be non-negative')
        num_folds = int(fold_nums.max()) + 1
        if verbose:
            print(f'# replications to run = {fold_nums.shape[0]}')
            print(f'# folds per replication = {num_folds}')
        return fold_nums, num_folds
