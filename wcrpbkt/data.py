"""
Implements the immutable dataset index consumed by the sampler.
Precomputes, once per chain, all lookups that avoid rescanning student histories during MCMC.
"""
import numpy as np


class WCRPDataset:
    """Read-only view of the practice data of one chain.

    Attributes
    ----------
    recall_sequences : list of lists
        recall_sequences[student][trial] is True if the student answered correctly.
    item_sequences : list of lists
        item_sequences[student][trial] is the item practiced at that trial.
    expert_labels : (num_items,) ndarray
        Expert-provided skill label of every item, dense integers starting at 0.
    train_students : frozenset
        Students whose data affect the chain state. All others are held out.
    num_students : int
    num_items : int
    num_expert_skills : int
        Size of the expert label vocabulary, i.e. 1 + max(expert_labels).
    trials_studied : list of dicts
        trials_studied[student][item] is the ascending list of trials where the student practiced the item.
    first_encounter : list of dicts
        first_encounter[student][item] is the first trial where the student practiced the item.
    students_who_studied : list of lists
        students_who_studied[item] is the ascending list of TRAINING students who ever practiced the item.
    all_first_encounters : list of lists
        all_first_encounters[item][k] is the first encounter of item by students_who_studied[item][k].
    """

    def __init__(self, train_students, recall_sequences, item_sequences, expert_labels, num_students, num_items):
        """Inits the WCRPDataset and validates the inputs."""
        if len(train_students) == 0:
            raise ValueError('The training set must contain at least one student')
        if len(expert_labels) == 0:
            raise ValueError('Expert-provided skill labels must not be empty')
        if len(expert_labels) != num_items:
            raise ValueError('There has to be exactly one expert-provided skill label per item')
        if len(recall_sequences) != num_students or len(item_sequences) != num_students:
            raise ValueError('There has to be one recall and one item sequence per student')

        self.recall_sequences = [tuple(bool(r) for r in seq) for seq in recall_sequences]
        self.item_sequences = [tuple(int(i) for i in seq) for seq in item_sequences]
        self.expert_labels = np.asarray(expert_labels, dtype=int)
        self.expert_labels.setflags(write=False)
        self.train_students = frozenset(int(s) for s in train_students)
        self.num_students = num_students
        self.num_items = num_items

        if self.expert_labels.min() < 0:
            raise ValueError('Expert-provided skill labels must be non-negative')
        if min(self.train_students) < 0 or max(self.train_students) >= num_students:
            raise ValueError('Training student ids must lie in [0, num_students)')
        self.num_expert_skills = int(self.expert_labels.max()) + 1

        self._index_trials()
        self._index_students()

    def _index_trials(self):
        """For each student-item pair, figures out the trials it was studied."""
        self.trials_studied = []
        self.first_encounter = []
        for student in range(self.num_students):
            recalls = self.recall_sequences[student]
            items = self.item_sequences[student]
            if len(recalls) != len(items):
                raise ValueError(f'Recall and item sequences of student {student} differ in length')
            trials = {}
            for trial, item in enumerate(items):
                if item < 0 or item >= self.num_items:
                    raise ValueError(f'Item id {item} of student {student} is out of range')
                trials.setdefault(item, []).append(trial)
            self.trials_studied.append(trials)
            self.first_encounter.append({item: t[0] for item, t in trials.items()})

    def _index_students(self):
        """For each item, figures out which training students studied it and when they did first."""
        self.students_who_studied = [[] for _ in range(self.num_items)]
        self.all_first_encounters = [[] for _ in range(self.num_items)]
        for student in sorted(self.train_students):
            for item, first in sorted(self.first_encounter[student].items()):
                self.students_who_studied[item].append(student)
                self.all_first_encounters[item].append(first)

    @property
    def items_without_training_data(self):
        """Items no training student ever practiced."""
        return [item for item in range(self.num_items) if not self.students_who_studied[item]]

    def num_trials(self, student):
        return len(self.item_sequences[student])
