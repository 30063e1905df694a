"""
Contains the partition ledger, the single owner of the item -> skill assignment and the skill lifecycle.
A skill (table) exists iff at least one item is assigned to it.
"""
import heapq
from collections import Counter

import numpy as np

from .constants import UNASSIGNED
from .params import BKTParams


class SkillRecord:
    """Bookkeeping of one active skill.

    Attributes
    ----------
    params : BKTParams
    size : int
        Number of items assigned to the skill.
    trials : dict
        trials[student] is the ascending list of the student's trials belonging to the skill.
        Only training students who practiced an item of the skill are keys.
    label_counts : Counter
        Number of items at the skill per expert-provided label.
    """

    def __init__(self, params):
        self.params = params
        self.size = 0
        self.trials = {}
        self.label_counts = Counter()


class PartitionLedger:
    """Maintains the seating arrangement of items (customers) at skills (tables).

    Skill ids come from a monotonically increasing counter and are never reused.

    Attributes
    ----------
    dataset : WCRPDataset
    generator : RandomSource
        Used to draw the parameters of new skills from the prior.
    seating : (num_items,) ndarray
        seating[item] is the skill id of the item, or UNASSIGNED.
    skills : dict
        Maps the id of every active skill to its SkillRecord.
    tables_ever_instantiated : int
    """

    def __init__(self, dataset, generator):
        """Inits an empty ledger where every item is unassigned."""
        self.dataset = dataset
        self.generator = generator
        self.seating = np.full(dataset.num_items, UNASSIGNED, dtype=int)
        self.skills = {}
        self.tables_ever_instantiated = 0

    @property
    def active_skill_count(self):
        return len(self.skills)

    @property
    def active_skills(self):
        """Ids of all active skills in ascending order."""
        return sorted(self.skills)

    def new_skill_id(self):
        skill = self.tables_ever_instantiated
        self.tables_ever_instantiated += 1
        return skill

    def size(self, skill):
        return self.skills[skill].size

    def params(self, skill):
        return self.skills[skill].params

    def trials(self, skill):
        return self.skills[skill].trials

    def label_counts(self, skill):
        return self.skills[skill].label_counts

    def items_of(self, skill):
        return np.flatnonzero(self.seating == skill)

    def assign(self, item, skill, is_new_skill, params=None):
        """Seats an unassigned item at a skill.

        Arguments
        ---------
        item : int
        skill : int
            Id of an active skill, or an unused id if is_new_skill.
        is_new_skill : bool
            Whether the skill has to be instantiated.
        params : BKTParams (default=None)
            Parameters of a new skill. Drawn from the prior if not provided.
        """
        if self.seating[item] != UNASSIGNED:
            raise ValueError(f'Item {item} is already assigned to skill {self.seating[item]}')
        trials_studied = self.dataset.trials_studied
        if is_new_skill:
            if skill in self.skills:
                raise ValueError(f'Skill {skill} already exists')
            record = SkillRecord(params if params is not None else BKTParams.draw_prior(self.generator))
            self.skills[skill] = record
            for student in self.dataset.students_who_studied[item]:
                record.trials[student] = list(trials_studied[student][item])
        else:
            record = self.skills[skill]
            for student in self.dataset.students_who_studied[item]:
                existing = record.trials.get(student)
                if existing is None:
                    record.trials[student] = list(trials_studied[student][item])
                else:
                    record.trials[student] = list(heapq.merge(existing, trials_studied[student][item]))
        record.size += 1
        record.label_counts[int(self.dataset.expert_labels[item])] += 1
        self.seating[item] = skill

    def unassign(self, item, skill):
        """Removes an item from its skill.

        Returns
        -------
        deleted : bool
            True if the skill lost its last item and was destroyed.
        """
        if self.seating[item] != skill:
            raise ValueError(f'Item {item} is not assigned to skill {skill}')
        record = self.skills[skill]
        record.size -= 1
        self.seating[item] = UNASSIGNED
        if record.size == 0:
            del self.skills[skill]
            return True

        label = int(self.dataset.expert_labels[item])
        record.label_counts[label] -= 1
        if record.label_counts[label] == 0:
            del record.label_counts[label]

        trials_studied = self.dataset.trials_studied
        for student in self.dataset.students_who_studied[item]:
            removed = set(trials_studied[student][item])
            remaining = [t for t in record.trials[student] if t not in removed]
            if remaining:
                record.trials[student] = remaining
            else:
                # the student has no other item of this skill
                del record.trials[student]
        return False

    def check_invariants(self):
        """Raises a RuntimeError if the ledger is inconsistent."""
        assigned = self.seating[self.seating != UNASSIGNED]
        sizes = Counter(assigned.tolist())
        if set(sizes) != set(self.skills):
            raise RuntimeError(f'Seated skills {sorted(sizes)} differ from active skills {self.active_skills}')
        for skill, record in self.skills.items():
            if record.size != sizes[skill]:
                raise RuntimeError(f'Skill {skill} records size {record.size} but seats {sizes[skill]} items')
            for student, trials in record.trials.items():
                if not trials or any(a >= b for a, b in zip(trials, trials[1:])):
                    raise RuntimeError(f'Trials of student {student} at skill {skill} are not strictly ascending')
