import numpy as np
import pandas as pd


class Simulator:
    """
    A class to simulate students practicing items from a BKT model with a known item -> skill partition.
    Each item belongs to exactly one skill and each skill has its own prior, transition, slip and guess.

    Attributes
    ----------
    item_skills : (n_items,) array-like
        The true skill of every item, dense integers starting at 0.
    l0 : float or (n_skills,) array-like
        The priors for the skills. Can be either float for a common prior.
        Or a np.array/tuple/list of length n_skills for skill-individual priors.
    transition : float or (n_skills,) array-like
        The transition probabilities.
    slip : float or (n_skills,) array-like
        The slip probabilities.
    guess : float or (n_skills,) array-like
        The guess probabilities.
    expert_labels : (n_items,) array-like (default=None)
        The skill labels written to the dataset. Defaults to item_skills, i.e. a perfect expert.
    min_id : int (default=0)
        The user_id of the first student to be sampled.
        The consecutive students have user_id min_id+1, min_id+2, ...
    random_state : int (default=None)
    """

    def __init__(self, item_skills, l0, transition, slip, guess, expert_labels=None, min_id=0, random_state=None):
        """Inits a simulator and checks that all sizes agree."""
        self.item_skills = np.asarray(item_skills, dtype=int)
        self.n_items = len(self.item_skills)
        self.n_skills = int(self.item_skills.max()) + 1
        self.l0 = np.broadcast_to(np.asarray(l0, dtype=float), (self.n_skills,))
        self.transition = np.broadcast_to(np.asarray(transition, dtype=float), (self.n_skills,))
        self.slip = np.broadcast_to(np.asarray(slip, dtype=float), (self.n_skills,))
        self.guess = np.broadcast_to(np.asarray(guess, dtype=float), (self.n_skills,))
        self.expert_labels = self.item_skills if expert_labels is None else np.asarray(expert_labels, dtype=int)
        self.min_id = min_id
        self.rng = np.random.default_rng(random_state)

        #Errors
        if len(self.expert_labels) != self.n_items:
            raise ValueError("Number of expert labels does not agree with the number of items")
        if np.any(self.guess > 1 - self.slip):
            raise ValueError("guess must not exceed 1-slip")

    def sample_students(self, n_students, n_exercises):
        """Simulates sequences for multiple students.

        Arguments
        ---------
        n_students : int
            The number of students to simulate.
        n_exercises : int
            The number of exercises to simulate for each student.

        Returns
        -------
        DataFrame
            DataFrame with n_students*n_exercises rows in the layout of the dataset files,
            columns [user_id, item_id, skill_id, correct]. skill_id holds the expert labels.
        (n_students, n_skills) ndarray
            Containing the time for each student skill combination when the skill was learned.
        """
        students = []
        learning_time = []
        for student_id in range(self.min_id, self.min_id + n_students):
            df, learning = self._sample_student(n_exercises, student_id)
            students.append(df)
            learning_time.append(learning)
        students = pd.concat(students, ignore_index=True)
        return students, np.array(learning_time)

    def _sample_student(self, n_exercises, student_id):
        """Simulates a sequence for a single student.

        Returns
        -------
        DataFrame
            The student's rows.
        list
            A list of length n_skills with the time when each skill was learned.
            inf for unlearned skills.
        """
        learned = self.rng.random(self.n_skills) < self.l0
        learning = [0 if x else np.inf for x in learned]
        items = self.rng.integers(self.n_items, size=n_exercises)
        correct = np.zeros(n_exercises, dtype=int)
        for t, item in enumerate(items):
            skill = self.item_skills[item]
            p = 1 - self.slip[skill] if learned[skill] else self.guess[skill]
            correct[t] = self.rng.random() < p
            if not learned[skill] and self.rng.random() < self.transition[skill]:
                learned[skill] = True
                learning[skill] = t + 1
        return pd.DataFrame({
            'user_id': student_id,
            'item_id': items,
            'skill_id': self.expert_labels[items],
            'correct': correct,
        }), learning
