"""
Records posterior samples of the chain after burn-in.
"""
import numpy as np
import pandas as pd

from .params import predict_correct, update_belief


class SampleRecorder:
    """Accumulates predictions, partitions and parameters of the retained samples.

    Predictions are accumulated as running sums per trial instead of storing every sample.

    Attributes
    ----------
    dataset : WCRPDataset
    ledger : PartitionLedger
    pRT_sums : list of (n_trials,) ndarrays
        pRT_sums[student][trial] is the sum over samples of the predicted probability of a correct answer.
    skill_label_samples : list of (num_items,) ndarrays
        Partition of each sample, relabelled to dense ids 0, 1, ... in order of first occurrence.
    train_ll_samples : list
        Training data log-likelihood of each sample.
    parameter_samples : list of dicts
        One row per (sample, relabelled skill) with the skill's parameters and size.
    """

    def __init__(self, dataset, ledger):
        """Inits an empty SampleRecorder."""
        self.dataset = dataset
        self.ledger = ledger
        self.pRT_sums = [np.zeros(dataset.num_trials(s)) for s in range(dataset.num_students)]
        self.skill_label_samples = []
        self.train_ll_samples = []
        self.parameter_samples = []

    @property
    def num_samples(self):
        return len(self.train_ll_samples)

    def record(self, train_ll):
        """Snapshots the current chain state."""
        self.train_ll_samples.append(train_ll)

        # relabel the partition into a sample-specific dense id space
        relabel = {}
        labels = np.empty(self.dataset.num_items, dtype=int)
        for item, skill in enumerate(self.ledger.seating):
            labels[item] = relabel.setdefault(skill, len(relabel))
        self.skill_label_samples.append(labels)

        sample = len(self.train_ll_samples) - 1
        for skill, label in relabel.items():
            record = self.ledger.skills[skill]
            self.parameter_samples.append({
                'sample': sample,
                'skill': label,
                'size': record.size,
                'psi': record.params.psi,
                'mu': record.params.mu,
                'pi1': record.params.pi1,
                'prop0': record.params.prop0,
            })

        # record the model predictions for the entire dataset
        seating = self.ledger.seating
        for student in range(self.dataset.num_students):
            p_hat = {}
            items = self.dataset.item_sequences[student]
            recalls = self.dataset.recall_sequences[student]
            for trial, (item, correct) in enumerate(zip(items, recalls)):
                skill = seating[item]
                params = self.ledger.skills[skill].params
                current = p_hat.get(skill, params.psi)
                self.pRT_sums[student][trial] += predict_correct(params.pi0, params.pi1, current)
                p_hat[skill] = update_belief(params.pi0, params.pi1, params.mu, current, correct)

    def estimated_recall_prob(self, student, trial):
        self._require_samples()
        return self.pRT_sums[student][trial] / self.num_samples

    def sampled_skill_labels(self):
        self._require_samples()
        return [labels.copy() for labels in self.skill_label_samples]

    def most_likely_skill_labels(self):
        """The partition of the sample with the highest training log-likelihood (first one on ties)."""
        self._require_samples()
        best = int(np.argmax(self.train_ll_samples))
        return self.skill_label_samples[best].copy()

    def parameters_frame(self):
        self._require_samples()
        df = pd.DataFrame(self.parameter_samples)
        df['guess'] = df['pi1'] * df['prop0']
        df['slip'] = 1.0 - df['pi1']
        return df

    def _require_samples(self):
        if self.num_samples == 0:
            raise RuntimeError('No samples have been recorded yet, run the sampler past burn-in first')
