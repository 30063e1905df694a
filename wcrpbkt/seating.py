"""
Seating probabilities of the weighted Chinese restaurant process (WCRP).

The WCRP is a size-biased partition prior over items that is pulled towards the expert-provided
labeling. gamma = 1 - beta controls the strength of that pull (gamma=1 is the plain CRP) and
alpha' the rate at which new skills are created.
"""
from collections import Counter

import numpy as np
from scipy.special import logsumexp


def compute_k(label_counts, own_label, log_gamma, num_expert_skills):
    """Computes the agreement statistic K of an item and a table.

    Arguments
    ---------
    label_counts : Counter
        Number of OTHER items at the table per expert-provided label.
    own_label : int
        The expert-provided label of the item.
    log_gamma : float
    num_expert_skills : int
        Size of the expert label vocabulary.

    Returns
    -------
    K : float
        In (0, 1]. Close to 1 when the table agrees with the item's label, close to 0 when it strongly disagrees.
    """
    gamma = np.exp(log_gamma)
    max_count = max(label_counts.values(), default=0)
    own_count = label_counts.get(own_label, 0)
    numerator = gamma ** (max_count - own_count) if own_count > 0 else gamma ** max_count
    # the labels not occurring at the table
    denominator = (num_expert_skills - len(label_counts)) * gamma ** max_count
    denominator += sum(gamma ** (max_count - count) for count in label_counts.values())
    return numerator / denominator


def log_old_table_probability(num_seated, K, log_gamma, num_expert_skills):
    """Log of a quantity proportional to the probability of joining a table with num_seated items."""
    gamma = np.exp(log_gamma)
    v = float(num_expert_skills)
    return -np.log(v) + np.log(num_seated) + np.log(K + (1.0 - K) * gamma) - \
        np.log(1.0 / v + (1.0 - 1.0 / v) * gamma)


def log_new_table_probability(log_alpha_prime, log_gamma, num_expert_skills):
    """Log of a quantity proportional to the probability of opening a new table."""
    return -np.log(num_expert_skills) + log_alpha_prime + log_gamma


def iter_seating_steps(seating, expert_labels, log_alpha_prime, log_gamma, num_expert_skills):
    """Replays a seating arrangement from an empty restaurant in item order.

    Yields
    ------
    (log_probs, chosen) : ((n_tables+1,) ndarray, int) tuple
        Normalized log-probabilities of joining each table open so far (in order of opening)
        followed by the new table, and the index of the option the item actually took.
    """
    table_sizes = {}
    table_labels = {}
    log_new = log_new_table_probability(log_alpha_prime, log_gamma, num_expert_skills)
    for item, table in enumerate(seating):
        label = int(expert_labels[item])
        log_weights = [log_old_table_probability(size,
                                                 compute_k(table_labels[t], label, log_gamma, num_expert_skills),
                                                 log_gamma, num_expert_skills)
                       for t, size in table_sizes.items()]
        log_weights.append(log_new)
        log_weights = np.array(log_weights)
        tables = list(table_sizes)
        chosen = tables.index(table) if table in table_sizes else len(tables)
        yield log_weights - logsumexp(log_weights), chosen

        if table not in table_sizes:
            table_sizes[table] = 0
            table_labels[table] = Counter()
        table_sizes[table] += 1
        table_labels[table][label] += 1


def log_seating_prob(seating, expert_labels, log_alpha_prime, log_gamma, num_expert_skills):
    """Exact joint log-probability of the seating arrangement under the WCRP.

    Expensive (quadratic in the number of items); used as the score of the hyperparameter updates only.
    """
    return float(sum(log_probs[chosen] for log_probs, chosen in
                     iter_seating_steps(seating, expert_labels, log_alpha_prime, log_gamma, num_expert_skills)))
