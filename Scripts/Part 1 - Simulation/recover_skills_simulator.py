"""
Simulating data with a known item -> skill partition and a noisy expert labeling, then fitting the WCRP mixture.
Analyzing how well the sampled partitions recover the true skills for different values of beta.
"""
import numpy as np

from simulator import Simulator
from wcrpbkt import MixtureWCRP, RandomSource
from datahelper import to_sequences, coassignment_matrix
from figurelib import plot_trace, plot_coassignment


# data size parameters
n_skills = 3
items_per_skill = 5
n_students = 150
n_exercises = 40
label_noise = 0.2

# performance parameters
bkt_params = {
    'l0': [0.1, 0.3, 0.5],
    'transition': [0.05, 0.15, 0.3],
    'slip': 0.1,
    'guess': [0.1, 0.25, 0.4]
}

# sampler parameters
betas = [0.0, 0.5, 0.9]
num_iterations = 100
burn = 50
num_subsamples = 500
seed = 2021
verbose = False


def true_coassignment(item_skills):
    return (item_skills[:, None] == item_skills[None, :]).astype(float)


if __name__ == '__main__':

    #### SIMULATION
    rng = np.random.default_rng(seed)
    item_skills = np.repeat(np.arange(n_skills), items_per_skill)
    # corrupt some of the expert labels
    expert_labels = item_skills.copy()
    noisy = rng.random(len(item_skills)) < label_noise
    expert_labels[noisy] = rng.integers(n_skills, size=noisy.sum())

    student_simulator = Simulator(item_skills, expert_labels=expert_labels, random_state=seed, **bkt_params)
    data, _ = student_simulator.sample_students(n_students=n_students, n_exercises=n_exercises)
    recall_sequences, item_sequences, labels, num_students, num_items = to_sequences(data)
    truth = true_coassignment(item_skills)
    print(f'MEAN ABS ERROR expert labels ... {np.abs(true_coassignment(expert_labels) - truth).mean()}')

    #### FITTING
    for beta in betas:
        model = MixtureWCRP(range(num_students), recall_sequences, item_sequences, labels, beta,
                            num_subsamples=num_subsamples, generator=RandomSource(seed), verbose=verbose)
        model.run_mcmc(num_iterations, burn)

        #### ANALYSE ESTIMATES
        coassignment = coassignment_matrix(model.get_sampled_skill_labels())
        trace = model.trace_
        print(f'beta = {beta}')
        print(f'MEAN ABS ERROR co-assignment ... {np.abs(coassignment - truth).mean()}')
        print(f'MEAN # skills ... {trace["num_skills"][burn:].mean()}')
        print(f'MEAN cross entropy ... {trace["cross_entropy"][burn:].mean()}')

        plot_trace(trace, title=f'beta = {beta}', burn=burn)
        plot_coassignment(coassignment, title=f'beta = {beta}', order=np.argsort(item_skills, kind='stable'))
