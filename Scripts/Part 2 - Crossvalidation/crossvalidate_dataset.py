"""
Performs cross-validation of the WCRP mixture on a practice dataset.
Creates the fold file if it does not exist yet, fits one chain per replication and fold and stores the results.
"""
import os

from datahelper import WCRPImporter, FoldImporter, make_folds, save_folds
from wcrpbkt import WCRPCrossValidator


# importing/exporting parameters
path = 'data/dataset.txt'
fold_file = 'data/folds.txt'
predictions_file = 'output/wcrpbkt/predictions.csv'
cross_validator_file = 'output/wcrpbkt/cross_validator.pkl'

# split parameters
num_folds = 5
num_replications = 2
random_state = 2022

# sampler parameters
beta = 0.5
init_alpha_prime = None
infer_beta = True
num_iterations = 200
burn = 100
num_subsamples = 2000
dump_skills = True
seed = 2022
verbose = True


if __name__ == '__main__':
    #### 1. LOADING AND SPLITTING
    importer = WCRPImporter()
    data = importer(path)
    num_students = data['user_id'].max() + 1
    if not os.path.exists(fold_file):
        save_folds(make_folds(num_students, num_folds, num_replications, random_state), fold_file)
    fold_nums, num_folds = FoldImporter()(fold_file, num_students)

    #### 2. FITTING
    cross_validator = WCRPCrossValidator(beta, init_alpha_prime, infer_beta, num_iterations, burn,
                                         num_subsamples, dump_skills, seed)
    cross_validator.cross_validate(data, fold_nums, num_folds, verbose)

    #### 3. POSTPROCESSING
    os.makedirs(os.path.dirname(predictions_file), exist_ok=True)
    cross_validator.predictions_.to_csv(predictions_file, index=False)
    cross_validator.save(cross_validator_file)
    print(cross_validator.evaluate())
