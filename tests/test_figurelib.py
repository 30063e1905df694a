import numpy as np

from datahelper import coassignment_matrix
from figurelib import plot_trace, plot_coassignment


def test_plot_trace_saves_figure(make_model, tmp_path):
    model = make_model()
    model.run_mcmc(4, 1)
    filename = tmp_path / "trace.png"
    plot_trace(model.trace_, burn=1, filename=filename)
    assert filename.exists()


def test_plot_coassignment_saves_figure(tmp_path):
    matrix = coassignment_matrix([np.array([0, 0, 1]), np.array([0, 1, 1])])
    filename = tmp_path / "coassignment.png"
    plot_coassignment(matrix, order=[2, 0, 1], filename=filename)
    assert filename.exists()
