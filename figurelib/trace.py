#Plotting chain diagnostics
import matplotlib.pyplot as plt
import numpy as np


def plot_trace(trace, title="MCMC trace", burn=None, filename=None):
    """
    Plots the training log-likelihood and the number of skills of a chain per iteration

    Parameters
    ----------
    trace : DataFrame
        trace_ of a MixtureWCRP, with columns iteration, train_ll and num_skills
    title : str
        Title of the output picture
    burn : int, optional
        If given, a vertical line marks the end of burn-in. The default is None.
    filename : str, optional
        Save the figure to this file instead of showing it. The default is None.

    Returns
    -------
    None.

    """
    fig, (ax_ll, ax_skills) = plt.subplots(2, 1, sharex=True)
    ax_ll.plot(trace["iteration"], trace["train_ll"])
    ax_ll.set_ylabel("train log-likelihood")
    ax_skills.step(trace["iteration"], trace["num_skills"], where="post")
    ax_skills.set_ylabel("# skills")
    ax_skills.set_xlabel("Iteration")
    if burn is not None:
        for ax in (ax_ll, ax_skills):
            ax.axvline(x=burn, color="red", linestyle="--")
    fig.suptitle(title)
    _finish(fig, filename)


def plot_coassignment(matrix, title="Posterior co-assignment", order=None, filename=None):
    """
    Plots the posterior probability that two items share a skill

    Parameters
    ----------
    matrix : ndarray (n_items, n_items)
        Output of datahelper.postprocess.coassignment_matrix
    title : str
        Title of the output picture
    order : array-like, optional
        Permutation of the items, e.g. sorted by expert label. The default is None.
    filename : str, optional
        Save the figure to this file instead of showing it. The default is None.

    Returns
    -------
    None.

    """
    if order is not None:
        order = np.asarray(order)
        matrix = matrix[np.ix_(order, order)]
    fig, ax = plt.subplots()
    image = ax.imshow(matrix, vmin=0, vmax=1, cmap="Greys")
    fig.colorbar(image, ax=ax)
    ax.set_xlabel("Items")
    ax.set_ylabel("Items")
    ax.set_title(title)
    _finish(fig, filename)


def _finish(fig, filename):
    """
    Saves the figure if a filename is given, shows it otherwise
    """
    if filename is None:
        plt.show()
    else:
        fig.savefig(filename)
        plt.close(fig)
