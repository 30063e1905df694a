"""
Command-line entrypoint fitting the WCRP-BKT model on a dataset across replications and folds.
"""
from pathlib import Path
from typing import Optional

import typer

from datahelper.importer import WCRPImporter, FoldImporter
from .crossval import WCRPCrossValidator

app = typer.Typer(help="Discover skills and fit knowledge tracing with the WCRP mixture.")


@app.callback()
def main() -> None:
    """WCRP-BKT sampler."""


@app.command()
def run(
    datafile: Path = typer.Option(..., "--datafile", help="Train the model on the given data file."),
    foldfile: Path = typer.Option(..., "--foldfile", help="File with the training / test splits."),
    outfile: Path = typer.Option(..., "--outfile", help="Put the held-out predictions in this file."),
    init_beta: float = typer.Option(..., "--init-beta", help="Initial value of beta in [0, 1]."),
    fixed_alpha_prime: Optional[float] = typer.Option(
        None, "--fixed-alpha-prime", help="Fixed value of alpha'. Inferred if omitted."),
    infer_beta: bool = typer.Option(False, "--infer-beta", help="Infer the value of beta."),
    num_iterations: int = typer.Option(200, "--num-iterations", help="Number of iterations to run."),
    burn: int = typer.Option(100, "--burn", help="Number of iterations to discard."),
    num_subsamples: int = typer.Option(
        2000, "--num-subsamples", help="Number of prior draws approximating the marginal likelihood of new skills."),
    dump_skills: bool = typer.Option(False, "--dump-skills", help="Save the sampled skill assignments too."),
    seed: Optional[int] = typer.Option(None, "--seed", help="Seed of the random number generators."),
    verbose: bool = typer.Option(True, "--verbose/--quiet", help="Print per-iteration chain status."),
) -> None:
    """Runs one chain per replication and test fold and writes the held-out predictions."""
    if not 0.0 <= init_beta <= 1.0:
        typer.echo("--init-beta has to lie in [0, 1]", err=True)
        raise typer.Exit(code=1)
    if fixed_alpha_prime is not None and fixed_alpha_prime <= 0:
        typer.echo("--fixed-alpha-prime has to be positive", err=True)
        raise typer.Exit(code=1)
    if burn < 0 or num_iterations <= burn:
        typer.echo("--num-iterations has to exceed --burn", err=True)
        raise typer.Exit(code=1)

    if fixed_alpha_prime is None:
        typer.echo("the code will automatically infer the value of alpha'")
    else:
        typer.echo(f"the code will keep alpha' fixed at {fixed_alpha_prime}")
    if infer_beta:
        typer.echo("the code will automatically infer the value of beta")
    else:
        typer.echo(f"the code will keep beta fixed at {init_beta}")

    try:
        df = WCRPImporter()(datafile)
        num_students = int(df["user_id"].max()) + 1
        fold_nums, num_folds = FoldImporter()(foldfile, num_students)
    except (FileNotFoundError, ValueError) as e:
        typer.echo(f"couldn't load the inputs: {e}", err=True)
        raise typer.Exit(code=1)

    cross_validator = WCRPCrossValidator(init_beta, fixed_alpha_prime, infer_beta, num_iterations, burn,
                                         num_subsamples, dump_skills, seed)
    cross_validator.cross_validate(df, fold_nums, num_folds, verbose=verbose)

    cross_validator.predictions_.to_csv(outfile, index=False)
    if dump_skills:
        skills_file = outfile.with_name(outfile.stem + "_skills" + outfile.suffix)
        cross_validator.skill_labels_.to_csv(skills_file, index=False)
    typer.echo(cross_validator.evaluate().to_string(index=False))


if __name__ == "__main__":
    app()
