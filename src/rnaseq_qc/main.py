from pathlib import Path
from typing import List, Optional

import typer

from .config import settings
from .models import FlagReportConfig, generate_flag_report

app = typer.Typer(
    help="Flag RNA-seq samples against batch-derived QC reference ranges"
)


@app.command()
def info() -> None:
    """Show the resolved settings."""
    typer.echo(f"Environment: {settings.environment}")
    typer.echo(f"MEND QC dir: {settings.mend_qc_dir}")
    typer.echo(f"STAR log dir: {settings.star_log_dir}")
    typer.echo(f"MEND manifest: {settings.mend_manifest}")
    typer.echo(f"STAR manifest: {settings.star_manifest}")
    typer.echo(f"Sample metadata: {settings.sample_metadata}")
    typer.echo(f"Output dir: {settings.output_dir}")
    typer.echo(f"Library preps: {settings.library_preps}")
    typer.echo(f"Reference range: mean +/- {settings.n_sd} SD")


@app.command()
def run(
    output_dir: Optional[Path] = typer.Option(
        None, help="Output directory (default from settings)"
    ),
    save_formats: List[str] = typer.Option(
        ["png"], "--format", help="Figure format, repeatable"
    ),
    no_plots: bool = typer.Option(False, help="Only write the tables"),
) -> None:
    """Run the QC flagging batch over the configured inputs."""
    config = FlagReportConfig(
        out_dir=output_dir or settings.output_dir,
        save_formats=[] if no_plots else save_formats,
        depth_cutoffs=tuple(settings.depth_cutoffs),
    )
    generate_flag_report(
        config,
        mend_qc_dir=settings.mend_qc_dir,
        star_log_dir=settings.star_log_dir,
        mend_manifest=settings.mend_manifest,
        star_manifest=settings.star_manifest,
        sample_metadata=settings.sample_metadata,
        library_preps=settings.library_preps,
        sample_types=settings.sample_types,
        n_sd=settings.n_sd,
        symmetric_id_check=settings.symmetric_id_check,
        mend_pattern=settings.mend_pattern,
        star_pattern=settings.star_pattern,
        manifest_file_col=settings.manifest_file_col,
        manifest_id_col=settings.manifest_id_col,
        metadata_library_col=settings.metadata_library_col,
        metadata_sample_type_col=settings.metadata_sample_type_col,
    )


def main() -> None:
    app()


if __name__ == "__main__":
    main()
