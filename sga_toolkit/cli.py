"""SGA Toolkit CLI."""

import logging
import sys
from pathlib import Path
from typing import Optional

import click

from . import __version__


@click.group()
@click.version_option(version=__version__)
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
def main(verbose: bool):
    """SGA Toolkit - Extract Relic SGA archives and read Relic Chunky files."""
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(levelname)s %(name)s: %(message)s",
    )


@main.command()
@click.argument("archive", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(file_okay=False, path_type=Path),
    help="Output directory (default: <archive_name>_extracted)",
)
@click.option(
    "--root-files-only",
    is_flag=True,
    help="Only extract the files directly inside each TOC root",
)
@click.option(
    "--keep-going",
    is_flag=True,
    help="Skip files that fail to decompress instead of stopping",
)
@click.option(
    "--list-only",
    is_flag=True,
    help="List files without extracting",
)
def extract(
    archive: Path,
    output: Optional[Path],
    root_files_only: bool,
    keep_going: bool,
    list_only: bool,
):
    """Extract files from an SGA archive."""
    from .sga import SGAReader

    click.echo(f"Opening: {archive}")

    try:
        with SGAReader(archive) as reader:
            if list_only:
                files = reader.list_files()
                click.echo(f"\nFiles in archive ({len(files)}):")
                for filename in files:
                    click.echo(f"  {filename}")
                return

            if output is None:
                output = archive.parent / f"{archive.stem}_extracted"

            click.echo(f"Output:  {output}")
            click.echo()

            if root_files_only:
                results = reader.extract_toc_root_files(output, keep_going=keep_going)
            else:
                results = reader.extract_all(output, keep_going=keep_going)

            extracted_count = 0
            failed = []
            with click.progressbar(
                results,
                label="Extracting",
                item_show_func=lambda r: r.archive_path if r else "",
            ) as items:
                for result in items:
                    if result.ok:
                        extracted_count += 1
                    else:
                        failed.append(result)

            click.echo()
            click.echo(f"Extracted: {extracted_count} files")
            if failed:
                click.echo(f"Failed:    {len(failed)} files", err=True)
                for result in failed:
                    click.echo(f"  {result.archive_path}: {result.error}", err=True)
                sys.exit(1)

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("archive", type=click.Path(exists=True, dir_okay=False, path_type=Path))
def info(archive: Path):
    """Show the header and table of contents of an SGA archive."""
    from .sga import SGAReader

    try:
        with SGAReader(archive) as reader:
            header = reader.header
            click.echo(f"Name:     {header.name}")
            click.echo(f"Version:  {header.version}")
            click.echo(f"Product:  {header.product}")
            click.echo(f"Folders:  {header.folder_data_count}")
            click.echo(f"Files:    {header.file_data_count}")
            click.echo(f"Block:    {header.block_size}")
            click.echo()
            click.echo(f"TOCs ({len(reader.tocs)}):")
            for toc in reader.tocs:
                click.echo(
                    f"  {toc.name} (alias {toc.alias}): "
                    f"{toc.folder_end_index - toc.folder_start_index} folders, "
                    f"{toc.file_end_index - toc.file_start_index} files"
                )

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


@main.command()
@click.argument("rgd_file", type=click.Path(exists=True, dir_okay=False, path_type=Path))
@click.option(
    "-o",
    "--output",
    type=click.Path(path_type=Path),
    help="Output file path (default: print to stdout)",
)
@click.option(
    "--format",
    "output_format",
    type=click.Choice(["json", "text"]),
    default="json",
    help="Output format",
)
def rgd(rgd_file: Path, output: Optional[Path], output_format: str):
    """Dump the key table of an RGD file."""
    from .chunky import RelicGameData

    try:
        data = RelicGameData.from_file(rgd_file)
        text = data.to_json() if output_format == "json" else data.to_text()

        if output is None:
            click.echo(text)
        else:
            output.write_text(text, encoding="utf-8")
            click.echo(f"Created: {output}")

    except Exception as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
