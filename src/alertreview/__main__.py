"""
Command-line interface for the alert review report.
Loads the alert line list, classifies every decision against the admission
rules and writes the stratified tables.
"""

import datetime
import json
import logging
import sys
import typing
from collections import namedtuple

import click
import pandas as pd
from stairval.notepad import create_notepad

from .aggregate import TimeBin
from .export import prepare_output_dir, write_report
from .loader import load_alert_sheet, load_sheets_as_tables
from .mapper import DefaultAlertMapper
from .report import MAJOR_ZONE_THRESHOLD, RECENT_WINDOW_DAYS, ReportConfig, build_report
from .vocabulary import Vocabulary

AuditEntry = namedtuple("AuditEntry", ["step", "sheet", "message", "level"])


@click.group()
def main():
    """alertreview: audit of alert validation decisions."""
    pass


@main.command(name="report")
@click.option(
    "-e",
    "--excel-path",
    "excel_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="path to the alert workbook",
)
@click.option("--sheet", "sheet_name", default=None, help="sheet holding the line list (default: first sheet)")
@click.option("--zone", "zones", multiple=True, help="declared health zone, repeat in reporting order")
@click.option("--origin", "origins", multiple=True, help="declared alert origin, repeat in reporting order")
@click.option(
    "--completion-date",
    type=click.DateTime(formats=["%Y-%m-%d"]),
    default=None,
    help="date the database was closed (default: latest alert date)",
)
@click.option("--window-days", default=RECENT_WINDOW_DAYS, show_default=True, type=int, help="length of the recent window")
@click.option("--major-zone-threshold", default=MAJOR_ZONE_THRESHOLD, show_default=True, type=int, help="alerts needed for a zone to get its own time table")
@click.option("--digits", default=1, show_default=True, type=click.IntRange(min=0), help="decimal places of percentages")
@click.option("--time-bin", type=click.Choice(["week", "day"]), default="week", show_default=True)
@click.option("--dayfirst/--monthfirst", default=True, help="how ambiguous text dates are read (default: day first)")
@click.option(
    "-o",
    "--output-dir",
    envvar="ALERTREVIEW_OUTPUT_DIR",
    type=click.Path(file_okay=False),
    default=None,
    help="base directory of the timestamped output folder (default: current directory)",
)
@click.option("--verbose", is_flag=True, help="Also emit debug logs to stderr")
@click.option("--log-file-path", type=click.Path(dir_okay=False, writable=True), help="Append timestamped logs to this file")
def report(
        excel_file: str,
        sheet_name: typing.Optional[str],
        zones: tuple[str, ...],
        origins: tuple[str, ...],
        completion_date: typing.Optional[datetime.datetime],
        window_days: int,
        major_zone_threshold: int,
        digits: int,
        time_bin: str,
        dayfirst: bool,
        output_dir: typing.Optional[str],
        verbose: bool,
        log_file_path: typing.Optional[str],
):
    """
    Read the line list, then:
      - map rows to alerts, rejecting out-of-vocabulary values
      - classify decisions (alerts without a known status are counted, not classified)
      - build the full-history and recent-window tables
      - write them to a timestamped folder
    Any mapping error aborts the report.
    """
    _configure_logging(verbose, log_file_path)

    # 1) Read the line list
    try:
        sheet_name, df = load_alert_sheet(excel_file, sheet_name)
    except ValueError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)
    logging.info(f"Loaded {len(df)} row(s) from sheet {sheet_name!r} of '{excel_file}'")

    # 2) Closed vocabularies: declared, or observed as a fallback
    try:
        vocabulary = _build_vocabulary(df, zones, origins)
    except ValueError as e:
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)

    # 3) Map rows and collect issues
    notepad = create_notepad("alerts")
    mapper = DefaultAlertMapper(vocabulary, dayfirst=dayfirst)
    records = mapper.apply_mapping(df, notepad, sheet_name=sheet_name)

    # 4) Report any errors or warnings; errors abort
    _report_issues(notepad, sheet_name)
    if notepad.has_errors(include_subsections=True):
        click.secho("Report not written: fix the errors above.", fg="red", err=True)
        sys.exit(1)

    # 5) Build and write the tables
    config = ReportConfig(
        window_days=window_days,
        major_zone_threshold=major_zone_threshold,
        digits=digits,
        time_bin=TimeBin.WEEK if time_bin == "week" else TimeBin.DAY,
        completion_date=completion_date.date() if completion_date else None,
    )
    result = build_report(records, vocabulary, config)
    out_dir = prepare_output_dir(output_dir)
    written = write_report(result, out_dir)

    # 6) Final summary
    click.echo(f"Mapped {len(records)} alert(s) from {mapper.stats['rows']} row(s)")
    click.echo(f"Classified {len(result.classified)} alert(s)")
    click.echo(f"Left out {result.undefined_count} alert(s) without a validated/invalidated status")
    if result.window_start is not None:
        click.echo(
            f"Recent window {result.window_start} to {result.completion_date}: "
            f"{result.recent_undefined_count} alert(s) without a known status left out"
        )
    for path in written:
        click.echo(f"Wrote {path}")


@main.command(name="audit-excel")
@click.option(
    "-e",
    "--excel-path",
    "excel_file",
    required=True,
    type=click.Path(exists=True, dir_okay=False),
    help="path to the alert workbook",
)
@click.option("-r", "--raw-json", is_flag=True, help="print the audit as JSON")
def audit_excel(excel_file: str, raw_json: bool):
    """
    Check every sheet for the alert columns and indicator vocabulary
    without building the report.
    """
    entries = preprocess(load_sheets_as_tables(excel_file))
    if raw_json:
        click.echo(json.dumps([entry._asdict() for entry in entries], indent=2))
        return

    click.echo(f"{'SHEET':20}  {'STEP':20}  {'LEVEL':7}  MESSAGE")
    for entry in entries:
        line = f"{entry.sheet:20}  {entry.step:20}  {entry.level:7}  {entry.message}"
        if entry.level == "error":
            line = click.style(line, fg="red")
        elif entry.level == "warning":
            line = click.style(line, fg="yellow")
        click.echo(line)


def _configure_logging(verbose: bool, log_file_path: typing.Optional[str]) -> None:
    handlers: list[logging.Handler] = []
    if log_file_path:
        handlers.append(logging.FileHandler(log_file_path, mode="a", encoding="utf-8"))
    if verbose:
        handlers.append(logging.StreamHandler(sys.stderr))
    if handlers:
        logging.basicConfig(
            level=logging.DEBUG if verbose else logging.INFO,
            format="%(asctime)s %(levelname)s %(message)s",
            datefmt="%Y-%m-%d %H:%M:%S",
            handlers=handlers,
            force=True,
        )


def _build_vocabulary(df: pd.DataFrame, zones: tuple[str, ...], origins: tuple[str, ...]) -> Vocabulary:
    if not zones:
        logging.warning("No zones declared; using the zones observed in the sheet")
        zones = tuple(Vocabulary.from_observed(df.get("zone", [])).zones)
    if not origins:
        logging.warning("No origins declared; using the origins observed in the sheet")
        origins = tuple(Vocabulary.from_observed((), df.get("origin", [])).origins)
    return Vocabulary(zones=zones, origins=origins)


def _report_issues(notepad, sheet_name: str = "alerts") -> None:
    # rejected rows first, then values read with a fallback
    errors = list(notepad.errors())
    if errors:
        click.echo(f"{len(errors)} alert row problem(s) in sheet {sheet_name!r}, report blocked:")
        for err in errors:
            click.echo(f"- {err}")
    warnings = list(notepad.warnings())
    if warnings:
        click.echo(f"{len(warnings)} alert value(s) in sheet {sheet_name!r} read with a fallback:")
        for w in warnings:
            click.echo(f"- {w}")


def preprocess(tables: dict[str, pd.DataFrame]) -> list[AuditEntry]:
    """
    Run lightweight audits on each sheet:
      - header count
      - required alert columns
      - indicator values outside yes/no/missing
    """
    from .mapper import ALERT_KEY_COLUMNS, INDICATOR_COLUMNS
    from .record import Indicator

    entries: list[AuditEntry] = []

    for name, df in tables.items():
        entries.append(AuditEntry(
            step="normalize-headers",
            sheet=name,
            message=f"{len(df.columns)} cols",
            level="info",
        ))

        missing = sorted(ALERT_KEY_COLUMNS - set(df.columns))
        entries.append(AuditEntry(
            step="required-columns",
            sheet=name,
            message=f"missing {missing}" if missing else "all present",
            level="error" if missing else "info",
        ))

        for column in INDICATOR_COLUMNS:
            if column not in df.columns:
                continue
            bad = set()
            for value in df[column]:
                try:
                    Indicator.from_label(value)
                except ValueError:
                    bad.add(str(value))
            if bad:
                entries.append(AuditEntry(
                    step="indicator-values",
                    sheet=name,
                    message=f"{column}: unexpected {sorted(bad)}",
                    level="error",
                ))
    return entries


if __name__ == "__main__":
    main()
