#!/usr/bin/env python3
"""
Time Budget CLI

Plan today from the terminal. Acts as the user in TIMEBUDGET_USER (default "local").

Usage:
    python cli.py day [DATE]                         # Blocks of a day
    python cli.py add START END CATEGORY [LABEL] [--date DATE] [--project ID]
    python cli.py edit ID key=value ...              # e.g. end_time=11:30 label=
    python cli.py rm ID                              # Delete a block
    python cli.py summary [DATE]                     # Minutes per category
    python cli.py brief [DATE]                       # Text brief of a day
    python cli.py prefs [START END]                  # Show / set the day window
    python cli.py templates                          # Saved templates
    python cli.py save-template NAME [DATE]
    python cli.py load-template ID [DATE]            # Replaces that day's blocks
"""

import argparse
import sys
from datetime import date

from timebudget import config
from timebudget.budget import (
    AllocationStore,
    PreferenceManager,
    SummaryAggregator,
    TemplateManager,
    generate_day_brief,
)
from timebudget.budget.allocation_store import EDITABLE_FIELDS
from timebudget.budget.clock import format_minutes
from timebudget.errors import ReplayFailedError, TimeBudgetError
from timebudget.observability import configure_logging


def _day(args) -> str:
    return args.date or date.today().isoformat()


def cmd_day(args):
    """List a day's blocks."""
    day = _day(args)
    allocations = AllocationStore().list(config.CLI_USER, day)
    if not allocations:
        print(f"Nothing planned for {day}")
        return 0

    print(f"{day}  ({len(allocations)} blocks)")
    for a in allocations:
        print(
            f"  {a.start_time or '--:--'}-{a.end_time or '--:--'}  "
            f"{a.category:<9} {format_minutes(a.duration_minutes):>7}  {a.display_label}  [{a.id}]"
        )
    return 0


def cmd_add(args):
    """Add a block."""
    allocation = AllocationStore().create(
        config.CLI_USER,
        _day(args),
        args.category,
        args.start,
        args.end,
        label=args.label,
        project_id=args.project,
    )
    print(
        f"✓ Added {allocation.display_label} {allocation.start_time}-{allocation.end_time} "
        f"on {allocation.allocation_date} [{allocation.id}]"
    )
    return 0


def cmd_edit(args):
    """Edit fields of a block: key=value pairs, empty value clears."""
    fields = {}
    for pair in args.changes:
        key, sep, value = pair.partition("=")
        if not sep or key not in EDITABLE_FIELDS:
            print(f"Bad change {pair!r}; editable: {', '.join(sorted(EDITABLE_FIELDS))}")
            return 2
        fields[key] = value or None

    allocation = AllocationStore().update(args.id, user_id=config.CLI_USER, **fields)
    print(
        f"✓ Updated {allocation.id}: {allocation.display_label} "
        f"{allocation.start_time}-{allocation.end_time} ({allocation.duration_minutes}m)"
    )
    return 0


def cmd_rm(args):
    AllocationStore().delete(args.id, user_id=config.CLI_USER)
    print(f"✓ Deleted {args.id}")
    return 0


def cmd_summary(args):
    """Minutes per category plus the day window totals."""
    summary = SummaryAggregator(AllocationStore(), PreferenceManager()).daily_summary(
        config.CLI_USER, _day(args)
    )
    print(
        f"{summary.allocation_date}  window {summary.window.day_start_time}-"
        f"{summary.window.day_end_time}"
    )
    for row in summary.breakdown():
        print(f"  {row['label']:<10} {format_minutes(row['minutes']):>7}  {row['share']:.0%}")
    print(f"  {'Planned':<10} {format_minutes(summary.allocated_minutes):>7}")
    print(f"  {'Buffer':<10} {format_minutes(summary.remaining_minutes):>7}")
    return 0


def cmd_brief(args):
    print(generate_day_brief(config.CLI_USER, _day(args)))
    return 0


def cmd_prefs(args):
    """Show the day window, or set it when START and END are given."""
    prefs = PreferenceManager()
    if args.start or args.end:
        if not (args.start and args.end):
            print("Give both START and END")
            return 2
        current = prefs.set_day_preferences(config.CLI_USER, args.start, args.end)
        print(f"✓ Day window set to {current.day_start_time}-{current.day_end_time}")
        return 0

    current = prefs.get_day_preferences(config.CLI_USER)
    print(
        f"Day window: {current.day_start_time}-{current.day_end_time} "
        f"({format_minutes(current.window.total_window_minutes)})"
    )
    return 0


def cmd_templates(args):
    templates = TemplateManager(AllocationStore()).list_templates(config.CLI_USER)
    if not templates:
        print("No templates saved")
        return 0

    for t in templates:
        print(
            f"  {t.id}  {t.name:<24} {len(t.blocks):>2} blocks  "
            f"{format_minutes(t.total_minutes):>7}  {t.created_at or ''}"
        )
    return 0


def cmd_save_template(args):
    template = TemplateManager(AllocationStore()).save_as_template(
        config.CLI_USER, args.name, _day(args)
    )
    print(f"✓ Saved template {template.name!r} with {len(template.blocks)} blocks [{template.id}]")
    return 0


def cmd_load_template(args):
    """Replace a day's blocks with a template's."""
    day = _day(args)
    created = TemplateManager(AllocationStore()).load_template(config.CLI_USER, args.id, day)
    print(f"✓ Loaded {len(created)} blocks onto {day}")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Time Budget CLI")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # day
    p = subparsers.add_parser("day", help="Blocks of a day")
    p.add_argument("date", nargs="?", help="YYYY-MM-DD (default today)")

    # add
    p = subparsers.add_parser("add", help="Add a block")
    p.add_argument("start", help="HH:MM")
    p.add_argument("end", help="HH:MM")
    p.add_argument("category", help="Category id, e.g. work")
    p.add_argument("label", nargs="?", help="Overrides the category label")
    p.add_argument("--date", help="YYYY-MM-DD (default today)")
    p.add_argument("--project", help="Project id")

    # edit
    p = subparsers.add_parser("edit", help="Edit a block")
    p.add_argument("id", help="Allocation id")
    p.add_argument("changes", nargs="+", help="key=value")

    # rm
    p = subparsers.add_parser("rm", help="Delete a block")
    p.add_argument("id", help="Allocation id")

    # summary / brief
    for name, help_text in (("summary", "Minutes per category"), ("brief", "Text brief")):
        p = subparsers.add_parser(name, help=help_text)
        p.add_argument("date", nargs="?", help="YYYY-MM-DD (default today)")

    # prefs
    p = subparsers.add_parser("prefs", help="Show or set the day window")
    p.add_argument("start", nargs="?", help="HH:MM")
    p.add_argument("end", nargs="?", help="HH:MM")

    # templates
    subparsers.add_parser("templates", help="Saved templates")

    p = subparsers.add_parser("save-template", help="Save a day as a template")
    p.add_argument("name", help="Template name")
    p.add_argument("date", nargs="?", help="YYYY-MM-DD (default today)")

    p = subparsers.add_parser("load-template", help="Replay a template onto a day")
    p.add_argument("id", help="Template id")
    p.add_argument("date", nargs="?", help="YYYY-MM-DD (default today)")

    # help
    subparsers.add_parser("help", help="Show this help")

    return parser


def main(argv=None):
    parser = build_parser()
    args = parser.parse_args(argv)

    json_logs = None if config.LOG_JSON is None else config.LOG_JSON == "1"
    configure_logging(config.LOG_LEVEL, json_format=json_logs)

    if args.command == "help":
        parser.print_help()
        return 0

    # Dispatch
    commands = {
        "day": cmd_day,
        "add": cmd_add,
        "edit": cmd_edit,
        "rm": cmd_rm,
        "summary": cmd_summary,
        "brief": cmd_brief,
        "prefs": cmd_prefs,
        "templates": cmd_templates,
        "save-template": cmd_save_template,
        "load-template": cmd_load_template,
    }

    try:
        return commands[args.command](args)
    except ReplayFailedError as e:
        print(f"✗ {e}\n  The day was left unchanged.")
        return 1
    except (TimeBudgetError, ValueError) as e:
        print(f"✗ {e}")
        return 1


if __name__ == "__main__":
    sys.exit(main())
