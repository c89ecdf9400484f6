from __future__ import annotations

import argparse
import sys
from pathlib import Path

from diligencemachine.catalog.bank import load_catalog
from diligencemachine.cli import generate_once
from diligencemachine.cli import wizard
from diligencemachine.features.selection import MAX_QUESTIONS
from diligencemachine.storage.db import connect, init_schema

WIZARD_ACTIONS = ["status", "select", "next", "back", "jump", "generate", "output-back", "restart"]


def _cmd_init_db(args: argparse.Namespace) -> None:
    conn = connect(Path(args.data_dir))
    init_schema(conn)
    print(f"Initialized sqlite db in {Path(args.data_dir).resolve()}")


def _cmd_generate(args: argparse.Namespace) -> None:
    generate_once.run(
        inputs_path=args.inputs,
        fmt=args.format,
        out_path=args.out,
        max_questions=args.max_questions,
        share=args.share,
    )


def _cmd_wizard(args: argparse.Namespace) -> None:
    wizard.run(
        action=args.action,
        data_dir=args.data_dir,
        session_id=args.session,
        values=args.values,
        field=args.field,
        step=args.step,
    )


def _cmd_check_catalog(args: argparse.Namespace) -> None:
    catalog = load_catalog()
    print(
        f"Catalog OK: {len(catalog.questions)} questions, "
        f"{len(catalog.risk_anchors)} risk anchors, {len(catalog.steps)} steps"
    )


def main(argv: list[str] | None = None) -> None:
    p = argparse.ArgumentParser(prog="diligencemachine")
    sub = p.add_subparsers(dest="cmd", required=True)

    p_init = sub.add_parser("init-db", help="Initialize local sqlite session store")
    p_init.add_argument("--data-dir", default="data")
    p_init.set_defaults(func=_cmd_init_db)

    p_gen = sub.add_parser("generate", help="Build a diligence agenda from a YAML inputs file")
    p_gen.add_argument("--inputs", required=True)
    p_gen.add_argument("--format", choices=["text", "json"], default="text")
    p_gen.add_argument("--out", default=None)
    p_gen.add_argument("--max-questions", type=int, default=MAX_QUESTIONS)
    p_gen.add_argument("--share", action="store_true", help="Post a summary to SLACK_WEBHOOK_URL")
    p_gen.set_defaults(func=_cmd_generate)

    p_wiz = sub.add_parser("wizard", help="Step through the wizard, state kept between runs")
    p_wiz.add_argument("action", choices=WIZARD_ACTIONS)
    p_wiz.add_argument("values", nargs="*", help="Option ids for 'select'")
    p_wiz.add_argument("--field", default=None, help="Sub-field for compound steps, e.g. headcount")
    p_wiz.add_argument("--step", type=int, default=None, help="Target step for 'jump'")
    p_wiz.add_argument("--data-dir", default="data")
    p_wiz.add_argument("--session", default="default")
    p_wiz.set_defaults(func=_cmd_wizard)

    p_check = sub.add_parser("check-catalog", help="Load and validate the packaged catalog")
    p_check.set_defaults(func=_cmd_check_catalog)

    args = p.parse_args(argv)
    try:
        args.func(args)
    except (ValueError, KeyError, FileNotFoundError, IndexError) as e:
        print(f"error: {e}")
        sys.exit(1)


if __name__ == "__main__":
    main()
