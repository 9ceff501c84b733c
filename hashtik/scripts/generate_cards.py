#!/usr/bin/env python3
"""
Generate Cards Script.

Generate a credential batch, write the RouterOS script, the credential
list and the A4 card PDF, and optionally push the script to a router.

Usage:
    hashtik-cards --count 200 --length 6 --type numbers
    hashtik-cards --template-file site.yaml --background card.png
    hashtik-cards --load office/1h --host router.example.net --user admin --avoid-existing --push --run
    hashtik-cards --count 10 --preview first-card.png --no-pdf

The device password is read from ``HASHTIK_DEVICE_PASSWORD`` when
``--password`` is not given.
"""

from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import ValidationError as SchemaError

from hashtik.configs.loader import AppConfig, load_config
from hashtik.errors import ConfigError, HashtikError, RelayError
from hashtik.relay import make_relay
from hashtik.render.preview import preview_summary
from hashtik.session import Session
from hashtik.settings.schema import CredentialSection, MikrotikSection, PrintSection, SettingsTemplate
from hashtik.settings.store import YamlSettingsStore
from hashtik.utils import fs, pop_context, push_context, setup_logging

logger = logging.getLogger(__name__)

VENDOR_CHOICES = {
    "um7": ("usermanager", "v7"),
    "um6": ("usermanager", "v6"),
    "hotspot": ("hotspot", "v7"),
}


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate RouterOS credential cards",
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("--config", "-c", type=str, help="Configuration file path")
    parser.add_argument("--output", "-o", type=str, help="Output directory (overrides config)")
    parser.add_argument("--log-level", type=str, help="Log level (overrides config)")

    # Settings source
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--template-file", type=str, help="Settings template YAML file")
    source.add_argument("--load", metavar="PROFILE/TEMPLATE", help="Load a saved template")
    parser.add_argument("--save", metavar="PROFILE/TEMPLATE", help="Save the effective settings")

    # Generation overrides
    parser.add_argument("--vendor", choices=list(VENDOR_CHOICES), help="Target subsystem")
    parser.add_argument("--count", "-n", type=int, help="Number of accounts")
    parser.add_argument("--length", type=int, help="Random code length (>= 5)")
    parser.add_argument("--type", choices=["numbers", "letters", "mixed"], help="Character set")
    parser.add_argument("--match", choices=["same", "different", "empty"], help="Password rule")
    parser.add_argument("--prefix", type=str, help="Username prefix")
    parser.add_argument("--suffix", type=str, help="Username suffix")
    parser.add_argument("--pass-suffix", type=str, help="Password suffix")
    parser.add_argument("--profile", type=str, help="Router user profile")
    parser.add_argument("--comment", type=str, help="Comment on every account")

    # Layout overrides
    parser.add_argument("--columns", type=int, help="Cards per row")
    parser.add_argument("--rows", type=int, help="Rows per page")
    parser.add_argument("--spacing", type=float, help="Gap between cards (mm)")
    parser.add_argument("--background", type=str, help="Card background image")
    parser.add_argument("--serial", action="store_true", help="Print serial numbers")
    parser.add_argument("--date", action="store_true", help="Print the date")

    # Outputs
    parser.add_argument("--no-pdf", action="store_true", help="Skip the PDF")
    parser.add_argument("--preview", type=str, help="Write a PNG preview of the first card")

    # Device
    parser.add_argument("--host", type=str, help="Router host")
    parser.add_argument("--port", type=int, default=80, help="Router REST port")
    parser.add_argument("--user", type=str, help="Router login")
    parser.add_argument("--password", type=str, help="Router password")
    parser.add_argument("--avoid-existing", action="store_true", help="Skip usernames already on the router")
    parser.add_argument("--push", action="store_true", help="Upload the script")
    parser.add_argument("--run", action="store_true", help="Run the script after upload")
    parser.add_argument("--script-name", type=str, help="Script name on the router")
    return parser


def _split_ref(ref: str) -> tuple[str, str]:
    profile, sep, template = ref.partition("/")
    if not sep or not profile or not template:
        raise ValueError(f"Expected PROFILE/TEMPLATE, got {ref!r}")
    return profile, template


def _updated(section: Any, updates: Dict[str, Any]) -> Any:
    updates = {k: v for k, v in updates.items() if v is not None}
    if not updates:
        return section
    return type(section).model_validate({**section.model_dump(), **updates})


def apply_overrides(template: SettingsTemplate, args: argparse.Namespace) -> SettingsTemplate:
    """Return *template* with the command-line overrides applied.

    Raises
    ------
    pydantic.ValidationError
        If an override is out of range.
    """
    user_type, version = VENDOR_CHOICES[args.vendor] if args.vendor else (None, None)
    mikrotik: MikrotikSection = _updated(template.mikrotik, {
        "user_type": user_type,
        "mikrotik_version": version,
        "profile": args.profile,
        "comment": args.comment,
    })
    credential: CredentialSection = _updated(template.credential, {
        "account_count": args.count,
        "code_length": args.length,
        "credential_type": args.type,
        "credential_match": args.match,
        "prefix": args.prefix,
        "suffix": args.suffix,
        "pass_suffix": args.pass_suffix,
    })
    print_settings: PrintSection = _updated(template.print_settings, {
        "columns": args.columns,
        "rows": args.rows,
        "box_spacing": args.spacing,
        "use_serial_number": True if args.serial else None,
        "print_serial": True if args.serial else None,
        "use_date_printing": True if args.date else None,
    })
    return SettingsTemplate(mikrotik=mikrotik, credential=credential, print_settings=print_settings)


def _connect(session: Session, config: AppConfig, args: argparse.Namespace) -> None:
    if session.relay is None:
        session.relay = make_relay(config.relay)
    password = args.password if args.password is not None else os.environ.get("HASHTIK_DEVICE_PASSWORD", "")
    print(f"Connecting to {args.host}:{args.port}...")
    session.connect(args.host, args.port, args.user or "admin", password)
    print("Connected.")


def _format_summary(summary: Dict[str, object]) -> str:
    return "Batch:       " + ", ".join(f"{k}={v}" for k, v in summary.items())


def main(argv: Optional[List[str]] = None) -> int:
    args = _build_parser().parse_args(argv)

    # Load config
    try:
        config = load_config(args.config)
    except (FileNotFoundError, ConfigError) as e:
        print(f"Error loading config: {e}", file=sys.stderr)
        return 1

    log_kwargs = config.logging.as_kwargs()
    if args.log_level:
        log_kwargs["log_level"] = args.log_level
    setup_logging(**log_kwargs)

    if (args.push or args.run or args.avoid_existing) and not args.host:
        print("Error: --push, --run and --avoid-existing need --host", file=sys.stderr)
        return 2

    out_dir = Path(args.output or config.output.directory)
    session: Optional[Session] = None
    push_context(app="cli")
    try:
        needs_store = bool(args.load or args.save)
        store = YamlSettingsStore(config.settings.resolved_store_path) if needs_store else None
        session = Session(config, store=store)

        # Settings
        if args.load:
            session.load_template(*_split_ref(args.load))
        elif args.template_file:
            session.template = SettingsTemplate.from_storage(fs.load_yaml(args.template_file))
        session.template = apply_overrides(session.template, args)
        session.background_image = args.background
        if args.save:
            session.save_template(*_split_ref(args.save))
            print(f"Saved settings as {args.save}")

        # Existing usernames are needed before generation
        if args.avoid_existing:
            _connect(session, config, args)
            users = session.load_existing_users()
            print(f"{len(users)} existing usernames will be avoided")

        # Generate
        result = session.generate()
        push_context(batch=len(result))
        print(f"Generated {len(result)} credentials")
        print(_format_summary(preview_summary(result.credentials)))

        script_path = session.save_script(out_dir)
        text_path = session.save_credentials_text(out_dir)
        print(f"Script:      {script_path}")
        print(f"Credentials: {text_path}")

        if args.preview:
            image = session.preview()
            fs.ensure_dir(Path(args.preview).parent)
            image.save(args.preview)
            print(f"Preview:     {args.preview}")

        if not args.no_pdf:
            export = session.export_pdf(out_dir)
            print(f"Cards:       {export.path} ({export.card_count} cards, {export.page_count} pages)")

        # Device
        if args.host:
            try:
                if session.device is None:
                    _connect(session, config, args)
                if args.push:
                    session.push_script(run=args.run, script_name=args.script_name)
                    print("Script pushed" + (" and run" if args.run else ""))
                elif args.run:
                    session.run_script(args.script_name)
                    print("Script run")
            except RelayError as e:
                logger.error("%s", e)
                print(f"Error: {e} (local files kept in {out_dir})", file=sys.stderr)
                return 1

    except (HashtikError, SchemaError, yaml.YAMLError, ValueError, OSError, RuntimeError) as e:
        logger.error("%s", e)
        print(f"Error: {e}", file=sys.stderr)
        return 1
    finally:
        close = getattr(session.relay if session is not None else None, "close", None)
        if close is not None:
            close()
        pop_context()

    return 0


if __name__ == "__main__":
    sys.exit(main())
