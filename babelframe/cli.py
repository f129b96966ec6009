"""Command line interface for the Babelframe translator."""

from __future__ import annotations

import argparse
import pathlib
import sys
from typing import Iterable, List, Optional

from .configuration import get_settings, placement_policy_from
from .errors import (
    BabelframeError,
    ConfigurationError,
)
from .languages import LANGUAGES
from .layout import PlacementPolicy
from .translator import TranslationRunner, TranslationSummary, validate_paths


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="babelframe",
        description=(
            "Translate the text of a design frame and lay out one translated copy "
            "per language below it."
        ),
    )
    parser.add_argument(
        "input_file",
        nargs="?",
        help="Path to the scene .json file to translate.",
    )
    parser.add_argument(
        "-t",
        "--target-language",
        action="append",
        dest="target_languages",
        help="Destination language code or name. Repeat for several languages.",
    )
    parser.add_argument(
        "--frame",
        help="Id of the node to translate. Defaults to the saved selection, "
        "then the first frame on the first page.",
    )
    parser.add_argument(
        "--in-place",
        action="store_true",
        help="Write translations into the selection instead of creating copies.",
    )
    parser.add_argument(
        "--batch",
        action="store_true",
        help="Translate every language first and apply them in one step.",
    )
    parser.add_argument(
        "--placement",
        choices=["auto", "incremental", "batch"],
        help="Copy placement policy (default from configuration, 'auto').",
    )
    parser.add_argument(
        "--gap",
        type=int,
        help="Vertical spacing between copies (default from configuration, 100).",
    )
    parser.add_argument(
        "-c",
        "--context",
        help="Short description of the design to guide the translator.",
    )
    parser.add_argument(
        "-o",
        "--output",
        help="Output file path. Defaults to appending '_translated' to the input name.",
    )
    parser.add_argument(
        "-p",
        "--provider",
        help="Translation provider identifier (default: openai).",
    )
    parser.add_argument(
        "-m",
        "--model",
        help="Provider-specific model identifier.",
    )
    parser.add_argument(
        "-f",
        "--force",
        action="store_true",
        help="Allow overwriting the output file if it already exists.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        help="Show detailed progress information.",
    )
    parser.add_argument(
        "--debug-provider",
        action="store_true",
        help="Log complete provider requests and responses for troubleshooting.",
    )
    parser.add_argument(
        "--list-languages",
        action="store_true",
        help="Print the supported target languages and exit.",
    )
    return parser


def derive_output_path(input_path: pathlib.Path) -> pathlib.Path:
    return input_path.with_name(f"{input_path.stem}_translated{input_path.suffix}")


def execute_translation(
    *,
    input_file: str,
    output_file: str | None,
    target_languages: List[str],
    frame_id: str | None,
    create_copies: bool,
    batch_mode: bool,
    placement: str | None,
    gap: int | None,
    context: str | None,
    provider: str | None,
    model: str | None,
    force_overwrite: bool,
    verbose: bool,
    provider_debug: bool,
) -> tuple[int, TranslationSummary | None, str | None]:
    """Execute a translation run and return the exit code, summary, and message."""

    input_path = pathlib.Path(input_file).expanduser().resolve()
    output_path = (
        pathlib.Path(output_file).expanduser().resolve()
        if output_file
        else derive_output_path(input_path)
    )

    try:
        validate_paths(input_path, output_path, force_overwrite=force_overwrite)
    except (FileNotFoundError, BabelframeError) as exc:
        return 1, None, str(exc)

    try:
        settings = get_settings()
        placement_policy: PlacementPolicy | None = placement_policy_from(
            placement or settings.BABELFRAME_PLACEMENT_POLICY
        )
    except ConfigurationError as exc:
        return 1, None, str(exc)

    output_path.parent.mkdir(parents=True, exist_ok=True)

    runner = TranslationRunner(
        input_path=input_path,
        output_path=output_path,
        languages=target_languages,
        frame_id=frame_id,
        create_copies=create_copies,
        batch_mode=batch_mode,
        provider_name=provider,
        model=model or settings.BABELFRAME_MODEL,
        context=context or settings.BABELFRAME_CONTEXT,
        gap=gap if gap is not None else settings.BABELFRAME_PLACEMENT_GAP,
        placement_policy=placement_policy,
        verbose=verbose,
        provider_debug=provider_debug or settings.BABELFRAME_PROVIDER_DEBUG,
        settings=settings,
    )

    try:
        summary = runner.run()
    except BabelframeError as exc:
        return 1, None, str(exc)
    except ValueError as exc:
        return 1, None, str(exc)
    except KeyboardInterrupt:
        return 2, None, "Translation interrupted by user."

    exit_code = 1 if summary.failed_languages else 0
    return exit_code, summary, None


def print_summary(summary: TranslationSummary) -> None:
    """Output a friendly report once processing completes."""

    print("\nTranslation complete.")
    print(f"  Input file:      {summary.input_path}")
    print(f"  Output file:     {summary.output_path}")
    print(
        "  Selection:       "
        + (summary.container_name or ", ".join(summary.selection_ids))
    )
    print(f"  Text layers:     {summary.total_texts}")
    failed = ", ".join(summary.failed_languages)
    print(
        "  Languages:       "
        f"{len(summary.applied_languages)} applied / {len(summary.languages)} requested"
        + (f" ({failed} failed)" if failed else "")
    )
    if summary.create_copies:
        print(f"  Copies created:  {summary.copies_created}")
    print(
        f"  Provider:        {summary.provider_name}"
        + (f" ({summary.model})" if summary.model else "")
    )
    print(f"  Elapsed time:    {summary.elapsed_seconds:.2f} seconds")
    if summary.total_errors:
        print("  Notes:")
        for message in summary.error_messages:
            print(f"    - {message}")


def print_languages() -> None:
    for language in LANGUAGES:
        print(f"  {language.code}  {language.flag}  {language.name}")


def main(argv: Optional[Iterable[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    if args.list_languages:
        print_languages()
        return 0

    if args.input_file is None:
        parser.error("the following arguments are required: input_file")
    if not args.target_languages:
        parser.error("the following arguments are required: -t/--target-language")

    exit_code, summary, message = execute_translation(
        input_file=args.input_file,
        output_file=args.output,
        target_languages=args.target_languages,
        frame_id=args.frame,
        create_copies=not args.in_place,
        batch_mode=args.batch,
        placement=args.placement,
        gap=args.gap,
        context=args.context,
        provider=args.provider,
        model=args.model,
        force_overwrite=args.force,
        verbose=args.verbose,
        provider_debug=args.debug_provider,
    )

    if message:
        print(message)
    if summary:
        print_summary(summary)
    return exit_code


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
