import argparse
import logging
import multiprocessing
import sys

from .coordinator import SearchConfig, SearchCoordinator
from .errors import OnionGenError, ValidationError
from .verify import load_record, normalize_inputs, render_report, run_checks

PROMPTS = (
    ("onion", "Enter .onion address: "),
    ("public_key", "Enter public key (hex, 64 chars): "),
    ("seed", "Enter seed (hex, 64 chars): "),
    ("expanded_key", "Enter expanded secret key (hex, 128 chars): "),
)


class ArgumentParser(argparse.ArgumentParser):
    """argparse, but usage errors exit with status 1."""

    def error(self, message):
        self.print_usage(sys.stderr)
        self.exit(1, f"Error: {message}\n")


def setup_logging(verbose=False):
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="[%(levelname)s %(asctime)s] %(message)s",
    )


def parse_count(value):
    try:
        count = int(value, 10)
    except ValueError:
        count = 0
    if count <= 0:
        raise ValidationError("number must be a positive integer")
    return count


# --- Generator ---

def create_generate_parser():
    parser = ArgumentParser(
        prog="oniongen",
        description="Tor v3 .onion vanity address generator",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  oniongen "^test" 5
  oniongen "hello[a-z]*" 10 --workers 4 --output-dir keys
""",
    )
    parser.add_argument("pattern", help="regex pattern addresses should match (a-z, 2-7)")
    parser.add_argument("count", help="number of matching addresses to generate")
    parser.add_argument("--workers", type=int, default=multiprocessing.cpu_count(),
                        help="number of worker processes (default: CPU count)")
    parser.add_argument("--output-dir", default=".",
                        help="directory the <address>.json files are written to")
    parser.add_argument("--verbose", "-v", action="store_true",
                        help="log worker lifecycle details")
    return parser


def generate_main(argv=None):
    args = create_generate_parser().parse_args(argv)
    setup_logging(args.verbose)

    try:
        config = SearchConfig(
            pattern=args.pattern,
            target_count=parse_count(args.count),
            worker_count=args.workers,
            output_dir=args.output_dir,
        )
        coordinator = SearchCoordinator(config)
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    try:
        coordinator.run()
    except OnionGenError as e:
        print(f"\nError: {e}", file=sys.stderr)
        return 1
    return 0


# --- Verifier ---

def create_verify_parser():
    parser = ArgumentParser(
        prog="oniongen-verify",
        description="Cross-check an onion address, public key, seed and expanded secret key.",
        epilog="If no JSON file is provided, prompts for missing values.",
    )
    parser.add_argument("values", nargs="*",
                        help="a result .json file, or: onion pub seed expanded")
    parser.add_argument("--json", "-j", help="JSON result file (onionAddress, publicKey, seed, expandedSecretKey)")
    parser.add_argument("--onion", "-o", help="onion address (56 base32 characters)")
    parser.add_argument("--pub", "-p", dest="public_key", help="public key (64 hex characters)")
    parser.add_argument("--seed", "-s", help="seed (64 hex characters)")
    parser.add_argument("--expanded", "-e", dest="expanded_key",
                        help="expanded secret key (128 hex characters)")
    parser.add_argument("--no-prompt", action="store_true",
                        help="never prompt; missing fields stay absent")
    return parser


def collect_fields(args):
    json_path = args.json
    positional = []
    for value in args.values:
        if json_path is None and value.endswith(".json"):
            json_path = value
        else:
            positional.append(value)

    if json_path:
        return load_record(json_path)

    fields = {name: getattr(args, name) or "" for name, _ in PROMPTS}
    for name, _ in PROMPTS:
        if not fields[name] and positional:
            fields[name] = positional.pop(0)
    return fields


def prompt_missing(fields):
    for name, question in PROMPTS:
        if fields.get(name):
            continue
        try:
            fields[name] = input(question).strip()
        except EOFError:
            fields[name] = ""
    return fields


def verify_main(argv=None):
    args = create_verify_parser().parse_args(argv)
    setup_logging()

    try:
        fields = collect_fields(args)
        if not args.no_prompt:
            fields = prompt_missing(fields)
        inputs = normalize_inputs(**fields)
    except ValidationError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    for line in render_report(run_checks(inputs)):
        print(line)
    return 0


def main():
    multiprocessing.freeze_support()
    sys.exit(generate_main())


def verify():
    sys.exit(verify_main())


if __name__ == "__main__":
    main()
