import argparse
import os
import subprocess
import sys

from builder import bundle_source, bundle_to_disk
from cpbundle.config import CONFIG_FILE, load_config
from cpbundle.errors import BundleError
from cpbundle.log import log, set_verbose, warn

STARTER_MAIN = '''from cp_lib.io.scanner import Scanner
from cp_lib.algorithms import exponential

_PROBLEM = "A. Example Problem"


def main():
    sc = Scanner()
    t = sc.next(int)
    for _ in range(t):
        a, b = sc.next(int), sc.next(int)
        print(exponential.pow_mod(a, b, 1000000007))


if __name__ == "__main__":
    main()
'''


# Compiles in memory; nothing is written next to the bundle
COMPILE_CHECK = "import sys; compile(open(sys.argv[1], encoding='utf-8').read(), sys.argv[1], 'exec')"


def config_from_args(args):
    return load_config(
        args.config,
        main_file=getattr(args, "filename", None),
        lib_root=getattr(args, "lib_root", None),
        output_dir=getattr(args, "output_dir", None),
        namespace_root=getattr(args, "root", None),
        create_versioned_copy=False if getattr(args, "no_copy", False) else None,
    )


def build(args):
    set_verbose(args.verbose)
    try:
        config = config_from_args(args)
        if not os.path.exists(config.main_file):
            print(f"Error: File '{config.main_file}' not found.", file=sys.stderr)
            sys.exit(1)
        outcome = bundle_to_disk(config)
    except BundleError as e:
        print(f"Error: Bundling failed:\n{e}", file=sys.stderr)
        sys.exit(1)

    if outcome.output_path is not None:
        log(f"Code bundled successfully to: {outcome.output_path}")
    log(f"File size: {outcome.size} bytes")
    if outcome.problem:
        log(f"Problem: {outcome.problem}")
    log(f"Generic copy created: {outcome.generic_path}")
    return outcome


def check_compiles(target_file):
    """Byte-compile the bundle in a separate interpreter."""
    result = subprocess.run(
        [sys.executable, "-c", COMPILE_CHECK, str(target_file)],
        capture_output=True,
        text=True,
    )
    if result.returncode == 0:
        log("Bundled code compiles successfully!")
        return True
    warn("Bundled code has compilation issues")
    if result.stderr:
        print(result.stderr, file=sys.stderr)
    return False


def cmd_bundle(args):
    outcome = build(args)
    if args.check and not check_compiles(outcome.generic_path):
        sys.exit(1)


def cmd_run(args):
    outcome = build(args)
    sys.exit(subprocess.call([sys.executable, str(outcome.generic_path)]))


def cmd_print(args):
    """Bundle to stdout, reading the entry program from stdin when the filename is '-'."""
    set_verbose(args.verbose)
    try:
        config = config_from_args(args)
        if args.filename == "-":
            text = bundle_source("<stdin>", config, source_code=sys.stdin.read())
        else:
            text = bundle_source(config.main_file, config)
    except BundleError as e:
        print(f"Error: Bundling failed:\n{e}", file=sys.stderr)
        sys.exit(1)
    sys.stdout.write(text)


def cmd_init(args):
    log("Initializing solution...")
    if os.path.exists("main.py") and not args.force:
        print("Error: main.py already exists (use --force to overwrite)", file=sys.stderr)
        sys.exit(1)
    with open("main.py", "w") as f:
        f.write(STARTER_MAIN)
    log("Created main.py")


def add_bundle_options(parser):
    parser.add_argument("filename", nargs="?", default=None, help="Entry file (default: main.py)")
    parser.add_argument("--lib-root", help="Library source directory (default: cp_lib)")
    parser.add_argument("--output-dir", help="Directory for bundled files (default: bundled)")
    parser.add_argument("--root", help="Library namespace root (default: cp_lib)")


def main():
    parser = argparse.ArgumentParser(description="Competitive programming code bundler")
    parser.add_argument("--verbose", action="store_true", help="Enable verbose output (sent to stderr)")
    parser.add_argument("--config", help=f"Config file (default: {CONFIG_FILE} if present)")
    subparsers = parser.add_subparsers(dest="command")

    bundle = subparsers.add_parser("bundle", help="Bundle the solution into a single file")
    add_bundle_options(bundle)
    bundle.add_argument("--check", action="store_true", help="Verify the bundle compiles")
    bundle.add_argument("--no-copy", action="store_true", help="Only write the generic solution.py")

    run = subparsers.add_parser("run", help="Bundle, then run the bundled file")
    add_bundle_options(run)

    show = subparsers.add_parser("print", help="Write the bundle to stdout ('-' reads the entry from stdin)")
    add_bundle_options(show)

    init = subparsers.add_parser("init", help="Create a starter main.py")
    init.add_argument("--force", action="store_true", help="Overwrite an existing main.py")

    args = parser.parse_args()

    if args.command == "bundle": cmd_bundle(args)
    elif args.command == "run": cmd_run(args)
    elif args.command == "print": cmd_print(args)
    elif args.command == "init": cmd_init(args)
    else: parser.print_help()

if __name__ == "__main__":
    main()
