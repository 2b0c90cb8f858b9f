"""
headerpolicy CLI: inspect the headers produced by the configured policies.
"""
import argparse
import json
import sys

from headerpolicy.config.loader import get_settings
from headerpolicy.config.policy_loader import load_policy_options
from headerpolicy.headers.options import PolicyNotFoundError
from headerpolicy.headers.policies import CSP_HEADER, CSP_REPORT_ONLY_HEADER
from headerpolicy.logging_config import setup_logging


def main(argv=None):
    """Main CLI entry point"""
    parser = argparse.ArgumentParser(
        prog="headerpolicy",
        description="Inspect security header policies",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # List the named policies
  python -m headerpolicy list

  # Show the headers of the default policy as served over HTTPS
  python -m headerpolicy show --https

  # Print only the Content-Security-Policy value of a policy
  python -m headerpolicy csp strict
        """
    )
    parser.add_argument('--policies-file', help='Policies YAML file (default: from settings)')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    subparsers.add_parser('list', help='List named policies')

    show_parser = subparsers.add_parser('show', help='Show the headers a policy sets')
    show_parser.add_argument('policy', nargs='?', help='Policy name (default: configured default)')
    show_parser.add_argument('--https', action='store_true', help='Include HTTPS-only headers')
    show_parser.add_argument('--format', choices=['text', 'json'], default='text',
                             help='Output format')

    csp_parser = subparsers.add_parser('csp', help='Print the CSP header value of a policy')
    csp_parser.add_argument('policy', nargs='?', help='Policy name (default: configured default)')

    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    # stdout carries command output; log events go to stderr
    setup_logging(log_level="error", json_format=False, stream=sys.stderr)
    settings = get_settings()
    options = load_policy_options(args.policies_file)

    try:
        if args.command == 'list':
            return cmd_list(options, settings.default_policy)
        elif args.command == 'show':
            return cmd_show(options, args)
        elif args.command == 'csp':
            return cmd_csp(options, args)
    except PolicyNotFoundError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1
    return 1


def cmd_list(options, default_policy):
    for name in options.policy_names:
        marker = " (default)" if name == default_policy else ""
        print(f"{name}{marker}")
    return 0


def cmd_show(options, args):
    headers = options.resolve(args.policy).header_values(is_https=args.https)
    if args.format == 'json':
        print(json.dumps(headers, indent=2))
    else:
        for name, value in headers.items():
            print(f"{name}: {value}")
    return 0


def cmd_csp(options, args):
    headers = options.resolve(args.policy).header_values(is_https=True)
    value = headers.get(CSP_HEADER) or headers.get(CSP_REPORT_ONLY_HEADER)
    if not value:
        print("Error: policy sets no Content-Security-Policy", file=sys.stderr)
        return 1
    print(value)
    return 0


if __name__ == '__main__':
    sys.exit(main())
