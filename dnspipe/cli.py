"""Command line entry point for the helper tools."""

from __future__ import annotations

import argparse
import logging
import sys
from collections.abc import Sequence

from dnspipe import config_tools, probe

logger = logging.getLogger("dnspipe")


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with the probe and config commands."""
    parser = argparse.ArgumentParser(prog="dnspipe")
    commands = parser.add_subparsers(dest="command", required=True)

    probe_cmd = commands.add_parser("probe", help="Run some server tests.")
    probes = probe_cmd.add_subparsers(dest="probe_command", required=True)
    for name, func, text in (
        (
            "conn-reuse",
            probe.probe_connection_reuse,
            "Check whether this server supports RFC 1035 connection reuse.",
        ),
        ("idle-timeout", probe.probe_idle_timeout, "Probe server's idle timeout."),
        (
            "pipeline",
            probe.probe_pipeline,
            "Check whether this server supports RFC 7766 query pipelining.",
        ),
    ):
        p = probes.add_parser(name, help=text)
        p.add_argument("addr", metavar="{tcp|tls}://server_addr[:port]")
        p.set_defaults(run=lambda args, f=func: f(args.addr))

    exts = ", ".join(config_tools.supported_extensions())
    config_cmd = commands.add_parser(
        "config", help="Tools that can generate/convert config files."
    )
    configs = config_cmd.add_subparsers(dest="config_command", required=True)

    gen = configs.add_parser("gen", help=f"Generate a template config. Supported extensions: {exts}")
    gen.add_argument("config_file")
    gen.set_defaults(run=lambda args: config_tools.generate_config(args.config_file))

    conv = configs.add_parser(
        "conv", help=f"Convert configuration file format. Supported extensions: {exts}"
    )
    conv.add_argument("-i", "--in", dest="src", required=True, help="input config")
    conv.add_argument("-o", "--out", dest="dst", required=True, help="output config")
    conv.set_defaults(run=lambda args: config_tools.convert_config(args.src, args.dst))
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    """Run the command line; return the process exit status."""
    args = build_parser().parse_args(argv)
    if not logging.getLogger().handlers:
        logging.basicConfig(level=logging.INFO, format="%(levelname)s %(message)s")
    try:
        args.run(args)
    except (probe.ProbeError, OSError, ValueError) as exc:
        logger.error("%s", exc)
        return 1
    return 0


if __name__ == "__main__":
    sys.exit(main())