"""
Main entrypoint used by CI and Docker.

This script:
- Starts the math server process
- Launches a client against it
- Either replays a request file given as argument, or runs the
  conformance self-check (``--self-check``)

The goal is to validate:
- Socket communication and the fixed-size frame protocol
- Session admission and the multiprocessing lifecycle
- End-to-end correctness of the checked arithmetic
"""

import argparse
from multiprocessing import Event, Process
from multiprocessing.synchronize import Event as EventType
from pathlib import Path
import sys
from typing import List, Optional

from pydantic import BaseModel, Field, FilePath, ValidationError, model_validator

from checked_math.client.client import MathClient
from checked_math.client.selfcheck import run_self_check
from checked_math.common.logger import logger
from checked_math.server.server import MathServer

# Seconds to wait for the server to start listening or to finish
SERVER_TIMEOUT: float = 10.0


class CliArgs(BaseModel):
    """
    Pydantic model used to validate CLI arguments.

    Attributes
    ----------
    file_path : FilePath, optional
        Path to the file containing math requests.
    self_check : bool
        Run the conformance checks instead of a request file.
    port : int
        TCP port of the spawned server.
    max_sessions : int
        Session limit of the spawned server.
    """

    file_path: Optional[FilePath] = None
    self_check: bool = False
    port: int = Field(default=9000, ge=1, le=65535)
    max_sessions: int = Field(default=6, ge=1)

    @model_validator(mode="after")
    def one_mode(self) -> "CliArgs":
        """Exactly one of file_path and self_check must be given."""
        if (self.file_path is None) == (not self.self_check):
            raise ValueError("give either a request file or --self-check, not both or neither")
        return self


def run_server(
    port: int,
    max_sessions: int,
    output_file: Optional[Path] = None,
    max_connections: Optional[int] = None,
    ready: Optional[EventType] = None,
) -> None:
    """
    Start the math server.

    The server runs in its own process and listens
    for incoming socket connections. With ``max_connections`` it returns
    once that many sessions were served and journaled.
    """
    server = MathServer(port=port, max_sessions=max_sessions, output_file=output_file)
    server.start(max_connections=max_connections, ready=ready)


def parse_args(argv: Optional[List[str]] = None) -> CliArgs:
    """
    Parse and validate command-line arguments.

    :param list argv: Arguments to parse, defaults to sys.argv
    :return: Validated CLI arguments
    :rtype: CliArgs
    """
    parser = argparse.ArgumentParser(
        description="Checked math client/server integration runner"
    )

    parser.add_argument(
        "file_path",
        nargs="?",
        help="Path to the file containing math requests",
    )
    parser.add_argument(
        "--self-check",
        action="store_true",
        help="Run the conformance checks against the server",
    )
    parser.add_argument("--port", type=int, default=9000, help="Server TCP port")
    parser.add_argument(
        "--max-sessions", type=int, default=6, help="Maximum number of concurrent sessions"
    )

    args = parser.parse_args(argv)

    try:
        return CliArgs(
            file_path=args.file_path,
            self_check=args.self_check,
            port=args.port,
            max_sessions=args.max_sessions,
        )
    except ValidationError as exc:
        parser.error(str(exc))


def build_output_path(input_path: Path) -> Path:
    """
    Construct a safe output file path based on the input file.

    - Preserves the original folder
    - Replaces dots in extensions with underscores
    - Appends '_results.txt' at the end

    Examples
    --------
    input: resources/requests.7z
    output: resources/requests_7z_results.txt

    input: resources/requests.tar.xz
    output: resources/requests_tar_xz_results.txt

    :param input_path: Path to the input file
    :return: Path to the output file
    """
    suffixes = "".join(input_path.suffixes)
    base = input_path.name[: len(input_path.name) - len(suffixes)]
    suffix_safe = suffixes.replace(".", "_")
    return input_path.with_name(f"{base}{suffix_safe}_results.txt")


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main function executed by CI or Docker.

    :return: Process exit status
    :rtype: int
    """
    cli_args = parse_args(argv)

    journal: Optional[Path] = None
    if cli_args.file_path is not None:
        input_path: Path = Path(cli_args.file_path)
        output_path: Path = build_output_path(input_path)
        journal = output_path.with_name(output_path.name.replace("_results.txt", "_sessions.txt"))

    # A file replay is one session; the server exits after journaling it
    max_connections = None if cli_args.self_check else 1
    ready = Event()

    # Pass the configuration explicitly to the server
    server_process = Process(
        target=run_server,
        args=(cli_args.port, cli_args.max_sessions, journal, max_connections, ready),
    )
    server_process.start()

    if not ready.wait(timeout=SERVER_TIMEOUT):
        logger.error(f"❌ Server did not start listening on port {cli_args.port}")

    try:
        client = MathClient(port=cli_args.port)
        if cli_args.self_check:
            failures = run_self_check(client, cli_args.max_sessions)
            return 1 if failures else 0

        client.send_file(input_path, output_path)
        logger.info(f"✉️ Results written to {output_path}")
        server_process.join(timeout=SERVER_TIMEOUT)
        logger.info(f"📒 Sessions journaled to {journal}")
        return 0
    finally:
        # Ensure the server is always stopped
        server_process.terminate()
        server_process.join()


if __name__ == "__main__":
    sys.exit(main())
