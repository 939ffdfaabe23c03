"""
Command-line interface for taskgen.

Creates, deletes, lists and operates on systemd service/timer pairs:

    taskgen -n backup -c "/usr/local/bin/backup.sh" -f daily
    taskgen -n backup -o delete
    taskgen -n backup -o status -u service
    taskgen --list
"""

import argparse
import logging
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from taskgen import __version__
from taskgen.config import TaskgenConfig
from taskgen.errors import ConfigError, InvalidTaskError, UnsupportedVerbError
from taskgen.lifecycle import ALLOWED_VERBS, CommandRunner, LifecycleDriver
from taskgen.orchestrator import OperationReport, TaskOrchestrator
from taskgen.store import DB_FORMATS, open_store
from taskgen.units import UNIT_KINDS, unit_file_name

logger = logging.getLogger(__name__)


def setup_logging(log_file: str = None, verbose: bool = False):
    """Setup logging configuration."""
    level = logging.DEBUG if verbose else logging.INFO

    root_logger = logging.getLogger()
    root_logger.setLevel(level)

    # Drop handlers from an earlier call in the same process
    for handler in list(root_logger.handlers):
        if getattr(handler, "_taskgen", False):
            root_logger.removeHandler(handler)

    # Console handler
    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    console_handler.setFormatter(logging.Formatter(
        '%(asctime)s [%(levelname)s] %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    console_handler._taskgen = True
    root_logger.addHandler(console_handler)

    # File handler
    if log_file:
        log_path = Path(log_file).expanduser()
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.FileHandler(log_path)
        file_handler.setLevel(level)
        file_handler.setFormatter(logging.Formatter(
            '%(asctime)s [%(levelname)s] %(name)s: %(message)s'
        ))
        file_handler._taskgen = True
        root_logger.addHandler(file_handler)


def prompt_for_commands(stream=None) -> List[str]:
    """Read commands from stdin, one per line, until an empty line or EOF."""
    stream = stream if stream is not None else sys.stdin
    print("Enter commands to execute, one per line. Leave empty line to finish:")
    commands = []
    while True:
        print("> ", end="", flush=True)
        line = stream.readline()
        if not line:
            print()
            break
        line = line.strip()
        if not line:
            break
        commands.append(line)
    return commands


def _report_result(report: OperationReport) -> int:
    for warning in report.warnings:
        print(f"Warning: step {warning.step} failed: {warning.detail}", file=sys.stderr)
    if not report.ok:
        print(f"Error: {report.summary()}", file=sys.stderr)
        return 1
    return 0


def cmd_list(args, orchestrator: TaskOrchestrator) -> int:
    """List all tasks created by taskgen."""
    result = orchestrator.list_tasks()
    if result.recovered:
        print(
            f"Warning: database {orchestrator.store.path} could not be fully read "
            f"({result.reason})",
            file=sys.stderr,
        )

    print("List of systemd timers and services created by taskgen:")
    if not result.records:
        print("No tasks have been created yet.")
    for record in result.records:
        print(record)
    return 0


def cmd_create(args, orchestrator: TaskOrchestrator) -> int:
    """Create, enable and start a service/timer pair."""
    commands = args.command if args.command else prompt_for_commands()

    try:
        report = orchestrator.create(
            args.name,
            commands,
            frequency=args.frequency,
            timer_options=args.timer_options,
            script_path=args.create_script,
        )
    except InvalidTaskError as e:
        logger.error(str(e))
        return 1

    code = _report_result(report)
    if code == 0:
        print(f"Service and timer for {args.name} created and started successfully.")
    return code


def cmd_delete(args, orchestrator: TaskOrchestrator) -> int:
    """Stop, disable and remove a service/timer pair."""
    report = orchestrator.delete(args.name)
    code = _report_result(report)
    if code == 0:
        print(f"Service and timer for {args.name} deleted successfully.")
    return code


def cmd_operate(args, orchestrator: TaskOrchestrator) -> int:
    """Run an allow-listed systemctl verb on the task's service or timer."""
    try:
        report = orchestrator.operate(args.name, args.operation, args.unit)
    except (UnsupportedVerbError, InvalidTaskError) as e:
        logger.error(str(e))
        return 1

    code = _report_result(report)
    if code == 0:
        argv = orchestrator.driver.build_argv(args.operation, unit_file_name(args.name, args.unit))
        print(f"{' '.join(argv)} executed")
    return code


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="taskgen",
        description="Systemd Timer Manager - create and manage systemd timers and services",
        epilog=f"Operations: create (default), delete, or one of: {', '.join(ALLOWED_VERBS)}",
        formatter_class=argparse.RawDescriptionHelpFormatter
    )

    parser.add_argument('-n', '--name', help='Name of the systemd service and timer')
    parser.add_argument(
        '-c', '--command',
        action='append',
        help='Command that the service will execute (repeat for multiple commands)'
    )
    parser.add_argument(
        '-s', '--create-script',
        metavar='SCRIPT',
        help='Create a shell script with the provided commands and use it for ExecStart'
    )
    parser.add_argument('-f', '--frequency', default='', help='Frequency of the timer (OnCalendar=)')
    parser.add_argument(
        '-o', '--operation',
        default='create',
        help='Systemd operation to perform: create (default), delete or any systemctl verb'
    )
    parser.add_argument(
        '-u', '--unit',
        choices=UNIT_KINDS,
        default='timer',
        help='Target unit type for operations: service or timer (default: timer)'
    )
    parser.add_argument(
        '-t', '--timer-options',
        default='',
        help='Additional systemd timer options, comma separated'
    )
    parser.add_argument(
        '-l', '--list',
        action='store_true',
        help='List all created timers and services'
    )

    # Configuration
    parser.add_argument('--config', type=str, help='Path to INI configuration file')
    parser.add_argument('--db-file', type=str, help='Task database file')
    parser.add_argument('--unit-dir', type=str, help='Directory for unit files')
    parser.add_argument('--db-format', choices=DB_FORMATS, help='Task database format')
    parser.add_argument('--log-file', type=str, help='Log file path')
    parser.add_argument('-v', '--verbose', action='store_true', help='Enable verbose logging')
    parser.add_argument('--version', action='version', version=f'%(prog)s {__version__}')

    return parser


def build_orchestrator(config: TaskgenConfig, runner: Optional[CommandRunner] = None) -> TaskOrchestrator:
    store = open_store(config.db_path, config.db_format)
    driver = LifecycleDriver(runner, executable=config.systemctl)
    return TaskOrchestrator(store, driver, config.unit_dir)


def run(argv: Optional[Sequence[str]] = None, runner: Optional[CommandRunner] = None) -> int:
    """
    Parse arguments and perform one operation.

    Returns:
        Process exit status
    """
    parser = build_parser()
    argv = list(sys.argv[1:] if argv is None else argv)

    if not argv:
        parser.print_help()
        return 1

    args = parser.parse_args(argv)
    if not args.list and not args.name:
        parser.error("--name is required unless --list is given")

    setup_logging(log_file=args.log_file, verbose=args.verbose)

    try:
        config = TaskgenConfig(
            args.config,
            db_file=args.db_file,
            systemd_unit_dir=args.unit_dir,
            db_format=args.db_format,
        )
        errors = config.validate()
        if errors:
            for error in errors:
                logger.error(f"Invalid configuration: {error}")
            return 1
        orchestrator = build_orchestrator(config, runner)
    except ConfigError as e:
        logger.error(str(e))
        return 1

    if args.list:
        return cmd_list(args, orchestrator)
    if args.operation == 'create':
        return cmd_create(args, orchestrator)
    if args.operation == 'delete':
        return cmd_delete(args, orchestrator)
    return cmd_operate(args, orchestrator)


def main():
    """Main CLI entry point."""
    sys.exit(run())


if __name__ == '__main__':
    main()
