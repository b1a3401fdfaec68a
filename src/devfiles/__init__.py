import argparse
import sys
import time
from pathlib import Path

_logger_module = None
_translation_module = None


def _get_logger_funcs():
    """Lazy load logger functions."""
    global _logger_module
    if _logger_module is None:
        from .utils import logger as _logger_module
    return _logger_module


def _get_translation():
    """Lazy load translation function."""
    global _translation_module
    if _translation_module is None:
        from .utils import translation_utils as _translation_module
    return _translation_module._


def _format_entry(entry) -> str:
    name = entry.filename + ("/" if entry.is_directory else "")
    if entry.attrs is None:
        return f"{entry.mode_string} {'?':>10} {'?':>16}  {name}"
    mtime = time.strftime("%Y-%m-%d %H:%M", time.localtime(entry.mtime))
    return f"{entry.mode_string} {entry.size:>10} {mtime:>16}  {name}"


def _report_outcome(outcome, verb: str) -> int:
    _ = _get_translation()
    if outcome is None:
        return 0
    if outcome.aborted:
        print(
            _("{} aborted after {} of {} items ({} not attempted)").format(
                verb, outcome.attempted, outcome.total, outcome.remaining
            ),
            file=sys.stderr,
        )
        return 1
    if outcome.skipped:
        print(
            _("{} finished, skipped: {}").format(verb, ", ".join(outcome.skipped_items)),
            file=sys.stderr,
        )
    return 0


def build_parser() -> argparse.ArgumentParser:
    _ = _get_translation()
    parser = argparse.ArgumentParser(
        prog="devfiles",
        description=_("Browse and transfer files on a developer device over SSH"),
    )

    class LazyVersionAction(argparse.Action):
        def __call__(self, parser, _namespace, values, _option_string=None):
            from .settings.config import AppConstants

            print(f"devfiles {AppConstants.APP_VERSION}")
            parser.exit()

    parser.add_argument(
        "--version", "-v", nargs=0, action=LazyVersionAction, help=_("Show version and exit")
    )
    parser.add_argument("--debug", "-d", action="store_true", help=_("Enable debug mode"))
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help=_("Set logging level"),
    )
    parser.add_argument(
        "--device", "-D", metavar="NAME", help=_("Device to use (defaults to the default device)")
    )
    parser.add_argument(
        "--on-error",
        choices=["ask", "skip", "abort"],
        default="ask",
        help=_("What to do when one item of a batch fails"),
    )

    commands = parser.add_subparsers(dest="command", required=True)
    commands.add_parser("devices", help=_("List configured devices"))

    ls_parser = commands.add_parser("ls", help=_("List a remote directory"))
    ls_parser.add_argument("path", nargs="?", default=None)
    ls_parser.add_argument("--sort", choices=["name", "size", "mtime"], default="name")
    ls_parser.add_argument("--reverse", "-r", action="store_true")

    get_parser = commands.add_parser("get", help=_("Download remote files"))
    get_parser.add_argument("remote", nargs="+")
    get_parser.add_argument("--output", "-o", default=".", help=_("Save path or directory"))

    put_parser = commands.add_parser("put", help=_("Upload local files"))
    put_parser.add_argument("local", nargs="+")
    put_parser.add_argument("--directory", "-C", default=None, help=_("Remote directory"))

    rm_parser = commands.add_parser("rm", help=_("Delete remote files or directories"))
    rm_parser.add_argument("remote", nargs="+")
    rm_parser.add_argument("--yes", "-y", action="store_true", help=_("Do not ask for confirmation"))

    open_parser = commands.add_parser("open", help=_("Download a file and open it locally"))
    open_parser.add_argument("remote")
    return parser


def run_command(args, device_manager, decisions, progress, settings) -> int:
    from .filemanager.operations import FileBrowser

    _ = _get_translation()
    if args.command == "devices":
        for device in device_manager.list_devices():
            marker = "*" if device.default else " "
            print(f"{marker} {device.name}\t{device.username}@{device.host}:{device.port}")
        return 0

    device_name = args.device
    if not device_name:
        device = device_manager.default_device()
        if device is None:
            print(_("No device selected; use --device NAME"), file=sys.stderr)
            return 2
        device_name = device.name

    browser = FileBrowser(device_manager, device_name, decisions, progress, settings)

    if args.command == "ls":
        if args.path:
            browser.cd(args.path)
        else:
            browser.home()
        for entry in browser.sort_by(args.sort, args.reverse):
            print(_format_entry(entry))
        return 0

    if args.command == "get":
        entries = [browser.entry_for(path) for path in args.remote]
        return _report_outcome(browser.download_files(entries, Path(args.output)), _("Download"))

    if args.command == "put":
        browser.cd(args.directory or settings.get("default_directory", "/"))
        return _report_outcome(browser.upload_files(args.local), _("Upload"))

    if args.command == "rm":
        entries = [browser.entry_for(path) for path in args.remote]
        outcome = browser.remove_files(entries, confirm=not args.yes)
        if outcome is None:
            print(_("Nothing deleted."), file=sys.stderr)
        return _report_outcome(outcome, _("Delete"))

    if args.command == "open":
        local_path = browser.open_file(browser.entry_for(args.remote))
        print(local_path)
        return 0

    return 2


def main(argv=None) -> int:
    """Main entry point for the command line tool."""
    logger_mod = _get_logger_funcs()
    _ = _get_translation()

    parser = build_parser()
    try:
        args = parser.parse_args(argv)
    except SystemExit as e:
        return e.code if isinstance(e.code, int) else 0

    from .devices.manager import DeviceManager
    from .devices.storage import DeviceStorageManager
    from .filemanager.batch import Decision, PolicyDecisionProvider
    from .settings.config import ConfigPaths, load_settings
    from .ui.console import ConsoleDecisionProvider, ConsoleProgress
    from .utils.exceptions import DevfilesError, describe_error, handle_exception

    logger = logger_mod.get_logger("devfiles.main")
    try:
        config_paths = ConfigPaths()
        settings = load_settings(config_paths)
    except DevfilesError as e:
        print(_("Configuration error: {}").format(e.message), file=sys.stderr)
        return 1

    logger_mod.set_log_directory(config_paths.LOG_DIR)
    if settings.get("log_to_file"):
        logger_mod.set_log_to_file_enabled(True)
    if args.debug:
        logger_mod.enable_debug_mode()
    elif args.log_level:
        logger_mod.set_console_log_level(args.log_level)
    elif settings.get("console_log_level"):
        logger_mod.set_console_log_level(settings["console_log_level"])

    if args.on_error == "ask":
        decisions = ConsoleDecisionProvider()
    else:
        decisions = PolicyDecisionProvider(
            Decision.SKIP if args.on_error == "skip" else Decision.ABORT
        )

    device_manager = DeviceManager(DeviceStorageManager(config_paths.DEVICES_FILE), settings)
    try:
        return run_command(args, device_manager, decisions, ConsoleProgress(), settings)
    except DevfilesError as e:
        logger.debug(f"Command {args.command} failed: {e}")
        print(_("Error: {}").format(describe_error(e)), file=sys.stderr)
        return 1
    except KeyboardInterrupt:
        logger.info("Interrupted by user.")
        return 130
    except Exception as e:
        error = handle_exception(e, f"devfiles {args.command}", "devfiles.main")
        print(_("A fatal error occurred: {}").format(error.message), file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
