import argparse
import enum
import os


class LogLevel(str, enum.Enum):
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="wallpaper-catalog")

    parser.add_argument("--listen", type=str, default="127.0.0.1", metavar="IP", help="Specify the IP address to listen on (default: 127.0.0.1).")
    parser.add_argument("--port", type=int, default=8188, help="Set the listen port.")

    parser.add_argument("--database-url", type=str, default=f"sqlite:///{os.path.join(os.getcwd(), 'wallpapers.db')}", help="Specify the database URL, e.g. for an in-memory database you can use 'sqlite:///:memory:'.")
    parser.add_argument("--storage-directory", type=str, default=os.path.join(os.getcwd(), "storage"), help="Root directory where uploaded wallpaper files are stored.")
    parser.add_argument("--max-upload-size", type=float, default=30, help="Maximum accepted upload size in MiB.")

    parser.add_argument("--trusted-owner-header", type=str, default=None, metavar="HEADER", help="Resolve the caller from this header set by an authenticating reverse proxy (e.g. X-Owner-Id).")

    parser.add_argument("--verbose", default=LogLevel.INFO.value, const=LogLevel.DEBUG.value, nargs="?", choices=[level.value for level in LogLevel], help="Set the logging level")
    parser.add_argument("--log-stdout", action="store_true", help="Send normal process output to stdout instead of stderr (default).")

    return parser


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    args = build_parser().parse_args(argv)
    if args.max_upload_size <= 0:
        raise SystemExit("--max-upload-size must be positive")
    return args


def max_upload_bytes(args: argparse.Namespace) -> int:
    return int(args.max_upload_size * 1024 * 1024)
