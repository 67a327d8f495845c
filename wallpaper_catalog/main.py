import logging

from aiohttp import web

from wallpaper_catalog import cli_args
from wallpaper_catalog.catalog.api.identity import IdentityProvider, TrustedHeaderIdentity
from wallpaper_catalog.catalog.api.routes import register_wallpaper_system
from wallpaper_catalog.catalog.services.storage import init_storage
from wallpaper_catalog.database.db import init_db
from wallpaper_catalog.logger import setup_logger


def create_app(args) -> web.Application:
    init_db(args.database_url)
    store = init_storage(args.storage_directory)
    logging.info("Storing wallpapers under %s", store.root)

    if args.trusted_owner_header:
        identity: IdentityProvider = TrustedHeaderIdentity(args.trusted_owner_header)
    else:
        identity = IdentityProvider()

    max_bytes = cli_args.max_upload_bytes(args)
    # Leave headroom for the multipart envelope around the file part.
    app = web.Application(client_max_size=max_bytes + 1024 * 1024)
    register_wallpaper_system(app, identity, max_upload_bytes=max_bytes)
    return app


def main(argv: list[str] | None = None) -> None:
    args = cli_args.parse_args(argv)
    setup_logger(log_level=args.verbose, use_stdout=args.log_stdout)
    app = create_app(args)
    logging.info("Starting server on %s:%d", args.listen, args.port)
    web.run_app(app, host=args.listen, port=args.port, print=None)


if __name__ == "__main__":
    main()
