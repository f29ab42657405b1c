"""
hugs - local editor for a Hugo blog.

Usage:
    hugs                          # serve ./content/post on port 8080
    hugs -d site/content/post     # another content directory
    hugs -s                       # also run `hugo server -D` in the site root
    hugs -c hugs.yaml -v          # config file, debug logging
"""

import argparse
import dataclasses
import logging
import sys
from typing import IO, List, Optional

from hugs.app import create_app
from hugs.config import Config, load_config
from hugs.errors import ExternalToolError
from hugs.preview import PreviewServer

LOG_FORMAT = '[%(asctime)s] %(levelname)s %(name)s: %(message)s'


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog='hugs', description='Hugo blog editor server')
    parser.add_argument('-p', '--port', type=int, default=None,
                        help='Port to run the server on (default: 8080)')
    parser.add_argument('-d', '--content-dir', default=None,
                        help='Path to the content/post directory (default: ./content/post)')
    parser.add_argument('-v', '--debug', action='store_true', default=None,
                        help='Enable debug logging')
    parser.add_argument('-s', '--hugo-server', action='store_true', default=None,
                        help='Start the local Hugo server alongside the editor')
    parser.add_argument('-c', '--config', default=None,
                        help='YAML config file (default: ./hugs.yaml if present)')
    return parser


def configure_logging(debug: bool = False, stream: Optional[IO[str]] = None) -> logging.Logger:
    """Send the ``hugs`` loggers to *stream*. Called once at startup."""
    handler = logging.StreamHandler(stream or sys.stdout)
    handler.setFormatter(logging.Formatter(LOG_FORMAT, datefmt='%Y-%m-%dT%H:%M:%S'))
    logger = logging.getLogger('hugs')
    logger.handlers[:] = [handler]
    logger.setLevel(logging.DEBUG if debug else logging.INFO)
    return logger


def resolve_config(args: argparse.Namespace) -> Config:
    config = load_config(args.config)
    overrides = {
        'port': args.port,
        'content_dir': args.content_dir,
        'debug': args.debug,
        'hugo_server': args.hugo_server,
    }
    return dataclasses.replace(config, **{k: v for k, v in overrides.items() if v is not None})


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    config = resolve_config(args)
    logger = configure_logging(config.debug)
    logger.debug('Debug logging enabled')

    try:
        config.check()
    except FileNotFoundError as exc:
        logger.error('%s', exc)
        return 1

    preview = None
    if config.hugo_server:
        preview = PreviewServer(config.site_root, logger=logging.getLogger('hugs.preview'))
        try:
            preview.start()
        except ExternalToolError as exc:
            logger.error('Failed to start Hugo server: %s', exc)
            preview = None

    app = create_app(config)
    logger.info('Using content directory %s', app.config['CONTENT_DIR'])
    logger.info('Starting server at http://%s:%d', config.host, config.port)
    try:
        app.run(host=config.host, port=config.port, threaded=True)
    finally:
        if preview is not None:
            preview.stop()
    return 0


if __name__ == '__main__':
    sys.exit(main())
