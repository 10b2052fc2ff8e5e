#!/usr/bin/env python3
"""
swatchplan/main.py

A small self-contained web service for planning wallpaper on a room photo.
It exposes JSON endpoints that take the client's calibration segment, wall
polygon and product choice, and answer with the wall area, extents and the
number of rolls to order.  It can also forward the room photo and swatch to
the generative compositing service to preview the wallpaper on the wall.

The server uses the built-in `http.server` module; each request carries the
full session snapshot, so nothing is kept between requests.

To start the application run:

    python3 -m swatchplan.main [--config config.json] [--port 8000]
"""

from __future__ import annotations

import argparse
import base64
import json
import logging
import urllib.parse
from http import HTTPStatus
from http.server import BaseHTTPRequestHandler, ThreadingHTTPServer
from typing import Any, Callable, Dict, Optional, Tuple

from .config import DEFAULT_CONFIG, merge_config
from .core import facade
from .core.errors import (
    CredentialResetRequired,
    MissingImagesError,
    RenderError,
    RenderInProgressError,
)
from .core.model import CalibrationData, IndividualRollSpec, PanoramaSpec, Point
from .core.session import WorkspaceSession
from .file_io import EncodedImage, decode_image_bytes
from .app_io.export_mod import format_csv

logger = logging.getLogger(__name__)

ClientFactory = Callable[[Optional[str]], Any]

_ERROR_STATUS = {
    MissingImagesError: HTTPStatus.BAD_REQUEST,
    CredentialResetRequired: HTTPStatus.UNAUTHORIZED,
    RenderInProgressError: HTTPStatus.CONFLICT,
}


def session_from_payload(data: Dict[str, Any], config: Optional[Dict[str, Any]] = None) -> WorkspaceSession:
    """Rebuild a session from the JSON state sent by the browser client."""
    session = WorkspaceSession(config or DEFAULT_CONFIG)
    session.calibration = CalibrationData.from_dict(data.get('calibration'))
    session.wall_mask = tuple(Point.from_dict(p) for p in data.get('wallMask') or [])
    if data.get('swatchType'):
        session.set_swatch_type(data['swatchType'])
    if data.get('individualRollSpecs'):
        session.individual_spec = IndividualRollSpec.from_dict(data['individualRollSpecs'])
    if data.get('panoramaSpecs'):
        session.panorama_spec = PanoramaSpec.from_dict(data['panoramaSpecs'])
    for key, setter in (('roomImage', session.set_room_image), ('swatchImage', session.set_swatch_image)):
        if data.get(key):
            setter(decode_image_bytes(EncodedImage.from_data_url(data[key]).data))
    return session


def handle_request(method: str, path: str, data: Dict[str, Any], config: Dict[str, Any],
                   client_factory: ClientFactory) -> Tuple[HTTPStatus, Dict[str, Any]]:
    if method == 'GET':
        if path == '/presets':
            presets = [{'name': name, 'valueCm': value} for name, value in facade.scale_presets.items()]
            return HTTPStatus.OK, {'presets': presets}
        return HTTPStatus.NOT_FOUND, {'error': f'Unknown path {path}'}

    try:
        session = session_from_payload(data, config)
    except (AttributeError, KeyError, TypeError, ValueError) as e:
        return HTTPStatus.BAD_REQUEST, {'error': f'Invalid session payload: {e}'}

    if path == '/estimate':
        result = session.estimate
        return HTTPStatus.OK, {
            'estimate': result.to_dict() if result else None,
            'scaleFactor': session.scale_factor,
        }
    if path == '/export_csv':
        csv_str = format_csv(session)
        if csv_str is None:
            return HTTPStatus.BAD_REQUEST, {'error': 'No estimate to export'}
        return HTTPStatus.OK, {'csv': base64.b64encode(csv_str.encode('utf-8')).decode('ascii')}
    if path == '/render':
        try:
            image = session.render(client_factory)
        except RenderError as e:
            status = _ERROR_STATUS.get(type(e), HTTPStatus.BAD_GATEWAY)
            return status, {'error': str(e), 'code': e.code}
        return HTTPStatus.OK, {'image': image.to_data_url()}
    return HTTPStatus.NOT_FOUND, {'error': f'Unknown path {path}'}


class SwatchPlanRequestHandler(BaseHTTPRequestHandler):
    """HTTP request handler serving the JSON endpoints."""

    config: Dict[str, Any] = DEFAULT_CONFIG
    client_factory: ClientFactory = staticmethod(facade.render_create_client)

    def log_message(self, format, *args):
        logger.info("%s - %s", self.address_string(), format % args)

    def do_GET(self):
        path = urllib.parse.urlparse(self.path).path
        self._send(*handle_request('GET', path, {}, self.config, self.client_factory))

    def do_POST(self):
        path = urllib.parse.urlparse(self.path).path
        length = int(self.headers.get('Content-Length', 0))
        body = self.rfile.read(length)
        try:
            data = json.loads(body.decode('utf-8')) if body else {}
        except (UnicodeDecodeError, json.JSONDecodeError) as e:
            self._send(HTTPStatus.BAD_REQUEST, {'error': f'Invalid JSON body: {e}'})
            return
        if not isinstance(data, dict):
            self._send(HTTPStatus.BAD_REQUEST, {'error': 'Expected a JSON object'})
            return
        self._send(*handle_request('POST', path, data, self.config, self.client_factory))

    def _send(self, status: HTTPStatus, response: Dict[str, Any]) -> None:
        resp_bytes = json.dumps(response).encode('utf-8')
        self.send_response(status.value)
        self.send_header('Content-Type', 'application/json')
        self.send_header('Content-Length', str(len(resp_bytes)))
        self.end_headers()
        self.wfile.write(resp_bytes)


def run_server(config: Dict[str, Any]) -> None:
    """Start the threaded HTTP server."""
    handler_class = type('ConfiguredHandler', (SwatchPlanRequestHandler,), {'config': config})
    server_address = (config.get('host', ''), int(config.get('port', 8000)))
    httpd = ThreadingHTTPServer(server_address, handler_class)
    logger.info("Serving on http://localhost:%d (Press CTRL+C to quit)", server_address[1])
    try:
        httpd.serve_forever()
    except KeyboardInterrupt:
        logger.info("Server stopped.")
    finally:
        httpd.server_close()


def main(argv: Optional[list] = None) -> None:
    parser = argparse.ArgumentParser(description="Wallpaper planning server")
    parser.add_argument('--config', help="JSON configuration file")
    parser.add_argument('--port', type=int, help="Port to listen on")
    args = parser.parse_args(argv)

    config = facade.file_load_config(args.config) if args.config else merge_config(None)
    if args.port is not None:
        config['port'] = args.port
    logging.basicConfig(
        level=getattr(logging, str(config.get('log_level', 'INFO')).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    run_server(config)


if __name__ == '__main__':
    main()
