"""Tests for the JSON endpoints and CSV export."""

import base64
from http import HTTPStatus

from conftest import image_response
from swatchplan.app_io.export_mod import CSV_HEADER, export_csv, format_csv
from swatchplan.config import DEFAULT_CONFIG
from swatchplan.core import facade
from swatchplan.core.session import WorkspaceSession
from swatchplan.main import handle_request, session_from_payload

PAYLOAD = {
    'calibration': {'p1': {'x': 0.0, 'y': 0.5}, 'p2': {'x': 0.1, 'y': 0.5}, 'realWorldValueCm': 100},
    'wallMask': [{'x': 0, 'y': 0}, {'x': 1, 'y': 0}, {'x': 1, 'y': 2}, {'x': 0, 'y': 2}],
    'swatchType': 'INDIVIDUAL',
    'individualRollSpecs': {'widthCm': 53, 'lengthM': 10},
    'panoramaSpecs': {'rollWidthCm': 70, 'totalRolls': 7, 'designHeightCm': 325},
}


def _post(path, data, factory=None):
    return handle_request('POST', path, data, DEFAULT_CONFIG, factory or (lambda key: None))


def test_presets_endpoint():
    status, body = handle_request('GET', '/presets', {}, DEFAULT_CONFIG, lambda key: None)
    assert status == HTTPStatus.OK
    assert [p['valueCm'] for p in body['presets']] == [29.7, 210.0, 80.0]


def test_estimate_endpoint():
    status, body = _post('/estimate', PAYLOAD)
    assert status == HTTPStatus.OK
    assert body['estimate'] == {'area': '200.00', 'width': '1000.0', 'height': '2000.0', 'rolls': 42}


def test_estimate_endpoint_without_preconditions():
    status, body = _post('/estimate', dict(PAYLOAD, wallMask=PAYLOAD['wallMask'][:2]))
    assert status == HTTPStatus.OK
    assert body['estimate'] is None


def test_bad_payload_is_rejected():
    status, body = _post('/estimate', dict(PAYLOAD, swatchType='WALLPAPER'))
    assert status == HTTPStatus.BAD_REQUEST
    status, _ = _post('/estimate', dict(PAYLOAD, wallMask=[{'x': 0.1}]))
    assert status == HTTPStatus.BAD_REQUEST


def test_unknown_paths():
    assert _post('/nope', {})[0] == HTTPStatus.NOT_FOUND
    assert handle_request('GET', '/nope', {}, DEFAULT_CONFIG, lambda key: None)[0] == HTTPStatus.NOT_FOUND


def test_render_endpoint(fake_client_factory, room_image, swatch_image, composite_png):
    factory, models = fake_client_factory(response=image_response(composite_png))
    data = dict(PAYLOAD, roomImage=room_image.to_data_url(), swatchImage=swatch_image.to_data_url())
    status, body = _post('/render', data, factory)
    assert status == HTTPStatus.OK
    assert body['image'] == 'data:image/png;base64,' + base64.b64encode(composite_png).decode('ascii')
    assert len(models.calls) == 1


def test_render_endpoint_error_codes(fake_client_factory, room_image, swatch_image):
    status, body = _post('/render', dict(PAYLOAD, roomImage=room_image.to_data_url()))
    assert status == HTTPStatus.BAD_REQUEST
    assert body['code'] == 'MISSING_IMAGES'

    data = dict(PAYLOAD, roomImage=room_image.to_data_url(), swatchImage=swatch_image.to_data_url())
    factory, _ = fake_client_factory(error=RuntimeError("Requested entity was not found."))
    status, body = _post('/render', data, factory)
    assert status == HTTPStatus.UNAUTHORIZED
    assert body['code'] == 'KEY_RESET_REQUIRED'

    factory, _ = fake_client_factory(error=RuntimeError("upstream exploded"))
    status, body = _post('/render', data, factory)
    assert status == HTTPStatus.BAD_GATEWAY
    assert body == {'error': 'upstream exploded', 'code': 'RENDER_FAILED'}


def test_session_from_payload_defaults():
    session = session_from_payload({})
    assert session.wall_mask == ()
    assert session.estimate is None
    assert session.room_image is None


def test_export_csv_endpoint():
    status, body = _post('/export_csv', PAYLOAD)
    assert status == HTTPStatus.OK
    csv_str = base64.b64decode(body['csv']).decode('utf-8')
    assert csv_str == CSV_HEADER + 'INDIVIDUAL,1000.0000,200.00,1000.0,2000.0,42\n'
    assert _post('/export_csv', {})[0] == HTTPStatus.BAD_REQUEST


def test_export_csv_file(tmp_path):
    session = session_from_payload(PAYLOAD)
    path = tmp_path / "estimate.csv"
    assert facade.export_csv(session, str(path)) is True
    assert path.read_text(encoding='utf-8') == format_csv(session)
    assert export_csv(WorkspaceSession(), str(tmp_path / "empty.csv")) is False
    assert not (tmp_path / "empty.csv").exists()


def test_facade_exposes_estimator():
    session = session_from_payload(PAYLOAD)
    result = facade.rolls_estimate(session.calibration, session.wall_mask, session.swatch_type,
                                   session.active_spec)
    assert result == session.estimate


def test_non_finite_calibration_gives_no_estimate():
    calibration = dict(PAYLOAD['calibration'], realWorldValueCm=float('nan'))
    status, body = _post('/estimate', dict(PAYLOAD, calibration=calibration))
    assert status == HTTPStatus.OK
    assert body == {'estimate': None, 'scaleFactor': None}


def test_malformed_calibration_is_rejected():
    status, body = _post('/estimate', dict(PAYLOAD, calibration=[0.1, 0.5]))
    assert status == HTTPStatus.BAD_REQUEST
    assert body['error'].startswith('Invalid session payload')


def test_client_factory_failure_is_bad_gateway(room_image, swatch_image):
    def broken_factory(api_key):
        raise ValueError("Missing key inputs argument!")

    data = dict(PAYLOAD, roomImage=room_image.to_data_url(), swatchImage=swatch_image.to_data_url())
    status, body = _post('/render', data, broken_factory)
    assert status == HTTPStatus.BAD_GATEWAY
    assert body == {'error': 'Missing key inputs argument!', 'code': 'RENDER_FAILED'}
