"""
SSTV encoding routes.

Provides a REST API to list transmit modes, estimate output size and
encode an uploaded image into an SSTV WAV file.
"""

from __future__ import annotations

import io
import logging

from flask import Blueprint, jsonify, request, Response, send_file
from PIL import Image, UnidentifiedImageError

from sstvtx.audio import validate_bit_depth, wav_bytes
from sstvtx.config import EncoderConfig
from sstvtx.errors import MemoryLimitError, SSTVError
from sstvtx.modes import ALL_MODES, get_mode_spec
from sstvtx.modulator import SSTVModulator
from sstvtx.pipeline import enforce_memory_limit, estimate_file_size

logger = logging.getLogger('sstvtx.routes.encode')

sstv_encode_bp = Blueprint('sstv_encode', __name__, url_prefix='/sstv-encode')


def get_encoder_config() -> EncoderConfig:
    """Encoder defaults for requests that omit parameters."""
    return EncoderConfig.load_default()


def _error(message: str, status: int) -> tuple[Response, int]:
    return jsonify({
        'status': 'error',
        'message': message
    }), status


@sstv_encode_bp.route('/modes')
def list_modes() -> Response:
    """List supported transmit modes."""
    return jsonify({
        'status': 'success',
        'modes': [
            {
                'name': spec.name,
                'display_name': spec.display_name,
                'width': spec.width,
                'height': spec.height,
                'duration_seconds': spec.duration_s,
                'vis_code': spec.vis_code,
            }
            for spec in ALL_MODES.values()
        ]
    })


@sstv_encode_bp.route('/estimate')
def estimate() -> Response:
    """Estimate the WAV size for a mode, sample rate and bit depth."""
    config = get_encoder_config()
    mode = request.args.get('mode', config.mode)
    sample_rate = request.args.get('sample_rate', config.sample_rate, type=int)
    bit_depth = request.args.get('bit_depth', config.bit_depth, type=int)

    try:
        spec = get_mode_spec(mode)
        size = estimate_file_size(spec, sample_rate, bit_depth)
    except SSTVError as e:
        return _error(str(e), 400)

    return jsonify({
        'status': 'success',
        'mode': spec.name,
        'sample_rate': sample_rate,
        'bit_depth': bit_depth,
        'estimated_bytes': size,
    })


@sstv_encode_bp.route('/encode', methods=['POST'])
def encode() -> Response:
    """Encode an uploaded image and return the transmission as WAV.

    Form fields ``mode``, ``sample_rate`` and ``bit_depth`` override the
    encoder config. With ``archive=true`` the fitted image is also saved
    to the configured output directory in the configured image format.
    """
    upload = request.files.get('image')
    if upload is None:
        return _error('No image provided', 400)

    config = get_encoder_config()
    mode = request.form.get('mode', config.mode)
    sample_rate = request.form.get('sample_rate', config.sample_rate, type=int)
    bit_depth = request.form.get('bit_depth', config.bit_depth, type=int)
    archive = request.form.get('archive', 'false').lower() in ('1', 'true', 'yes')

    try:
        validate_bit_depth(bit_depth)
        modulator = SSTVModulator(mode, sample_rate)
    except ValueError as e:
        return _error(str(e), 400)

    try:
        image = Image.open(io.BytesIO(upload.read())).convert('RGB')
    except (UnidentifiedImageError, Image.DecompressionBombError, OSError) as e:
        logger.warning(f"Rejected upload {upload.filename!r}: {e}")
        return _error(f'Could not decode image: {e}', 400)

    try:
        enforce_memory_limit(image.width, image.height, modulator.mode_spec,
                             modulator.sample_rate, config.memory_limit_mb)
    except MemoryLimitError as e:
        return _error(str(e), 413)

    try:
        samples = modulator.modulate_image(image)
        payload = wav_bytes(samples, modulator.sample_rate, bit_depth)
        saved_image = None
        if archive:
            saved_image = modulator.save_processed_image_auto(
                config.output_dir, config.image_save_config())
    except ValueError as e:
        return _error(str(e), 400)
    except Exception as e:
        logger.error(f"Error encoding SSTV image: {e}")
        return _error(str(e), 500)

    metadata = modulator.metadata
    response = send_file(
        io.BytesIO(payload),
        mimetype='audio/wav',
        as_attachment=True,
        download_name=f"sstv_{modulator.mode_spec.name}_{metadata.timestamp}.wav",
    )
    response.headers['X-SSTV-Mode'] = modulator.mode_spec.name
    response.headers['X-SSTV-Sample-Rate'] = str(modulator.sample_rate)
    response.headers['X-SSTV-Scale'] = f"{metadata.scale_factor:.6f}"
    if saved_image is not None:
        response.headers['X-SSTV-Image-Path'] = str(saved_image)
    return response
