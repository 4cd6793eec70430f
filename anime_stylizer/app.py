from __future__ import annotations

from dataclasses import asdict

from flask import Flask, jsonify, request

from .codec import decode_image, encode_png, fit_within
from .config import SETTINGS, configure_logging
from .errors import DecodeFailure, InvalidParameters, SurfaceUnavailable, UpscaleFailure
from .infrastructure.cache import CACHE, cache_key
from .infrastructure.responses import send_png, send_png_bytes
from .infrastructure.upscaler import UPSCALER, estimate_upscale_seconds, upscale
from .processing.buffer import histogram
from .processing.enhance import sharpen
from .processing.pipeline import PRESETS, normalize_intensity, preset_parameters, stylize

APP_VERSION = "1.0.0"


def _request_payload() -> bytes:
    upload = request.files.get("image")
    if upload is not None:
        return upload.read()
    return request.get_data()


def _intensity_arg() -> float:
    raw = request.args.get("intensity")
    if raw is None or raw == "":
        return normalize_intensity(SETTINGS.default_intensity)
    try:
        return normalize_intensity(float(raw))
    except ValueError:
        raise InvalidParameters(f"intensity must be a number between 0 and 100, got {raw!r}") from None


def create_app() -> Flask:
    logger = configure_logging()
    app = Flask(__name__)

    @app.errorhandler(DecodeFailure)
    @app.errorhandler(InvalidParameters)
    def bad_request(exc):
        logger.warning("Rejected request: %s", exc)
        return jsonify(error=type(exc).__name__, message=str(exc)), 400

    @app.errorhandler(SurfaceUnavailable)
    def surface_unavailable(exc):
        logger.error("Surface unavailable: %s", exc)
        return jsonify(error=type(exc).__name__, message=str(exc)), 503

    @app.errorhandler(UpscaleFailure)
    def upscale_failed(exc):
        logger.error("Upscale failed: %s", exc)
        status = 502 if UPSCALER.configured else 503
        return jsonify(error=type(exc).__name__, message=str(exc)), status

    @app.route("/stylize/<preset>", methods=["POST"])
    def stylize_image(preset: str):
        preset = preset.lower()
        if preset not in PRESETS:
            return jsonify(error="UnknownPreset", message=f"Unknown preset: {preset}"), 404

        intensity = _intensity_arg()
        payload = _request_payload()
        key = cache_key(payload, preset, intensity)
        cached = CACHE.get(key)
        if cached:
            logger.debug("Cache hit for %s", key)
            return send_png_bytes(cached)

        src = fit_within(decode_image(payload))
        out = stylize(src, preset, intensity)
        data = encode_png(out)
        CACHE.put(key, data)
        return send_png_bytes(data)

    @app.route("/upscale", methods=["POST"])
    def upscale_image():
        try:
            scale = int(request.args.get("scale", "2"))
        except ValueError:
            raise InvalidParameters("scale must be 2, 3 or 4") from None
        src = decode_image(_request_payload())
        logger.info(
            "Upscaling %dx%d by %d (estimated %ds)",
            src.width,
            src.height,
            scale,
            estimate_upscale_seconds(src.width, src.height, scale),
        )
        return send_png(upscale(src, scale))

    @app.route("/sharpen", methods=["POST"])
    def sharpen_image():
        src = decode_image(_request_payload())
        return send_png(sharpen(src))

    @app.route("/histogram", methods=["POST"])
    def histogram_view():
        src = decode_image(_request_payload())
        return jsonify(histogram(src)._asdict())

    @app.route("/presets")
    def presets_view():
        intensity = normalize_intensity(SETTINGS.default_intensity)
        return jsonify(
            {
                name: {
                    "stages": list(pipeline.stage_names),
                    "parameters": preset_parameters(name, intensity).as_dict(),
                }
                for name, (pipeline, _) in PRESETS.items()
            }
        )

    @app.route("/settings")
    def settings_view():
        return jsonify(asdict(SETTINGS))

    @app.route("/health")
    def health():
        return jsonify(
            ok=True,
            version=APP_VERSION,
            workers=SETTINGS.resolved_workers(),
            upscaler=UPSCALER.configured,
        )

    return app


# Expose a module-level Flask application for Gunicorn import paths like ``anime_stylizer.app:app``
# and provide a conventional ``application`` alias for WSGI servers that default to that name.
app = create_app()
application = app
