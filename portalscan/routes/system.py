import time
from flask import Blueprint, jsonify, current_app, Response

from ..metrics import get_metrics, get_content_type

system_bp = Blueprint('system', __name__)

_START_TIME = time.time()


@system_bp.route('/health', methods=['GET'])
def health():
    # lightweight status; avoid heavy imports
    uptime = time.time() - _START_TIME
    return jsonify({'status': 'ok', 'uptime_seconds': round(uptime, 2)})


@system_bp.route('/version', methods=['GET'])
def version():
    uptime = time.time() - _START_TIME
    scraper = current_app.extensions.get('portalscan.scraper')
    return jsonify({
        'version': current_app.config.get('PORTALSCAN_VERSION'),
        'uptime_seconds': round(uptime, 2),
        'scraper': scraper.source.name if scraper else None,
        'schedule': scraper.schedule if scraper else None,
        'window_size': scraper.window_size if scraper else None,
        'patterns': scraper.registry.source if scraper else None,
    })


@system_bp.route('/metrics/prometheus', methods=['GET'])
def metrics_prometheus():
    return Response(get_metrics(), content_type=get_content_type())
