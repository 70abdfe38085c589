from flask import Blueprint, request, jsonify, current_app, Response
import logging

from ..exceptions import ValidationError, error_response
from ..scan.domain import validate_domains
from ..streaming import stream_scrape

bp = Blueprint('scan', __name__)

log = logging.getLogger('portalscan.api')

SSE_HEADERS = {
    'Cache-Control': 'no-cache',
    # stop reverse proxies from buffering the stream
    'X-Accel-Buffering': 'no',
}


def _flag(value):
    if value is None or isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('1', 'true', 'yes', 'on')


@bp.route('/api/scrape', methods=['POST'])
def scrape():
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        return jsonify(error_response(ValidationError('invalid JSON body'))[0]), 400
    try:
        domains = validate_domains(data.get('domains'), current_app.config['MAX_DOMAINS'])
    except ValidationError as ve:
        log.warning('/api/scrape rejected: %s', ve.message)
        body, status = error_response(ve)
        return jsonify(body), status
    include_details = _flag(data.get('details'))
    scraper = current_app.extensions['portalscan.scraper']
    log.info('/api/scrape domains=%d details=%s source=%s schedule=%s',
             len(domains), include_details, scraper.source.name, scraper.schedule)
    return Response(stream_scrape(scraper, domains, include_details=include_details),
                    mimetype='text/event-stream', headers=SSE_HEADERS)
