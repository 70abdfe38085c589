import os
from portalscan import create_app

app = create_app()

if __name__ == '__main__':
    # Debug/reloader off by default; a reload mid-batch drops open streams.
    debug_flag = os.environ.get('PORTALSCAN_DEBUG_SERVER', '0') == '1'
    port = int(os.environ.get('PORTALSCAN_PORT', '5000'))
    # threaded: each open event stream holds a worker for the whole batch
    app.run(host='0.0.0.0', port=port, debug=debug_flag, use_reloader=debug_flag, threaded=True)
