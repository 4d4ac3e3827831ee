# webpanel/app.py
import logging
import os

from flask import Flask, jsonify, request, send_file
from dotenv import load_dotenv

from webpanel.config import configure_logging, load_settings
from webpanel.services.errors import NavigationFailure
from webpanel.services.pipeline import assess
from webpanel.services.utils import ensure_dir, run_dir_name, validate_url

# ----------------------------------------------------------------------
# Init / config
# ----------------------------------------------------------------------
load_dotenv()

SETTINGS = load_settings()
configure_logging(SETTINGS.log_level)
logger = logging.getLogger(__name__)

app = Flask(__name__)
app.secret_key = os.environ.get('FLASK_SECRET_KEY', 'secret-dev')
app.config['DATA_DIR'] = SETTINGS.data_dir
app.config['SETTINGS'] = SETTINGS

# files served by /download/<run>/<kind>
DOWNLOADS = {
    'desktop': ('desktop.png', 'image/png'),
    'tablet': ('tablet.png', 'image/png'),
    'mobile': ('mobile.png', 'image/png'),
    'pdf': ('report.pdf', 'application/pdf'),
}


@app.get("/health")
def health():
    return "OK", 200


# ------------------ Analyze ------------------------------------------
@app.post("/analyze")
def analyze():
    payload = request.get_json(silent=True) or {}
    url = payload.get('url') or request.form.get('url', '')
    try:
        url = validate_url(url)
    except ValueError as e:
        return jsonify({'error': str(e)}), 400

    run = run_dir_name(url)
    out_dir = os.path.join(app.config['DATA_DIR'], run)
    ensure_dir(out_dir)

    try:
        result = assess(url, out_dir=out_dir, settings=app.config['SETTINGS'])
    except NavigationFailure as e:
        logger.warning("Analysis of %s failed: %s", url, e)
        return jsonify({'error': str(e), 'stage': e.stage, 'viewport': e.viewport}), 502

    body = result.to_dict()
    body['run'] = run
    return jsonify(body), 200


# ------------------ Files --------------------------------------------
@app.get("/download/<run>/<kind>")
def download_file(run, kind):
    if kind not in DOWNLOADS or os.path.basename(run) != run:
        return f'Unknown file: {run}/{kind}', 404
    file_name, mimetype = DOWNLOADS[kind]
    path = os.path.join(app.config['DATA_DIR'], run, file_name)
    if not os.path.exists(path):
        return f'File not found: {run}/{file_name}', 404
    # rasters inline so they can back an <img>, the PDF as an attachment
    return send_file(path, mimetype=mimetype, as_attachment=(kind == 'pdf'))


# ----------------------------------------------------------------------
if __name__ == "__main__":
    app.run(debug=True, host="127.0.0.1", port=5000)
