from flask import Flask, jsonify
from .errors import CvflowError
from .extensions import db, migrate, clients


def create_app(test_config=None):
    """App factory.

    Service clients are built from config here and live in
    ``app.extensions`` so request handlers hand them to the services
    explicitly.
    """
    app = Flask(__name__)
    app.config.from_object('config.Config')
    if test_config:
        app.config.update(test_config)

    # service modules log under "cvflow.*" and propagate to app.logger
    app.logger.setLevel(app.config.get('LOG_LEVEL', 'INFO'))

    db.init_app(app)
    migrate.init_app(app, db, directory='alembic')
    clients.init_app(app)

    from . import models  # noqa: F401  register tables on db.metadata

    from .api import bp as api_bp
    app.register_blueprint(api_bp, url_prefix='/api/cv')

    @app.errorhandler(CvflowError)
    def handle_cvflow_error(e):
        if e.status_code >= 500:
            app.logger.error('%s: %s %s', e.code, e.message, e.details or '')
        else:
            app.logger.info('%s: %s', e.code, e.message)
        return jsonify(e.to_dict()), e.status_code

    @app.errorhandler(413)
    def handle_too_large(e):
        return jsonify({'success': False, 'error': 'File too large', 'code': 'invalid_payload'}), 413

    @app.get('/health')
    def health():
        return jsonify({'status': 'ok', 'message': 'API is running'})

    return app
