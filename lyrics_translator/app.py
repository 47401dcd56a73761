"""
Lyrics Translator Application
=============================
Flask application factory for the control API and the server entry point.
"""
from flask import Flask
from flask_cors import CORS

from lyrics_translator.config import config
from lyrics_translator.api.routes import (
    create_health_blueprint,
    create_config_blueprint,
    create_cache_blueprint,
    create_lyrics_blueprint,
    create_logs_blueprint
)
from lyrics_translator.api.middleware import log_request, start_timer
from lyrics_translator.services.pipeline import PipelineWorker, TranslationPipeline
from lyrics_translator.utils.logging import get_logger, debug_print


def create_app(
    pipeline: TranslationPipeline = None,
    worker: PipelineWorker = None,
    testing: bool = False
) -> Flask:
    """
    Application factory for Flask app.

    Args:
        pipeline: Pipeline the API controls (a default one is created if omitted)
        worker: Worker thread driving the pipeline, reported by the health check
        testing: If True, configure for testing

    Returns:
        Configured Flask application
    """
    app = Flask(__name__)

    app.config.update(
        JSON_SORT_KEYS=False,
        TESTING=testing
    )

    cors_origins = config.server.cors_origins
    if testing:
        cors_origins = ['*']

    CORS(app, resources={r"/api/*": {"origins": cors_origins}})

    if pipeline is None:
        pipeline = TranslationPipeline()
    app.extensions['lyrics_pipeline'] = pipeline

    # Register blueprints
    app.register_blueprint(create_health_blueprint(pipeline, worker))
    app.register_blueprint(create_config_blueprint(pipeline))
    app.register_blueprint(create_cache_blueprint(pipeline))
    app.register_blueprint(create_lyrics_blueprint(pipeline))
    app.register_blueprint(create_logs_blueprint())

    app.before_request(start_timer)
    app.after_request(log_request)

    # Error handlers
    @app.errorhandler(400)
    def bad_request(e):
        return {'error': 'Bad request', 'details': str(e)}, 400

    @app.errorhandler(404)
    def not_found(e):
        return {'error': 'Resource not found'}, 404

    @app.errorhandler(405)
    def method_not_allowed(e):
        return {'error': 'Method not allowed'}, 405

    @app.errorhandler(500)
    def internal_error(e):
        logger = get_logger().api_logger
        logger.error(f"Internal error: {e}")
        return {'error': 'Internal server error'}, 500

    get_logger().api_logger.info("Lyrics Translator control API initialized")
    if config.logging.verbose_debug:
        debug_print("Application initialized", 'INFO', 'APP')

    return app


def run_server():
    """Run the control API with a pipeline worker in the background."""
    pipeline = TranslationPipeline()
    worker = PipelineWorker(pipeline)
    worker.start()

    app = create_app(pipeline=pipeline, worker=worker)
    settings = pipeline.settings.to_dict()

    print(f"""
============================================================
  Lyrics Translator
------------------------------------------------------------
  Server:   http://{config.server.host}:{config.server.port}
  Provider: {settings['provider']}
  Model:    {settings['model'] or '(not set)'}
  Debug:    {'Enabled' if config.logging.verbose_debug else 'Disabled'}
============================================================
    """)

    try:
        app.run(
            host=config.server.host,
            port=config.server.port,
            debug=config.server.debug,
            use_reloader=False,
            threaded=True
        )
    finally:
        worker.stop()
        pipeline.close()


if __name__ == '__main__':
    run_server()
