"""
API Routes
==========
Flask blueprints for the control API.
"""
from flask import Blueprint, jsonify, request

from lyrics_translator import __version__
from lyrics_translator.api.middleware import json_body
from lyrics_translator.models.schemas import ConfigUpdateRequest, HealthStatus
from lyrics_translator.services.pipeline import PipelineWorker, TranslationPipeline
from lyrics_translator.utils.logging import get_logger, log_buffer


def create_health_blueprint(pipeline: TranslationPipeline, worker: PipelineWorker = None) -> Blueprint:
    """Create health and status routes blueprint."""
    bp = Blueprint('health', __name__, url_prefix='/api')

    @bp.route('/health', methods=['GET'])
    def health_check():
        """Health check endpoint."""
        db_healthy = pipeline.settings.store.db.is_healthy()
        worker_running = bool(worker and worker.running)
        health = HealthStatus(
            status='healthy' if db_healthy else 'degraded',
            worker_running=worker_running,
            database_connected=db_healthy,
            version=__version__
        )
        return jsonify(health.to_dict())

    @bp.route('/status', methods=['GET'])
    def pipeline_status():
        """Current pipeline state for the status indicator."""
        return jsonify(pipeline.status())

    return bp


def create_config_blueprint(pipeline: TranslationPipeline) -> Blueprint:
    """Create configuration routes blueprint."""
    bp = Blueprint('config', __name__, url_prefix='/api')
    logger = get_logger().api_logger

    @bp.route('/config', methods=['GET'])
    def get_config():
        """Current provider, model and parameters; the API key is never returned."""
        return jsonify(pipeline.settings.to_dict())

    @bp.route('/config', methods=['POST'])
    @json_body
    def update_config(data):
        """Update settings. This is the reconfiguration event that clears a fatal error."""
        update = ConfigUpdateRequest.from_dict(data)
        errors = update.validate()
        if errors:
            return jsonify({'error': '; '.join(errors)}), 400

        settings = pipeline.reconfigure(update)
        logger.info("Configuration updated via API")
        return jsonify({'message': 'Configuration updated', 'config': settings})

    return bp


def create_cache_blueprint(pipeline: TranslationPipeline) -> Blueprint:
    """Create cache routes blueprint."""
    bp = Blueprint('cache', __name__, url_prefix='/api')

    @bp.route('/cache/stats', methods=['GET'])
    def cache_stats():
        """Get cache statistics."""
        return jsonify(pipeline.cache.get_stats())

    @bp.route('/cache/clear', methods=['POST'])
    def clear_cache():
        """Clear the translation cache."""
        pipeline.clear_cache()
        return jsonify({'message': 'Cache cleared'})

    return bp


def create_lyrics_blueprint(pipeline: TranslationPipeline) -> Blueprint:
    """Create routes for loading a song into the in-memory document."""
    bp = Blueprint('lyrics', __name__, url_prefix='/api')
    logger = get_logger().api_logger

    @bp.route('/lyrics', methods=['POST'])
    @json_body
    def load_lyrics(data):
        """Replace the watched document with the given lines."""
        lines = data.get('lines')
        if not isinstance(lines, list) or not all(isinstance(line, str) for line in lines):
            return jsonify({'error': 'lines must be a list of strings'}), 400

        artists = data.get('artists') or []
        if isinstance(artists, str):
            artists = [artists]
        title = data.get('title')
        if title is not None and not isinstance(title, str):
            return jsonify({'error': 'title must be a string'}), 400

        viewport_height = data.get('viewport_height')
        if viewport_height is not None:
            try:
                viewport_height = float(viewport_height)
            except (TypeError, ValueError):
                return jsonify({'error': 'viewport_height must be a number'}), 400

        pipeline.load_song(lines, title=title, artists=artists, viewport_height=viewport_height)
        logger.info(f"Loaded {len(lines)} lines via API")
        return jsonify({'message': 'Lyrics loaded', 'lines': len(lines)}), 202

    @bp.route('/lyrics', methods=['GET'])
    def get_lyrics():
        """Lines of the current document with their rendered translations."""
        return jsonify({'lines': pipeline.rendered_lines(), 'status': pipeline.status()})

    return bp


def create_logs_blueprint() -> Blueprint:
    """Create logs routes blueprint for the status console."""
    bp = Blueprint('logs', __name__, url_prefix='/api')

    @bp.route('/logs', methods=['GET'])
    def get_logs():
        """Recent status lines, filtered by ``since``, ``source`` and ``level``."""
        logs = log_buffer.get_since(
            request.args.get('since', 0, type=int),
            source=request.args.get('source'),
            min_level=request.args.get('level')
        )
        return jsonify({'logs': logs, 'last_id': log_buffer.last_id})

    @bp.route('/logs/clear', methods=['POST'])
    def clear_logs():
        """Clear the log buffer."""
        log_buffer.clear()
        return jsonify({'message': 'Logs cleared'})

    return bp
