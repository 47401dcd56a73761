"""
API Module
==========
Flask API routes and blueprints.
"""
from lyrics_translator.api.routes import (
    create_health_blueprint,
    create_config_blueprint,
    create_cache_blueprint,
    create_lyrics_blueprint,
    create_logs_blueprint
)

__all__ = [
    'create_health_blueprint',
    'create_config_blueprint',
    'create_cache_blueprint',
    'create_lyrics_blueprint',
    'create_logs_blueprint'
]
