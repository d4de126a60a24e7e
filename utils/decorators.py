import logging
from functools import wraps

from flask import jsonify

logger = logging.getLogger(__name__)


def handle_api_errors(f):
    """Decorator to handle API errors gracefully"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        try:
            return f(*args, **kwargs)
        except ValueError as e:
            return jsonify({'status': 'error', 'message': str(e)}), 400
        except Exception as e:
            logger.exception(f"API Error in {f.__name__}: {str(e)}")
            return jsonify({'status': 'error', 'message': str(e)}), 500
    return decorated_function
