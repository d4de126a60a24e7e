import os
import tempfile
from datetime import timedelta
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

BASE_DIR = os.path.dirname(os.path.abspath(__file__))


class Config:
    """Application configuration"""
    SECRET_KEY = os.environ.get('SECRET_KEY')

    # CoinGecko API Configuration
    COINGECKO_BASE_URL = os.environ.get('COINGECKO_BASE_URL', 'https://api.coingecko.com/api/v3')
    COINGECKO_MARKETS_URL = f'{COINGECKO_BASE_URL}/coins/markets'
    REQUEST_TIMEOUT = float(os.environ.get('REQUEST_TIMEOUT', '10'))

    # Holdings store
    HOLDINGS_FILE = os.environ.get('HOLDINGS_FILE') or os.path.join(BASE_DIR, 'data', 'coins.json')

    # Refresh settings
    REFRESH_INTERVAL_SECONDS = int(os.environ.get('REFRESH_INTERVAL_SECONDS', '300'))  # 5 minutes
    CACHE_TIMEOUT = timedelta(minutes=5)
    ENABLE_POLLER = os.environ.get('ENABLE_POLLER', 'true').lower() == 'true'

    # Currency display (fixed rates, 1 USD = rate units of target)
    BASE_CURRENCY = 'USD'
    EXCHANGE_RATES = {
        'USD': 1.0,
        'CAD': 1.36,
        'INR': 83.0,
    }

    # Distribution chart
    CHART_PALETTE = (
        '#3b82f6',  # blue
        '#8b5cf6',  # purple
        '#ec4899',  # pink
        '#ef4444',  # red
        '#f97316',  # orange
        '#f59e0b',  # amber
        '#10b981',  # emerald
        '#06b6d4',  # cyan
        '#6366f1',  # indigo
        '#a855f7',  # violet
    )
    DISTRIBUTION_INNER_RADIUS = 0.6
    DISTRIBUTION_SIZE = 250


class DevelopmentConfig(Config):
    """Development configuration with fallbacks"""
    DEBUG = True
    # Only provide fallbacks for non-sensitive config in development
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'dev-secret-key'


class ProductionConfig(Config):
    """Production configuration - no fallbacks"""
    DEBUG = False

    @classmethod
    def validate(cls):
        if not cls.SECRET_KEY:
            raise ValueError("SECRET_KEY environment variable is required")


class TestingConfig(Config):
    """Testing configuration"""
    TESTING = True
    # Use test values
    SECRET_KEY = 'test-secret'
    COINGECKO_BASE_URL = 'http://localhost:9/api/v3'
    COINGECKO_MARKETS_URL = f'{COINGECKO_BASE_URL}/coins/markets'
    REQUEST_TIMEOUT = 0.5
    HOLDINGS_FILE = os.path.join(tempfile.gettempdir(), 'crypto-portfolio-test-coins.json')
    ENABLE_POLLER = False


# Configuration factory
config = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig
}
