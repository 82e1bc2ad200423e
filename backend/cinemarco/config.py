import os
from pathlib import Path
from dotenv import load_dotenv

BASE_DIR = Path(__file__).resolve().parents[2]
load_dotenv(BASE_DIR / '.env')

APP_NAME = 'Cinemarco'
APP_VERSION = '0.1.0'
HOST = os.getenv('HOST', '127.0.0.1')
PORT = int(os.getenv('PORT', '8787'))
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

API_BASE_URL = os.getenv('API_BASE_URL', f'http://{HOST}:{PORT}')
HTTP_TIMEOUT_SECONDS = float(os.getenv('HTTP_TIMEOUT_SECONDS', '25'))

TMDB_API_KEY = os.getenv('TMDB_API_KEY', '')
TMDB_IMAGE_BASE = 'https://image.tmdb.org/t/p/w500'

# Hours a cached TMDB response stays fresh, per request kind.
TMDB_CACHE_HOURS = {
    'search': 1,
    'movie': 24,
    'tv': 24,
    'season': 24,
    'credits': 24,
    'person': 168,
    'filmography': 168,
    'collection': 168,
}

NOTIFICATION_TIMEOUT_SECONDS = float(os.getenv('NOTIFICATION_TIMEOUT_SECONDS', '4'))

DB_PATH = Path(os.getenv('CINEMARCO_DB_PATH', str(BASE_DIR / 'backend' / 'data' / 'cinemarco.db')))
