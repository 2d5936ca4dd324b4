"""
Shared configuration constants.
Keeps provider ids, extension sets and app-local directories in one place.
"""

import os

# Extensions the scanner never offers as ROM candidates
IGNORED_ROM_EXTENSIONS = [
    '.txt', '.doc', '.png', '.jpg', '.jpeg', '.gif', '.mkv', '.mpg', '.avi', '.nfo',
    '.pdf', '.rtf', '.docx', '.bmp', '.webp', '.mp3', '.mp4', '.wav',
    '.json', '.xml', '.ini', '.cfg', '.log', '.db', '.sfv', '.md5',
]

# Enrichment providers, selected once per process
PROVIDER_MOCK = 'mock'
PROVIDER_PLACEHOLDER = 'placeholder'
PROVIDER_GEMINI = 'gemini'

PROVIDERS = [
    {'id': PROVIDER_MOCK,        'name': 'Mock',          'desc': 'Deterministic test titles'},
    {'id': PROVIDER_PLACEHOLDER, 'name': 'Rule based',    'desc': 'Cleans dump tags from filenames'},
    {'id': PROVIDER_GEMINI,      'name': 'Gemini',        'desc': 'Generative text completion'},
]

# Older configurations used the name of the hosted placeholder backend
PROVIDER_ALIASES = {
    'github': PROVIDER_PLACEHOLDER,
}

DEFAULT_BATCH_SIZE = 20
DEFAULT_GEMINI_MODEL = 'gemini-2.0-flash'
DEFAULT_API_TIMEOUT_MS = 10000

# App data directory
APP_DATA_DIR = os.path.expanduser('~/.romlibrary')
LIBRARY_DATA_DIR = os.path.join(APP_DATA_DIR, 'data')
LOGS_DIR = os.path.join(APP_DATA_DIR, 'logs')
SETTINGS_FILE = os.path.join(APP_DATA_DIR, 'settings.json')
DEFAULT_ROM_ROOT = os.path.expanduser('~/roms')

PLATFORMS_FILE = 'platforms.json'
GAMES_FILE = 'games.json'
TGDB_PLATFORMS_FILE = 'thegamesdb_platforms.json'
