import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    HOST = os.environ.get('HOST', '0.0.0.0')
    PORT = int(os.environ.get('PORT', '3000'))
    # Comma-separated list, or '*' for any origin
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*')
    # Room roster
    ROOM_CAPACITY = int(os.environ.get('ROOM_CAPACITY', '6'))
    MIN_PLAYERS = int(os.environ.get('MIN_PLAYERS', '2'))
    SPAWN_X = float(os.environ.get('SPAWN_X', '400'))
    SPAWN_Y = float(os.environ.get('SPAWN_Y', '300'))
    # Round timer (seconds)
    DEFAULT_ROUND_SEC = int(os.environ.get('DEFAULT_ROUND_SEC', '120'))
    MAX_ROUND_SEC = int(os.environ.get('MAX_ROUND_SEC', '3600'))
    TICK_INTERVAL_SEC = float(os.environ.get('TICK_INTERVAL_SEC', '1'))
    # Immunity granted to a freshly tagged player (ms)
    TAG_IMMUNITY_MS = int(os.environ.get('TAG_IMMUNITY_MS', '500'))
    # Random draws before the code allocator falls back to a scan
    ROOM_CODE_ATTEMPTS = int(os.environ.get('ROOM_CODE_ATTEMPTS', '100'))
