import os

class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'whostune-dev-secret'
    # Comma separated list; '*' allows any origin
    ALLOWED_ORIGINS = os.environ.get('ALLOWED_ORIGINS', '*')
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    # Room limits
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '8'))
    MIN_ACTIVE_PLAYERS = int(os.environ.get('MIN_ACTIVE_PLAYERS', '2'))
    # Registered music profiles kept in memory; least recently used go first
    MAX_PROFILES = int(os.environ.get('MAX_PROFILES', '1000'))
    # Defaults for rooms created without settings
    DEFAULT_QUESTION_COUNT = int(os.environ.get('DEFAULT_QUESTION_COUNT', '10'))
    DEFAULT_TIMER_SEC = int(os.environ.get('DEFAULT_TIMER_SEC', '20'))
    # Pauses before a question is sent (seconds)
    FIRST_QUESTION_DELAY_SEC = float(os.environ.get('FIRST_QUESTION_DELAY_SEC', '0.8'))
    NEXT_QUESTION_DELAY_SEC = float(os.environ.get('NEXT_QUESTION_DELAY_SEC', '0.5'))
    # Question building
    TRACKS_PER_PLAYER = int(os.environ.get('TRACKS_PER_PLAYER', '30'))
    MAX_DECOYS = int(os.environ.get('MAX_DECOYS', '3'))
    # Scoring
    BASE_POINTS = int(os.environ.get('BASE_POINTS', '500'))
    MAX_TIME_BONUS = int(os.environ.get('MAX_TIME_BONUS', '500'))
