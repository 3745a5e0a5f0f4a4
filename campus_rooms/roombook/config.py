import os


def _env_bool(name, default):
    return os.getenv(name, str(default)).lower() in ['true', '1', 't', 'yes']


DATABASE_URL = os.getenv('DATABASE_URL', 'sqlite:///./campus_booking.db')
# Render style URLs start with postgres://
if DATABASE_URL.startswith('postgres://'):
    DATABASE_URL = DATABASE_URL.replace('postgres://', 'postgresql://', 1)

# Hourly grid: first slot starts at SLOT_FIRST_HOUR, last slot ends at SLOT_LAST_HOUR
SLOT_FIRST_HOUR = int(os.getenv('SLOT_FIRST_HOUR', 8))
SLOT_LAST_HOUR = int(os.getenv('SLOT_LAST_HOUR', 21))

AUTO_RELEASE_GRACE_MINUTES = int(os.getenv('AUTO_RELEASE_GRACE_MINUTES', 15))
AUTO_RELEASE_ENABLED = _env_bool('AUTO_RELEASE_ENABLED', True)
AUTO_RELEASE_INTERVAL_SECONDS = int(os.getenv('AUTO_RELEASE_INTERVAL_SECONDS', 300))

CORS_ORIGINS = [o.strip() for o in os.getenv(
    'CORS_ORIGINS',
    'http://localhost,http://localhost:5173,http://127.0.0.1:5173',
).split(',') if o.strip()]

LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO').upper()
