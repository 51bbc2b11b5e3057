import os
from dotenv import load_dotenv
load_dotenv()

JWT_SECRET_KEY = str(os.getenv('JWT_SECRET_KEY'))
JWT_ALGORITHM = str(os.getenv('JWT_ALGORITHM', 'HS256'))
DATABASE_URL = os.getenv('DATABASE_URL')
FRONTEND_URL = os.getenv('FRONTEND_URL')
LOG_LEVEL = os.getenv('LOG_LEVEL', 'INFO')

# Slot tokens are enumerated every SLOT_GRANULARITY_MINUTES but each one
# blocks SLOT_DURATION_MINUTES when checked against bookings.
SLOT_GRANULARITY_MINUTES = int(os.getenv('SLOT_GRANULARITY_MINUTES', 30))
SLOT_DURATION_MINUTES = int(os.getenv('SLOT_DURATION_MINUTES', 60))
CALENDAR_HORIZON_MONTHS = int(os.getenv('CALENDAR_HORIZON_MONTHS', 3))

STORE_MAX_RETRIES = int(os.getenv('STORE_MAX_RETRIES', 3))
STORE_RETRY_DELAY_SECONDS = float(os.getenv('STORE_RETRY_DELAY_SECONDS', 1.0))

DEFAULT_CURRENCY = os.getenv('DEFAULT_CURRENCY', 'XOF')
DEFAULT_CONSULTATION_PRICE = int(os.getenv('DEFAULT_CONSULTATION_PRICE', 25000))
