import os

from dotenv import load_dotenv

load_dotenv()


def _origins(raw):
    return [o.strip() for o in raw.split(',') if o.strip()]


class Config:
    SECRET_KEY = os.environ.get('SECRET_KEY') or 'you-will-never-guess'
    SQLALCHEMY_DATABASE_URI = os.environ.get('DATABASE_URL') or 'sqlite:///roomofy.db'
    SQLALCHEMY_TRACK_MODIFICATIONS = False
    ALLOWED_ORIGINS = _origins(os.environ.get('ALLOWED_ORIGINS', 'http://localhost:5500,http://127.0.0.1:5500'))
    # Wallet
    STARTING_BALANCE = int(os.environ.get('STARTING_BALANCE', '1000'))
    PLATFORM_ACCOUNT_ID = os.environ.get('PLATFORM_ACCOUNT_ID', 'platform')
    # Share of each pot kept by the platform on a win (0.2 = 20%)
    PLATFORM_FEE_FRACTION = float(os.environ.get('PLATFORM_FEE_FRACTION', '0.20'))
    # Board
    BOARD_SIZE = int(os.environ.get('BOARD_SIZE', '8'))
    WIN_LENGTH = int(os.environ.get('WIN_LENGTH', '3'))
    MAX_PLAYERS = int(os.environ.get('MAX_PLAYERS', '2'))
