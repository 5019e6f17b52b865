"""
Test settings: in-memory SQLite, fast hashing, captured email.
"""
import os

os.environ.setdefault('DATABASE_URL', 'sqlite://:memory:')

from .base import *

DEBUG = False

PASSWORD_HASHERS = ['django.contrib.auth.hashers.MD5PasswordHasher']

EMAIL_BACKEND = 'django.core.mail.backends.locmem.EmailBackend'

APP_URL = 'http://testserver'

LOGGING['root']['level'] = 'CRITICAL'

DATABASES = {
    'default': {
        'ENGINE': 'django.db.backends.sqlite3',
        'NAME': ':memory:',
    }
}
