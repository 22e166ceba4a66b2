import os

from compensation_api import create_app

app = create_app(os.getenv("APP_CONFIG"))
