# backend/wsgi.py
from rfidtrack import create_app

app = create_app()
