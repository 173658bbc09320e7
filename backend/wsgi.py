# backend/wsgi.py
from filterops import create_app

app = create_app()
