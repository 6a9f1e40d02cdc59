# app/crud/__init__.py
