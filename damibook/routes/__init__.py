"""
Routes Package

This package contains FastAPI route handlers for the application.
Each module defines routes for a specific feature area:

- auth.py: Registration, login and logout
- feed.py: Creating posts and comments
- chat.py: Private conversations between two users

Routes are registered in main.py using FastAPI's router system.
"""
