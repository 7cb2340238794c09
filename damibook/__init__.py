"""
Damibook Application Package

This package contains the code for Damibook, a small social network with a
public post feed, comments and private messaging. The package is organized
as follows:

- config.py: Application configuration and environment settings
- database.py: Database connection and session management
- dependencies.py: FastAPI dependency injection functions
- errors.py: Application exceptions
- limiter.py: Rate limiting configuration
- main.py: FastAPI application entry point and the feed page
- models.py: SQLAlchemy ORM database models
- templating.py: Jinja2 template configuration

Subpackages:
- routes/: Route handlers (auth, feed, chat)
- services/: Business logic (auth, sessions, feed, comments, messaging)
- utils/: Utility functions (text processing)
- templates/: HTML templates for server-side rendering
- static/: Static assets (CSS)
"""
