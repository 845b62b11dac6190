"""
Video Intake - a form-intake service for template video submissions.

This package contains the complete application:
- core: Framework-agnostic submission model and intake workflow
- infrastructure: External service integrations
- api: FastAPI routes and dependencies
- config: Application configuration
"""

__version__ = "0.1.0"
