"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- storage: Object storage (R2/S3) for videos and QR images
- qr: QR code rendering, stored locally or in object storage
- snowflake: Database persistence
- mail: SMTP notifications

These wrappers translate between external formats and our domain models.
"""
