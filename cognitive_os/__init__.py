"""
Cognitive OS: skill tracking and adaptive session planning.

Packages:
- core: catalog, trial input, errors, persisted document schemas
- db: state storage backends
- learning: skill ratings and activity history
- study: session composition and the training service
- cli: the ``cogos`` command
"""

__version__ = "1.0.0"
