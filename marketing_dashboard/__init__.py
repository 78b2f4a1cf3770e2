"""
Marketing Dashboard Backend Package.

FastAPI service that aggregates Google Analytics 4 Data API reports into the
payload rendered by the marketing dashboard.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration, exceptions and dependencies
    - models: Report types, enums and response schemas
    - services: Report client, facets, aggregation and insights
"""

__version__ = "1.0.0"
