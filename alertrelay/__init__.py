"""alertrelay: deliver monitoring alerts to webhooks, Pub/Sub and Cloud Workflows."""

__version__ = "1.0.0"
