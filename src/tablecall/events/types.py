"""Event type constants for messages pushed to dashboards."""

REQUEST_CREATED = "request.created"
