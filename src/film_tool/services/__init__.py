"""Services subpackage - caller-side pipelines for the UI and API."""
