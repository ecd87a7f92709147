"""Services - Submission pipeline stages."""
