"""Business logic services for the Quill Feed application."""
