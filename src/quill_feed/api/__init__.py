"""HTTP API for the Quill Feed application."""
