"""airtable-source command-line interface."""
