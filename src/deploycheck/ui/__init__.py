"""Command line front end and terminal rendering."""
