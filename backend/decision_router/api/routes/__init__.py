"""HTTP routes, registered explicitly in main.py."""
