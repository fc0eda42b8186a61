"""Background workers run alongside the web application."""
