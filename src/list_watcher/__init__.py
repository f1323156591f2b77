"""Watch list-like regions of web pages and report newly added entries."""
